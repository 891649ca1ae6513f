"""
Core module containing data models, audio loading, and the analysis engine.

Uses lazy imports for modules with heavy dependencies (librosa).
"""

# Models are lightweight - import directly
from bandscope.core.models import (
    ContentKind,
    SampleBuffer,
    RmsEnvelope,
    Beat,
    FrequencyPeak,
    Spectrum,
    Spectrogram,
    TimeMarker,
    TimeSegment,
    FrequencyRange,
    AudioFeatures,
    AudioAnalysis,
    FrequencyOverlap,
    EQSuggestion,
    BandInterferenceNote,
    TrackAlignment,
    InterferenceReport,
    AnalysisResult,
    validate_confidence,
)
from bandscope.core.bands import FREQUENCY_BANDS, FrequencyBand, band_for_frequency
from bandscope.core.cancellation import CancellationToken

__all__ = [
    # Models (always available)
    "ContentKind",
    "SampleBuffer",
    "RmsEnvelope",
    "Beat",
    "FrequencyPeak",
    "Spectrum",
    "Spectrogram",
    "TimeMarker",
    "TimeSegment",
    "FrequencyRange",
    "AudioFeatures",
    "AudioAnalysis",
    "FrequencyOverlap",
    "EQSuggestion",
    "BandInterferenceNote",
    "TrackAlignment",
    "InterferenceReport",
    "AnalysisResult",
    "validate_confidence",
    "FREQUENCY_BANDS",
    "FrequencyBand",
    "band_for_frequency",
    "CancellationToken",
    # Heavy modules (lazy loaded)
    "AudioLoader",
    "create_audio_loader",
    "Analyzer",
    "BaseAnalyzer",
    "AudioAnalysisEngine",
    "create_analysis_engine",
    # Batch processing
    "BatchProcessor",
    "BatchResult",
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("AudioLoader", "create_audio_loader"):
        from bandscope.core.loader import AudioLoader, create_audio_loader
        return AudioLoader if name == "AudioLoader" else create_audio_loader
    elif name in ("Analyzer", "BaseAnalyzer"):
        from bandscope.core.analyzer_base import Analyzer, BaseAnalyzer
        return Analyzer if name == "Analyzer" else BaseAnalyzer
    elif name in ("AudioAnalysisEngine", "create_analysis_engine"):
        from bandscope.core.engine import AudioAnalysisEngine, create_analysis_engine
        return AudioAnalysisEngine if name == "AudioAnalysisEngine" else create_analysis_engine
    elif name in ("BatchProcessor", "BatchResult"):
        from bandscope.core.batch_processor import BatchProcessor, BatchResult
        return BatchProcessor if name == "BatchProcessor" else BatchResult
    elif name in ("ResultWriter", "TextResultWriter", "JSONResultWriter", "create_result_writer"):
        from bandscope.core import result_writer
        return getattr(result_writer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
