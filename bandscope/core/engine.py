"""
Analysis engine for BandScope.

Main orchestration engine that coordinates all pipeline stages.

Two independent entry points share no state:
- single-track: analyze / analyze_buffer (features -> classification -> summary)
- two-track: compare / compare_spectra (interference -> EQ suggestions)
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from bandscope.analyzers.beats import BeatDetector
from bandscope.analyzers.classifier import ContentClassifier
from bandscope.analyzers.envelope import EnvelopeAnalyzer
from bandscope.analyzers.eq import EQSuggestionEngine
from bandscope.analyzers.interference import InterferenceAnalyzer, describe_interference
from bandscope.analyzers.spectral import SpectralAnalyzer
from bandscope.analyzers.summary import SummaryGenerator
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.loader import AudioLoader, create_audio_loader
from bandscope.core.models import (
    AnalysisResult,
    AudioAnalysis,
    AudioFeatures,
    InterferenceReport,
    SampleBuffer,
    Spectrum,
    TrackAlignment,
)
from bandscope.utils.errors import SampleRateMismatchError
from bandscope.utils.logging import create_logger_with_context

# Tracks whose durations differ by more than this are reported as misaligned
LENGTH_TOLERANCE_SECONDS: float = 0.5


class AudioAnalysisEngine:
    """
    Main analysis engine - orchestrates all stages.

    Design:
    - Dependency Injection: All stages injected (testable)
    - Parallel Execution: envelope and STFT run concurrently
    - No cross-call state: every invocation is independent
    - Cancellation: an optional token is polled between stages
    """

    def __init__(
        self,
        loader: AudioLoader,
        envelope_analyzer: EnvelopeAnalyzer,
        beat_detector: BeatDetector,
        spectral_analyzer: SpectralAnalyzer,
        classifier: ContentClassifier,
        summary_generator: SummaryGenerator,
        interference_analyzer: InterferenceAnalyzer,
        eq_engine: EQSuggestionEngine,
        max_workers: int = 2,
    ):
        """
        Initialize analysis engine.

        Args:
            loader: AudioLoader instance
            envelope_analyzer: RMS envelope stage
            beat_detector: Beat picking stage
            spectral_analyzer: STFT stage
            classifier: Content classification stage
            summary_generator: Text report stage
            interference_analyzer: Two-track band comparison stage
            eq_engine: EQ suggestion stage
            max_workers: Max parallel workers
        """
        self.loader = loader
        self.envelope_analyzer = envelope_analyzer
        self.beat_detector = beat_detector
        self.spectral_analyzer = spectral_analyzer
        self.classifier = classifier
        self.summary_generator = summary_generator
        self.interference_analyzer = interference_analyzer
        self.eq_engine = eq_engine
        # Batch jobs and per-track stages use separate pools so that a batch
        # worker waiting on its stages can never starve them.
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.batch_executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger('engine')

    @property
    def analyzer_versions(self) -> Dict[str, str]:
        stages = [
            self.envelope_analyzer,
            self.beat_detector,
            self.spectral_analyzer,
            self.classifier,
            self.summary_generator,
        ]
        return {stage.name: stage.version for stage in stages}

    # ------------------------------------------------------------------
    # Single-track pipeline
    # ------------------------------------------------------------------

    def extract_features(
        self,
        audio: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AudioFeatures:
        """
        Envelope, beats, STFT peaks/spectrogram and time markers of one track.

        Envelope and STFT read the same immutable buffer and run in parallel;
        both are joined before beats and markers are derived.
        """
        envelope_future = self.executor.submit(
            self.envelope_analyzer.analyze, audio, cancel_token
        )
        spectral_future = self.executor.submit(
            self.spectral_analyzer.analyze, audio, cancel_token
        )
        envelope = envelope_future.result()
        spectral = spectral_future.result()

        check_cancelled(cancel_token, 'beats')
        beats = self.beat_detector.analyze(envelope, cancel_token)

        markers = self.classifier.generate_markers(beats, spectral.peaks)

        return AudioFeatures(
            envelope=envelope,
            beats=tuple(beats),
            frequency_peaks=spectral.peaks,
            spectrogram=spectral.spectrogram,
            time_markers=markers,
        )

    def classify(
        self,
        features: AudioFeatures,
        duration: float,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AudioAnalysis:
        """Classification plus summary over already extracted features."""
        analysis = self.classifier.analyze(features, duration, cancel_token)

        check_cancelled(cancel_token, 'summary')
        summary = self.summary_generator.analyze(
            analysis, duration, beat_count=len(features.beats)
        )
        return replace(analysis, summary=summary)

    def analyze_buffer(
        self,
        audio: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AudioAnalysis:
        """
        Full single-track analysis of an in-memory buffer.

        Deterministic: the same buffer always yields an equal AudioAnalysis.
        """
        features = self.extract_features(audio, cancel_token)
        return self.classify(features, audio.duration, cancel_token)

    def analyze(
        self,
        file_path: Path,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """
        Load and analyze an audio file.

        Args:
            file_path: Path to audio file
            cancel_token: Optional cancellation token

        Returns:
            AnalysisResult: Metadata, features, classification and timing
        """
        file_path = Path(file_path)
        start_time = time.time()

        track_logger = create_logger_with_context("engine", {"track": str(file_path)})
        track_logger.info(f"Loading audio: {file_path}")
        audio = self.loader.load(file_path)

        result = self._build_result(audio, start_time, cancel_token)
        track_logger.info(
            f"Analysis complete in {result.processing_time:.3f}s: {result.get_summary()}"
        )
        return result

    def analyze_sample(
        self,
        audio: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """Like analyze(), for a buffer that is already decoded."""
        return self._build_result(audio, time.time(), cancel_token)

    def _build_result(
        self,
        audio: SampleBuffer,
        start_time: float,
        cancel_token: Optional[CancellationToken],
    ) -> AnalysisResult:
        features = self.extract_features(audio, cancel_token)
        analysis = self.classify(features, audio.duration, cancel_token)

        processing_time = time.time() - start_time
        self.logger.debug(f"Pipeline finished in {processing_time:.3f}s")

        return AnalysisResult(
            track_metadata=audio.metadata,
            features=features,
            analysis=analysis,
            timestamp=datetime.now(timezone.utc),
            processing_time=processing_time,
            analyzer_versions=self.analyzer_versions,
        )

    def analyze_batch(self, file_paths: List[Path]) -> List[Optional[AnalysisResult]]:
        """
        Analyze multiple files.

        Files that fail are logged and reported as None.

        Returns:
            List[AnalysisResult]: Results in same order as input
        """
        self.logger.info(f"Analyzing batch of {len(file_paths)} files")

        futures = {
            self.batch_executor.submit(self.analyze, path): index
            for index, path in enumerate(file_paths)
        }

        results: Dict[int, Optional[AnalysisResult]] = {}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                self.logger.error(f"Failed to analyze {file_paths[index]}: {e}")
                results[index] = None

        return [results[index] for index in range(len(file_paths))]

    # ------------------------------------------------------------------
    # Two-track pipeline
    # ------------------------------------------------------------------

    def compare_spectra(
        self,
        spectrum1: Spectrum,
        spectrum2: Spectrum,
        cancel_token: Optional[CancellationToken] = None,
    ) -> InterferenceReport:
        """
        Interference and EQ suggestions for two precomputed spectra.

        Raises:
            SampleRateMismatchError: Spectra come from different sample rates
        """
        overlaps = self.interference_analyzer.analyze(spectrum1, spectrum2, cancel_token)
        suggestions = self.eq_engine.analyze(overlaps, cancel_token)

        return InterferenceReport(
            overlaps=tuple(overlaps),
            suggestions=tuple(suggestions),
            notes=describe_interference(overlaps, self.interference_analyzer.bands),
        )

    def compare(
        self,
        audio1: SampleBuffer,
        audio2: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> InterferenceReport:
        """
        Compare two decoded tracks.

        Each track's STFT is averaged into a long-term spectrum; the two
        spectra are then compared band by band.

        Raises:
            SampleRateMismatchError: Tracks have different sample rates
        """
        if audio1.sample_rate != audio2.sample_rate:
            raise SampleRateMismatchError(audio1.sample_rate, audio2.sample_rate)

        future1 = self.executor.submit(self.spectral_analyzer.analyze, audio1, cancel_token)
        future2 = self.executor.submit(self.spectral_analyzer.analyze, audio2, cancel_token)
        spectrum1 = future1.result().spectrogram.average_spectrum()
        spectrum2 = future2.result().spectrogram.average_spectrum()

        report = self.compare_spectra(spectrum1, spectrum2, cancel_token)
        report = replace(report, alignment=track_alignment(audio1, audio2))

        self.logger.info(
            f"Comparison complete: {report.destructive_count} destructive, "
            f"{report.constructive_count} constructive, "
            f"{len(report.suggestions)} suggestions"
        )
        return report

    def compare_files(
        self,
        file_path1: Path,
        file_path2: Path,
        cancel_token: Optional[CancellationToken] = None,
    ) -> InterferenceReport:
        """Load two audio files and compare them."""
        self.logger.info(f"Comparing {file_path1} with {file_path2}")
        audio1 = self.loader.load(Path(file_path1))
        audio2 = self.loader.load(Path(file_path2))
        return self.compare(audio1, audio2, cancel_token)

    def shutdown(self) -> None:
        """Shutdown thread pools gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.batch_executor.shutdown(wait=True)
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "AudioAnalysisEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def track_alignment(audio1: SampleBuffer, audio2: SampleBuffer) -> TrackAlignment:
    """How two tracks' durations line up."""
    return TrackAlignment(
        overlap_duration=min(audio1.duration, audio2.duration),
        has_different_lengths=abs(audio1.duration - audio2.duration) > LENGTH_TOLERANCE_SECONDS,
        track1_is_shorter=audio1.duration < audio2.duration,
    )


def create_analysis_engine(config: Optional[Dict[str, Any]] = None) -> AudioAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict (see get_default_config)

    Returns:
        AudioAnalysisEngine: Configured engine
    """
    if config is None:
        config = {}

    analysis = config.get('analysis', {})
    envelope_cfg = analysis.get('envelope', {})
    beats_cfg = analysis.get('beats', {})
    spectral_cfg = analysis.get('spectral', {})
    class_cfg = analysis.get('classification', {})
    interference_cfg = analysis.get('interference', {})
    eq_cfg = analysis.get('eq', {})

    loader = create_audio_loader(config.get('audio', {}))

    envelope_analyzer = EnvelopeAnalyzer(
        window_seconds=envelope_cfg.get('window_seconds', 0.02),
    )
    beat_detector = BeatDetector(
        threshold=beats_cfg.get('threshold', 0.05),
        min_distance_seconds=beats_cfg.get('min_distance_seconds', 0.01),
    )
    spectral_analyzer = SpectralAnalyzer(
        fft_size=spectral_cfg.get('fft_size', 2048),
        hop_size=spectral_cfg.get('hop_size'),
        peak_threshold_db=spectral_cfg.get('peak_threshold_db', -50.0),
        max_peaks=spectral_cfg.get('max_peaks', 100),
        min_decibels=spectral_cfg.get('min_decibels', -100.0),
        max_decibels=spectral_cfg.get('max_decibels', 0.0),
    )
    classifier = ContentClassifier(
        marker_threshold_db=class_cfg.get('marker_threshold_db', -30.0),
        max_peak_markers=class_cfg.get('max_peak_markers', 5),
        beat_marker_stride=class_cfg.get('beat_marker_stride', 10),
        max_gap=class_cfg.get('max_gap', 0.5),
        marker_duration=class_cfg.get('marker_duration', 0.1),
        min_beats=class_cfg.get('min_beats', 10),
        max_beat_interval=class_cfg.get('max_beat_interval', 2.0),
        min_beat_density=class_cfg.get('min_beat_density', 0.5),
        music_confidence=class_cfg.get('music_confidence', 0.7),
    )
    interference_analyzer = InterferenceAnalyzer(
        min_overlap=interference_cfg.get('min_overlap', 0.3),
        emit_threshold=interference_cfg.get('emit_threshold', 0.2),
        fallback_intensity=interference_cfg.get('fallback_intensity', 0.5),
    )
    eq_engine = EQSuggestionEngine(
        gain_scale=eq_cfg.get('gain_scale', 12.0),
        max_reduction=eq_cfg.get('max_reduction', -12.0),
        min_reduction=eq_cfg.get('min_reduction', -3.0),
        q=eq_cfg.get('q', 0.7),
    )

    performance_config = config.get('performance', {})
    max_workers = performance_config.get('max_workers', 2)

    return AudioAnalysisEngine(
        loader=loader,
        envelope_analyzer=envelope_analyzer,
        beat_detector=beat_detector,
        spectral_analyzer=spectral_analyzer,
        classifier=classifier,
        summary_generator=SummaryGenerator(),
        interference_analyzer=interference_analyzer,
        eq_engine=eq_engine,
        max_workers=max_workers,
    )
