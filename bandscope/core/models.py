"""
Core data models for BandScope.

Immutable value types produced by one pipeline invocation. Every result
type converts to plain dictionaries so it can cross a process or network
boundary unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


def _frozen_array(values: Any, dtype: Any = np.float64, ndim: Optional[int] = None) -> np.ndarray:
    """Copy ``values`` into a read-only array."""
    array = np.array(values, dtype=dtype, copy=True)
    if ndim == 2 and array.ndim == 1:
        array = array.reshape(1, -1)
    array.setflags(write=False)
    return array


class ContentKind(Enum):
    """Closed set of content categories for markers and segments."""

    SPEECH = "speech"
    MUSIC = "music"
    ENVIRONMENTAL = "environmental"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class SampleBuffer:
    """
    Immutable decoded PCM audio.

    Samples are stored as a read-only (channels, n_samples) float32 array.
    The engine never mutates a buffer; callers own it for the lifetime of
    one analysis.
    """

    samples: np.ndarray = field(compare=False, hash=False, repr=False)
    sample_rate: int

    # Provenance (filled in by the loader, optional for in-memory audio)
    file_path: Optional[Path] = None
    file_hash: Optional[str] = None
    original_format: Optional[str] = None
    original_bit_depth: Optional[str] = None
    file_size: Optional[int] = None

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        object.__setattr__(
            self, 'samples', _frozen_array(self.samples, dtype=np.float32, ndim=2)
        )

    @classmethod
    def from_array(cls, samples: Any, sample_rate: int, **kwargs: Any) -> "SampleBuffer":
        """Build a buffer from a mono (n,) or multi-channel (channels, n) array."""
        return cls(samples=np.asarray(samples), sample_rate=int(sample_rate), **kwargs)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def num_samples(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.num_samples / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return self.num_samples == 0

    @property
    def first_channel(self) -> np.ndarray:
        """Channel 0, the signal all single-track analyses run on."""
        return self.samples[0]

    @property
    def metadata(self) -> Dict[str, Any]:
        """Track metadata for reports."""
        return {
            'name': self.file_path.name if self.file_path else None,
            'size': self.file_size,
            'format': self.original_format,
            'bit_depth': self.original_bit_depth,
            'file_hash': self.file_hash,
            'duration': self.duration,
            'sample_rate': self.sample_rate,
            'channels': self.channels,
        }


@dataclass(frozen=True)
class RmsEnvelope:
    """RMS energy per fixed, non-overlapping window."""

    values: np.ndarray = field(compare=False, hash=False, repr=False)
    window_size: int  # samples per window
    sample_rate: int

    def __post_init__(self) -> None:
        object.__setattr__(self, 'values', _frozen_array(self.values))

    def __len__(self) -> int:
        return int(self.values.shape[0])

    @property
    def window_duration(self) -> float:
        """Seconds covered by one window."""
        return self.window_size / self.sample_rate

    def time_at(self, index: int) -> float:
        """Start time of window ``index``."""
        return index * self.window_duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            'window_size': self.window_size,
            'window_duration': self.window_duration,
            'values': [float(v) for v in self.values],
        }


@dataclass(frozen=True)
class Beat:
    """Energy-peak event."""

    time: float  # seconds
    confidence: float  # [0.0, 1.0]

    def __post_init__(self) -> None:
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.time, 'confidence': self.confidence}


@dataclass(frozen=True)
class FrequencyPeak:
    """Local spectral maximum in one STFT frame."""

    frequency: float  # Hz
    magnitude: float  # dB
    time: float  # seconds (frame start)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frequency': self.frequency,
            'magnitude': self.magnitude,
            'time': self.time,
        }


@dataclass(frozen=True)
class Spectrum:
    """
    Magnitude-in-dB per frequency bin.

    Bin ``k`` is centered on ``k * sample_rate / fft_size``.
    """

    magnitudes_db: np.ndarray = field(compare=False, hash=False, repr=False)
    sample_rate: int
    fft_size: int
    min_decibels: float = -100.0

    def __post_init__(self) -> None:
        object.__setattr__(self, 'magnitudes_db', _frozen_array(self.magnitudes_db))

    @property
    def n_bins(self) -> int:
        return int(self.magnitudes_db.shape[0])

    def to_linear(self) -> np.ndarray:
        """
        Linear magnitudes; bins at or below the dB floor count as silence (0).
        """
        linear = np.power(10.0, self.magnitudes_db / 20.0)
        return np.where(self.magnitudes_db <= self.min_decibels, 0.0, linear)


@dataclass(frozen=True)
class Spectrogram:
    """Ordered STFT frames, shape (n_frames, n_bins), in dB."""

    frames: np.ndarray = field(compare=False, hash=False, repr=False)
    sample_rate: int
    fft_size: int
    hop_size: int
    min_decibels: float = -100.0
    max_decibels: float = 0.0

    def __post_init__(self) -> None:
        frames = np.asarray(self.frames, dtype=np.float64)
        if frames.ndim != 2:
            frames = frames.reshape(-1, self.fft_size // 2)
        object.__setattr__(self, 'frames', _frozen_array(frames))

    @property
    def n_frames(self) -> int:
        return int(self.frames.shape[0])

    @property
    def n_bins(self) -> int:
        return int(self.frames.shape[1])

    @property
    def is_empty(self) -> bool:
        return self.n_frames == 0

    def average_spectrum(self) -> Spectrum:
        """
        Long-term average spectrum.

        Frames are averaged in the linear domain and converted back to dB.
        Floor-level values count as silence (0) in the average, and bins that
        average to silence come back exactly at the floor. An empty
        spectrogram averages to all-floor bins.
        """
        magnitudes = np.full(self.n_bins, self.min_decibels)
        if not self.is_empty:
            linear = np.power(10.0, self.frames / 20.0)
            linear[self.frames <= self.min_decibels] = 0.0
            mean = linear.mean(axis=0)
            audible = mean > 0.0
            magnitudes[audible] = np.clip(
                20.0 * np.log10(mean[audible]), self.min_decibels, self.max_decibels
            )
        return Spectrum(
            magnitudes_db=magnitudes,
            sample_rate=self.sample_rate,
            fft_size=self.fft_size,
            min_decibels=self.min_decibels,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Shape and scale only; frame data stays in memory."""
        return {
            'n_frames': self.n_frames,
            'n_bins': self.n_bins,
            'fft_size': self.fft_size,
            'hop_size': self.hop_size,
            'min_decibels': self.min_decibels,
            'max_decibels': self.max_decibels,
        }


@dataclass(frozen=True)
class TimeMarker:
    """Labelled point in time."""

    id: str
    time: float
    label: str
    kind: ContentKind
    confidence: float

    def __post_init__(self) -> None:
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'time': self.time,
            'label': self.label,
            'kind': self.kind.value,
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class TimeSegment:
    """Span of time classified as one content kind."""

    start: float
    end: float
    kind: ContentKind
    confidence: float

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(
                f"Segment start must precede end, got {self.start} >= {self.end}"
            )
        validate_confidence(self.confidence)

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start,
            'end': self.end,
            'kind': self.kind.value,
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class FrequencyRange:
    """One of the fixed bands with its normalized intensity."""

    min: float
    max: float
    label: str
    intensity: float  # [0.0, 1.0]

    def __post_init__(self) -> None:
        validate_confidence(self.intensity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min': self.min,
            'max': self.max,
            'label': self.label,
            'intensity': self.intensity,
        }


@dataclass(frozen=True)
class AudioFeatures:
    """Low-level features of one track."""

    envelope: RmsEnvelope
    beats: Tuple[Beat, ...]
    frequency_peaks: Tuple[FrequencyPeak, ...]
    spectrogram: Spectrogram
    time_markers: Tuple[TimeMarker, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'envelope': self.envelope.to_dict(),
            'beats': [b.to_dict() for b in self.beats],
            'frequency_peaks': [p.to_dict() for p in self.frequency_peaks],
            'spectrogram': self.spectrogram.to_dict(),
            'time_markers': [m.to_dict() for m in self.time_markers],
        }


@dataclass(frozen=True)
class AudioAnalysis:
    """Content classification of one track."""

    has_speech: bool
    speech_segments: Tuple[TimeSegment, ...]
    has_music_elements: bool
    music_segments: Tuple[TimeSegment, ...]
    has_environmental_sounds: bool
    environmental_sound_segments: Tuple[TimeSegment, ...]
    dominant_frequency_ranges: Tuple[FrequencyRange, ...]
    summary: str

    def segments_for(self, kind: ContentKind) -> Tuple[TimeSegment, ...]:
        """Segments of one kind."""
        if kind is ContentKind.SPEECH:
            return self.speech_segments
        elif kind is ContentKind.MUSIC:
            return self.music_segments
        elif kind is ContentKind.ENVIRONMENTAL:
            return self.environmental_sound_segments
        elif kind is ContentKind.CUSTOM:
            return ()
        raise ValueError(f"Unknown content kind: {kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'has_speech': self.has_speech,
            'speech_segments': [s.to_dict() for s in self.speech_segments],
            'has_music_elements': self.has_music_elements,
            'music_segments': [s.to_dict() for s in self.music_segments],
            'has_environmental_sounds': self.has_environmental_sounds,
            'environmental_sound_segments': [
                s.to_dict() for s in self.environmental_sound_segments
            ],
            'dominant_frequency_ranges': [
                r.to_dict() for r in self.dominant_frequency_ranges
            ],
            'summary': self.summary,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class FrequencyOverlap:
    """Shared energy of two tracks in one band."""

    frequency: float  # band center, Hz
    magnitude1: float  # average linear magnitude of track 1 in the band
    magnitude2: float
    overlap_intensity: float  # [0.0, 1.0]
    is_constructive: bool
    band: str
    is_fallback: bool = False

    def __post_init__(self) -> None:
        validate_confidence(self.overlap_intensity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frequency': self.frequency,
            'magnitude1': self.magnitude1,
            'magnitude2': self.magnitude2,
            'overlap_intensity': self.overlap_intensity,
            'is_constructive': self.is_constructive,
            'band': self.band,
            'is_fallback': self.is_fallback,
        }


@dataclass(frozen=True)
class EQSuggestion:
    """Gain cut recommended for one track in one band."""

    track: int  # 1 or 2
    frequency_range: Tuple[float, float]  # (low, high) Hz
    gain_reduction: float  # dB, in [-12, -3]
    q: float
    reason: str
    band: str = ""

    def __post_init__(self) -> None:
        if self.track not in (1, 2):
            raise ValueError(f"Track must be 1 or 2, got {self.track}")
        if not -12.0 <= self.gain_reduction <= -3.0:
            raise ValueError(
                f"Gain reduction must be in [-12, -3] dB, got {self.gain_reduction}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'track': self.track,
            'frequency_range': {
                'low': self.frequency_range[0],
                'high': self.frequency_range[1],
            },
            'gain_reduction': self.gain_reduction,
            'q': self.q,
            'reason': self.reason,
            'band': self.band,
        }


@dataclass(frozen=True)
class BandInterferenceNote:
    """Mixing advice for one band with overlaps."""

    label: str
    low: float
    high: float
    mainly_destructive: bool
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'low': self.low,
            'high': self.high,
            'mainly_destructive': self.mainly_destructive,
            'description': self.description,
        }


@dataclass(frozen=True)
class TrackAlignment:
    """How the durations of two compared tracks line up."""

    overlap_duration: float
    has_different_lengths: bool
    track1_is_shorter: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overlap_duration': self.overlap_duration,
            'has_different_lengths': self.has_different_lengths,
            'track1_is_shorter': self.track1_is_shorter,
        }


@dataclass(frozen=True)
class InterferenceReport:
    """Two-track comparison result."""

    overlaps: Tuple[FrequencyOverlap, ...]
    suggestions: Tuple[EQSuggestion, ...]
    notes: Tuple[BandInterferenceNote, ...] = ()
    alignment: Optional[TrackAlignment] = None

    @property
    def constructive_count(self) -> int:
        return sum(1 for o in self.overlaps if o.is_constructive)

    @property
    def destructive_count(self) -> int:
        return len(self.overlaps) - self.constructive_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overlaps': [o.to_dict() for o in self.overlaps],
            'suggestions': [s.to_dict() for s in self.suggestions],
            'constructive_count': self.constructive_count,
            'destructive_count': self.destructive_count,
            'notes': [n.to_dict() for n in self.notes],
            'alignment': self.alignment.to_dict() if self.alignment else None,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class AnalysisResult:
    """File-level result: metadata, features, classification and timing."""

    track_metadata: Dict[str, Any]
    features: AudioFeatures
    analysis: AudioAnalysis
    timestamp: datetime
    processing_time: float  # seconds
    analyzer_versions: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'track_metadata': self.track_metadata,
            'timestamp': self.timestamp.isoformat(),
            'processing_time': self.processing_time,
            'features': self.features.to_dict(),
            'analysis': self.analysis.to_dict(),
            'analyzer_versions': self.analyzer_versions,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_summary(self) -> str:
        """One-line summary."""
        parts: List[str] = []
        kinds = [
            ('Speech', self.analysis.has_speech),
            ('Music', self.analysis.has_music_elements),
            ('Environmental', self.analysis.has_environmental_sounds),
        ]
        detected = [name for name, present in kinds if present]
        parts.append(f"Content: {', '.join(detected) if detected else 'none'}")
        parts.append(f"Beats: {len(self.features.beats)}")

        ranges = sorted(
            self.analysis.dominant_frequency_ranges,
            key=lambda r: r.intensity,
            reverse=True,
        )
        if ranges and ranges[0].intensity > 0:
            parts.append(f"Dominant band: {ranges[0].label}")

        return " | ".join(parts)


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate a score is in [0.0, 1.0]."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")
