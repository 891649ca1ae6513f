"""
Content classifier for BandScope.

Heuristic speech / music / environmental-sound segmentation and the
dominant-band profile of a track. No learned models: peaks are labelled
by frequency alone and music is detected from beat regularity.
"""

from dataclasses import replace
from functools import reduce
from typing import List, Optional, Sequence, Tuple

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.bands import FREQUENCY_BANDS, FrequencyBand
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import (
    AudioAnalysis,
    AudioFeatures,
    Beat,
    ContentKind,
    FrequencyPeak,
    FrequencyRange,
    TimeMarker,
    TimeSegment,
)

# Frequency heuristic boundaries (Hz)
ENVIRONMENTAL_MAX_HZ: float = 300.0
SPEECH_MAX_HZ: float = 3000.0


def kind_for_frequency(frequency: float) -> ContentKind:
    """Environmental below 300 Hz, speech up to 3 kHz, music above."""
    if frequency < ENVIRONMENTAL_MAX_HZ:
        return ContentKind.ENVIRONMENTAL
    elif frequency < SPEECH_MAX_HZ:
        return ContentKind.SPEECH
    return ContentKind.MUSIC


def peak_confidence(magnitude_db: float) -> float:
    """Map a dB magnitude in [-100, 0] onto [0, 1]."""
    return min(1.0, max(0.0, (magnitude_db + 100.0) / 100.0))


class ContentClassifier(BaseAnalyzer[AudioAnalysis]):
    """
    Segments a track into speech, music and environmental spans.

    Speech and environmental segments come from peak markers merged while
    the gap between markers stays under ``max_gap``. Music is one segment
    from the first to the last beat when there are enough, dense enough
    beats. The returned AudioAnalysis has an empty summary; the summary
    generator fills it in.
    """

    def __init__(
        self,
        marker_threshold_db: float = -30.0,
        max_peak_markers: int = 5,
        beat_marker_stride: int = 10,
        max_gap: float = 0.5,
        marker_duration: float = 0.1,
        min_beats: int = 10,
        max_beat_interval: float = 2.0,
        min_beat_density: float = 0.5,
        music_confidence: float = 0.7,
    ):
        super().__init__("classifier", "1.0.0")
        self.marker_threshold_db = marker_threshold_db
        self.max_peak_markers = max_peak_markers
        self.beat_marker_stride = beat_marker_stride
        self.max_gap = max_gap
        self.marker_duration = marker_duration
        self.min_beats = min_beats
        self.max_beat_interval = max_beat_interval
        self.min_beat_density = min_beat_density
        self.music_confidence = music_confidence

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------

    def generate_markers(
        self,
        beats: Sequence[Beat],
        peaks: Sequence[FrequencyPeak],
    ) -> Tuple[TimeMarker, ...]:
        """
        Time markers from beats and the strongest peaks, sorted by time.

        Every ``beat_marker_stride``-th beat becomes a music marker. Peaks
        louder than ``marker_threshold_db`` (at most ``max_peak_markers``,
        loudest first) become markers of the kind their frequency suggests.
        """
        markers: List[TimeMarker] = []

        for i, beat in enumerate(beats[::self.beat_marker_stride]):
            markers.append(TimeMarker(
                id=f"beat-{i}",
                time=beat.time,
                label=f"Beat {i + 1}",
                kind=ContentKind.MUSIC,
                confidence=beat.confidence,
            ))

        strongest = sorted(peaks, key=lambda p: p.magnitude, reverse=True)
        significant = [p for p in strongest if p.magnitude > self.marker_threshold_db]
        for i, peak in enumerate(significant[:self.max_peak_markers]):
            kind = kind_for_frequency(peak.frequency)
            markers.append(TimeMarker(
                id=f"peak-{i}",
                time=peak.time,
                label=f"{kind.display_name} @ {round(peak.frequency)}Hz",
                kind=kind,
                confidence=peak_confidence(peak.magnitude),
            ))

        return tuple(sorted(markers, key=lambda m: m.time))

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _analyze_impl(
        self,
        features: AudioFeatures,
        duration: float,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AudioAnalysis:
        check_cancelled(cancel_token, self.name)
        speech = self.merge_markers(features.time_markers, ContentKind.SPEECH)

        check_cancelled(cancel_token, self.name)
        environmental = self.merge_markers(features.time_markers, ContentKind.ENVIRONMENTAL)

        check_cancelled(cancel_token, self.name)
        music = self.detect_music(features.beats, duration)

        check_cancelled(cancel_token, self.name)
        ranges = dominant_frequency_ranges(features.frequency_peaks)

        return AudioAnalysis(
            has_speech=bool(speech),
            speech_segments=speech,
            has_music_elements=bool(music),
            music_segments=music,
            has_environmental_sounds=bool(environmental),
            environmental_sound_segments=environmental,
            dominant_frequency_ranges=ranges,
            summary="",
        )

    def merge_markers(
        self,
        markers: Sequence[TimeMarker],
        kind: ContentKind,
    ) -> Tuple[TimeSegment, ...]:
        """
        Merge time-ordered markers of ``kind`` into segments.

        A marker closer than ``max_gap`` to the end of the open segment
        extends it to ``time + marker_duration`` and is averaged into its
        confidence; otherwise the segment is closed and a new one opened.
        """
        ordered = sorted((m for m in markers if m.kind is kind), key=lambda m: m.time)

        segments: List[TimeSegment] = []
        current: Optional[TimeSegment] = None

        for marker in ordered:
            if current is None:
                current = self._open_segment(marker, kind)
            elif marker.time - current.end < self.max_gap:
                current = replace(
                    current,
                    end=max(current.end, marker.time + self.marker_duration),
                    confidence=(current.confidence + marker.confidence) / 2,
                )
            else:
                segments.append(current)
                current = self._open_segment(marker, kind)

        if current is not None:
            segments.append(current)

        return tuple(segments)

    def _open_segment(self, marker: TimeMarker, kind: ContentKind) -> TimeSegment:
        return TimeSegment(
            start=marker.time,
            end=marker.time + self.marker_duration,
            kind=kind,
            confidence=marker.confidence,
        )

    def detect_music(
        self,
        beats: Sequence[Beat],
        duration: float,
    ) -> Tuple[TimeSegment, ...]:
        """
        One music segment spanning first to last beat, or none.

        Requires at least ``min_beats`` beats, a positive average interval
        among intervals in (0, max_beat_interval], and a beat density above
        ``min_beat_density`` beats per second.
        """
        if len(beats) < max(self.min_beats, 2) or duration <= 0:
            return ()

        intervals = [
            later.time - earlier.time
            for earlier, later in zip(beats, beats[1:])
        ]
        plausible = [i for i in intervals if 0 < i <= self.max_beat_interval]
        if not plausible:
            return ()

        avg_interval = sum(plausible) / len(plausible)
        density = len(beats) / duration
        self.logger.debug(
            f"Beat interval {avg_interval:.3f}s, density {density:.2f} beats/s"
        )

        if density > self.min_beat_density and avg_interval > 0:
            return (TimeSegment(
                start=beats[0].time,
                end=beats[-1].time,
                kind=ContentKind.MUSIC,
                confidence=self.music_confidence,
            ),)
        return ()


def dominant_frequency_ranges(
    peaks: Sequence[FrequencyPeak],
    bands: Sequence[FrequencyBand] = FREQUENCY_BANDS,
) -> Tuple[FrequencyRange, ...]:
    """
    Per-band intensity profile, normalized by the strongest band.

    Each peak adds ``(magnitude + 100) / 100`` to the band containing its
    frequency. When no peak lands in any band all intensities stay 0.
    """
    def accumulate(totals: Tuple[float, ...], peak: FrequencyPeak) -> Tuple[float, ...]:
        weight = (peak.magnitude + 100.0) / 100.0
        return tuple(
            total + weight if band.contains(peak.frequency) else total
            for total, band in zip(totals, bands)
        )

    totals = reduce(accumulate, peaks, tuple(0.0 for _ in bands))
    peak_total = max(totals, default=0.0)
    if peak_total > 0:
        totals = tuple(total / peak_total for total in totals)

    return tuple(
        FrequencyRange(
            min=band.min_hz,
            max=band.max_hz,
            label=band.label,
            intensity=min(1.0, max(0.0, total)),
        )
        for band, total in zip(bands, totals)
    )
