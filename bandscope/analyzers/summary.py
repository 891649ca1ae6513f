"""
Summary generator for BandScope.

Renders a classification into a short plain-text report.
"""

from typing import List, Sequence

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.models import AudioAnalysis, FrequencyRange, TimeSegment

LOW_FREQUENCY_LIMIT: float = 250.0
MID_FREQUENCY_LIMIT: float = 2000.0


class SummaryGenerator(BaseAnalyzer[str]):
    """
    Deterministic text report over an AudioAnalysis.

    Reports detected categories, speech and music coverage, an estimated
    tempo when beats are dense enough, and the strongest bands.
    """

    def __init__(
        self,
        min_tempo_bpm: float = 40.0,
        band_intensity_threshold: float = 0.3,
        max_bands: int = 3,
    ):
        super().__init__("summary", "1.0.0")
        self.min_tempo_bpm = min_tempo_bpm
        self.band_intensity_threshold = band_intensity_threshold
        self.max_bands = max_bands

    def _analyze_impl(
        self,
        analysis: AudioAnalysis,
        duration: float,
        beat_count: int = 0,
    ) -> str:
        lines: List[str] = [f"Audio file analysis ({duration:.2f} seconds):", ""]

        content_types = []
        if analysis.has_speech:
            content_types.append("speech")
        if analysis.has_music_elements:
            content_types.append("music")
        if analysis.has_environmental_sounds:
            content_types.append("environmental sounds")

        if content_types:
            lines.append(f"The audio contains {', '.join(content_types)}.")
        else:
            lines.append(
                "The audio appears to contain no easily identifiable speech, "
                "music, or environmental sounds."
            )
        lines.append("")

        if analysis.has_speech:
            segments = analysis.speech_segments
            lines.append(
                f"Speech detected for approximately "
                f"{coverage_percent(segments, duration):.1f}% of the audio."
            )
            if len(segments) > 1:
                lines.append(f"Found {len(segments)} separate speech segments.")
            else:
                lines.append(
                    "Speech appears to be continuous throughout the detected segment."
                )
            lines.append("")

        if analysis.has_music_elements:
            lines.append(
                f"Musical patterns detected for approximately "
                f"{coverage_percent(analysis.music_segments, duration):.1f}% of the audio."
            )
            if beat_count > 0 and duration > 0:
                bpm = beat_count / duration * 60
                if bpm > self.min_tempo_bpm:
                    lines.append(f"The tempo is approximately {round(bpm)} BPM.")
            lines.append("")

        top_ranges = self.top_ranges(analysis.dominant_frequency_ranges)
        if top_ranges:
            lines.append("Dominant frequency characteristics:")
            for r in top_ranges:
                lines.append(
                    f"- {r.label} ({r.min:g}-{r.max:g}Hz): "
                    f"{r.intensity * 100:.1f}% intensity"
                )
            lines.append("")
            lines.append(interpret_band(top_ranges[0]))

        return "\n".join(lines).rstrip() + "\n"

    def top_ranges(self, ranges: Sequence[FrequencyRange]) -> List[FrequencyRange]:
        """Strongest bands above the intensity threshold."""
        ordered = sorted(ranges, key=lambda r: r.intensity, reverse=True)
        return [
            r for r in ordered if r.intensity > self.band_intensity_threshold
        ][:self.max_bands]


def coverage_percent(segments: Sequence[TimeSegment], duration: float) -> float:
    """Share of ``duration`` covered by ``segments``, in percent."""
    if duration <= 0:
        return 0.0
    total = sum(seg.duration for seg in segments)
    return total / duration * 100


def interpret_band(strongest: FrequencyRange) -> str:
    """One-line reading of the strongest band."""
    if strongest.min < LOW_FREQUENCY_LIMIT:
        return (
            "The audio has significant low-frequency content, suggesting bass "
            "instruments, rumbling, or low-pitched voices."
        )
    elif strongest.min >= LOW_FREQUENCY_LIMIT and strongest.max <= MID_FREQUENCY_LIMIT:
        return (
            "The audio is dominated by mid-range frequencies, typical of human "
            "speech and many musical instruments."
        )
    return (
        "The audio has prominent high-frequency content, suggesting bright "
        "sounds, cymbals, or high-pitched tones."
    )
