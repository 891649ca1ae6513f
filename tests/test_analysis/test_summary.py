"""Tests for the text summary."""

import pytest

from bandscope.analyzers.summary import SummaryGenerator, coverage_percent, interpret_band
from bandscope.core.bands import FREQUENCY_BANDS
from bandscope.core.models import AudioAnalysis, ContentKind, FrequencyRange, TimeSegment


def _ranges(**intensities):
    return tuple(
        FrequencyRange(min=b.min_hz, max=b.max_hz, label=b.label,
                       intensity=intensities.get(b.label.replace(" ", "_").replace("-", "_"), 0.0))
        for b in FREQUENCY_BANDS
    )


def _analysis(speech=(), music=(), environmental=(), ranges=None):
    return AudioAnalysis(
        has_speech=bool(speech),
        speech_segments=tuple(speech),
        has_music_elements=bool(music),
        music_segments=tuple(music),
        has_environmental_sounds=bool(environmental),
        environmental_sound_segments=tuple(environmental),
        dominant_frequency_ranges=ranges if ranges is not None else _ranges(),
        summary="",
    )


class TestSummaryGenerator:

    def test_nothing_detected(self):
        text = SummaryGenerator().analyze(_analysis(), duration=1.0)
        assert text.startswith("Audio file analysis (1.00 seconds):")
        assert "no easily identifiable speech, music, or environmental sounds" in text
        assert "Dominant frequency" not in text

    def test_speech_coverage(self):
        speech = [TimeSegment(start=0.0, end=1.0, kind=ContentKind.SPEECH, confidence=0.8)]
        text = SummaryGenerator().analyze(_analysis(speech=speech), duration=4.0)
        assert "The audio contains speech." in text
        assert "approximately 25.0% of the audio" in text
        assert "continuous" in text

    def test_multiple_speech_segments(self):
        speech = [
            TimeSegment(start=0.0, end=1.0, kind=ContentKind.SPEECH, confidence=0.8),
            TimeSegment(start=2.0, end=2.5, kind=ContentKind.SPEECH, confidence=0.8),
        ]
        text = SummaryGenerator().analyze(_analysis(speech=speech), duration=10.0)
        assert "Found 2 separate speech segments." in text

    def test_music_with_tempo(self):
        music = [TimeSegment(start=0.2, end=4.6, kind=ContentKind.MUSIC, confidence=0.7)]
        text = SummaryGenerator().analyze(_analysis(music=music), duration=6.0, beat_count=12)
        assert "The audio contains music." in text
        assert "approximately 73.3% of the audio" in text
        assert "The tempo is approximately 120 BPM." in text

    def test_slow_beats_give_no_tempo(self):
        music = [TimeSegment(start=0.0, end=50.0, kind=ContentKind.MUSIC, confidence=0.7)]
        text = SummaryGenerator().analyze(_analysis(music=music), duration=60.0, beat_count=30)
        assert "BPM" not in text

    def test_categories_listed_in_order(self):
        seg = TimeSegment(start=0.0, end=1.0, kind=ContentKind.SPEECH, confidence=0.5)
        env = TimeSegment(start=0.0, end=1.0, kind=ContentKind.ENVIRONMENTAL, confidence=0.5)
        text = SummaryGenerator().analyze(_analysis(speech=[seg], environmental=[env]), duration=2.0)
        assert "The audio contains speech, environmental sounds." in text

    def test_top_three_bands_above_threshold(self):
        ranges = _ranges(Bass=1.0, Midrange=0.6, Presence=0.5, Brilliance=0.4, Sub_Bass=0.2)
        text = SummaryGenerator().analyze(_analysis(ranges=ranges), duration=1.0)
        assert "- Bass (60-250Hz): 100.0% intensity" in text
        assert "- Midrange (500-2000Hz): 60.0% intensity" in text
        assert "Presence" in text
        assert "Brilliance" not in text
        assert "Sub-Bass" not in text
        assert "low-frequency content" in text

    def test_deterministic(self):
        analysis = _analysis(ranges=_ranges(Midrange=1.0))
        generator = SummaryGenerator()
        assert generator.analyze(analysis, 3.0) == generator.analyze(analysis, 3.0)


class TestHelpers:

    def test_coverage_percent(self):
        segments = [TimeSegment(start=1.0, end=2.5, kind=ContentKind.MUSIC, confidence=0.7)]
        assert coverage_percent(segments, 3.0) == pytest.approx(50.0)
        assert coverage_percent(segments, 0.0) == 0.0

    @pytest.mark.parametrize("low,high,phrase", [
        (20.0, 60.0, "low-frequency"),
        (250.0, 500.0, "mid-range"),
        (500.0, 2000.0, "mid-range"),
        (2000.0, 4000.0, "high-frequency"),
    ])
    def test_interpret_band(self, low, high, phrase):
        assert phrase in interpret_band(FrequencyRange(min=low, max=high, label="x", intensity=1.0))
