"""Tests for two-track band interference analysis."""

import pytest

from bandscope.analyzers.interference import (
    BAND_ADVICE,
    InterferenceAnalyzer,
    describe_interference,
)
from bandscope.core.bands import FREQUENCY_BANDS
from bandscope.core.models import FrequencyOverlap
from bandscope.utils.errors import AnalysisError, SampleRateMismatchError

from conftest import flat_spectrum


class TestInterferenceAnalyzer:

    def test_identical_spectra(self):
        spectrum = flat_spectrum(-20.0)
        overlaps = InterferenceAnalyzer().analyze(spectrum, spectrum)

        assert len(overlaps) == 7
        assert all(o.overlap_intensity == pytest.approx(1.0) for o in overlaps)
        assert not any(o.is_fallback for o in overlaps)
        polarity = {o.band: o.is_constructive for o in overlaps}
        assert polarity == {
            "Sub-Bass": False,
            "Bass": False,
            "Low Midrange": True,
            "Midrange": True,
            "Upper Midrange": True,
            "Presence": True,
            "Brilliance": True,
        }

    def test_one_entry_per_band_at_center(self):
        spectrum = flat_spectrum(-20.0)
        overlaps = InterferenceAnalyzer().analyze(spectrum, spectrum)
        assert [o.band for o in overlaps] == [b.label for b in FREQUENCY_BANDS]
        assert [o.frequency for o in overlaps] == [b.center_hz for b in FREQUENCY_BANDS]

    def test_ratio_of_band_averages(self):
        overlaps = InterferenceAnalyzer().analyze(flat_spectrum(-20.0), flat_spectrum(-26.0))
        # 10 ** (-6 / 20)
        assert overlaps[3].overlap_intensity == pytest.approx(0.5012, abs=1e-3)
        assert overlaps[3].magnitude1 == pytest.approx(0.1)

    def test_ratio_clamped_to_minimum_overlap(self):
        overlaps = InterferenceAnalyzer().analyze(flat_spectrum(-20.0), flat_spectrum(-60.0))
        assert all(o.overlap_intensity == pytest.approx(0.3) for o in overlaps)
        assert not any(o.is_fallback for o in overlaps)

    def test_silent_track_gets_fallback_entries(self):
        overlaps = InterferenceAnalyzer().analyze(flat_spectrum(-20.0), flat_spectrum(-100.0))
        assert len(overlaps) == 7
        assert all(o.is_fallback for o in overlaps)
        assert all(o.overlap_intensity == 0.5 for o in overlaps)

    def test_band_above_nyquist_falls_back(self):
        spectrum = flat_spectrum(-20.0, sample_rate=8000)
        overlaps = {o.band: o for o in InterferenceAnalyzer().analyze(spectrum, spectrum)}
        assert overlaps["Brilliance"].is_fallback
        assert overlaps["Presence"].is_fallback
        assert not overlaps["Midrange"].is_fallback

    def test_emitted_overlaps_exceed_threshold(self):
        overlaps = InterferenceAnalyzer().analyze(flat_spectrum(-30.0), flat_spectrum(-33.0))
        for o in overlaps:
            assert 0.0 <= o.overlap_intensity <= 1.0
            if not o.is_fallback:
                assert o.overlap_intensity > 0.2

    def test_sample_rate_mismatch(self):
        with pytest.raises(SampleRateMismatchError) as exc_info:
            InterferenceAnalyzer().analyze(
                flat_spectrum(-20.0, sample_rate=44100),
                flat_spectrum(-20.0, sample_rate=48000),
            )
        assert isinstance(exc_info.value, AnalysisError)
        assert exc_info.value.sample_rate_1 == 44100
        assert exc_info.value.sample_rate_2 == 48000

    def test_overlap_intensity(self):
        analyzer = InterferenceAnalyzer()
        assert analyzer.overlap_intensity(0.0, 1.0) == 0.0
        assert analyzer.overlap_intensity(0.5, 1.0) == pytest.approx(0.5)
        assert analyzer.overlap_intensity(0.01, 1.0) == pytest.approx(0.3)
        assert analyzer.overlap_intensity(2.0, 2.0) == 1.0


class TestDescribeInterference:

    def test_notes_for_real_overlaps_only(self):
        overlaps = [
            FrequencyOverlap(frequency=40.0, magnitude1=0.1, magnitude2=0.1,
                             overlap_intensity=1.0, is_constructive=False, band="Sub-Bass"),
            FrequencyOverlap(frequency=1250.0, magnitude1=0.1, magnitude2=0.1,
                             overlap_intensity=0.8, is_constructive=True, band="Midrange"),
            FrequencyOverlap(frequency=13000.0, magnitude1=0.0, magnitude2=0.0,
                             overlap_intensity=0.5, is_constructive=True, band="Brilliance",
                             is_fallback=True),
        ]
        notes = describe_interference(overlaps)

        assert [n.label for n in notes] == ["Sub-Bass", "Midrange"]
        assert notes[0].mainly_destructive
        assert notes[0].description == BAND_ADVICE["Sub-Bass"][0]
        assert not notes[1].mainly_destructive
        assert notes[1].description == BAND_ADVICE["Midrange"][1]
        assert (notes[1].low, notes[1].high) == (500.0, 2000.0)

    def test_half_destructive_is_not_mainly_destructive(self):
        overlaps = [
            FrequencyOverlap(frequency=100.0, magnitude1=0.1, magnitude2=0.1,
                             overlap_intensity=0.9, is_constructive=False, band="Bass"),
            FrequencyOverlap(frequency=150.0, magnitude1=0.1, magnitude2=0.1,
                             overlap_intensity=0.9, is_constructive=True, band="Bass"),
        ]
        notes = describe_interference(overlaps)
        assert len(notes) == 1
        assert not notes[0].mainly_destructive

    def test_every_band_has_advice(self):
        assert set(BAND_ADVICE) == {b.label for b in FREQUENCY_BANDS}
