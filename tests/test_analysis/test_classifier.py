"""Tests for content classification, markers and band profiles."""

import numpy as np
import pytest

from bandscope.analyzers.classifier import (
    ContentClassifier,
    dominant_frequency_ranges,
    kind_for_frequency,
    peak_confidence,
)
from bandscope.core.bands import FREQUENCY_BANDS
from bandscope.core.models import (
    AudioFeatures,
    Beat,
    ContentKind,
    FrequencyPeak,
    RmsEnvelope,
    Spectrogram,
    TimeMarker,
)


def _beats(n, interval=0.4, first=0.2):
    return [Beat(time=first + i * interval, confidence=1.0) for i in range(n)]


def _marker(time, kind=ContentKind.SPEECH, confidence=0.8):
    return TimeMarker(id=f"m{time}", time=time, label="m", kind=kind, confidence=confidence)


def _features(beats=(), peaks=(), markers=()):
    return AudioFeatures(
        envelope=RmsEnvelope(values=np.zeros(0), window_size=441, sample_rate=22050),
        beats=tuple(beats),
        frequency_peaks=tuple(peaks),
        spectrogram=Spectrogram(frames=np.zeros((0, 1024)), sample_rate=22050,
                                fft_size=2048, hop_size=512),
        time_markers=tuple(markers),
    )


class TestFrequencyHeuristic:

    @pytest.mark.parametrize("frequency,kind", [
        (50.0, ContentKind.ENVIRONMENTAL),
        (299.9, ContentKind.ENVIRONMENTAL),
        (300.0, ContentKind.SPEECH),
        (2999.0, ContentKind.SPEECH),
        (3000.0, ContentKind.MUSIC),
        (12000.0, ContentKind.MUSIC),
    ])
    def test_kind_for_frequency(self, frequency, kind):
        assert kind_for_frequency(frequency) is kind

    def test_peak_confidence(self):
        assert peak_confidence(-100.0) == 0.0
        assert peak_confidence(-20.0) == pytest.approx(0.8)
        assert peak_confidence(0.0) == 1.0


class TestMarkers:

    def test_every_tenth_beat_becomes_music_marker(self):
        markers = ContentClassifier().generate_markers(_beats(25), [])
        assert [m.label for m in markers] == ["Beat 1", "Beat 2", "Beat 3"]
        assert all(m.kind is ContentKind.MUSIC for m in markers)
        assert markers[1].time == pytest.approx(0.2 + 10 * 0.4)

    def test_only_loud_peaks_up_to_five(self):
        peaks = [FrequencyPeak(frequency=1000.0, magnitude=-10.0 - i, time=0.1 * i)
                 for i in range(7)]
        peaks.append(FrequencyPeak(frequency=100.0, magnitude=-40.0, time=0.05))
        markers = ContentClassifier().generate_markers([], peaks)
        assert len(markers) == 5
        assert all(m.kind is ContentKind.SPEECH for m in markers)
        assert markers[0].label == "Speech @ 1000Hz"

    def test_markers_sorted_by_time(self):
        peaks = [
            FrequencyPeak(frequency=5000.0, magnitude=-5.0, time=0.9),
            FrequencyPeak(frequency=100.0, magnitude=-6.0, time=0.1),
        ]
        markers = ContentClassifier().generate_markers(_beats(1, first=0.5), peaks)
        assert [m.time for m in markers] == pytest.approx([0.1, 0.5, 0.9])
        assert [m.kind for m in markers] == [
            ContentKind.ENVIRONMENTAL, ContentKind.MUSIC, ContentKind.MUSIC,
        ]


class TestMergeMarkers:

    def test_merges_close_markers(self):
        markers = [_marker(0.0, confidence=0.8), _marker(0.3, confidence=0.6),
                   _marker(1.5, confidence=0.9)]
        segments = ContentClassifier().merge_markers(markers, ContentKind.SPEECH)

        assert len(segments) == 2
        assert segments[0].start == 0.0
        assert segments[0].end == pytest.approx(0.4)
        assert segments[0].confidence == pytest.approx(0.7)
        assert segments[1].start == 1.5
        assert segments[1].end == pytest.approx(1.6)

    def test_other_kinds_ignored(self):
        markers = [_marker(0.0, kind=ContentKind.MUSIC), _marker(1.0, kind=ContentKind.CUSTOM)]
        assert ContentClassifier().merge_markers(markers, ContentKind.SPEECH) == ()

    def test_segments_disjoint_and_ordered(self):
        rng = np.random.default_rng(11)
        times = rng.uniform(0.0, 20.0, 40)
        markers = [_marker(float(t)) for t in times]
        segments = ContentClassifier().merge_markers(markers, ContentKind.SPEECH)
        for earlier, later in zip(segments, segments[1:]):
            assert earlier.end <= later.start
        assert all(s.start < s.end for s in segments)


class TestMusicDetection:

    def test_twelve_regular_beats(self):
        segments = ContentClassifier().detect_music(_beats(12), duration=6.0)
        assert len(segments) == 1
        assert segments[0].start == pytest.approx(0.2)
        assert segments[0].end == pytest.approx(4.6)
        assert segments[0].confidence == 0.7
        assert segments[0].kind is ContentKind.MUSIC

    def test_too_few_beats(self):
        assert ContentClassifier().detect_music(_beats(9), duration=6.0) == ()

    def test_sparse_beats(self):
        # 12 beats over 30 s is 0.4 beats/s
        assert ContentClassifier().detect_music(_beats(12), duration=30.0) == ()

    def test_implausible_intervals(self):
        assert ContentClassifier().detect_music(_beats(12, interval=2.5), duration=20.0) == ()


class TestDominantRanges:

    def test_normalized_by_strongest_band(self):
        peaks = [
            FrequencyPeak(frequency=100.0, magnitude=-20.0, time=0.0),
            FrequencyPeak(frequency=1000.0, magnitude=-60.0, time=0.0),
        ]
        ranges = {r.label: r.intensity for r in dominant_frequency_ranges(peaks)}
        assert ranges["Bass"] == pytest.approx(1.0)
        assert ranges["Midrange"] == pytest.approx(0.5)
        assert ranges["Brilliance"] == 0.0

    def test_no_peaks_all_zero(self):
        ranges = dominant_frequency_ranges([])
        assert len(ranges) == len(FREQUENCY_BANDS)
        assert all(r.intensity == 0.0 for r in ranges)

    def test_peaks_outside_bands_ignored(self):
        peaks = [FrequencyPeak(frequency=10.0, magnitude=-10.0, time=0.0)]
        assert all(r.intensity == 0.0 for r in dominant_frequency_ranges(peaks))

    def test_band_descriptors_untouched(self):
        peaks = [FrequencyPeak(frequency=100.0, magnitude=-20.0, time=0.0)]
        before = list(FREQUENCY_BANDS)
        dominant_frequency_ranges(peaks)
        assert list(FREQUENCY_BANDS) == before


class TestContentClassifier:

    def test_booleans_follow_segments(self):
        markers = [_marker(0.5), _marker(2.0, kind=ContentKind.ENVIRONMENTAL)]
        analysis = ContentClassifier().analyze(
            _features(beats=_beats(12), markers=markers), duration=6.0
        )
        assert analysis.has_speech and len(analysis.speech_segments) == 1
        assert analysis.has_environmental_sounds
        assert analysis.has_music_elements
        assert analysis.summary == ""

    def test_nothing_detected(self):
        analysis = ContentClassifier().analyze(_features(), duration=1.0)
        assert not (analysis.has_speech or analysis.has_music_elements
                    or analysis.has_environmental_sounds)
        assert analysis.segments_for(ContentKind.CUSTOM) == ()
