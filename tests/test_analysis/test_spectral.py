"""Tests for the STFT kernel and spectral analyzer."""

import numpy as np
import pytest

from bandscope.analyzers.spectral import SpectralAnalyzer, STFTKernel, find_peak_bins
from bandscope.core.cancellation import CancellationToken
from bandscope.core.models import SampleBuffer
from bandscope.utils.errors import AnalysisCancelledError

from conftest import bin_frequency, make_sine


class TestSTFTKernel:

    def test_output_shape_and_bounds(self):
        kernel = STFTKernel(fft_size=2048)
        rng = np.random.default_rng(0)
        db = kernel.magnitude_db(rng.uniform(-1.0, 1.0, 2048))
        assert db.shape == (1024,)
        assert db.min() >= -100.0
        assert db.max() <= 0.0

    def test_silence_sits_on_the_floor(self):
        db = STFTKernel().magnitude_db(np.zeros(2048))
        assert np.all(db == -100.0)

    def test_rejects_wrong_segment_length(self):
        with pytest.raises(ValueError):
            STFTKernel().magnitude_db(np.zeros(1000))

    def test_rejects_non_power_of_two(self):
        with pytest.raises(ValueError):
            STFTKernel(fft_size=1000)

    def test_window_reused(self):
        kernel = STFTKernel(fft_size=1024)
        assert kernel.window.shape == (1024,)


class TestFindPeakBins:

    def test_strict_local_maxima_above_threshold(self):
        frame = np.array([-10.0, -40.0, -30.0, -45.0, -20.0, -20.0, -60.0, -55.0, -70.0])
        assert list(find_peak_bins(frame, -50.0)) == [2]

    def test_first_and_last_bins_excluded(self):
        frame = np.array([-1.0, -90.0, -90.0, -1.0])
        assert find_peak_bins(frame, -50.0).size == 0


class TestSpectralAnalyzer:

    def test_shorter_than_one_window(self):
        audio = SampleBuffer.from_array(np.full(500, 0.3), 22050)
        result = SpectralAnalyzer().analyze(audio)
        assert result.spectrogram.n_frames == 0
        assert result.spectrogram.n_bins == 1024
        assert result.peaks == ()

    def test_frame_count(self):
        result = SpectralAnalyzer().analyze(make_sine(440.0))
        # (22050 - 2048) // 512 + 1
        assert result.spectrogram.n_frames == 40
        assert result.spectrogram.hop_size == 512

    def test_hop_defaults_to_quarter_window(self):
        assert SpectralAnalyzer(fft_size=1024).hop_size == 256

    def test_sine_peak_on_bin(self):
        frequency = bin_frequency(93)
        result = SpectralAnalyzer().analyze(make_sine(frequency))
        assert result.peaks
        assert result.peaks[0].frequency == pytest.approx(frequency)
        assert -30.0 < result.peaks[0].magnitude < 0.0
        assert all(p.frequency == pytest.approx(frequency) for p in result.peaks)

    def test_peaks_sorted_and_truncated(self):
        rng = np.random.default_rng(3)
        audio = SampleBuffer.from_array(rng.normal(0.0, 0.3, 44100), 44100)
        result = SpectralAnalyzer(max_peaks=100).analyze(audio)
        mags = [p.magnitude for p in result.peaks]
        assert len(mags) == 100
        assert mags == sorted(mags, reverse=True)
        assert all(m > -50.0 for m in mags)

    def test_silence_has_frames_but_no_peaks(self, silence):
        result = SpectralAnalyzer().analyze(silence)
        assert result.spectrogram.n_frames == 83
        assert result.peaks == ()

    def test_average_spectrum_of_silence_is_floor(self, silence):
        spectrum = SpectralAnalyzer().analyze(silence).spectrogram.average_spectrum()
        assert np.all(spectrum.magnitudes_db == -100.0)
        assert np.all(spectrum.to_linear() == 0.0)

    def test_cancelled_between_windows(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelledError):
            SpectralAnalyzer().analyze(make_sine(440.0), token)
