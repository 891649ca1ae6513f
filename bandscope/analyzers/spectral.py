"""
Spectral analyzer for BandScope.

Short-time Fourier analysis over the first channel of a buffer, producing
the spectrogram and the strongest spectral peaks from the same pass.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import librosa
import numpy as np

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import FrequencyPeak, SampleBuffer, Spectrogram

DEFAULT_FFT_SIZE: int = 2048


class STFTKernel:
    """
    Reusable windowed FFT.

    The analysis window is computed once and applied to every frame.
    Output is ``fft_size // 2`` bins of ``20 * log10(|X| / fft_size)``,
    clipped to [min_decibels, max_decibels].
    """

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        window: str = "blackman",
        min_decibels: float = -100.0,
        max_decibels: float = 0.0,
    ):
        if fft_size < 4 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 4, got {fft_size}")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")

        self.fft_size = fft_size
        self.n_bins = fft_size // 2
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.window = librosa.filters.get_window(window, fft_size, fftbins=True)
        self._amin = 10.0 ** (min_decibels / 20.0)

    def magnitude_db(self, segment: np.ndarray) -> np.ndarray:
        """
        Spectrum of one frame in dB.

        Args:
            segment: Exactly ``fft_size`` samples
        """
        if segment.shape[0] != self.fft_size:
            raise ValueError(
                f"Expected {self.fft_size} samples, got {segment.shape[0]}"
            )
        spectrum = np.fft.rfft(segment * self.window)[:self.n_bins]
        magnitude = np.abs(spectrum) / self.fft_size
        db = librosa.amplitude_to_db(magnitude, ref=1.0, amin=self._amin, top_db=None)
        return np.clip(db, self.min_decibels, self.max_decibels)


@dataclass(frozen=True)
class SpectralFeatures:
    """Output of one STFT pass."""

    spectrogram: Spectrogram
    peaks: Tuple[FrequencyPeak, ...]


class SpectralAnalyzer(BaseAnalyzer[SpectralFeatures]):
    """
    STFT spectrogram and global peak list.

    A frame is computed at every hop offset that still has a full window
    of samples. A peak is a bin (not the first or last) above
    ``peak_threshold_db`` that is strictly louder than both neighbours.
    Peaks from all frames are sorted by magnitude (loudest first) and
    truncated to ``max_peaks``.
    """

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop_size: Optional[int] = None,
        peak_threshold_db: float = -50.0,
        max_peaks: int = 100,
        min_decibels: float = -100.0,
        max_decibels: float = 0.0,
    ):
        super().__init__("spectral", "1.0.0")
        self.kernel = STFTKernel(
            fft_size=fft_size,
            min_decibels=min_decibels,
            max_decibels=max_decibels,
        )
        self.hop_size = hop_size or fft_size // 4
        if self.hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {self.hop_size}")
        self.peak_threshold_db = peak_threshold_db
        self.max_peaks = max_peaks

    @property
    def fft_size(self) -> int:
        return self.kernel.fft_size

    def _analyze_impl(
        self,
        audio: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SpectralFeatures:
        samples = audio.first_channel.astype(np.float64)
        sr = audio.sample_rate
        fft_size = self.fft_size

        frames: List[np.ndarray] = []
        peak_mags: List[np.ndarray] = []
        peak_freqs: List[np.ndarray] = []
        peak_times: List[np.ndarray] = []

        for offset in range(0, samples.shape[0] - fft_size + 1, self.hop_size):
            check_cancelled(cancel_token, self.name)

            frame = self.kernel.magnitude_db(samples[offset:offset + fft_size])
            frames.append(frame)

            bins = find_peak_bins(frame, self.peak_threshold_db)
            if bins.size:
                peak_mags.append(frame[bins])
                peak_freqs.append(bins * sr / fft_size)
                peak_times.append(np.full(bins.size, offset / sr))

        if not frames:
            self.logger.debug(
                f"Buffer shorter than one window ({samples.shape[0]} < {fft_size} samples), no frames"
            )

        spectrogram = Spectrogram(
            frames=np.array(frames).reshape(len(frames), self.kernel.n_bins),
            sample_rate=sr,
            fft_size=fft_size,
            hop_size=self.hop_size,
            min_decibels=self.kernel.min_decibels,
            max_decibels=self.kernel.max_decibels,
        )

        peaks = self._top_peaks(peak_mags, peak_freqs, peak_times)
        self.logger.debug(f"{spectrogram.n_frames} frames, {len(peaks)} peaks kept")

        return SpectralFeatures(spectrogram=spectrogram, peaks=peaks)

    def _top_peaks(
        self,
        mags: List[np.ndarray],
        freqs: List[np.ndarray],
        times: List[np.ndarray],
    ) -> Tuple[FrequencyPeak, ...]:
        """Loudest ``max_peaks`` peaks; ties keep time/frequency order."""
        if not mags:
            return ()

        all_mags = np.concatenate(mags)
        all_freqs = np.concatenate(freqs)
        all_times = np.concatenate(times)

        order = np.argsort(-all_mags, kind="stable")[:self.max_peaks]
        return tuple(
            FrequencyPeak(
                frequency=float(all_freqs[i]),
                magnitude=float(all_mags[i]),
                time=float(all_times[i]),
            )
            for i in order
        )


def find_peak_bins(frame: np.ndarray, threshold_db: float) -> np.ndarray:
    """
    Indices of strict local maxima above ``threshold_db``.

    The first and last bins are never peaks.
    """
    if frame.shape[0] < 3:
        return np.empty(0, dtype=int)
    mid = frame[1:-1]
    is_peak = (mid > threshold_db) & (mid > frame[:-2]) & (mid > frame[2:])
    return np.flatnonzero(is_peak) + 1
