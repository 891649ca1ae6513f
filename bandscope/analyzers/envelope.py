"""
RMS envelope analyzer for BandScope.

Computes windowed energy over the first channel of a buffer.
"""

from typing import Optional

import numpy as np

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import RmsEnvelope, SampleBuffer

DEFAULT_WINDOW_SECONDS: float = 0.02


class EnvelopeAnalyzer(BaseAnalyzer[RmsEnvelope]):
    """
    Fixed-window RMS envelope.

    Windows are contiguous and non-overlapping, ``round(sr * window_seconds)``
    samples long. A trailing partial window is measured over the samples
    it has, without padding.
    """

    def __init__(self, window_seconds: float = DEFAULT_WINDOW_SECONDS):
        super().__init__("envelope", "1.0.0")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.window_seconds = window_seconds

    def window_size(self, sample_rate: int) -> int:
        """Samples per window at ``sample_rate``."""
        return max(1, int(round(sample_rate * self.window_seconds)))

    def _analyze_impl(
        self,
        audio: SampleBuffer,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RmsEnvelope:
        check_cancelled(cancel_token, self.name)
        window = self.window_size(audio.sample_rate)
        values = compute_rms(audio.first_channel, window)

        if audio.is_empty:
            self.logger.warning("Empty buffer, envelope is empty")

        return RmsEnvelope(
            values=values,
            window_size=window,
            sample_rate=audio.sample_rate,
        )


def compute_rms(samples: np.ndarray, window_size: int) -> np.ndarray:
    """
    ``sqrt(mean(x**2))`` per window of ``window_size`` samples.

    Args:
        samples: 1-D sample array
        window_size: Samples per window

    Returns:
        np.ndarray: One RMS value per (possibly partial) window
    """
    x = np.asarray(samples, dtype=np.float64)
    n_full = x.shape[0] // window_size

    full = x[:n_full * window_size].reshape(n_full, window_size)
    rms = np.sqrt(np.mean(full ** 2, axis=1)) if n_full else np.empty(0)

    remainder = x[n_full * window_size:]
    if remainder.size:
        rms = np.append(rms, np.sqrt(np.mean(remainder ** 2)))

    return rms
