"""
Fixed frequency bands shared by classification and interference analysis.

The seven bands partition 20 Hz - 20 kHz without gaps. Each band is an
immutable descriptor; analyses that attach values to bands build new
records instead of mutating these.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class FrequencyBand:
    """A named, half-open frequency interval [min_hz, max_hz)."""

    label: str
    min_hz: float
    max_hz: float
    # Default interference polarity between two tracks sharing this band.
    # A fixed table, not a phase measurement.
    constructive: bool

    @property
    def center_hz(self) -> float:
        """Arithmetic center of the band."""
        return (self.min_hz + self.max_hz) / 2.0

    def contains(self, frequency: float) -> bool:
        """True if ``frequency`` falls in [min_hz, max_hz)."""
        return self.min_hz <= frequency < self.max_hz

    def bin_slice(self, sample_rate: int, fft_size: int, n_bins: int) -> slice:
        """
        Index range of FFT bins whose center frequency lies in this band.

        Bin ``k`` is centered on ``k * sample_rate / fft_size``.
        """
        resolution = sample_rate / fft_size
        start = int(np.ceil(self.min_hz / resolution))
        stop = int(np.ceil(self.max_hz / resolution))
        start = min(max(start, 0), n_bins)
        stop = min(max(stop, start), n_bins)
        return slice(start, stop)


FREQUENCY_BANDS: Tuple[FrequencyBand, ...] = (
    FrequencyBand("Sub-Bass", 20.0, 60.0, constructive=False),
    FrequencyBand("Bass", 60.0, 250.0, constructive=False),
    FrequencyBand("Low Midrange", 250.0, 500.0, constructive=True),
    FrequencyBand("Midrange", 500.0, 2000.0, constructive=True),
    FrequencyBand("Upper Midrange", 2000.0, 4000.0, constructive=True),
    FrequencyBand("Presence", 4000.0, 6000.0, constructive=True),
    FrequencyBand("Brilliance", 6000.0, 20000.0, constructive=True),
)

BANDS_BY_LABEL: Dict[str, FrequencyBand] = {band.label: band for band in FREQUENCY_BANDS}


def band_for_frequency(frequency: float) -> Optional[FrequencyBand]:
    """Return the band containing ``frequency``, or None outside 20 Hz - 20 kHz."""
    for band in FREQUENCY_BANDS:
        if band.contains(frequency):
            return band
    return None


def get_band(label: str) -> FrequencyBand:
    """Look a band up by label (raises KeyError for unknown labels)."""
    return BANDS_BY_LABEL[label]
