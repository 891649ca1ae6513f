"""
Interference analyzer for BandScope.

Compares the band energy of two independently analysed tracks.

Known approximation: whether an overlap is constructive or destructive
comes from a fixed per-band table (sub-bass and bass destructive, every
higher band constructive). No phase relationship between the tracks is
measured.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.bands import FREQUENCY_BANDS, FrequencyBand
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import BandInterferenceNote, FrequencyOverlap, Spectrum
from bandscope.utils.errors import SampleRateMismatchError


class InterferenceAnalyzer(BaseAnalyzer[List[FrequencyOverlap]]):
    """
    One overlap record per fixed band.

    For each band the linear magnitudes of both spectra are averaged over
    the band's bins. When both averages are positive the overlap intensity
    is ``min/max`` clamped to [min_overlap, 1], otherwise 0. Bands above
    ``emit_threshold`` are real overlaps; the rest get a fallback record at
    ``fallback_intensity`` so that every band is always represented.
    """

    def __init__(
        self,
        min_overlap: float = 0.3,
        emit_threshold: float = 0.2,
        fallback_intensity: float = 0.5,
        bands: Sequence[FrequencyBand] = FREQUENCY_BANDS,
    ):
        super().__init__("interference", "1.0.0")
        self.min_overlap = min_overlap
        self.emit_threshold = emit_threshold
        self.fallback_intensity = fallback_intensity
        self.bands = tuple(bands)

    def _analyze_impl(
        self,
        spectrum1: Spectrum,
        spectrum2: Spectrum,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[FrequencyOverlap]:
        if spectrum1.sample_rate != spectrum2.sample_rate:
            raise SampleRateMismatchError(spectrum1.sample_rate, spectrum2.sample_rate)

        linear1 = spectrum1.to_linear()
        linear2 = spectrum2.to_linear()
        overlaps: List[FrequencyOverlap] = []

        for band in self.bands:
            check_cancelled(cancel_token, self.name)

            avg1 = band_average(linear1, band, spectrum1)
            avg2 = band_average(linear2, band, spectrum2)
            intensity = self.overlap_intensity(avg1, avg2)

            is_fallback = not intensity > self.emit_threshold
            if is_fallback:
                intensity = self.fallback_intensity

            overlaps.append(FrequencyOverlap(
                frequency=band.center_hz,
                magnitude1=avg1,
                magnitude2=avg2,
                overlap_intensity=intensity,
                is_constructive=band.constructive,
                band=band.label,
                is_fallback=is_fallback,
            ))

        real = sum(1 for o in overlaps if not o.is_fallback)
        self.logger.debug(f"{real} of {len(overlaps)} bands overlap")
        return overlaps

    def overlap_intensity(self, avg1: float, avg2: float) -> float:
        """``clamp(min/max, min_overlap, 1)`` for positive averages, else 0."""
        if avg1 <= 0 or avg2 <= 0:
            return 0.0
        ratio = min(avg1, avg2) / max(avg1, avg2)
        return float(min(1.0, max(self.min_overlap, ratio)))


def band_average(linear: np.ndarray, band: FrequencyBand, spectrum: Spectrum) -> float:
    """Mean linear magnitude of the bins inside ``band`` (0 when none)."""
    bins = linear[band.bin_slice(spectrum.sample_rate, spectrum.fft_size, linear.shape[0])]
    if bins.size == 0:
        return 0.0
    return float(bins.mean())


BAND_ADVICE: Dict[str, Tuple[str, str]] = {
    # label: (destructive, constructive)
    "Sub-Bass": (
        "Destructive interference here causes phase cancellation and a weak low end. "
        "Consider high-pass filtering one track.",
        "Constructive interference here reinforces the foundation of the mix, "
        "adding weight and power.",
    ),
    "Bass": (
        "Destructive interference here makes the bass muddy and undefined. "
        "Consider cutting this range on one track.",
        "Constructive interference here adds warmth and fullness.",
    ),
    "Low Midrange": (
        "Destructive interference in the low mids gives a boxy, confined sound. "
        "A bell cut on one track creates space.",
        "Constructive interference here adds body and thickness.",
    ),
    "Midrange": (
        "Destructive interference in the mids makes the tracks compete for attention. "
        "Carve out space with complementary EQ.",
        "Constructive interference here enhances presence and clarity.",
    ),
    "Upper Midrange": (
        "Destructive interference here causes harshness or a loss of definition. "
        "Consider a gentle cut on the denser track.",
        "Constructive interference here adds definition and bite.",
    ),
    "Presence": (
        "Destructive interference here pushes one track behind the other. "
        "A small cut on one track restores separation.",
        "Constructive interference here brings both tracks forward.",
    ),
    "Brilliance": (
        "Destructive interference in the highs dulls the mix. "
        "Consider boosting air on one track only.",
        "Constructive interference here adds sparkle and air.",
    ),
}


def describe_interference(
    overlaps: Sequence[FrequencyOverlap],
    bands: Sequence[FrequencyBand] = FREQUENCY_BANDS,
) -> Tuple[BandInterferenceNote, ...]:
    """
    Mixing advice for every band with detected (non-fallback) overlaps.

    A band is mainly destructive when more than half of its overlaps are.
    """
    notes: List[BandInterferenceNote] = []
    for band in bands:
        in_band = [o for o in overlaps if o.band == band.label and not o.is_fallback]
        if not in_band:
            continue

        destructive = sum(1 for o in in_band if not o.is_constructive)
        mainly_destructive = destructive > len(in_band) / 2
        destructive_text, constructive_text = BAND_ADVICE.get(
            band.label, ("Destructive interference detected.", "Constructive interference detected.")
        )
        notes.append(BandInterferenceNote(
            label=band.label,
            low=band.min_hz,
            high=band.max_hz,
            mainly_destructive=mainly_destructive,
            description=destructive_text if mainly_destructive else constructive_text,
        ))

    return tuple(notes)
