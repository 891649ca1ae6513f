"""
EQ suggestion engine for BandScope.

Turns destructive band overlaps into per-track gain cuts.
"""

from typing import Dict, List, Optional, Sequence

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.bands import BANDS_BY_LABEL
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import EQSuggestion, FrequencyOverlap


class EQSuggestionEngine(BaseAnalyzer[List[EQSuggestion]]):
    """
    One cut per band with destructive overlap, strongest first.

    Bands are ranked by the summed intensity of their destructive
    overlaps. The track with the higher average band magnitude is cut by
    ``clamp(-total * gain_scale, max_reduction, min_reduction)`` dB,
    rounded to 0.1 dB, at a fixed wide Q. Suggestions are independent of
    each other. Fallback records count like any other overlap, with their
    band's default polarity and neutral intensity.
    """

    def __init__(
        self,
        gain_scale: float = 12.0,
        max_reduction: float = -12.0,
        min_reduction: float = -3.0,
        q: float = 0.7,
    ):
        super().__init__("eq", "1.0.0")
        self.gain_scale = gain_scale
        self.max_reduction = max_reduction
        self.min_reduction = min_reduction
        self.q = q

    def _analyze_impl(
        self,
        overlaps: Sequence[FrequencyOverlap],
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[EQSuggestion]:
        check_cancelled(cancel_token, self.name)

        by_band: Dict[str, List[FrequencyOverlap]] = {}
        for overlap in overlaps:
            by_band.setdefault(overlap.band, []).append(overlap)

        totals = {
            band: sum(o.overlap_intensity for o in group if not o.is_constructive)
            for band, group in by_band.items()
        }
        ranked = sorted(
            (band for band, total in totals.items() if total > 0),
            key=lambda band: totals[band],
            reverse=True,
        )

        suggestions = [
            self._suggest(band, by_band[band], totals[band]) for band in ranked
        ]
        self.logger.debug(f"{len(suggestions)} EQ suggestions")
        return suggestions

    def _suggest(
        self,
        band: str,
        group: Sequence[FrequencyOverlap],
        total_destructive: float,
    ) -> EQSuggestion:
        avg1 = sum(o.magnitude1 for o in group) / len(group)
        avg2 = sum(o.magnitude2 for o in group) / len(group)
        track = 1 if avg1 > avg2 else 2

        gain = -total_destructive * self.gain_scale
        gain = min(self.min_reduction, max(self.max_reduction, gain))
        gain = round(gain, 1)

        descriptor = BANDS_BY_LABEL.get(band)
        if descriptor is not None:
            low, high = descriptor.min_hz, descriptor.max_hz
        else:
            low = min(o.frequency for o in group)
            high = max(o.frequency for o in group)

        return EQSuggestion(
            track=track,
            frequency_range=(low, high),
            gain_reduction=gain,
            q=self.q,
            reason=(
                f"Destructive frequency masking in the {band} range "
                f"({low:g}-{high:g}Hz); track {track} is louder there"
            ),
            band=band,
        )
