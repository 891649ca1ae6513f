"""
Beat detector for BandScope.

Finds energy peaks in an RMS envelope.
"""

import math
from typing import List, Optional

from bandscope.core.analyzer_base import BaseAnalyzer
from bandscope.core.cancellation import CancellationToken, check_cancelled
from bandscope.core.models import Beat, RmsEnvelope


class BeatDetector(BaseAnalyzer[List[Beat]]):
    """
    Local-maximum beat picking on the RMS envelope.

    A window ``i`` is a beat when:
    - ``rms[i] > threshold``
    - ``rms[i] > rms[i-1]`` and ``rms[i] >= rms[i+1]``
    - it is at least ``min_distance_seconds`` after the last accepted beat

    The first and last windows are never beats.
    """

    def __init__(
        self,
        threshold: float = 0.05,
        min_distance_seconds: float = 0.01,
    ):
        super().__init__("beats", "1.0.0")
        self.threshold = threshold
        self.min_distance_seconds = min_distance_seconds

    def min_distance_windows(self, envelope: RmsEnvelope) -> int:
        """Minimum beat spacing expressed in envelope windows."""
        return max(1, math.ceil(self.min_distance_seconds / envelope.window_duration))

    def _analyze_impl(
        self,
        envelope: RmsEnvelope,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[Beat]:
        check_cancelled(cancel_token, self.name)

        rms = envelope.values
        min_distance = self.min_distance_windows(envelope)
        last_beat = -min_distance
        beats: List[Beat] = []

        for i in range(1, len(rms) - 1):
            if (
                i - last_beat >= min_distance
                and rms[i] > self.threshold
                and rms[i] > rms[i - 1]
                and rms[i] >= rms[i + 1]
            ):
                beats.append(Beat(
                    time=envelope.time_at(i),
                    confidence=float(min(1.0, rms[i] * 5)),
                ))
                last_beat = i

        self.logger.debug(f"Detected {len(beats)} beats")
        return beats
