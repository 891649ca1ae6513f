"""
Cooperative cancellation for long-running analyses.

Stages poll the token between STFT windows and between pipeline steps.
Once cancelled, a token stays cancelled and no partial result is returned.
"""

import threading
from typing import Optional

from bandscope.utils.errors import AnalysisCancelledError


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: Optional[str] = None) -> None:
        """
        Raise AnalysisCancelledError if cancellation was requested.

        Args:
            stage: Name of the stage doing the check (for the error message)
        """
        if self._event.is_set():
            raise AnalysisCancelledError(stage)


def check_cancelled(token: Optional[CancellationToken], stage: str) -> None:
    """Poll an optional token."""
    if token is not None:
        token.raise_if_cancelled(stage)
