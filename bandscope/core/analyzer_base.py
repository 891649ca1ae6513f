"""
Analyzer base interface for BandScope.

Defines the contract for all pipeline stages using Protocol (structural
subtyping) plus a template base class with timing and error handling.
"""

import logging
import time
from abc import abstractmethod
from typing import Any, Generic, Protocol, TypeVar

from bandscope.utils.errors import AnalysisError, AudioAnalysisError

# Type variable for result types
T = TypeVar('T')


class Analyzer(Protocol[T]):
    """
    Base protocol for all pipeline stages.

    All stages must implement:
    - analyze(...) -> T
    - name property
    - version property

    A class doesn't need to inherit from Analyzer to be compatible;
    it just needs the required members.
    """

    @property
    def name(self) -> str:
        """Stage name (e.g., 'envelope', 'spectral')."""
        ...

    @property
    def version(self) -> str:
        """Stage version for result tracking."""
        ...

    def analyze(self, *args: Any, **kwargs: Any) -> T:
        """
        Run the stage and return its typed result.

        Raises:
            AnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Optional base class providing common functionality.

    Uses Template Method pattern - analyze() provides timing, logging and
    error wrapping, subclasses implement _analyze_impl() with whatever
    inputs the stage consumes.
    """

    def __init__(self, name: str, version: str):
        """
        Initialize analyzer with name and version.

        Args:
            name: Unique stage name
            version: Version string for tracking
        """
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, *args: Any, **kwargs: Any) -> T:
        """
        Template method with timing and error handling.

        Domain errors (cancellation, sample-rate mismatch, ...) propagate
        unchanged; anything else is wrapped in AnalysisError.
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug(f"Starting {self.name}")

            result = self._analyze_impl(*args, **kwargs)

            elapsed = time.perf_counter() - start_time
            self.logger.debug(f"{self.name} complete in {elapsed:.3f}s")

            return result

        except AudioAnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"{self.name} failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, *args: Any, **kwargs: Any) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError
