"""
Analyzer base interface for the Waverider analysis engine.

Defines the contract for all analyzers using Protocol (structural subtyping).
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar, runtime_checkable

from waverider.core.models import SampleBuffer
from waverider.utils.errors import AnalysisError, AudioAnalysisError

T = TypeVar('T')
T_co = TypeVar('T_co', covariant=True)


@runtime_checkable
class Analyzer(Protocol[T_co]):
    """
    Base protocol for all analyzers.

    All analyzers must implement:
    - analyze(buffer) -> T
    - name property
    - version property
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'spectral', 'patterns')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, buffer: SampleBuffer) -> T_co:
        """
        Analyze a sample buffer and return a typed result.

        Raises:
            AudioAnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Shared timing, logging and error handling for analyzers.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl(). Analyzer settings are fixed at
    construction so one instance can be reused across buffers and threads.
    """

    def __init__(self, name: str, version: str):
        """
        Initialize analyzer with name and version.

        Args:
            name: Unique analyzer name
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

    def analyze(self, buffer: SampleBuffer) -> T:
        """
        Template method with timing and error handling.

        Domain errors (AudioAnalysisError subclasses) propagate unchanged;
        anything else is wrapped in AnalysisError.

        Args:
            buffer: SampleBuffer to analyze

        Returns:
            T: Analysis result
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug(
                f"Starting analysis: {buffer.length} samples @ {buffer.sample_rate:g} Hz"
            )

            result = self._analyze_impl(buffer)

            elapsed = time.perf_counter() - start_time
            self.logger.debug(f"Analysis complete in {elapsed:.3f}s")

            return result

        except AudioAnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, buffer: SampleBuffer) -> T:
        """
        Subclasses implement actual analysis logic.

        Args:
            buffer: SampleBuffer to analyze

        Returns:
            T: Analysis result
        """
        raise NotImplementedError
