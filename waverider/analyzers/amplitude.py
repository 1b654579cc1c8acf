"""
Amplitude statistics for the Waverider analysis engine.

RMS, peak, mean absolute level, crest factor, dynamic range and zero
crossings over a window, computed in one streaming pass.
"""

import math
from typing import Union, Sequence

import numpy as np

from waverider.core.analyzer_base import BaseAnalyzer
from waverider.core.models import AmplitudeDescriptor, SampleBuffer, ensure_finite
from waverider.utils.errors import EmptyInput, InvalidAnalysisOptions


class AmplitudeAccumulator:
    """
    Running amplitude statistics over consecutive chunks of one signal.

    Feeding a signal in chunks gives the same zero-crossing count as a
    single pass because the sign of the last sample is carried over.
    """

    def __init__(self) -> None:
        self.count = 0
        # Sums are kept relative to the running peak so large or tiny
        # samples neither overflow nor underflow when squared
        self.abs_sum = 0.0
        self.square_sum = 0.0
        self.peak = 0.0
        self.zero_crossings = 0
        self._last_non_negative = None

    def update(self, chunk: np.ndarray) -> None:
        """
        Add the next chunk of samples.

        Raises:
            NonFiniteSample: If the chunk contains NaN or infinity
        """
        if chunk.size == 0:
            return
        ensure_finite(chunk, offset=self.count)

        magnitudes = np.abs(chunk)
        peak = max(self.peak, float(magnitudes.max()))
        if peak > 0:
            if self.peak > 0 and peak > self.peak:
                ratio = self.peak / peak
                self.abs_sum *= ratio
                self.square_sum *= ratio * ratio
            scaled = magnitudes / peak
            self.abs_sum += float(scaled.sum())
            self.square_sum += float(np.dot(scaled, scaled))
        self.peak = peak

        # A sample at exactly 0.0 counts as non-negative
        non_negative = chunk >= 0
        if self._last_non_negative is not None and self._last_non_negative != bool(non_negative[0]):
            self.zero_crossings += 1
        self.zero_crossings += int(np.count_nonzero(non_negative[1:] != non_negative[:-1]))
        self._last_non_negative = bool(non_negative[-1])

        self.count += int(chunk.size)

    def result(self) -> AmplitudeDescriptor:
        """
        Finish the pass.

        Raises:
            EmptyInput: If no samples were added
        """
        if self.count == 0:
            raise EmptyInput("Cannot compute amplitude of an empty window", what="window")

        average = self.peak * (self.abs_sum / self.count)
        # Rounding in the mean of squares can push rms an ulp above peak
        rms = min(self.peak * math.sqrt(self.square_sum / self.count), self.peak)

        if self.peak > 0 and rms > 0:
            crest_factor = self.peak / rms
            dynamic_range_db = 20.0 * math.log10(crest_factor)
        else:
            crest_factor = 0.0
            dynamic_range_db = 0.0

        return AmplitudeDescriptor(
            rms=rms,
            peak=self.peak,
            average=average,
            dynamic_range_db=dynamic_range_db,
            crest_factor=crest_factor,
            zero_crossings=self.zero_crossings,
        )


def window_stats(samples: Union[np.ndarray, Sequence[float]]) -> AmplitudeDescriptor:
    """
    Amplitude descriptor of one contiguous window.

    Raises:
        EmptyInput: If the window has no samples
        NonFiniteSample: If any sample is NaN or infinite
    """
    accumulator = AmplitudeAccumulator()
    accumulator.update(np.asarray(samples, dtype=np.float64))
    return accumulator.result()


def rms(samples: np.ndarray) -> float:
    """Root-mean-square level of a non-empty window."""
    return window_stats(samples).rms


def variance(samples: np.ndarray) -> float:
    """Population variance of the raw (signed) samples."""
    if len(samples) == 0:
        raise EmptyInput("Cannot compute variance of an empty window", what="window")
    return float(np.var(samples))


class AmplitudeAnalyzer(BaseAnalyzer[AmplitudeDescriptor]):
    """
    Whole-buffer amplitude statistics.

    The buffer is consumed in ``chunk_size`` blocks so memory stays bounded
    by one block regardless of buffer length.
    """

    def __init__(self, chunk_size: int = 1024):
        """
        Args:
            chunk_size: Samples per streaming block
        """
        super().__init__("amplitude", "1.0.0")
        if chunk_size <= 0:
            raise InvalidAnalysisOptions(
                f"Window size must be at least one sample, got {chunk_size}",
                option="windowSize",
                value=chunk_size,
            )
        self.chunk_size = chunk_size

    def _analyze_impl(self, buffer: SampleBuffer) -> AmplitudeDescriptor:
        if buffer.length == 0:
            raise EmptyInput("Sample buffer is empty", what="buffer")

        accumulator = AmplitudeAccumulator()
        for offset in range(0, buffer.length, self.chunk_size):
            accumulator.update(buffer.samples[offset:offset + self.chunk_size])
        return accumulator.result()
