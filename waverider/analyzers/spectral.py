"""
Spectral analyzer for the Waverider analysis engine.

Summarizes the frequency content of one FFT block: spectral centroid,
bass/mid/treble band energies and the strongest frequency bins.
"""

import numbers
from typing import List

import numpy as np

from waverider.core.analyzer_base import BaseAnalyzer
from waverider.core.models import (
    DominantFrequency,
    FrequencyBands,
    SampleBuffer,
    SpectralDescriptor,
    ensure_finite,
)
from waverider.utils.errors import EmptyInput, InvalidFFTSize

BASS_CUTOFF_HZ = 250.0
TREBLE_CUTOFF_HZ = 4000.0
DOMINANT_THRESHOLD_RATIO = 0.1
MAX_DOMINANT_FREQUENCIES = 5


def validate_fft_size(fft_size) -> int:
    """
    Return ``fft_size`` as an int if it is a power of two >= 2.

    Raises:
        InvalidFFTSize: Otherwise
    """
    if isinstance(fft_size, bool) or not isinstance(fft_size, numbers.Real):
        raise InvalidFFTSize(f"FFT size must be an integer, got {fft_size!r}", fft_size)
    if int(fft_size) != fft_size:
        raise InvalidFFTSize(f"FFT size must be an integer, got {fft_size!r}", fft_size)
    size = int(fft_size)
    if size < 2 or size & (size - 1):
        raise InvalidFFTSize(f"FFT size must be a power of two >= 2, got {size}", size)
    return size


class SpectralAnalyzer(BaseAnalyzer[SpectralDescriptor]):
    """
    FFT-based spectral summary of the leading block of a buffer.

    Input shorter than ``fft_size`` is zero-padded to ``fft_size`` before
    the Hann window is applied.
    """

    def __init__(self, fft_size: int = 2048):
        """
        Args:
            fft_size: Transform length; must be a power of two

        Raises:
            InvalidFFTSize: If fft_size is not a power of two >= 2
        """
        super().__init__("spectral", "1.0.0")
        self.fft_size = validate_fft_size(fft_size)

    def _analyze_impl(self, buffer: SampleBuffer) -> SpectralDescriptor:
        if buffer.length == 0:
            raise EmptyInput("Sample buffer is empty", what="buffer")
        return self.analyze_block(buffer.samples[:self.fft_size], buffer.sample_rate)

    def analyze_block(self, block: np.ndarray, sample_rate: float) -> SpectralDescriptor:
        """
        Analyze one block of at most ``fft_size`` samples.

        Raises:
            EmptyInput: If the block is empty
            NonFiniteSample: If the block contains NaN or infinity
        """
        block = np.asarray(block, dtype=np.float64)
        if block.size == 0:
            raise EmptyInput("Cannot transform an empty block", what="fft block")
        ensure_finite(block)

        n = self.fft_size
        if block.size > n:
            block = block[:n]
        elif block.size < n:
            self.logger.warning(
                f"Block has {block.size} samples, zero-padding to fft_size={n}"
            )
            block = np.concatenate([block, np.zeros(n - block.size)])

        windowed = block * np.hanning(n)

        # One-sided spectrum: bins 0 .. n/2 - 1
        half = n // 2
        magnitudes = np.abs(np.fft.rfft(windowed))[:half]
        freqs = np.arange(half) * (sample_rate / n)

        total = float(magnitudes.sum())
        centroid = float(np.dot(freqs, magnitudes) / total) if total > 0 else 0.0

        return SpectralDescriptor(
            spectral_centroid_hz=centroid,
            frequency_bands=self._band_energies(magnitudes, sample_rate),
            dominant_frequencies=self._dominant_frequencies(magnitudes, freqs),
            fft_size=n,
        )

    def _band_energies(self, magnitudes: np.ndarray, sample_rate: float) -> FrequencyBands:
        """Sum of squared magnitudes per band; edges clamp at Nyquist."""
        half = magnitudes.size
        bass_end = min(int(np.floor(self.fft_size * BASS_CUTOFF_HZ / sample_rate)), half)
        mid_end = min(int(np.floor(self.fft_size * TREBLE_CUTOFF_HZ / sample_rate)), half)
        power = magnitudes ** 2

        return FrequencyBands(
            bass=float(power[:bass_end].sum()),
            mid=float(power[bass_end:mid_end].sum()),
            treble=float(power[mid_end:].sum()),
        )

    def _dominant_frequencies(
        self, magnitudes: np.ndarray, freqs: np.ndarray
    ) -> List[DominantFrequency]:
        """Bins above 10% of the peak magnitude, strongest first, top 5."""
        threshold = float(magnitudes.max()) * DOMINANT_THRESHOLD_RATIO
        candidates = np.flatnonzero(magnitudes > threshold)
        order = candidates[np.argsort(-magnitudes[candidates], kind="stable")]

        return [
            DominantFrequency(frequency_hz=float(freqs[i]), magnitude=float(magnitudes[i]))
            for i in order[:MAX_DOMINANT_FREQUENCIES]
        ]
