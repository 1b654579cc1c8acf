"""Test signal generators shared across test packages."""

import numpy as np

from waverider.core.models import SampleBuffer

SAMPLE_RATE = 44100


def sine(freq_hz, seconds=1.0, amplitude=1.0, sample_rate=SAMPLE_RATE):
    """A sine tone as a float64 array."""
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


def constant(level, seconds=1.0, sample_rate=SAMPLE_RATE):
    """A constant (DC) signal."""
    return np.full(int(seconds * sample_rate), float(level))


def alternating(level, seconds=1.0, sample_rate=SAMPLE_RATE):
    """+level, -level, +level, ... (constant magnitude, maximal variance)."""
    n = int(seconds * sample_rate)
    return np.where(np.arange(n) % 2 == 0, float(level), -float(level))


def buffer_of(samples, sample_rate=SAMPLE_RATE):
    return SampleBuffer.from_samples(samples, sample_rate)
