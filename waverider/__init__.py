"""
Waverider audio analysis engine

Amplitude statistics, FFT spectral summaries, temporal pattern detection
and profile-driven region detection over decoded sample buffers.
"""

__version__ = "1.0.0"
__author__ = "Waverider Team"
