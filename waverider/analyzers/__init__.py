"""
Analyzer implementations: amplitude, spectral, patterns and profile regions.
"""

from waverider.analyzers.amplitude import (
    AmplitudeAccumulator,
    AmplitudeAnalyzer,
    window_stats,
)
from waverider.analyzers.patterns import PatternDetector
from waverider.analyzers.regions import ProfileMatcher, match_profiles
from waverider.analyzers.spectral import SpectralAnalyzer, validate_fft_size

__all__ = [
    "AmplitudeAccumulator",
    "AmplitudeAnalyzer",
    "window_stats",
    "PatternDetector",
    "ProfileMatcher",
    "match_profiles",
    "SpectralAnalyzer",
    "validate_fft_size",
]
