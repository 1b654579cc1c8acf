"""
Core module containing data models, profiles, and the analysis engine.
"""

from waverider.core.models import (
    SampleBuffer,
    Window,
    AmplitudeDescriptor,
    FrequencyBands,
    DominantFrequency,
    SpectralDescriptor,
    PatternSection,
    TransitionEvent,
    PatternSummary,
    Region,
    AnalysisResult,
    validate_confidence,
)
from waverider.core.profiles import (
    Profile,
    QuietParameters,
    IntensityParameters,
    TransitionParameters,
    CustomParameters,
    default_profiles,
)

__all__ = [
    # Models
    "SampleBuffer",
    "Window",
    "AmplitudeDescriptor",
    "FrequencyBands",
    "DominantFrequency",
    "SpectralDescriptor",
    "PatternSection",
    "TransitionEvent",
    "PatternSummary",
    "Region",
    "AnalysisResult",
    "validate_confidence",
    # Profiles
    "Profile",
    "QuietParameters",
    "IntensityParameters",
    "TransitionParameters",
    "CustomParameters",
    "default_profiles",
    # Engine (lazy loaded)
    "AnalysisEngine",
    "AnalysisOptions",
    "create_analysis_engine",
]


def __getattr__(name: str):
    """Lazy load the engine; it depends on the analyzers package."""
    if name in ("AnalysisEngine", "AnalysisOptions", "create_analysis_engine"):
        from waverider.core.engine import AnalysisEngine, AnalysisOptions, create_analysis_engine
        return {
            "AnalysisEngine": AnalysisEngine,
            "AnalysisOptions": AnalysisOptions,
            "create_analysis_engine": create_analysis_engine,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
