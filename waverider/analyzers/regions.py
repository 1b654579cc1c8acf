"""
Profile-driven region detection for the Waverider analysis engine.

Slides a profile's window across a buffer and emits a confidence-scored
Region for every window that satisfies the profile's rule.
"""

import math
import uuid
from typing import Iterable, List, Optional

from waverider.analyzers.amplitude import variance, window_stats
from waverider.core.analyzer_base import Analyzer, BaseAnalyzer
from waverider.core.models import AmplitudeDescriptor, Region, SampleBuffer, Window
from waverider.core.profiles import (
    CustomParameters,
    IntensityParameters,
    Profile,
    QuietParameters,
    TransitionParameters,
    validate_profile,
)
from waverider.utils.errors import EmptyInput, InvalidProfileParameters

TRANSITION_CONFIDENCE = 0.5


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class ProfileMatcher(BaseAnalyzer[List[Region]]):
    """
    Evaluates one Profile against consecutive non-overlapping windows.

    Only full windows are evaluated; a trailing partial window is skipped.
    """

    def __init__(self, profile: Profile):
        """
        Args:
            profile: Profile to evaluate

        Raises:
            InvalidProfileParameters: If the profile's parameters are unusable
        """
        super().__init__(f"profile.{profile.id}", "1.0.0")
        validate_profile(profile)
        self.profile = profile

    def _analyze_impl(self, buffer: SampleBuffer) -> List[Region]:
        if buffer.length == 0:
            raise EmptyInput("Sample buffer is empty", what="buffer")

        window_size = int(math.floor(self.profile.window_size_sec * buffer.sample_rate))
        if window_size < 1:
            raise InvalidProfileParameters(
                f"Window of {self.profile.window_size_sec}s is shorter than one sample "
                f"at {buffer.sample_rate:g} Hz",
                profile_id=self.profile.id,
                parameter="windowSizeSec",
            )

        regions: List[Region] = []
        for window in buffer.iter_windows(window_size):
            descriptor = window_stats(window.samples)
            confidence = self.evaluate(window, descriptor)
            if confidence is None:
                continue
            regions.append(Region(
                id=str(uuid.uuid4()),
                start=window.start_time,
                end=window.end_time,
                profile_id=self.profile.id,
                confidence=confidence,
                descriptor=descriptor,
            ))

        self.logger.debug(f"{len(regions)} regions matched")
        return regions

    def evaluate(self, window: Window, descriptor: AmplitudeDescriptor) -> Optional[float]:
        """
        Apply the profile's rule to one window.

        Returns:
            The match confidence in [0, 1], or None when the window does
            not match
        """
        params = self.profile.parameters

        if isinstance(params, QuietParameters):
            if descriptor.rms < params.max_amplitude:
                return _clamp(1.0 - descriptor.rms / params.max_amplitude)
            return None

        if isinstance(params, IntensityParameters):
            if descriptor.rms > params.min_amplitude:
                return _clamp(descriptor.rms / params.min_amplitude)
            return None

        if isinstance(params, TransitionParameters):
            if variance(window.samples) > params.sensitivity:
                return TRANSITION_CONFIDENCE
            return None

        if isinstance(params, CustomParameters):
            # No built-in rule for custom profiles
            return None

        raise InvalidProfileParameters(
            f"Unsupported parameter variant {type(params).__name__}",
            profile_id=self.profile.id,
        )


def match_profiles(buffer: SampleBuffer, profiles: Iterable[Profile]) -> List[Region]:
    """
    Regions from every profile, concatenated in profile order.

    Regions from different profiles are independent verdicts and are
    never merged, even when they cover the same span.
    """
    matchers: List[Analyzer[List[Region]]] = [ProfileMatcher(p) for p in profiles]
    regions: List[Region] = []
    for matcher in matchers:
        regions.extend(matcher.analyze(buffer))
    return regions
