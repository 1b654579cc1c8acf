"""
Temporal pattern detection for the Waverider analysis engine.

Finds quiet and loud sections and abrupt loudness changes across a buffer.
"""

import math
from typing import List

from waverider.analyzers.amplitude import rms
from waverider.core.analyzer_base import BaseAnalyzer
from waverider.core.models import (
    PatternSection,
    PatternSummary,
    SampleBuffer,
    TransitionEvent,
)
from waverider.utils.errors import EmptyInput, InvalidAnalysisOptions

LOUD_RMS = 0.7
TRANSITION_WINDOW_SEC = 0.1


class PatternDetector(BaseAnalyzer[PatternSummary]):
    """
    Sliding-window loudness classification.

    Sections: non-overlapping windows of ``floor(min_duration_sec * sr)``
    samples are quiet when ``rms < threshold`` and loud when
    ``rms > 0.7``; anything in between is left unclassified.

    Transitions: at every 100 ms boundary the RMS of the 100 ms before is
    compared with the 100 ms after; a difference above ``threshold`` is
    reported with its direction.
    """

    def __init__(self, threshold: float = 0.1, min_duration_sec: float = 0.1):
        super().__init__("patterns", "1.0.0")
        if not math.isfinite(threshold) or threshold < 0:
            raise InvalidAnalysisOptions(
                f"Threshold must be a non-negative number, got {threshold}",
                option="threshold",
                value=threshold,
            )
        if not math.isfinite(min_duration_sec) or min_duration_sec <= 0:
            raise InvalidAnalysisOptions(
                f"Minimum duration must be positive, got {min_duration_sec}",
                option="minDurationSec",
                value=min_duration_sec,
            )
        self.threshold = threshold
        self.min_duration_sec = min_duration_sec

    def _analyze_impl(self, buffer: SampleBuffer) -> PatternSummary:
        if buffer.length == 0:
            raise EmptyInput("Sample buffer is empty", what="buffer")

        window_size = _samples_for(self.min_duration_sec, buffer.sample_rate, "minDurationSec")
        quiet: List[PatternSection] = []
        loud: List[PatternSection] = []

        for window in buffer.iter_windows(window_size):
            level = rms(window.samples)
            if level < self.threshold:
                quiet.append(PatternSection(window.start_time, window.end_time, level))
            elif level > LOUD_RMS:
                loud.append(PatternSection(window.start_time, window.end_time, level))

        transitions = self.detect_transitions(buffer)
        self.logger.debug(
            f"{len(quiet)} quiet, {len(loud)} loud, {len(transitions)} transitions"
        )
        return PatternSummary(quiet_sections=quiet, loud_sections=loud, transitions=transitions)

    def detect_transitions(self, buffer: SampleBuffer) -> List[TransitionEvent]:
        """Loudness jumps between adjacent 100 ms windows."""
        stride = _samples_for(TRANSITION_WINDOW_SEC, buffer.sample_rate, "sampleRate")
        samples = buffer.samples
        transitions: List[TransitionEvent] = []

        # RMS of each 100 ms window is computed once and reused as "before"
        previous = None
        for offset in range(0, buffer.length - stride + 1, stride):
            current = rms(samples[offset:offset + stride])
            if previous is not None:
                change = abs(current - previous)
                if change > self.threshold:
                    transitions.append(TransitionEvent(
                        time=offset / buffer.sample_rate,
                        change=change,
                        direction="increasing" if current > previous else "decreasing",
                    ))
            previous = current

        return transitions


def _samples_for(seconds: float, sample_rate: float, option: str) -> int:
    size = int(math.floor(seconds * sample_rate))
    if size < 1:
        raise InvalidAnalysisOptions(
            f"{seconds}s at {sample_rate:g} Hz is shorter than one sample",
            option=option,
            value=seconds,
        )
    return size
