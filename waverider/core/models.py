"""
Core data models for the Waverider analysis engine.

Immutable domain models for sample buffers, the descriptors computed from
them, and the aggregated analysis result handed back to callers.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import numpy as np

from waverider.utils.errors import (
    EmptyInput,
    InvalidAnalysisOptions,
    InvalidWindow,
    NonFiniteSample,
)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    One channel of decoded audio plus its sample rate.

    The sample array is a read-only view; the caller keeps ownership of
    the underlying memory.
    """

    samples: np.ndarray  # Shape: (n,), float64
    sample_rate: float  # Hz

    @classmethod
    def from_samples(
        cls,
        values: Union[Sequence[float], np.ndarray],
        sample_rate: float,
    ) -> "SampleBuffer":
        """
        Build a validated buffer from any float sequence.

        Raises:
            InvalidAnalysisOptions: If the sample rate is not a positive
                finite number or the samples are not one-dimensional
            NonFiniteSample: If any sample is NaN or infinite
        """
        try:
            rate = float(sample_rate)
        except (TypeError, ValueError) as e:
            raise InvalidAnalysisOptions(
                f"Sample rate must be a number, got {sample_rate!r}",
                option="sampleRate",
                value=sample_rate,
            ) from e
        if not math.isfinite(rate) or rate <= 0:
            raise InvalidAnalysisOptions(
                f"Sample rate must be positive, got {sample_rate!r}",
                option="sampleRate",
                value=sample_rate,
            )

        try:
            data = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidAnalysisOptions(
                f"Samples must be numeric: {e}", option="samples"
            ) from e
        if data.ndim != 1:
            raise InvalidAnalysisOptions(
                f"Samples must be a single channel, got shape {data.shape}",
                option="samples",
            )
        ensure_finite(data)

        view = data.view()
        view.flags.writeable = False
        return cls(samples=view, sample_rate=rate)

    @property
    def length(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.length / self.sample_rate

    def window(self, offset: int, length: int) -> "Window":
        """Return a validated window into this buffer."""
        if length <= 0:
            raise InvalidWindow(
                "Window length must be positive",
                offset=offset, length=length, buffer_length=self.length,
            )
        if offset < 0 or offset + length > self.length:
            raise InvalidWindow(
                f"Window [{offset}, {offset + length}) exceeds buffer of "
                f"{self.length} samples",
                offset=offset, length=length, buffer_length=self.length,
            )
        return Window(buffer=self, offset=offset, length=length)

    def whole(self) -> "Window":
        """Window spanning the entire buffer."""
        if self.length == 0:
            raise EmptyInput("Sample buffer is empty", what="buffer")
        return self.window(0, self.length)

    def iter_windows(self, size: int) -> Iterator["Window"]:
        """
        Yield consecutive non-overlapping windows of ``size`` samples.

        A trailing partial window is not yielded.
        """
        if size <= 0:
            raise InvalidAnalysisOptions(
                f"Window size must be at least one sample, got {size}",
                option="windowSize",
                value=size,
            )
        for offset in range(0, self.length - size + 1, size):
            yield Window(buffer=self, offset=offset, length=size)


@dataclass(frozen=True, eq=False)
class Window:
    """An ``(offset, length)`` view into a SampleBuffer."""

    buffer: SampleBuffer = field(repr=False)
    offset: int
    length: int

    @property
    def samples(self) -> np.ndarray:
        return self.buffer.samples[self.offset:self.offset + self.length]

    @property
    def start_time(self) -> float:
        return self.offset / self.buffer.sample_rate

    @property
    def end_time(self) -> float:
        return (self.offset + self.length) / self.buffer.sample_rate


@dataclass(frozen=True)
class AmplitudeDescriptor:
    """Amplitude statistics of one window."""

    rms: float
    peak: float
    average: float  # mean absolute value
    dynamic_range_db: float
    crest_factor: float
    zero_crossings: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'rms': self.rms,
            'peak': self.peak,
            'average': self.average,
            'dynamicRangeDb': self.dynamic_range_db,
            'crestFactor': self.crest_factor,
            'zeroCrossings': self.zero_crossings,
        }


@dataclass(frozen=True)
class FrequencyBands:
    """Band energies (sum of squared magnitudes)."""

    bass: float  # below 250 Hz
    mid: float  # 250 Hz - 4 kHz
    treble: float  # 4 kHz - Nyquist

    def to_dict(self) -> Dict[str, Any]:
        return {'bass': self.bass, 'mid': self.mid, 'treble': self.treble}


@dataclass(frozen=True)
class DominantFrequency:
    frequency_hz: float
    magnitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {'frequencyHz': self.frequency_hz, 'magnitude': self.magnitude}


@dataclass(frozen=True)
class SpectralDescriptor:
    """Frequency content of one FFT block."""

    spectral_centroid_hz: float
    frequency_bands: FrequencyBands
    dominant_frequencies: List[DominantFrequency]  # <= 5, magnitude desc
    fft_size: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'spectralCentroidHz': self.spectral_centroid_hz,
            'frequencyBands': self.frequency_bands.to_dict(),
            'dominantFrequencies': [d.to_dict() for d in self.dominant_frequencies],
            'fftSize': self.fft_size,
        }


@dataclass(frozen=True)
class PatternSection:
    """A window classified as quiet or loud."""

    start: float  # seconds
    end: float  # seconds
    rms: float

    def to_dict(self) -> Dict[str, Any]:
        return {'start': self.start, 'end': self.end, 'rms': self.rms}


@dataclass(frozen=True)
class TransitionEvent:
    """An abrupt loudness change between adjacent 100 ms windows."""

    time: float  # seconds
    change: float  # |rms_after - rms_before|
    direction: str  # "increasing" or "decreasing"

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.time, 'change': self.change, 'direction': self.direction}


@dataclass(frozen=True)
class PatternSummary:
    """Temporal patterns found across a whole buffer."""

    quiet_sections: List[PatternSection] = field(default_factory=list)
    loud_sections: List[PatternSection] = field(default_factory=list)
    transitions: List[TransitionEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'quietSections': [s.to_dict() for s in self.quiet_sections],
            'loudSections': [s.to_dict() for s in self.loud_sections],
            'transitions': [t.to_dict() for t in self.transitions],
        }


@dataclass(frozen=True)
class Region:
    """A time span that matched a classification profile."""

    id: str
    start: float  # seconds
    end: float  # seconds
    profile_id: str
    confidence: float  # [0.0, 1.0]
    descriptor: AmplitudeDescriptor

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_confidence(self.confidence)
        if not self.start < self.end:
            raise ValueError(
                f"Region start must precede end, got [{self.start}, {self.end}]"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'start': self.start,
            'end': self.end,
            'profileId': self.profile_id,
            'confidence': self.confidence,
            'descriptor': self.descriptor.to_dict(),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis of one sample buffer."""

    # Identification
    id: str
    timestamp: datetime
    sample_count: int
    sample_rate: float

    # Analysis components
    amplitude: AmplitudeDescriptor
    spectral: SpectralDescriptor
    patterns: PatternSummary
    regions: List[Region]

    processing_time: Optional[float] = None  # seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'sampleCount': self.sample_count,
            'sampleRate': self.sample_rate,
            'amplitude': self.amplitude.to_dict(),
            'spectral': self.spectral.to_dict(),
            'patterns': self.patterns.to_dict(),
            'regions': [r.to_dict() for r in self.regions],
            'processingTime': self.processing_time,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def regions_for(self, profile_id: str) -> List[Region]:
        """Regions emitted by one profile, in time order."""
        return [r for r in self.regions if r.profile_id == profile_id]

    def get_summary(self) -> str:
        """Get human-readable summary."""
        parts = [
            f"RMS: {self.amplitude.rms:.4f}",
            f"Peak: {self.amplitude.peak:.4f}",
            f"Centroid: {self.spectral.spectral_centroid_hz:.1f} Hz",
        ]
        if self.spectral.dominant_frequencies:
            top = self.spectral.dominant_frequencies[0]
            parts.append(f"Dominant: {top.frequency_hz:.1f} Hz")
        parts.append(
            f"Quiet/Loud: {len(self.patterns.quiet_sections)}/"
            f"{len(self.patterns.loud_sections)}"
        )
        parts.append(f"Transitions: {len(self.patterns.transitions)}")
        parts.append(f"Regions: {len(self.regions)}")
        return " | ".join(parts)


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


def ensure_finite(samples: np.ndarray, offset: int = 0) -> None:
    """
    Raise NonFiniteSample at the first NaN or infinite value.

    ``offset`` is added to the reported index when ``samples`` is a slice
    of a longer signal.
    """
    finite = np.isfinite(samples)
    if not finite.all():
        local = int(np.flatnonzero(~finite)[0])
        index = offset + local
        raise NonFiniteSample(
            f"Sample {index} is not finite ({samples[local]})", index=index
        )
