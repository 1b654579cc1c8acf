"""
Analysis engine for the Waverider audio analysis service.

Composes the amplitude, spectral, pattern and profile analyzers over one
sample buffer and assembles a single AnalysisResult.
"""

import math
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from waverider.analyzers.amplitude import AmplitudeAnalyzer
from waverider.analyzers.patterns import PatternDetector
from waverider.analyzers.regions import match_profiles
from waverider.analyzers.spectral import SpectralAnalyzer
from waverider.core.analyzer_base import Analyzer
from waverider.core.models import (
    AmplitudeDescriptor,
    AnalysisResult,
    PatternSummary,
    Region,
    SampleBuffer,
    SpectralDescriptor,
)
from waverider.core.profiles import Profile
from waverider.utils.errors import AudioAnalysisError, InvalidAnalysisOptions
from waverider.utils.logging import create_logger_with_context

T = TypeVar("T")

ENGINE_VERSION = "1.0.0"
CAPABILITIES = [
    "amplitude_analysis",
    "spectral_analysis",
    "pattern_detection",
    "region_detection",
]

# Request option name -> (AnalysisOptions field, coercion)
_WIRE_OPTIONS = {
    "sampleRate": ("sample_rate", float),
    "windowSize": ("window_size", int),
    "fftSize": ("fft_size", int),
    "threshold": ("threshold", float),
    "minDuration": ("min_duration_sec", float),
    "minDurationSec": ("min_duration_sec", float),
}


@dataclass(frozen=True)
class AnalysisOptions:
    """Settings for one orchestration call."""

    sample_rate: float = 44100.0
    window_size: int = 1024  # streaming block for whole-buffer amplitude
    fft_size: int = 2048
    threshold: float = 0.1
    min_duration_sec: float = 0.1
    profiles: Tuple[Profile, ...] = ()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AnalysisOptions":
        """Defaults from the ``analysis`` section of a configuration dict."""
        section = config.get("analysis") or {}
        values = {
            field_name: _coerce(section[field_name], kind, field_name)
            for field_name, kind in (
                ("sample_rate", float),
                ("window_size", int),
                ("fft_size", int),
                ("threshold", float),
                ("min_duration_sec", float),
            )
            if section.get(field_name) is not None
        }
        return cls(**values)

    @classmethod
    def from_dict(
        cls,
        data: Optional[Mapping[str, Any]],
        defaults: Optional["AnalysisOptions"] = None,
    ) -> "AnalysisOptions":
        """
        Options from a request's ``options`` object, layered over defaults.

        Profiles may be given as JSON objects or as Profile instances.

        Raises:
            InvalidAnalysisOptions: If an option is not a usable number
            InvalidProfileParameters: If a profile cannot be parsed
        """
        base = defaults or cls()
        if not data:
            return base
        if not isinstance(data, Mapping):
            raise InvalidAnalysisOptions("Options must be an object", option="options")

        values: Dict[str, Any] = {}
        for wire_name, (field_name, kind) in _WIRE_OPTIONS.items():
            if data.get(wire_name) is not None:
                values[field_name] = _coerce(data[wire_name], kind, wire_name)

        profiles = data.get("profiles")
        if profiles is not None:
            if not isinstance(profiles, (list, tuple)):
                raise InvalidAnalysisOptions("Profiles must be a list", option="profiles")
            values["profiles"] = tuple(
                p if isinstance(p, Profile) else Profile.from_dict(p) for p in profiles
            )

        return replace(base, **values)

    def with_profiles(self, profiles: Iterable[Profile]) -> "AnalysisOptions":
        return replace(self, profiles=tuple(profiles))


def _coerce(value: Any, kind: type, option: str) -> Any:
    if isinstance(value, bool):
        raise InvalidAnalysisOptions(f"Option {option} must be a number", option=option, value=value)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidAnalysisOptions(
            f"Option {option} must be a number, got {value!r}", option=option, value=value
        ) from e
    if not math.isfinite(number):
        raise InvalidAnalysisOptions(
            f"Option {option} must be finite, got {value!r}", option=option, value=value
        )
    if kind is int:
        if number != int(number):
            raise InvalidAnalysisOptions(
                f"Option {option} must be an integer, got {value!r}", option=option, value=value
            )
        return int(number)
    return number


class AnalysisEngine:
    """
    Orchestrates all analyzers over one buffer.

    Design:
    - Pure composition: every analyzer is a function of its inputs
    - Fail fast: the first analyzer error propagates unchanged and no
      partial result is produced
    - Batch: independent buffers can be analyzed on a thread pool
    """

    def __init__(
        self,
        defaults: Optional[AnalysisOptions] = None,
        max_workers: int = 4,
    ):
        """
        Initialize analysis engine.

        Args:
            defaults: Options used when a call does not supply its own
            max_workers: Thread pool size for analyze_batch()
        """
        if max_workers < 1:
            raise InvalidAnalysisOptions(
                f"max_workers must be at least 1, got {max_workers}",
                option="max_workers",
                value=max_workers,
            )
        self.defaults = defaults or AnalysisOptions()
        self.max_workers = max_workers
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = create_logger_with_context("engine", {"service": "analysis_engine"})

    def buffer_from(
        self,
        samples: Union[Sequence[float], np.ndarray],
        options: Optional[AnalysisOptions] = None,
    ) -> SampleBuffer:
        """Wrap raw samples using the options' sample rate."""
        options = options or self.defaults
        return SampleBuffer.from_samples(samples, options.sample_rate)

    def analyze(
        self,
        buffer: SampleBuffer,
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """
        Run every analyzer over ``buffer``.

        Args:
            buffer: Samples to analyze; its sample rate is authoritative
            options: Analysis options (engine defaults if omitted)

        Returns:
            AnalysisResult: Fresh result with a new id and timestamp

        Raises:
            AudioAnalysisError: The first analyzer failure, unchanged
        """
        options = options or self.defaults
        start_time = time.perf_counter()
        self.logger.info(
            "Starting audio analysis",
            extra={"context": {
                "sample_count": buffer.length,
                "sample_rate": buffer.sample_rate,
                "profile_count": len(options.profiles),
            }},
        )

        try:
            amplitude = self.analyze_amplitude(buffer, options)
            spectral = self.analyze_spectral(buffer, options)
            patterns = self.detect_patterns(buffer, options)
            regions = self.detect_regions(buffer, options.profiles)
        except AudioAnalysisError as e:
            self.logger.error(f"Analysis failed: {e}")
            raise

        result = AnalysisResult(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            sample_count=buffer.length,
            sample_rate=buffer.sample_rate,
            amplitude=amplitude,
            spectral=spectral,
            patterns=patterns,
            regions=regions,
            processing_time=time.perf_counter() - start_time,
        )

        self.logger.info(
            f"Analysis complete in {result.processing_time:.3f}s",
            extra={"context": {"result_id": result.id, "region_count": len(regions)}},
        )
        return result

    def analyze_request(self, payload: Mapping[str, Any]) -> AnalysisResult:
        """
        Analyze a JSON request ``{"samples": [...], "options": {...}}``.

        ``audioData`` is accepted in place of ``samples``.

        Raises:
            InvalidAnalysisOptions: If the request has no sample list
            AudioAnalysisError: Any analyzer failure
        """
        if not isinstance(payload, Mapping):
            raise InvalidAnalysisOptions("Request must be an object", option="request")
        samples = payload.get("samples", payload.get("audioData"))
        if samples is None or isinstance(samples, (str, bytes, Mapping)):
            raise InvalidAnalysisOptions("Invalid audio data format", option="samples")

        options = AnalysisOptions.from_dict(payload.get("options"), defaults=self.defaults)
        return self.analyze(self.buffer_from(samples, options), options)

    def analyze_amplitude(
        self, buffer: SampleBuffer, options: Optional[AnalysisOptions] = None
    ) -> AmplitudeDescriptor:
        """Amplitude statistics over the whole buffer."""
        options = options or self.defaults
        return self._run_analyzer(AmplitudeAnalyzer(chunk_size=options.window_size), buffer)

    def analyze_spectral(
        self, buffer: SampleBuffer, options: Optional[AnalysisOptions] = None
    ) -> SpectralDescriptor:
        """Spectral summary of the leading fft_size samples."""
        options = options or self.defaults
        return self._run_analyzer(SpectralAnalyzer(fft_size=options.fft_size), buffer)

    def detect_patterns(
        self, buffer: SampleBuffer, options: Optional[AnalysisOptions] = None
    ) -> PatternSummary:
        """Quiet/loud sections and transitions over the whole buffer."""
        options = options or self.defaults
        detector = PatternDetector(
            threshold=options.threshold,
            min_duration_sec=options.min_duration_sec,
        )
        return self._run_analyzer(detector, buffer)

    def detect_regions(
        self, buffer: SampleBuffer, profiles: Optional[Iterable[Profile]] = None
    ) -> List[Region]:
        """Regions for each profile, concatenated in profile order."""
        if profiles is None:
            profiles = self.defaults.profiles
        return match_profiles(buffer, profiles)

    def _run_analyzer(self, analyzer: Analyzer[T], buffer: SampleBuffer) -> T:
        self.logger.debug(f"Running {analyzer.name} v{analyzer.version}")
        return analyzer.analyze(buffer)

    def analyze_batch(
        self,
        buffers: Sequence[SampleBuffer],
        options: Optional[AnalysisOptions] = None,
    ) -> List[AnalysisResult]:
        """
        Analyze independent buffers in parallel.

        Returns:
            List[AnalysisResult]: Results in the same order as ``buffers``

        Raises:
            AudioAnalysisError: The failure of the first failing buffer in
                input order
        """
        self.logger.info(f"Analyzing batch of {len(buffers)} buffers")
        futures = [self.executor.submit(self.analyze, buffer, options) for buffer in buffers]
        try:
            return [future.result() for future in futures]
        except Exception:
            for future in futures:
                future.cancel()
            raise

    def status(self) -> Dict[str, Any]:
        """Engine status as reported to the HTTP layer."""
        return {
            "status": "running",
            "version": ENGINE_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "capabilities": list(CAPABILITIES),
        }

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "AnalysisEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def create_analysis_engine(config: Mapping[str, Any]) -> AnalysisEngine:
    """
    Factory function to create a configured analysis engine.

    Args:
        config: Configuration dict (see utils.config.get_default_config)

    Returns:
        AnalysisEngine: Configured engine
    """
    performance_config = config.get("performance") or {}
    max_workers = _coerce(performance_config.get("max_workers", 4), int, "max_workers")

    return AnalysisEngine(
        defaults=AnalysisOptions.from_config(config),
        max_workers=max_workers,
    )
