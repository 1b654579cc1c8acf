"""Tests for the analysis engine orchestration."""

import json
import logging
import time
from unittest.mock import patch

import numpy as np
import pytest

from signals import buffer_of, constant, sine
from waverider.analyzers.spectral import SpectralAnalyzer
from waverider.core.engine import (
    CAPABILITIES,
    AnalysisEngine,
    AnalysisOptions,
    create_analysis_engine,
)
from waverider.core.profiles import Profile, QuietParameters, default_profiles
from waverider.utils.config import get_default_config
from waverider.utils.errors import (
    AnalysisError,
    EmptyInput,
    InvalidAnalysisOptions,
    InvalidFFTSize,
    InvalidProfileParameters,
    NonFiniteSample,
)


@pytest.fixture
def engine():
    engine = AnalysisEngine(defaults=AnalysisOptions().with_profiles(default_profiles()))
    yield engine
    engine.shutdown()


def _region_keys(result):
    return [(r.start, r.end, r.profile_id, r.confidence) for r in result.regions]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class TestAnalysisOptions:
    def test_defaults(self):
        options = AnalysisOptions()
        assert options.sample_rate == 44100.0
        assert options.fft_size == 2048
        assert options.window_size == 1024
        assert options.threshold == 0.1
        assert options.min_duration_sec == 0.1
        assert options.profiles == ()

    def test_from_dict_layers_over_defaults(self):
        base = AnalysisOptions(fft_size=4096)
        options = AnalysisOptions.from_dict({"sampleRate": 8000, "minDuration": 0.5}, base)
        assert options.sample_rate == 8000.0
        assert options.min_duration_sec == 0.5
        assert options.fft_size == 4096

    def test_from_dict_parses_profiles(self):
        options = AnalysisOptions.from_dict({
            "profiles": [
                {"id": "q", "type": "quiet"},
                Profile(id="p", parameters=QuietParameters()),
            ],
        })
        assert [p.id for p in options.profiles] == ["q", "p"]

    def test_empty_options_return_defaults(self):
        base = AnalysisOptions(threshold=0.2)
        assert AnalysisOptions.from_dict(None, base) is base
        assert AnalysisOptions.from_dict({}, base) is base

    @pytest.mark.parametrize("data", [
        {"fftSize": "big"},
        {"fftSize": 2048.5},
        {"threshold": True},
        {"sampleRate": float("inf")},
        {"profiles": {"id": "q"}},
        ["sampleRate"],
    ])
    def test_invalid_options(self, data):
        with pytest.raises(InvalidAnalysisOptions):
            AnalysisOptions.from_dict(data)

    def test_invalid_profile_in_options(self):
        with pytest.raises(InvalidProfileParameters):
            AnalysisOptions.from_dict({"profiles": [{"id": "x", "type": "nope"}]})

    def test_from_config(self):
        config = get_default_config()
        config["analysis"]["fft_size"] = "4096"
        options = AnalysisOptions.from_config(config)
        assert options.fft_size == 4096
        assert options.sample_rate == 44100.0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TestAnalyze:
    def test_silence(self, engine, silent_buffer):
        result = engine.analyze(silent_buffer)

        assert result.sample_count == 44100
        assert result.sample_rate == 44100.0
        assert result.amplitude.rms == 0.0
        assert result.spectral.dominant_frequencies == []
        assert len(result.patterns.quiet_sections) == 10
        assert [r.profile_id for r in result.regions] == ["quiet-profile"]
        assert result.processing_time is not None

    def test_tone(self, engine, tone_buffer):
        result = engine.analyze(tone_buffer)
        assert result.amplitude.rms == pytest.approx(1 / np.sqrt(2), rel=1e-3)
        assert result.amplitude.peak == pytest.approx(1.0, abs=1e-3)
        assert abs(result.spectral.dominant_frequencies[0].frequency_hz - 440.0) < 22.0
        assert result.regions_for("quiet-profile") == []
        assert len(result.regions_for("intensity-profile")) == 1

    def test_is_idempotent(self, engine, step_buffer):
        first = engine.analyze(step_buffer)
        second = engine.analyze(step_buffer)

        assert first.id != second.id
        assert first.amplitude == second.amplitude
        assert first.spectral == second.spectral
        assert first.patterns == second.patterns
        assert _region_keys(first) == _region_keys(second)

    def test_buffer_sample_rate_is_authoritative(self, engine):
        buffer = buffer_of(constant(0.0, seconds=1.0, sample_rate=8000), 8000)
        result = engine.analyze(buffer, AnalysisOptions(sample_rate=44100))
        assert result.sample_rate == 8000.0
        assert len(result.patterns.quiet_sections) == 10

    def test_invalid_fft_size_fails_the_call(self, engine, tone_buffer):
        with pytest.raises(InvalidFFTSize):
            engine.analyze(tone_buffer, AnalysisOptions(fft_size=1000))

    def test_empty_buffer(self, engine):
        with pytest.raises(EmptyInput):
            engine.analyze(buffer_of([]))

    def test_no_partial_result_on_failure(self, engine, tone_buffer):
        with patch("waverider.core.engine.match_profiles", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                engine.analyze(tone_buffer)

    def test_unexpected_analyzer_failure_is_wrapped(self, engine, tone_buffer):
        with patch.object(SpectralAnalyzer, "analyze_block", side_effect=RuntimeError("boom")):
            with pytest.raises(AnalysisError) as exc_info:
                engine.analyze(tone_buffer)
        assert exc_info.value.analyzer_name == "spectral"


class TestAnalyzeRequest:
    def test_samples_and_options(self, engine):
        payload = {
            "samples": sine(440.0, seconds=0.5, sample_rate=8000).tolist(),
            "options": {"sampleRate": 8000, "fftSize": 1024, "profiles": []},
        }
        result = engine.analyze_request(payload)
        assert result.sample_rate == 8000.0
        assert result.sample_count == 4000
        assert result.spectral.fft_size == 1024
        assert result.regions == []

    def test_audio_data_alias(self, engine):
        result = engine.analyze_request({"audioData": [0.0] * 4410})
        assert result.sample_count == 4410
        assert len(result.patterns.quiet_sections) == 1

    def test_engine_default_profiles_apply(self, engine):
        result = engine.analyze_request({"samples": [0.0] * 44100})
        assert [r.profile_id for r in result.regions] == ["quiet-profile"]

    @pytest.mark.parametrize("payload", [{}, {"samples": "0.1,0.2"}, {"samples": {"a": 1}}, [0.0]])
    def test_invalid_audio_data(self, engine, payload):
        with pytest.raises(InvalidAnalysisOptions):
            engine.analyze_request(payload)

    def test_nan_sample(self, engine):
        with pytest.raises(NonFiniteSample) as exc_info:
            engine.analyze_request({"samples": [0.0, 0.1, float("nan")]})
        assert exc_info.value.index == 2

    def test_result_serializes(self, engine):
        result = engine.analyze_request({"samples": [0.0] * 44100})
        data = json.loads(result.to_json())
        assert data["id"] == result.id
        assert data["sampleCount"] == 44100
        assert data["regions"][0]["profileId"] == "quiet-profile"


class TestIndividualOperations:
    def test_analyze_amplitude(self, engine):
        descriptor = engine.analyze_amplitude(buffer_of(constant(0.5)))
        assert descriptor.rms == pytest.approx(0.5)
        assert descriptor.zero_crossings == 0

    def test_analyze_spectral(self, engine, tone_buffer):
        descriptor = engine.analyze_spectral(tone_buffer, AnalysisOptions(fft_size=4096))
        assert descriptor.fft_size == 4096

    def test_detect_patterns(self, engine, step_buffer):
        summary = engine.detect_patterns(step_buffer)
        assert len(summary.transitions) == 1

    def test_detect_regions_with_explicit_profiles(self, engine, silent_buffer):
        profile = Profile(id="custom-quiet", parameters=QuietParameters(window_size_sec=0.5))
        regions = engine.detect_regions(silent_buffer, [profile])
        assert [r.profile_id for r in regions] == ["custom-quiet", "custom-quiet"]

    def test_runs_analyzers_through_protocol(self, engine, tone_buffer, caplog):
        with caplog.at_level(logging.DEBUG, logger="engine"):
            engine.analyze_spectral(tone_buffer)
        assert "Running spectral v1.0.0" in caplog.text


class TestBatch:
    def test_results_keep_input_order(self, engine, silent_buffer, tone_buffer):
        loud = buffer_of(constant(0.9))
        results = engine.analyze_batch([silent_buffer, tone_buffer, loud])

        assert [r.amplitude.rms for r in results] == pytest.approx([0.0, 1 / np.sqrt(2), 0.9], rel=1e-3)
        assert len({r.id for r in results}) == 3

    def test_failure_propagates(self, engine, silent_buffer):
        with pytest.raises(EmptyInput):
            engine.analyze_batch([silent_buffer, buffer_of([])])

    def test_empty_batch(self, engine):
        assert engine.analyze_batch([]) == []

    def test_failure_cancels_pending_buffers(self, silent_buffer):
        failing = buffer_of([0.0])
        calls = []

        def fake_analyze(buffer, options=None):
            calls.append(buffer)
            if buffer is failing:
                raise EmptyInput("nothing here")
            time.sleep(0.05)
            return buffer

        with AnalysisEngine(max_workers=1) as engine:
            with patch.object(engine, "analyze", side_effect=fake_analyze):
                with pytest.raises(EmptyInput):
                    engine.analyze_batch([failing] + [silent_buffer] * 10)
        assert len(calls) < 5


class TestLifecycle:
    def test_status(self, engine):
        status = engine.status()
        assert status["status"] == "running"
        assert status["version"] == "1.0.0"
        assert status["capabilities"] == CAPABILITIES
        assert "timestamp" in status

    def test_context_manager_shuts_down_pool(self, silent_buffer):
        with AnalysisEngine() as engine:
            assert len(engine.analyze_batch([silent_buffer])) == 1
        with pytest.raises(RuntimeError):
            engine.analyze_batch([silent_buffer])

    def test_rejects_zero_workers(self):
        with pytest.raises(InvalidAnalysisOptions):
            AnalysisEngine(max_workers=0)

    def test_create_analysis_engine(self):
        config = get_default_config()
        config["performance"]["max_workers"] = 2
        config["analysis"]["threshold"] = 0.2
        engine = create_analysis_engine(config)
        try:
            assert engine.max_workers == 2
            assert engine.defaults.threshold == 0.2
            assert engine.defaults.profiles == ()
        finally:
            engine.shutdown()
