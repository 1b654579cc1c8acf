"""Tests for the BaseAnalyzer template method."""

import logging

import pytest

from signals import buffer_of
from waverider.analyzers import AmplitudeAnalyzer, PatternDetector, ProfileMatcher, SpectralAnalyzer
from waverider.core.analyzer_base import Analyzer, BaseAnalyzer
from waverider.core.profiles import default_profiles
from waverider.utils.errors import AnalysisError, EmptyInput


class _Failing(BaseAnalyzer[int]):
    def __init__(self, error):
        super().__init__("failing", "0.1.0")
        self.error = error

    def _analyze_impl(self, buffer):
        raise self.error


class _Counting(BaseAnalyzer[int]):
    def __init__(self):
        super().__init__("counting", "0.1.0")

    def _analyze_impl(self, buffer):
        return buffer.length


def test_returns_implementation_result():
    assert _Counting().analyze(buffer_of([0.0, 0.0, 0.0])) == 3


def test_unexpected_error_is_wrapped(caplog):
    original = ValueError("bad shape")
    with caplog.at_level(logging.ERROR, logger="analyzer.failing"):
        with pytest.raises(AnalysisError) as exc_info:
            _Failing(original).analyze(buffer_of([0.0]))

    assert exc_info.value.analyzer_name == "failing"
    assert exc_info.value.original_error is original
    assert exc_info.value.__cause__ is original
    assert "bad shape" in caplog.text


def test_domain_error_passes_through():
    error = EmptyInput("nothing here")
    with pytest.raises(EmptyInput) as exc_info:
        _Failing(error).analyze(buffer_of([0.0]))
    assert exc_info.value is error


def test_name_and_logger():
    analyzer = _Counting()
    assert analyzer.name == "counting"
    assert analyzer.version == "0.1.0"
    assert analyzer.logger.name == "analyzer.counting"


def test_analyzers_satisfy_protocol():
    analyzers = [
        AmplitudeAnalyzer(),
        SpectralAnalyzer(),
        PatternDetector(),
        ProfileMatcher(default_profiles()[0]),
        _Counting(),
    ]
    assert all(isinstance(analyzer, Analyzer) for analyzer in analyzers)
    assert not isinstance(object(), Analyzer)
