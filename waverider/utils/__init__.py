"""
Utility modules for configuration, logging, and error handling.
"""

from waverider.utils.errors import (
    AudioAnalysisError,
    EmptyInput,
    InvalidWindow,
    NonFiniteSample,
    InvalidFFTSize,
    InvalidProfileParameters,
    InvalidAnalysisOptions,
    AnalysisError,
    ConfigurationError,
)
from waverider.utils.logging import (
    get_logger,
    setup_logging,
    create_logger_with_context,
    JSONFormatter,
)
from waverider.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "AudioAnalysisError",
    "EmptyInput",
    "InvalidWindow",
    "NonFiniteSample",
    "InvalidFFTSize",
    "InvalidProfileParameters",
    "InvalidAnalysisOptions",
    "AnalysisError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "create_logger_with_context",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
