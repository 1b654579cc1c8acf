"""
Custom exceptions for the Waverider audio analysis engine.

This module defines a hierarchy of exceptions for the error conditions
the analyzers can report. Analyzers raise these directly and the engine
propagates them unchanged.
"""

from typing import Optional, Any


class AudioAnalysisError(Exception):
    """Base exception for all audio analysis errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class EmptyInput(AudioAnalysisError):
    """Raised when a buffer or window holds no samples."""

    def __init__(self, message: str = "No samples to analyze", what: Optional[str] = None):
        super().__init__(message, details={"input": what} if what else None)
        self.what = what


class InvalidWindow(EmptyInput):
    """Raised when a window does not fit inside its buffer."""

    def __init__(self, message: str, offset: int, length: int, buffer_length: int):
        super().__init__(message)
        self.offset = offset
        self.length = length
        self.buffer_length = buffer_length
        self.details = {
            "offset": offset,
            "length": length,
            "buffer_length": buffer_length,
        }


class NonFiniteSample(AudioAnalysisError):
    """Raised when the input contains NaN or infinite samples."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message, details={"index": index})
        self.index = index


class InvalidFFTSize(AudioAnalysisError):
    """Raised when the FFT size is not a usable power of two."""

    def __init__(self, message: str, fft_size: Optional[Any] = None):
        super().__init__(message, details={"fft_size": fft_size})
        self.fft_size = fft_size


class InvalidProfileParameters(AudioAnalysisError):
    """Raised when a classification profile cannot be evaluated."""

    def __init__(
        self,
        message: str,
        profile_id: Optional[str] = None,
        parameter: Optional[str] = None,
    ):
        super().__init__(message)
        self.profile_id = profile_id
        self.parameter = parameter
        self.details = {"profile_id": profile_id, "parameter": parameter}


class InvalidAnalysisOptions(AudioAnalysisError):
    """Raised when analysis options are out of range."""

    def __init__(self, message: str, option: Optional[str] = None, value: Optional[Any] = None):
        super().__init__(message)
        self.option = option
        self.value = value
        self.details = {"option": option, "value": value}


class AnalysisError(AudioAnalysisError):
    """Raised when an analyzer fails for a reason it did not anticipate."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(AudioAnalysisError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
