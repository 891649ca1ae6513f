"""
Custom exceptions for BandScope.

This module defines a hierarchy of exceptions for handling the error
conditions of the analysis engine and its collaborators.

Degenerate inputs (empty buffers, buffers shorter than one STFT window)
are not errors; they produce empty or neutral results instead.
"""

from typing import Optional, Any


class AudioAnalysisError(Exception):
    """Base exception for all BandScope errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class AudioLoadError(AudioAnalysisError):
    """Raised when audio cannot be decoded into PCM samples."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, details={"file_path": file_path})
        self.file_path = file_path


class UnsupportedFormatError(AudioLoadError):
    """Raised when audio format is not supported."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class FileTooLargeError(AudioLoadError):
    """Raised when audio file exceeds size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class AnalysisError(AudioAnalysisError):
    """Raised when an analysis stage fails."""

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


class SampleRateMismatchError(AnalysisError):
    """Raised when two tracks with different sample rates are compared."""

    def __init__(self, sample_rate_1: int, sample_rate_2: int):
        super().__init__(
            f"Cannot compare tracks with different sample rates: "
            f"{sample_rate_1} Hz vs {sample_rate_2} Hz",
            analyzer_name="interference",
        )
        self.sample_rate_1 = sample_rate_1
        self.sample_rate_2 = sample_rate_2
        self.details = {
            "sample_rate_1": sample_rate_1,
            "sample_rate_2": sample_rate_2,
        }


class AnalysisCancelledError(AnalysisError):
    """Raised when a running analysis is cancelled through its token."""

    def __init__(self, stage: Optional[str] = None):
        message = "Analysis cancelled"
        if stage:
            message = f"Analysis cancelled during {stage}"
        super().__init__(message, analyzer_name=stage)
        self.stage = stage
        self.details = {"stage": stage}


class ConfigurationError(AudioAnalysisError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
