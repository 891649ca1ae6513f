"""
Utility modules for configuration, logging, and error handling.
"""

from bandscope.utils.errors import (
    AudioAnalysisError,
    AudioLoadError,
    UnsupportedFormatError,
    FileTooLargeError,
    AnalysisError,
    SampleRateMismatchError,
    AnalysisCancelledError,
    ConfigurationError,
)
from bandscope.utils.logging import get_logger, setup_logging, JSONFormatter
from bandscope.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "AudioAnalysisError",
    "AudioLoadError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "AnalysisError",
    "SampleRateMismatchError",
    "AnalysisCancelledError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
