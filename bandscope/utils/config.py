"""
Configuration management for BandScope.

Loads and validates configuration from YAML files with environment
variable interpolation support. Configuration is only read by the
engine factory and the CLI; analyzers receive explicit parameters.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from bandscope.utils.errors import ConfigurationError


class ConfigManager:
    """
    Manages configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Configuration validation
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns with environment variable values."""
        self._config = self._interpolate(self._config)

    def _interpolate(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._interpolate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Example:
            config.get("analysis.spectral.fft_size", default=2048)

        Raises:
            ConfigurationError: If required key is not found
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire configuration section (empty dict if missing)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "analysis.spectral.fft_size": {"type": int, "required": True},
                "performance.max_workers": {"type": int}
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            required = rules.get("required", False)
            expected_type = rules.get("type")

            if value is None:
                if required:
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                type_name = getattr(expected_type, "__name__", str(expected_type))
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {type_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


CONFIG_SCHEMA: Dict[str, Any] = {
    "analysis.envelope.window_seconds": {"type": (int, float)},
    "analysis.beats.threshold": {"type": (int, float)},
    "analysis.spectral.fft_size": {"type": int},
    "analysis.spectral.hop_size": {"type": int},
    "analysis.spectral.max_peaks": {"type": int},
    "analysis.classification.max_peak_markers": {"type": int},
    "analysis.eq.q": {"type": (int, float)},
    "performance.max_workers": {"type": int},
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Values from the file are merged over the defaults, so a config file
    only needs to name what it changes.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml" and "bandscope.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary
    """
    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("bandscope.yaml"),
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    config = get_default_config()

    if config_path:
        manager = ConfigManager.from_file(Path(config_path))
        manager.validate(CONFIG_SCHEMA)
        config = merge_config(config, manager.to_dict())

    return config


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "supported_formats": [".wav", ".aiff", ".aif", ".mp3", ".flac", ".ogg"],
            "max_file_size": 524288000,  # 500MB
            "target_sample_rate": None,  # keep the native rate
        },
        "analysis": {
            "envelope": {
                "window_seconds": 0.02,
            },
            "beats": {
                "threshold": 0.05,
                "min_distance_seconds": 0.01,
            },
            "spectral": {
                "fft_size": 2048,
                "hop_size": 512,
                "peak_threshold_db": -50.0,
                "max_peaks": 100,
                "min_decibels": -100.0,
                "max_decibels": 0.0,
            },
            "classification": {
                "marker_threshold_db": -30.0,
                "max_peak_markers": 5,
                "beat_marker_stride": 10,
                "max_gap": 0.5,
                "marker_duration": 0.1,
                "min_beats": 10,
                "max_beat_interval": 2.0,
                "min_beat_density": 0.5,
                "music_confidence": 0.7,
            },
            "interference": {
                "min_overlap": 0.3,
                "emit_threshold": 0.2,
                "fallback_intensity": 0.5,
            },
            "eq": {
                "gain_scale": 12.0,
                "max_reduction": -12.0,
                "min_reduction": -3.0,
                "q": 0.7,
            },
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
        "performance": {
            "max_workers": 2,
        },
    }
