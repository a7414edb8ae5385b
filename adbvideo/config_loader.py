"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .config_models import SystemConfig

DEFAULT_CONFIG_PATH = Path("adbvideo.yml")

_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load and validate reporter configuration.

    Args:
        config_path: Path to the configuration file. Defaults to adbvideo.yml

    Returns:
        Validated SystemConfig instance

    Raises:
        ConfigurationError: If configuration loading or validation fails
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    config_data: dict = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    # Environment variables win over the file
    _merge(config_data, _load_env_overrides())

    try:
        return SystemConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def apply_overrides(
    config: SystemConfig,
    reporter: Optional[Dict[str, Any]] = None,
    device: Optional[Dict[str, Any]] = None,
) -> SystemConfig:
    """
    Return a copy of ``config`` with section overrides applied and validated.

    ``None`` values are ignored so callers can pass unset options straight through.

    Raises:
        ConfigurationError: If the overridden configuration is invalid
    """
    data = config.model_dump()
    for section, values in (("reporter", reporter), ("device", device)):
        if values:
            data[section].update({k: v for k, v in values.items() if v is not None})

    try:
        return SystemConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def env_toggle() -> Optional[bool]:
    """
    Read the ADB_VIDEO switch.

    Returns:
        False for 0/false/no/off, True for any other non-empty value,
        None when the variable is unset or blank
    """
    value = os.getenv("ADB_VIDEO")
    if value is None or not value.strip():
        return None
    return value.strip().lower() not in _FALSE_VALUES


def _merge(target: dict, overrides: dict) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


def _load_env_overrides() -> dict:
    """Load configuration overrides from environment variables."""
    overrides: dict = {}

    env_mappings = {
        "ADB_VIDEO_OUTPUT_DIR": ("reporter", "output_dir"),
        "ADB_VIDEO_SAVE_ALL": ("reporter", "save_all_videos"),
        "ADB_VIDEO_TIMESTAMP": ("reporter", "timestamp"),
        "ADB_VIDEO_LOGS": ("reporter", "logs"),
        "ADB_VIDEO_ADB_PATH": ("device", "adb_path"),
        "ADB_VIDEO_COMMAND_TIMEOUT": ("device", "command_timeout"),
        "ADB_VIDEO_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, config_path in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            current = overrides
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            current[config_path[-1]] = value

    # ADB_VIDEO switches recording on or off as a whole
    toggle = env_toggle()
    if toggle is not None:
        overrides.setdefault("reporter", {})["disabled"] = not toggle

    return overrides


def create_example_config(output_path: Path = Path("adbvideo.yml.example")) -> None:
    """Create an example configuration file."""
    example_config = {
        "reporter": {
            "output_dir": "./videos",
            "save_all_videos": False,
            "disabled": False,
            "timestamp": True,
            "logs": False
        },
        "device": {
            "adb_path": "adb",
            "command_timeout": 120,
            "stop_signal": "SIGTERM",
            "stop_grace_period": 2.0
        },
        "logging": {
            "level": "WARNING"
        }
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
