"""Configuration file manager for loading, saving, and overriding kernel settings."""

import json
import logging
import os
import shlex
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from .constants import DEFAULT_CONFIG_PATH
from .schema import KernelSettings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration operations fail."""

    pass


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Returns:
        Path to ~/.toolkernel/settings.json
    """
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> KernelSettings:
    """Load configuration from JSON file.

    Args:
        config_path: Optional path to config file. Defaults to ~/.toolkernel/settings.json

    Returns:
        KernelSettings instance loaded from file, or default settings if file doesn't exist

    Raises:
        ConfigurationError: If file exists but is invalid JSON or fails validation

    Example:
        >>> settings = load_config()
        >>> settings.filesystem.max_read_lines
        2000
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return KernelSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)

        return KernelSettings(**data)

    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for {config_path}:\n{e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e


def save_config(settings: KernelSettings, config_path: Path | None = None) -> None:
    """Save configuration to JSON file with minimal formatting.

    Only values that differ from the defaults are written.

    Args:
        settings: KernelSettings instance to save
        config_path: Optional path to config file. Defaults to ~/.toolkernel/settings.json

    Raises:
        ConfigurationError: If save operation fails
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(settings.model_dump_json_minimal())
    except OSError as e:
        raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e


def _int_from_env(name: str) -> int | None:
    """Read an integer environment variable, ignoring malformed values."""
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return None


def merge_with_env(settings: KernelSettings) -> dict[str, Any]:
    """Collect environment variable overrides for the given settings.

    Environment variables take precedence over file settings. The returned
    dictionary has the same shape as the settings file and is meant to be
    merged with ``deep_merge``.

    Args:
        settings: KernelSettings instance from file

    Returns:
        Dictionary of environment variable overrides

    Example:
        >>> settings = load_config()
        >>> overrides = merge_with_env(settings)
        >>> merged = deep_merge(settings.model_dump(), overrides)
    """
    env_overrides: dict[str, Any] = {}

    if os.getenv("TOOLKERNEL_LOG_LEVEL"):
        env_overrides["log_level"] = os.getenv("TOOLKERNEL_LOG_LEVEL")

    # Sandbox overrides
    if os.getenv("TOOLKERNEL_SANDBOX_ROOT"):
        env_overrides.setdefault("sandbox", {})["root_dir"] = os.getenv("TOOLKERNEL_SANDBOX_ROOT")
    if os.getenv("TOOLKERNEL_WORKING_DIR"):
        env_overrides.setdefault("sandbox", {})["working_dir"] = os.getenv(
            "TOOLKERNEL_WORKING_DIR"
        )

    # Validation pipeline overrides
    if os.getenv("TOOLKERNEL_TYPE_CHECK_COMMAND"):
        env_overrides.setdefault("validation", {})["type_check_command"] = shlex.split(
            os.getenv("TOOLKERNEL_TYPE_CHECK_COMMAND", "")
        )
    if os.getenv("TOOLKERNEL_BUILD_COMMAND"):
        env_overrides.setdefault("validation", {})["build_command"] = shlex.split(
            os.getenv("TOOLKERNEL_BUILD_COMMAND", "")
        )
    stage_timeout = _int_from_env("TOOLKERNEL_STAGE_TIMEOUT")
    if stage_timeout is not None:
        env_overrides.setdefault("validation", {})["stage_timeout"] = stage_timeout

    # Registry overrides
    tool_timeout = _int_from_env("TOOLKERNEL_TOOL_TIMEOUT")
    if tool_timeout is not None:
        env_overrides.setdefault("registry", {})["default_timeout"] = tool_timeout
    if os.getenv("TOOLKERNEL_TRACE_FILE"):
        env_overrides.setdefault("registry", {})["trace_file"] = os.getenv("TOOLKERNEL_TRACE_FILE")

    return env_overrides


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(config_path: Path | None = None) -> KernelSettings:
    """Load settings from file, .env and environment, in increasing precedence.

    Args:
        config_path: Optional path to config file

    Returns:
        Effective KernelSettings

    Raises:
        ConfigurationError: If the file or the merged overrides are invalid
    """
    load_dotenv()

    settings = load_config(config_path)
    overrides = merge_with_env(settings)
    if not overrides:
        return settings

    try:
        return KernelSettings(**deep_merge(settings.model_dump(), overrides))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration from environment:\n{e}") from e
