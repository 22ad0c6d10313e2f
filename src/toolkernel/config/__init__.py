"""Configuration package for the tool kernel."""

from .manager import (
    ConfigurationError,
    deep_merge,
    get_config_path,
    load_config,
    load_settings,
    merge_with_env,
    save_config,
)
from .schema import (
    FilesystemConfig,
    KernelSettings,
    RegistryConfig,
    SandboxConfig,
    ValidationConfig,
)

__all__ = [
    # Schema
    "KernelSettings",
    "FilesystemConfig",
    "SandboxConfig",
    "ValidationConfig",
    "RegistryConfig",
    # Manager
    "ConfigurationError",
    "get_config_path",
    "load_config",
    "load_settings",
    "save_config",
    "merge_with_env",
    "deep_merge",
]
