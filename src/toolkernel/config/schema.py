"""Pydantic models for tool kernel configuration schema."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from toolkernel.config.constants import (
    DEFAULT_BUILD_COMMAND,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_EXCLUDED_DIRS,
    DEFAULT_MAX_OUTPUT_CHARS,
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_MAX_READ_LINES,
    DEFAULT_MAX_WRITE_BYTES,
    DEFAULT_RECENT_WINDOW_HOURS,
    DEFAULT_SANDBOX_ROOT,
    DEFAULT_STAGE_TIMEOUT,
    DEFAULT_TOOL_TIMEOUT,
    DEFAULT_TYPE_CHECK_COMMAND,
    DEFAULT_WORKING_DIR,
    MAX_COMMAND_TIMEOUT,
)

# Module-level constants for validation
VALID_LOG_LEVELS = {"trace", "debug", "info", "warning", "error", "critical"}


class FilesystemConfig(BaseModel):
    """Limits and scan rules for the filesystem tools."""

    max_read_lines: int = Field(
        default=DEFAULT_MAX_READ_LINES,
        gt=0,
        description="Lines returned by read_file when no offset/limit is given",
    )
    max_read_bytes: int = Field(
        default=DEFAULT_MAX_READ_BYTES, gt=0, description="Maximum file size for read_file"
    )
    max_write_bytes: int = Field(
        default=DEFAULT_MAX_WRITE_BYTES,
        gt=0,
        description="Maximum content size accepted by write_file and replace",
    )
    recent_window_hours: float = Field(
        default=DEFAULT_RECENT_WINDOW_HOURS,
        gt=0,
        description="Files modified within this window are listed first by glob",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS),
        description="Directory names never descended into by recursive scans",
    )


class SandboxConfig(BaseModel):
    """Sandbox backend and command runner configuration."""

    root_dir: str = str(DEFAULT_SANDBOX_ROOT)
    working_dir: str = DEFAULT_WORKING_DIR
    command_timeout: int = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0)
    max_command_timeout: int = Field(default=MAX_COMMAND_TIMEOUT, gt=0)

    @field_validator("root_dir")
    @classmethod
    def expand_root_dir(cls, v: str) -> str:
        """Expand user home directory in root_dir."""
        return str(Path(v).expanduser())

    @field_validator("working_dir")
    @classmethod
    def validate_working_dir(cls, v: str) -> str:
        """Working directory is a sandbox path and must be absolute."""
        if not v.startswith("/"):
            raise ValueError(f"working_dir must be an absolute sandbox path: {v}")
        return v

    @model_validator(mode="after")
    def clamp_command_timeout(self) -> "SandboxConfig":
        """Keep the default timeout within the allowed maximum."""
        if self.command_timeout > self.max_command_timeout:
            self.command_timeout = self.max_command_timeout
        return self


class ValidationConfig(BaseModel):
    """Type-check and build stage configuration."""

    type_check_command: list[str] = Field(default_factory=lambda: list(DEFAULT_TYPE_CHECK_COMMAND))
    build_command: list[str] = Field(default_factory=lambda: list(DEFAULT_BUILD_COMMAND))
    stage_timeout: int = Field(
        default=DEFAULT_STAGE_TIMEOUT, gt=0, description="Per-stage timeout in seconds"
    )
    max_output_chars: int = Field(
        default=DEFAULT_MAX_OUTPUT_CHARS,
        gt=0,
        description="Raw stage output is truncated to this many characters",
    )

    @field_validator("type_check_command", "build_command")
    @classmethod
    def validate_command(cls, v: list[str]) -> list[str]:
        """Commands need at least an executable."""
        if not v or not v[0]:
            raise ValueError("Command must contain at least an executable name")
        return v


class RegistryConfig(BaseModel):
    """Tool registry configuration."""

    default_timeout: float = Field(
        default=DEFAULT_TOOL_TIMEOUT, gt=0, description="Default tool timeout in seconds"
    )
    trace_file: str | None = Field(
        default=None, description="Append one JSON line per tool execution to this file"
    )

    @field_validator("trace_file")
    @classmethod
    def expand_trace_file(cls, v: str | None) -> str | None:
        """Expand user home directory in trace_file."""
        if v:
            return str(Path(v).expanduser())
        return v


class KernelSettings(BaseModel):
    """Root configuration model for kernel settings."""

    version: str = "1.0"
    log_level: str = "info"
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        level = v.lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {VALID_LOG_LEVELS}")
        return level

    def model_dump_json_pretty(self, **kwargs: Any) -> str:
        """Dump model to pretty-printed JSON string."""
        return self.model_dump_json(indent=2, exclude_none=False, **kwargs)

    def model_dump_json_minimal(self) -> str:
        """Dump only the values that differ from the defaults.

        Returns:
            JSON string with minimal configuration

        Example:
            >>> settings = KernelSettings()
            >>> settings.validation.stage_timeout = 120
            >>> settings.model_dump_json_minimal()
            '{\\n  "version": "1.0",\\n  "validation": {\\n    "stage_timeout": 120\\n  }\\n}'
        """
        defaults = KernelSettings().model_dump(exclude_none=True)
        data = self.model_dump(exclude_none=True)

        minimal: dict[str, Any] = {"version": data["version"]}
        for key, value in data.items():
            if key == "version":
                continue
            if isinstance(value, dict):
                changed = {k: v for k, v in value.items() if defaults[key].get(k) != v}
                if changed:
                    minimal[key] = changed
            elif defaults.get(key) != value:
                minimal[key] = value

        return json.dumps(minimal, indent=2)

    @classmethod
    def get_json_schema(cls) -> dict[str, Any]:
        """Get JSON schema for the settings model."""
        return cls.model_json_schema()
