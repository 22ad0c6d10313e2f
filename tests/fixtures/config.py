"""Configuration fixtures for testing."""

import json

import pytest

from toolkernel.config.schema import KernelSettings


@pytest.fixture
def kernel_settings():
    """Default kernel settings."""
    return KernelSettings()


@pytest.fixture
def custom_settings():
    """Settings with small limits so tests can hit them cheaply."""
    settings = KernelSettings()
    settings.filesystem.max_read_lines = 5
    settings.filesystem.max_write_bytes = 64
    settings.validation.stage_timeout = 10
    settings.validation.max_output_chars = 40
    return settings


@pytest.fixture
def config_file(tmp_path):
    """Write a settings file and return its path."""
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "version": "1.0",
                "log_level": "DEBUG",
                "sandbox": {"working_dir": "/project"},
                "validation": {"stage_timeout": 120},
            }
        )
    )
    return path
