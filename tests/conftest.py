"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module so
they are discovered by pytest for every test package.
"""

from tests.fixtures.config import (  # noqa: F401
    config_file,
    custom_settings,
    kernel_settings,
)
from tests.fixtures.sandbox import (  # noqa: F401
    context,
    fs_tools,
    local_sandbox,
    no_sandbox_context,
    sample_project,
    workspace,
)
