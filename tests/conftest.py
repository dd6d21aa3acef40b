"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module so they
are discovered by pytest for every test package.
"""

from tests.fixtures.config import clean_env, settings_file  # noqa: F401
from tests.fixtures.workspace import (  # noqa: F401
    fs_tools,
    outside,
    roots_manager,
    sample_files,
    server_settings,
    validator,
    workspace,
)
