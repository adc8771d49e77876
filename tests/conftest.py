"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from statwatch.config import reset_config


# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)

_ENV_VARS = ("STATWATCH_LOG", "STATWATCH_INTERVAL", "STATWATCH_RECURSIVE", "STATWATCH_PERSISTENT")


@pytest.fixture(scope="session")
def anyio_backend():
    """Set anyio backend to asyncio."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Drop the cached global config and any STATWATCH_* overrides."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
