"""Shared test fixtures for postpace.

Provides reusable fixtures for settings, isolated environments and output
state. These fixtures are automatically discovered by pytest and available
to all test modules without explicit imports.
"""

from __future__ import annotations

import socket
from pathlib import Path

import pytest

from postpace.config import REQUIRED_VARS
from postpace.models import Settings
from postpace.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When CliRunner or capsys swap those streams the cached
    references go stale, so a fresh manager is created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Settings / environment
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at example endpoints."""
    return Settings(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="http://127.0.0.1:8080/callback",
        authorization_url="https://auth.example.com/authorize",
        token_url="https://auth.example.com/token",
        posts_url="https://api.example.com/posts",
    )


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear configuration variables and run inside an empty directory.

    Returns:
        The tmp_path working directory.
    """
    for var in REQUIRED_VARS:
        monkeypatch.delenv(var, raising=False)
    for var in [
        "POSTPACE_SCOPES",
        "POSTPACE_AUTHORIZATION_URL",
        "POSTPACE_TOKEN_URL",
        "POSTPACE_POSTS_URL",
        "POSTPACE_CALLBACK_HOST",
        "POSTPACE_REQUEST_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, plain OutputManager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a plain, colourless OutputManager whose messages tests can capture."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Networking helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def free_port() -> int:
    """A TCP port on localhost that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
