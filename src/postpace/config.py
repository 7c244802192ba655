"""Configuration resolution from the environment and an optional ``.env`` file.

This module handles all configuration for postpace:

* **Settings** -- :func:`load_settings` merges a ``.env`` file (read with
  ``python-dotenv``) with the process environment and validates the result
  into a :class:`~postpace.models.Settings`. Real environment variables
  always win over ``.env`` entries.
* **Directory layout** -- XDG Base Directory compliant data directory on
  Linux/BSD, ``~/.postpace/`` on macOS and Windows. Only crash logs are
  written there; tokens never are.

Required variables::

    CLIENT_ID       OAuth2 client id
    CLIENT_SECRET   OAuth2 client secret
    REDIRECT_URI    e.g. http://localhost:8080/callback

Optional variables (``POSTPACE_`` prefix) override the endpoints, scopes
and the callback bind address.
"""

from __future__ import annotations

import os
import platform
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import dotenv_values, find_dotenv
from pydantic import ValidationError

from postpace.exceptions import ConfigError
from postpace.models import Settings

_APP_NAME = "postpace"

REQUIRED_VARS = ("CLIENT_ID", "CLIENT_SECRET", "REDIRECT_URI")

# Optional env var -> Settings field
_OPTIONAL_VARS = {
    "POSTPACE_AUTHORIZATION_URL": "authorization_url",
    "POSTPACE_TOKEN_URL": "token_url",
    "POSTPACE_POSTS_URL": "posts_url",
    "POSTPACE_CALLBACK_HOST": "callback_host",
    "POSTPACE_REQUEST_TIMEOUT": "request_timeout",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/postpace/`` (default ``~/.local/share/postpace/``).
    On macOS/Windows: ``~/.postpace/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Settings ---


def read_env_file(env_file: Optional[str] = None) -> dict[str, str]:
    """Read ``KEY=value`` pairs from a dotenv file without touching ``os.environ``.

    Args:
        env_file: Explicit path. When ``None``, a ``.env`` file is searched
            for from the current directory upwards and silently skipped if
            none exists.

    Returns:
        The parsed entries. Keys without a value are dropped.

    Raises:
        ConfigError: If an explicit *env_file* does not exist.
    """
    if env_file is None:
        found = find_dotenv(usecwd=True)
        if not found:
            return {}
        path = Path(found)
    else:
        path = Path(env_file).expanduser()
        if not path.is_file():
            raise ConfigError(f"Env file not found: {path}")

    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def parse_scopes(raw: str) -> list[str]:
    """Split a scope list on spaces and/or commas."""
    return [s for s in re.split(r"[\s,]+", raw) if s]


def load_settings(
    env_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve the effective :class:`~postpace.models.Settings`.

    Precedence (high to low):
        1. Process environment (or *environ* when given)
        2. ``.env`` file entries
        3. Defaults from :mod:`postpace.models`

    Args:
        env_file: Path to a dotenv file, or ``None`` to auto-discover one.
        environ: Environment mapping to use instead of ``os.environ``.

    Returns:
        Validated settings with all required values present.

    Raises:
        ConfigError: If any of ``CLIENT_ID``, ``CLIENT_SECRET`` or
            ``REDIRECT_URI`` is missing or blank, or an optional value is
            malformed.
    """
    values: dict[str, str] = dict(read_env_file(env_file))
    values.update(os.environ if environ is None else environ)

    missing = [name for name in REQUIRED_VARS if not values.get(name, "").strip()]
    if missing:
        raise ConfigError(
            f"Missing required configuration: {', '.join(missing)} "
            "(set them in the environment or a .env file)"
        )

    data: dict[str, Any] = {
        "client_id": values["CLIENT_ID"].strip(),
        "client_secret": values["CLIENT_SECRET"].strip(),
        "redirect_uri": values["REDIRECT_URI"].strip(),
    }
    scopes = values.get("POSTPACE_SCOPES", "").strip()
    if scopes:
        data["scopes"] = parse_scopes(scopes)
    for var, field_name in _OPTIONAL_VARS.items():
        value = values.get(var, "").strip()
        if value:
            data[field_name] = value

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
