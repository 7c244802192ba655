"""Canonical Pydantic models shared across all postpace modules.

The models fall into three groups:

**Configuration** -- :class:`Settings`, resolved once at startup by
:func:`postpace.config.load_settings`.

**Authorization flow** -- :class:`PKCEPair` and :class:`TokenResponse`.
Both live only in memory for the duration of a run; nothing here is ever
written to disk.

**Posting outcomes** -- :class:`PostResult` and :class:`PostingReport`,
produced by :func:`postpace.client.poster.run_posting_loop`.

All models use Pydantic v2. The default endpoints target the X (Twitter)
API v2.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# --- Defaults ---

DEFAULT_AUTHORIZATION_URL = "https://twitter.com/i/oauth2/authorize"
DEFAULT_TOKEN_URL = "https://api.twitter.com/2/oauth2/token"
DEFAULT_POSTS_URL = "https://api.twitter.com/2/tweets"
DEFAULT_SCOPES = ["tweet.write", "tweet.read", "users.read", "offline.access"]
DEFAULT_CALLBACK_PORT = 8080
DEFAULT_CALLBACK_PATH = "/callback"
DEFAULT_INTERVAL = 30 * 60.0
DEFAULT_POSTS_FILE = "tweets.txt"


# --- Configuration ---


class Settings(BaseModel):
    """Effective configuration for a single run.

    ``client_id``, ``client_secret`` and ``redirect_uri`` are required and
    must be non-empty; :func:`postpace.config.load_settings` guarantees this
    before a ``Settings`` instance is ever built.

    Example::

        Settings(
            client_id="abc",
            client_secret="shh",
            redirect_uri="http://localhost:8080/callback",
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    redirect_uri: str = Field(min_length=1)
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    token_url: str = DEFAULT_TOKEN_URL
    posts_url: str = DEFAULT_POSTS_URL
    callback_host: str = Field(
        default="127.0.0.1",
        description="Interface the local callback listener binds to",
    )
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("redirect_uri")
    @classmethod
    def _check_redirect_uri(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"redirect_uri must be an absolute http(s) URL, got {value!r}")
        # Raises ValueError for a non-numeric or out-of-range port.
        parsed.port
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def callback_port(self) -> int:
        """TCP port taken from ``redirect_uri`` (8080 when it has none)."""
        return urlparse(self.redirect_uri).port or DEFAULT_CALLBACK_PORT

    @computed_field  # type: ignore[prop-decorator]
    @property
    def callback_path(self) -> str:
        """Path the authorization server redirects to."""
        return urlparse(self.redirect_uri).path or DEFAULT_CALLBACK_PATH


# --- Authorization flow ---


class PKCEPair(BaseModel):
    """A PKCE ``code_verifier`` and its S256 ``code_challenge``.

    The challenge is always ``base64url(sha256(verifier))`` without padding.
    Use :func:`postpace.auth.pkce.generate_pkce_pair` to build one.
    """

    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str


class TokenResponse(BaseModel):
    """Token endpoint response.

    Missing or ``null`` fields fall back to empty values and unknown fields
    are ignored, so a response without ``access_token`` parses fine and is
    rejected later by :func:`postpace.auth.flow.obtain_token`.
    """

    access_token: str = ""
    refresh_token: str = ""
    expires_in: int = 0
    token_type: str = ""
    scope: str = ""

    @field_validator("access_token", "refresh_token", "token_type", "scope", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("expires_in", mode="before")
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


# --- Posting outcomes ---


class PostResult(BaseModel):
    """Outcome of submitting one post."""

    index: int
    text: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class PostingReport(BaseModel):
    """Ordered outcomes of a whole posting loop."""

    results: list[PostResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)
