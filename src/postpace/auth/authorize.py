"""Authorization request construction and best-effort browser launch."""

from __future__ import annotations

import threading
import webbrowser
from typing import Sequence
from urllib.parse import urlencode

from postpace.models import DEFAULT_AUTHORIZATION_URL
from postpace.output import debug


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scopes: Sequence[str],
    state: str,
    challenge: str,
    authorization_url: str = DEFAULT_AUTHORIZATION_URL,
) -> str:
    """Build the URL the user opens to grant access.

    All values are percent-encoded; scopes are joined with single spaces
    (encoded as ``+``).

    Args:
        client_id: OAuth2 client id.
        redirect_uri: Must match the URI registered for the client.
        scopes: Requested scopes.
        state: Anti-forgery token re-checked by the callback listener.
        challenge: PKCE S256 code challenge.
        authorization_url: Authorization endpoint.

    Returns:
        The full authorization URL.
    """
    params: dict[str, str] = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(scopes),
        "state": state,
        "code_challenge": challenge,
        "code_challenge_method": "S256",
    }
    separator = "&" if "?" in authorization_url else "?"
    return f"{authorization_url}{separator}{urlencode(params)}"


def open_in_browser(url: str) -> threading.Thread:
    """Try to open *url* in the user's browser without blocking.

    The attempt runs in a daemon thread. Any failure is only logged at
    debug level; the user can always open the printed URL by hand.

    Returns:
        The started thread (mainly so tests can join it).
    """

    def _open() -> None:
        try:
            if not webbrowser.open(url):
                debug("No browser could be launched; open the URL manually.")
        except webbrowser.Error as exc:
            debug(f"Browser launch failed: {exc}")

    thread = threading.Thread(target=_open, daemon=True)
    thread.start()
    return thread
