"""Interactive PKCE authorization flow.

:func:`obtain_token` runs the stages in order::

    PKCE pair + state -> authorization URL -> callback listener
        -> token exchange

Everything here is all-or-nothing: a single attempt, no fallback, and any
deviation raises :class:`~postpace.exceptions.AuthError`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from postpace.auth.authorize import build_authorization_url, open_in_browser
from postpace.auth.callback import CallbackListener
from postpace.auth.pkce import generate_pkce_pair, generate_state
from postpace.auth.token import exchange_code_for_token
from postpace.exceptions import AuthError
from postpace.models import Settings, TokenResponse
from postpace.output import debug, info, print_data, progress, success

UrlOpener = Callable[[str], Any]


def obtain_token(
    settings: Settings,
    opener: Optional[UrlOpener] = open_in_browser,
    timeout: Optional[float] = None,
) -> TokenResponse:
    """Authorize the user and return a token response with an access token.

    The callback listener is bound before the URL is shown, so a busy port
    fails the run before the user is sent to the browser.

    Args:
        settings: Resolved configuration.
        opener: Optional "open URL" capability. Its result and failures are
            ignored; ``None`` only prints the URL.
        timeout: Seconds to wait for the callback, ``None`` for no limit.

    Returns:
        A :class:`~postpace.models.TokenResponse` whose ``access_token`` is
        non-empty.

    Raises:
        CallbackError: If the callback port cannot be bound.
        AuthError: If no code is captured, the exchange fails, or the
            response has no access token.
    """
    state = generate_state()
    pkce = generate_pkce_pair()
    auth_url = build_authorization_url(
        settings.client_id,
        settings.redirect_uri,
        settings.scopes,
        state,
        pkce.challenge,
        authorization_url=settings.authorization_url,
    )

    listener = CallbackListener(
        state,
        host=settings.callback_host,
        port=settings.callback_port,
        path=settings.callback_path,
    )
    listener.start()

    try:
        info("Open this URL in your browser to authorize:")
        print_data(auth_url)
        if opener is not None:
            try:
                opener(auth_url)
            except Exception as exc:  # noqa: BLE001
                debug(f"Could not open a browser: {exc}")

        progress(f"Waiting for the authorization callback on {settings.redirect_uri} ...")
        code = listener.wait(timeout)
    finally:
        listener.close()

    if not code:
        reason = listener.error or "no callback received"
        raise AuthError(f"Could not capture the authorization code: {reason}")

    token = exchange_code_for_token(
        settings.client_id,
        settings.client_secret,
        pkce.verifier,
        code,
        settings.redirect_uri,
        token_url=settings.token_url,
        timeout=settings.request_timeout,
    )
    if not token.access_token:
        raise AuthError("Token response did not include an access_token")

    success("Authorization complete.")
    return token
