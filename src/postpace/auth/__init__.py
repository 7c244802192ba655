"""OAuth2 authorization code flow with PKCE.

Exports:
    :func:`obtain_token` -- run the whole interactive flow.
    :func:`generate_pkce_pair`, :func:`derive_challenge`,
    :func:`generate_verifier`, :func:`generate_state` -- PKCE primitives.
    :func:`build_authorization_url` -- authorization URL construction.
    :class:`CallbackListener` -- local redirect target.
    :func:`exchange_code_for_token` -- code-for-token exchange.
"""

from postpace.auth.authorize import build_authorization_url, open_in_browser
from postpace.auth.callback import CallbackListener, ListenerState, wait_for_callback
from postpace.auth.flow import obtain_token
from postpace.auth.pkce import (
    derive_challenge,
    generate_pkce_pair,
    generate_state,
    generate_verifier,
)
from postpace.auth.token import exchange_code_for_token

__all__ = [
    "CallbackListener",
    "ListenerState",
    "build_authorization_url",
    "derive_challenge",
    "exchange_code_for_token",
    "generate_pkce_pair",
    "generate_state",
    "generate_verifier",
    "obtain_token",
    "open_in_browser",
    "wait_for_callback",
]
