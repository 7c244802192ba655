"""Authorization code exchange at the token endpoint."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from postpace.exceptions import AuthError
from postpace.models import DEFAULT_TOKEN_URL, TokenResponse
from postpace.output import debug


def exchange_code_for_token(
    client_id: str,
    client_secret: str,
    verifier: str,
    code: str,
    redirect_uri: str,
    token_url: str = DEFAULT_TOKEN_URL,
    timeout: float = 30.0,
) -> TokenResponse:
    """Exchange an authorization code (plus PKCE verifier) for tokens.

    Sends a form-encoded ``authorization_code`` grant authenticated with
    HTTP Basic ``client_id:client_secret``. There is no retry: the code is
    single-use, so any failure ends the run.

    Args:
        client_id: OAuth2 client id (also sent in the form body).
        client_secret: OAuth2 client secret.
        verifier: The PKCE ``code_verifier`` matching the challenge sent in
            the authorization URL.
        code: Authorization code captured by the callback listener.
        redirect_uri: The redirect URI used in the authorization request.
        token_url: Token endpoint.
        timeout: Request timeout in seconds.

    Returns:
        The parsed :class:`~postpace.models.TokenResponse`. Fields absent
        from the response are empty.

    Raises:
        AuthError: On transport errors, non-2xx statuses, or a body that is
            not a JSON object.
    """
    data: dict[str, str] = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
        "code_verifier": verifier,
        "client_id": client_id,
    }

    debug(f"POST {token_url} (grant_type=authorization_code)")
    try:
        response = httpx.post(
            token_url,
            data=data,
            auth=(client_id, client_secret),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
            timeout=timeout,
        )
        response.raise_for_status()
        payload: Any = response.json()
    except httpx.HTTPStatusError as exc:
        raise AuthError(
            f"Token exchange failed with status {exc.response.status_code}: "
            f"{exc.response.text}"
        ) from exc
    except httpx.HTTPError as exc:
        raise AuthError(f"Token exchange failed: {exc}") from exc
    except ValueError as exc:
        raise AuthError(f"Could not decode token response: {exc}") from exc

    if not isinstance(payload, dict):
        raise AuthError("Could not decode token response: expected a JSON object")
    try:
        return TokenResponse.model_validate(payload)
    except ValidationError as exc:
        raise AuthError(f"Could not decode token response: {exc}") from exc
