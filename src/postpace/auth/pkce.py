"""PKCE (:rfc:`7636`) verifier/challenge generation and the anti-forgery state.

Only the ``S256`` challenge method is supported.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from postpace.models import PKCEPair

# RFC 7636: 43-128 characters from the unreserved character set.
VERIFIER_MIN_LENGTH = 43
VERIFIER_MAX_LENGTH = 128


def generate_verifier(num_bytes: int = 64) -> str:
    """Return a random, URL-safe ``code_verifier``.

    ``secrets.token_urlsafe`` yields about 1.3 characters per byte, so the
    default of 64 bytes gives an 86-character verifier.

    Args:
        num_bytes: Bytes of randomness, between 32 and 96.
    """
    if not 32 <= num_bytes <= 96:
        raise ValueError("num_bytes must be between 32 and 96")
    return secrets.token_urlsafe(num_bytes)[:VERIFIER_MAX_LENGTH]


def derive_challenge(verifier: str) -> str:
    """Return the S256 ``code_challenge`` for *verifier*.

    ``base64url(sha256(verifier))`` with the ``=`` padding stripped. The
    result is always 43 characters long.

    Raises:
        ValueError: If *verifier* is empty.
    """
    if not verifier:
        raise ValueError("code_verifier must not be empty")
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_pair() -> PKCEPair:
    """Generate a fresh verifier together with its challenge."""
    verifier = generate_verifier()
    return PKCEPair(verifier=verifier, challenge=derive_challenge(verifier))


def generate_state() -> str:
    """Return a random anti-forgery ``state`` token."""
    return secrets.token_urlsafe(32)
