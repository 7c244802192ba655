"""Tests for authorization URL construction and browser launch."""

from __future__ import annotations

import webbrowser
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from postpace.auth.authorize import build_authorization_url, open_in_browser


def _build(**kwargs: object) -> str:
    defaults: dict[str, object] = {
        "client_id": "client-123",
        "redirect_uri": "http://localhost:8080/callback",
        "scopes": ["tweet.write", "tweet.read"],
        "state": "abc-123",
        "challenge": "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM",
        "authorization_url": "https://auth.example.com/authorize",
    }
    defaults.update(kwargs)
    return build_authorization_url(**defaults)  # type: ignore[arg-type]


class TestBuildAuthorizationUrl:
    def test_all_parameters_present(self) -> None:
        parsed = urlparse(_build())
        params = parse_qs(parsed.query)

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://auth.example.com/authorize"
        )
        assert params == {
            "response_type": ["code"],
            "client_id": ["client-123"],
            "redirect_uri": ["http://localhost:8080/callback"],
            "scope": ["tweet.write tweet.read"],
            "state": ["abc-123"],
            "code_challenge": ["E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"],
            "code_challenge_method": ["S256"],
        }

    def test_values_are_percent_encoded(self) -> None:
        url = _build(redirect_uri="http://localhost:8080/callback?x=1&y=2")
        assert "redirect_uri=http%3A%2F%2Flocalhost%3A8080%2Fcallback%3Fx%3D1%26y%3D2" in url

    def test_scopes_space_joined(self) -> None:
        url = _build(scopes=["a", "b", "c"])
        assert "scope=a+b+c" in url

    def test_default_endpoint(self) -> None:
        url = build_authorization_url("cid", "http://localhost:8080/callback", ["s"], "st", "ch")
        assert url.startswith("https://twitter.com/i/oauth2/authorize?")

    def test_endpoint_with_existing_query(self) -> None:
        url = _build(authorization_url="https://auth.example.com/authorize?tenant=x")
        assert url.startswith("https://auth.example.com/authorize?tenant=x&response_type=code")


class TestOpenInBrowser:
    def test_opens_url(self) -> None:
        with patch("postpace.auth.authorize.webbrowser.open", return_value=True) as mock_open:
            open_in_browser("https://auth.example.com/authorize").join(timeout=5)
        mock_open.assert_called_once_with("https://auth.example.com/authorize")

    def test_failure_is_not_raised(self, quiet_output: object) -> None:
        with patch(
            "postpace.auth.authorize.webbrowser.open",
            side_effect=webbrowser.Error("no browser"),
        ) as mock_open:
            thread = open_in_browser("https://auth.example.com/authorize")
            thread.join(timeout=5)
        assert not thread.is_alive()
        mock_open.assert_called_once()
