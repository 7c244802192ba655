"""Tests for the local callback listener.

These spin up the real HTTP server on a loopback port and talk to it with
``http.client`` from a background thread.
"""

from __future__ import annotations

import socket
import threading
from http.client import HTTPConnection

import pytest

from postpace.auth.callback import (
    SUCCESS_BODY,
    CallbackListener,
    ListenerState,
    wait_for_callback,
)
from postpace.exceptions import AuthError, CallbackError

STATE = "abc-123"


def _get(port: int, path: str) -> tuple[int, str]:
    conn = HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        response = conn.getresponse()
        return response.status, response.read().decode("utf-8")
    finally:
        conn.close()


def _send_in_background(port: int, paths: list[str]) -> tuple[threading.Thread, list[tuple[int, str]]]:
    """Send GET requests one after another from a daemon thread."""
    responses: list[tuple[int, str]] = []

    def send() -> None:
        for path in paths:
            responses.append(_get(port, path))

    t = threading.Thread(target=send, daemon=True)
    t.start()
    return t, responses


@pytest.fixture
def listener(quiet_output: object) -> CallbackListener:
    lst = CallbackListener(STATE, port=0)
    lst.start()
    return lst


class TestCapture:
    def test_matching_state_captures_code(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(
            listener.port, [f"/callback?state={STATE}&code=AUTHCODE1"]
        )

        code = listener.wait(timeout=5)
        t.join(timeout=5)

        assert code == "AUTHCODE1"
        assert responses == [(200, SUCCESS_BODY)]
        assert listener.state == ListenerState.CLOSED
        assert listener.error is None

    def test_listener_closes_port_after_capture(self, listener: CallbackListener) -> None:
        port = listener.port
        t, _ = _send_in_background(port, [f"/callback?state={STATE}&code=C"])
        listener.wait(timeout=5)
        t.join(timeout=5)

        with pytest.raises(OSError):
            _get(port, f"/callback?state={STATE}&code=again")

    def test_start_is_idempotent(self, listener: CallbackListener) -> None:
        port = listener.port
        listener.start()
        assert listener.port == port
        assert listener.state == ListenerState.LISTENING

    def test_close_releases_port_without_serving(self, listener: CallbackListener) -> None:
        port = listener.port
        listener.close()
        listener.close()
        assert listener.state == ListenerState.CLOSED

        again = CallbackListener(STATE, port=port)
        again.start()
        assert again.port == port
        again.close()


class TestStateValidation:
    def test_mismatched_state_is_rejected(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(
            listener.port, ["/callback?state=xyz-999&code=STOLEN"]
        )

        code = listener.wait(timeout=1.0)
        t.join(timeout=5)

        assert code == ""
        assert responses[0][0] == 403
        assert listener.rejected_requests == 1
        assert "timed out" in (listener.error or "")

    def test_missing_state_is_rejected(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(listener.port, ["/callback?code=STOLEN"])

        code = listener.wait(timeout=1.0)
        t.join(timeout=5)

        assert code == ""
        assert responses[0][0] == 403

    def test_listener_stays_open_after_rejection(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(
            listener.port,
            [
                "/callback?state=xyz-999&code=STOLEN",
                f"/callback?state={STATE}&code=REAL",
            ],
        )

        code = listener.wait(timeout=5)
        t.join(timeout=5)

        assert code == "REAL"
        assert [status for status, _ in responses] == [403, 200]
        assert listener.rejected_requests == 1

    def test_handle_callback_transitions(self) -> None:
        lst = CallbackListener(STATE, port=0)

        status, _, finished = lst.handle_callback({"state": ["nope"], "code": ["X"]})
        assert (status, finished) == (403, False)
        assert lst.state == ListenerState.REJECTED

        status, body, finished = lst.handle_callback({"state": [STATE], "code": ["X"]})
        assert (status, finished) == (200, True)
        assert body == SUCCESS_BODY
        assert lst.state == ListenerState.CAPTURED

    def test_empty_expected_state_not_allowed(self) -> None:
        with pytest.raises(ValueError):
            CallbackListener("")


class TestCallbackErrors:
    def test_provider_error_ends_wait_without_code(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(
            listener.port,
            [f"/callback?state={STATE}&error=access_denied&error_description=User+denied"],
        )

        code = listener.wait(timeout=5)
        t.join(timeout=5)

        assert code == ""
        assert responses[0][0] == 400
        assert listener.error == "access_denied - User denied"

    def test_missing_code_ends_wait(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(listener.port, [f"/callback?state={STATE}"])

        code = listener.wait(timeout=5)
        t.join(timeout=5)

        assert code == ""
        assert responses[0][0] == 400
        assert "authorization code" in (listener.error or "")

    def test_unknown_path_returns_404(self, listener: CallbackListener) -> None:
        t, responses = _send_in_background(
            listener.port,
            ["/favicon.ico", f"/callback?state={STATE}&code=OK"],
        )

        code = listener.wait(timeout=5)
        t.join(timeout=5)

        assert code == "OK"
        assert [status for status, _ in responses] == [404, 200]

    def test_timeout_without_requests(self, listener: CallbackListener) -> None:
        assert listener.wait(timeout=0.5) == ""
        assert listener.state == ListenerState.CLOSED

    def test_port_in_use_is_fatal(self, quiet_output: object) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
            busy.bind(("127.0.0.1", 0))
            busy.listen(1)
            port = busy.getsockname()[1]

            with pytest.raises(CallbackError, match="Cannot listen"):
                CallbackListener(STATE, port=port).start()

    def test_callback_error_is_auth_error(self) -> None:
        assert issubclass(CallbackError, AuthError)


class TestWaitForCallback:
    def test_custom_path(self, quiet_output: object, free_port: int) -> None:
        def send() -> None:
            # Retry until the listener has bound the port.
            for _ in range(50):
                try:
                    _get(free_port, f"/oauth/done?state={STATE}&code=PATHCODE")
                    return
                except OSError:
                    threading.Event().wait(0.05)

        t = threading.Thread(target=send, daemon=True)
        t.start()

        code = wait_for_callback(STATE, port=free_port, path="/oauth/done", timeout=5)
        t.join(timeout=5)

        assert code == "PATHCODE"
