"""Local HTTP listener that receives the OAuth2 redirect.

:class:`CallbackListener` binds a single-threaded :class:`~http.server.HTTPServer`
on the redirect URI's host/port, validates the ``state`` of each request on
the redirect path, captures the authorization ``code`` and then shuts
itself down. The life cycle is tracked in :class:`ListenerState`::

    LISTENING -> VALIDATING -> CAPTURED | REJECTED -> CLOSED

A request with the wrong ``state`` gets a 403 and never yields a code; the
listener stays open so the user can retry from the browser. A request with
the right ``state`` ends the wait, whether it carried a code or a provider
error.

Example::

    listener = CallbackListener(state, port=8080)
    code = listener.wait()        # blocks until the redirect arrives
"""

from __future__ import annotations

import secrets
import threading
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from postpace.exceptions import CallbackError
from postpace.models import DEFAULT_CALLBACK_PATH, DEFAULT_CALLBACK_PORT
from postpace.output import debug, warning

SUCCESS_BODY = "Authorization received! You can close this window and return to the terminal."
INVALID_STATE_BODY = "Invalid state parameter. Start the authorization again from the terminal."


class ListenerState(str, Enum):
    """Life-cycle states of a :class:`CallbackListener`."""

    LISTENING = "listening"
    VALIDATING = "validating"
    CAPTURED = "captured"
    REJECTED = "rejected"
    CLOSED = "closed"


class _CodeSlot:
    """Single-slot handoff: written once by the handler, read once after shutdown."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    def put(self, value: str) -> bool:
        """Store *value* unless the slot is already filled."""
        with self._lock:
            if self._value is not None:
                return False
            self._value = value
            return True

    def take(self) -> Optional[str]:
        with self._lock:
            value, self._value = self._value, None
            return value


class CallbackListener:
    """Short-lived redirect target for the authorization server.

    Args:
        expected_state: The anti-forgery token sent in the authorization URL.
        host: Interface to bind.
        port: TCP port to bind. ``0`` picks a free port (see :attr:`port`).
        path: Redirect path; requests to any other path get 404.
    """

    def __init__(
        self,
        expected_state: str,
        host: str = "127.0.0.1",
        port: int = DEFAULT_CALLBACK_PORT,
        path: str = DEFAULT_CALLBACK_PATH,
    ) -> None:
        if not expected_state:
            raise ValueError("expected_state must not be empty")
        self._expected_state = expected_state
        self._host = host
        self._port = port
        self._path = path
        self._slot = _CodeSlot()
        self._server: Optional[HTTPServer] = None
        self._lock = threading.Lock()
        self.state = ListenerState.CLOSED
        self.error: Optional[str] = None
        self.rejected_requests = 0

    @property
    def port(self) -> int:
        """The bound port (the configured one until :meth:`start` is called)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self.port}{self._path}"

    def start(self) -> None:
        """Bind the listening socket.

        Raises:
            CallbackError: If the address is already in use or cannot be
                bound.
        """
        if self._server is not None:
            return
        try:
            self._server = HTTPServer((self._host, self._port), self._make_handler())
        except OSError as exc:
            raise CallbackError(
                f"Cannot listen for the OAuth2 callback on {self._host}:{self._port}: {exc}"
            ) from exc
        self.state = ListenerState.LISTENING
        debug(f"Callback listener bound to {self.url}")

    def wait(self, timeout: Optional[float] = None) -> str:
        """Serve until a callback with the expected state arrives.

        Binds the socket first if :meth:`start` was not called.

        Args:
            timeout: Seconds to wait before giving up. ``None`` waits
                indefinitely.

        Returns:
            The captured authorization code, or ``""`` if the listener closed
            without capturing one (provider error, missing code, timeout).
        """
        self.start()
        assert self._server is not None
        server = self._server

        timer: Optional[threading.Timer] = None
        if timeout is not None:
            timer = threading.Timer(timeout, self._on_timeout)
            timer.daemon = True
            timer.start()

        try:
            server.serve_forever(poll_interval=0.1)
        finally:
            if timer is not None:
                timer.cancel()
            self.close()

        return self._slot.take() or ""

    def close(self) -> None:
        """Release the socket without serving. Safe to call more than once."""
        server, self._server = self._server, None
        if server is not None:
            server.server_close()
        self.state = ListenerState.CLOSED

    # ------------------------------------------------------------------ #
    # Request handling
    # ------------------------------------------------------------------ #

    def handle_callback(self, query: dict[str, list[str]]) -> tuple[int, str, bool]:
        """Validate one redirect request.

        Args:
            query: Parsed query string of the request.

        Returns:
            ``(status_code, body, finished)``. ``finished`` is True when the
            listener should shut down.
        """
        with self._lock:
            self.state = ListenerState.VALIDATING

            received = query.get("state", [""])[0]
            if not secrets.compare_digest(
                received.encode("utf-8"), self._expected_state.encode("utf-8")
            ):
                self.state = ListenerState.REJECTED
                self.rejected_requests += 1
                warning("Ignored a callback with an invalid state parameter.")
                return 403, INVALID_STATE_BODY, False

            if "error" in query:
                self.error = query["error"][0]
                description = query.get("error_description", [""])[0]
                if description:
                    self.error += f" - {description}"
                self.state = ListenerState.REJECTED
                return 400, f"Authorization failed: {self.error}", True

            code = query.get("code", [""])[0]
            if not code:
                self.error = "callback did not include an authorization code"
                self.state = ListenerState.REJECTED
                return 400, "No authorization code received.", True

            self._slot.put(code)
            self.state = ListenerState.CAPTURED
            return 200, SUCCESS_BODY, True

    def _request_shutdown(self) -> None:
        """Stop the serve loop once the current request has been answered.

        ``HTTPServer.shutdown`` blocks until the loop exits, so it runs in a
        helper thread. The loop only sees the request after the current
        handler returns, by which time the response has been written.
        """
        server = self._server
        if server is not None:
            threading.Thread(target=server.shutdown, daemon=True).start()

    def _on_timeout(self) -> None:
        if self.error is None:
            self.error = "timed out waiting for the authorization callback"
        self._request_shutdown()

    def _make_handler(self) -> type[BaseHTTPRequestHandler]:
        listener = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                if parsed.path != listener._path:
                    self._respond(404, "Not found.")
                    return

                status, body, finished = listener.handle_callback(parse_qs(parsed.query))
                self._respond(status, body)
                if finished:
                    listener._request_shutdown()

            def _respond(self, status: int, body: str) -> None:
                payload = body.encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            def log_message(self, format: str, *args: Any) -> None:
                debug(f"callback: {format % args}")

        return CallbackHandler


def wait_for_callback(
    expected_state: str,
    host: str = "127.0.0.1",
    port: int = DEFAULT_CALLBACK_PORT,
    path: str = DEFAULT_CALLBACK_PATH,
    timeout: Optional[float] = None,
) -> str:
    """Listen for one valid redirect and return its code (``""`` if none)."""
    return CallbackListener(expected_state, host=host, port=port, path=path).wait(timeout)
