"""Bearer-authenticated post submission with a fixed pause between posts.

This module provides :class:`PostSubmitter`, a thin wrapper around
:class:`httpx.Client` that creates one post per call, and
:func:`run_posting_loop`, which submits an ordered list of posts.

Failures are per item: a transport error or any status other than
``201 Created`` is logged and recorded, and the loop moves on. Nothing is
retried.
"""

from __future__ import annotations

import math
import time
from typing import Optional, Sequence

import httpx

from postpace.exceptions import AuthError, InvalidUsageError
from postpace.models import DEFAULT_POSTS_URL, PostingReport, PostResult
from postpace.output import get_output


class PostSubmitter:
    """Creates posts on the content-creation endpoint.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        token: OAuth2 access token sent as ``Authorization: Bearer``.
        posts_url: Content-creation endpoint.
        timeout: Per-request timeout in seconds.
        transport: Optional custom httpx transport (used by tests).

    Example::

        with PostSubmitter(token) as submitter:
            result = submitter.submit("hello world")
    """

    def __init__(
        self,
        token: str,
        posts_url: str = DEFAULT_POSTS_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not token:
            raise AuthError("An access token is required before posting")
        self._token = token
        self._posts_url = posts_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> PostSubmitter:
        self._client = httpx.Client(timeout=self._timeout, transport=self._transport)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def submit(self, text: str, index: int = 1) -> PostResult:
        """Create one post.

        Args:
            text: Post body.
            index: 1-based position of the post, carried into the result.

        Returns:
            A :class:`~postpace.models.PostResult`; ``ok`` is True only for
            HTTP 201.
        """
        assert self._client is not None, "PostSubmitter must be used as a context manager"
        output = get_output()

        try:
            response = self._client.post(
                self._posts_url,
                json={"text": text},
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            output.warning(f"Post {index} failed: {exc}")
            return PostResult(index=index, text=text, ok=False, error=str(exc))

        if response.status_code != 201:
            detail = response.text.strip()[:300]
            output.warning(f"Post {index} failed with HTTP {response.status_code}: {detail}")
            return PostResult(
                index=index,
                text=text,
                ok=False,
                status_code=response.status_code,
                error=detail or None,
            )

        output.debug(f"Post {index} created: {response.text.strip()[:300]}")
        return PostResult(index=index, text=text, ok=True, status_code=201)


def submit_post(
    token: str,
    body: str,
    posts_url: str = DEFAULT_POSTS_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> bool:
    """Create a single post and return True if the server answered 201."""
    with PostSubmitter(token, posts_url, timeout=timeout, transport=transport) as submitter:
        return submitter.submit(body).ok


def run_posting_loop(
    token: str,
    posts: Sequence[str],
    interval: float,
    posts_url: str = DEFAULT_POSTS_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> PostingReport:
    """Submit *posts* in order, pausing *interval* seconds between them.

    Every post is attempted regardless of earlier failures. There is no
    pause after the last post.

    Args:
        token: OAuth2 access token.
        posts: Post bodies in submission order.
        interval: Seconds to sleep between consecutive posts.
        posts_url: Content-creation endpoint.
        timeout: Per-request timeout in seconds.
        transport: Optional custom httpx transport (used by tests).

    Returns:
        A :class:`~postpace.models.PostingReport` with one result per post.

    Raises:
        AuthError: If *token* is empty (before anything is sent).
        InvalidUsageError: If *interval* is negative or not finite.
    """
    if not token:
        raise AuthError("An access token is required before posting")
    check_interval(interval)

    output = get_output()
    report = PostingReport()
    total = len(posts)
    if total == 0:
        output.info("No posts to submit.")
        return report

    with PostSubmitter(token, posts_url, timeout=timeout, transport=transport) as submitter:
        for i, text in enumerate(posts, 1):
            output.info(f"Posting {i}/{total}: {text}")
            result = submitter.submit(text, index=i)
            report.results.append(result)
            if result.ok:
                output.success(f"Post {i}/{total} published.")
            else:
                output.info(f"Post {i}/{total} was not published.")

            if i < total:
                output.progress(f"Waiting {format_interval(interval)} before the next post...")
                time.sleep(interval)

    output.info(f"Finished: {report.succeeded} published, {report.failed} failed.")
    return report


def format_interval(seconds: float) -> str:
    """Render a duration like ``1h 30m``, ``5m`` or ``2.5s``."""
    if seconds < 60:
        return f"{seconds:g}s"
    whole = int(round(seconds))
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)


def check_interval(interval: float) -> None:
    """Reject pauses that cannot be slept or displayed.

    Raises:
        InvalidUsageError: If *interval* is negative, NaN or infinite.
    """
    if not math.isfinite(interval):
        raise InvalidUsageError(f"Interval must be a finite number of seconds, got {interval}")
    if interval < 0:
        raise InvalidUsageError(f"Interval must not be negative, got {interval}")
