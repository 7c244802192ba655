"""HTTP client for the content-creation endpoint.

Exports:
    :class:`PostSubmitter` -- creates one post per call.
    :func:`submit_post` -- one-shot helper around :class:`PostSubmitter`.
    :func:`run_posting_loop` -- paced, sequential submission of many posts.
    :func:`check_interval` -- validates the pause between posts.
"""

from postpace.client.poster import PostSubmitter, check_interval, run_posting_loop, submit_post

__all__ = ["PostSubmitter", "check_interval", "run_posting_loop", "submit_post"]
