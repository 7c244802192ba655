"""Post source -- reads the ordered list of post bodies.

Each non-blank line of the input is one post. Lines are trimmed, blank
lines are skipped, and the original order is preserved.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from postpace.exceptions import ConfigError


def parse_post_lines(lines: Iterable[str]) -> list[str]:
    """Return the trimmed, non-empty lines of *lines* in order.

    Example::

        >>> parse_post_lines(["  hello  ", "", "world"])
        ['hello', 'world']
    """
    posts: list[str] = []
    for line in lines:
        text = line.strip()
        if text:
            posts.append(text)
    return posts


def load_posts(path: str | Path) -> list[str]:
    """Read posts from a UTF-8 text file.

    Args:
        path: File with one post per line.

    Returns:
        The parsed posts (possibly empty).

    Raises:
        ConfigError: If the file is missing or cannot be read.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConfigError(f"Posts file not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            return parse_post_lines(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read posts file {path}: {exc}") from exc
