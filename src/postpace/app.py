"""Typer application and CLI entry point for postpace.

Commands:

* ``postpace run`` -- authorize in the browser, then publish every post of
  the posts file with a fixed pause in between.
* ``postpace check`` -- validate the configuration and the posts file
  without any network activity.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`postpace.config`: Settings resolution.
    :mod:`postpace.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from postpace import __version__
from postpace.exceptions import PostpaceError
from postpace.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from postpace.models import DEFAULT_INTERVAL, DEFAULT_POSTS_FILE
from postpace.output import error, get_output, info, print_table, suggest, warning


app = typer.Typer(
    name="postpace",
    help="Authorize with OAuth2 PKCE and publish a queue of posts at a fixed pace.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"postpace {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~postpace.output.OutputManager` from
    CLI flags.
    """
    from postpace.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )


@app.command("run")
def run_command(
    posts_file: str = typer.Option(
        DEFAULT_POSTS_FILE, "--posts", "-P", help="File with one post per line."
    ),
    interval: float = typer.Option(
        DEFAULT_INTERVAL,
        "--interval",
        "-i",
        min=0,
        help="Seconds to wait between posts.",
    ),
    env_file: Optional[str] = typer.Option(
        None, "--env-file", help="Dotenv file with CLIENT_ID, CLIENT_SECRET, REDIRECT_URI."
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Give up waiting for the authorization callback after this many seconds.",
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Only print the authorization URL."
    ),
) -> None:
    """Authorize, then publish every post with a fixed pause in between.

    Configuration and the posts file are validated before any network
    activity. Individual post failures are reported but do not change the
    exit code.

    Example::

        postpace run --posts tweets.txt --interval 1800
    """
    from postpace.auth import obtain_token, open_in_browser
    from postpace.client import check_interval, run_posting_loop
    from postpace.config import load_settings
    from postpace.posts import load_posts

    try:
        check_interval(interval)
        settings = load_settings(env_file)
        posts = load_posts(posts_file)
        if not posts:
            warning(f"No posts found in {posts_file}; nothing to do.")
            return

        info(f"Loaded {len(posts)} post(s) from {posts_file}.")
        token = obtain_token(
            settings,
            opener=None if no_browser else open_in_browser,
            timeout=timeout,
        )
        report = run_posting_loop(
            token.access_token,
            posts,
            interval,
            posts_url=settings.posts_url,
            timeout=settings.request_timeout,
        )
    except PostpaceError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if report.failed:
        suggest("Failed posts are not retried; re-run with a file holding just those posts.")


@app.command("check")
def check_command(
    posts_file: str = typer.Option(
        DEFAULT_POSTS_FILE, "--posts", "-P", help="File with one post per line."
    ),
    env_file: Optional[str] = typer.Option(
        None, "--env-file", help="Dotenv file with CLIENT_ID, CLIENT_SECRET, REDIRECT_URI."
    ),
) -> None:
    """Validate configuration and list the posts that ``run`` would publish.

    Makes no network calls.
    """
    from postpace.config import load_settings
    from postpace.posts import load_posts

    try:
        settings = load_settings(env_file)
        posts = load_posts(posts_file)
    except PostpaceError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output = get_output()
    output.info(f"Client id: {settings.client_id}")
    output.info(f"Redirect URI: {settings.redirect_uri}")
    output.info(f"Scopes: {' '.join(settings.scopes)}")
    output.info(f"Posts endpoint: {settings.posts_url}")

    if not posts:
        warning(f"No posts found in {posts_file}.")
        return

    print_table(
        ["#", "Length", "Text"],
        [[str(i), str(len(text)), text] for i, text in enumerate(posts, 1)],
        title=f"{len(posts)} post(s) in {posts_file}",
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from postpace.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``postpace`` console script.

    Unhandled :class:`~postpace.exceptions.PostpaceError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        if isinstance(exc, PostpaceError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
