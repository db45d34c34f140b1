"""Typer application and CLI entry point for claude-sdk-auth.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app, and
turns any escaped :class:`~claude_sdk_auth.exceptions.ClaudeAuthError` into
an error message and its exit code.

See Also:
    :mod:`claude_sdk_auth.commands.auth`: the command implementations.
    :mod:`claude_sdk_auth.output`: output initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer

from claude_sdk_auth import __version__
from claude_sdk_auth.commands.auth import (
    login_command,
    logout_command,
    path_command,
    refresh_command,
    status_command,
    token_command,
)
from claude_sdk_auth.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="claude-sdk-auth",
    help="Manage Claude OAuth credentials.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("login")(login_command)
app.command("status")(status_command)
app.command("token")(token_command)
app.command("refresh")(refresh_command)
app.command("logout")(logout_command)
app.command("path")(path_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"claude-sdk-auth {__version__}")
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
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
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

    Installs the global :class:`~claude_sdk_auth.output.OutputManager` from
    CLI flags. ``--verbose`` also routes library log records to stderr.
    """
    from claude_sdk_auth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``claude-sdk-auth`` console script.

    Unhandled :class:`~claude_sdk_auth.exceptions.ClaudeAuthError` instances
    cause a clean exit with the error's ``exit_code``. Any other exception
    is reported and exits with :data:`EXIT_GENERIC_FAILURE`.

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
        sys.exit(130)
    except Exception as exc:
        from claude_sdk_auth.exceptions import ClaudeAuthError
        from claude_sdk_auth.output import error

        if isinstance(exc, ClaudeAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
