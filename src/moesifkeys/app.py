"""Typer application and CLI entry point for moesifkeys.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``refresh``, ``lookup``, ``watch``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled :class:`~moesifkeys.exceptions.MoesifKeysError`
instances exit with their ``exit_code``; Ctrl-C exits with 130.

See Also:
    :mod:`moesifkeys.commands.keys`: builds the retriever for each command.
    :mod:`moesifkeys.output`: output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys

import typer

from moesifkeys import __version__
from moesifkeys.commands.config import config_app
from moesifkeys.commands.keys import lookup_command, refresh_command, watch_command
from moesifkeys.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="moesifkeys",
    help="Fetch and cache Moesif keys per organization from the key microservice.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("refresh")(refresh_command)
app.command("lookup")(lookup_command)
app.command("watch")(watch_command)
app.add_typer(config_app, name="config", help="Settings management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"moesifkeys {__version__}")
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

    Installs the global :class:`~moesifkeys.output.OutputManager` and routes
    library log records to stderr.
    """
    from moesifkeys.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.configure_logging()


def main() -> None:
    """CLI entry point invoked by the ``moesifkeys`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from moesifkeys.exceptions import MoesifKeysError
        from moesifkeys.output import error

        if isinstance(exc, MoesifKeysError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
