"""Key commands -- refresh, look up, and watch organization keys.

These commands are the composition root of the library: each invocation
loads the settings, resolves the credentials, builds one
:class:`~moesifkeys.retriever.KeyRetriever`, and closes it on exit.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from moesifkeys.cache import mask_key
from moesifkeys.exceptions import MoesifKeysError, RetryInterrupted
from moesifkeys.exit_codes import EXIT_CONNECTION_ERROR, EXIT_NOT_FOUND
from moesifkeys.output import debug, error, info, print_data, print_table, success, warning
from moesifkeys.retriever import KeyRetriever


def _create_retriever() -> KeyRetriever:
    """Build a retriever from the effective settings and configured credentials."""
    from moesifkeys.auth import credentials_from_settings
    from moesifkeys.config import load_settings

    settings = load_settings()
    debug(f"Key microservice at {settings.microservice.base_url}")
    return KeyRetriever(settings, credentials_from_settings(settings.auth))


@contextmanager
def _retriever() -> Iterator[KeyRetriever]:
    """Yield a retriever, mapping library errors to CLI exit codes."""
    try:
        retriever = _create_retriever()
    except MoesifKeysError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    try:
        yield retriever
    except RetryInterrupted as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        retriever.close()


def _print_key_map(key_map: dict[str, str], reveal: bool) -> None:
    rows = [
        [org_id, key if reveal else mask_key(key)]
        for org_id, key in sorted(key_map.items())
    ]
    print_table(["organization_id", "moesif_key"], rows, title="Organization keys")


def refresh_command(
    reveal: bool = typer.Option(
        False, "--reveal", help="Print full keys instead of masked ones."
    ),
) -> None:
    """Fetch every organization's key and print the resulting map.

    Example::

        moesifkeys refresh
        moesifkeys --json refresh --reveal
    """
    with _retriever() as retriever:
        if not retriever.refresh_all():
            error("Could not refresh organization keys (see log above)")
            raise typer.Exit(code=EXIT_CONNECTION_ERROR)
        key_map = retriever.get_key_map()
        stats = retriever.cache.stats()
        _print_key_map(key_map, reveal)
        info(
            f"{stats['organizations']} organization(s), "
            f"{stats['clients']} distinct key(s)"
        )


def lookup_command(
    organization_id: str = typer.Argument(help="Organization ID to look up."),
    reveal: bool = typer.Option(
        False, "--reveal", help="Print the full key instead of a masked one."
    ),
) -> None:
    """Fetch one organization's key live from the microservice.

    Exits with code 4 when no key could be retrieved. That means the key is
    currently unknown, not that the organization does not exist.
    """
    with _retriever() as retriever:
        key = retriever.lookup(organization_id)
        if key is None:
            error(f"No key currently known for organization '{organization_id}'")
            raise typer.Exit(code=EXIT_NOT_FOUND)
        print_data(key if reveal else mask_key(key))


def watch_command(
    interval: float = typer.Option(
        300.0, "--interval", "-i", min=0.0, help="Seconds between refreshes."
    ),
    iterations: Optional[int] = typer.Option(
        None, "--iterations", "-n", min=1, help="Stop after this many refreshes."
    ),
) -> None:
    """Refresh the key map periodically until interrupted.

    Each cycle prints a one-line summary to stderr. Failed cycles keep the
    previous map.
    """
    with _retriever() as retriever:
        cycle = 0
        while iterations is None or cycle < iterations:
            cycle += 1
            if retriever.refresh_all():
                stats = retriever.cache.stats()
                success(
                    f"[{cycle}] {stats['organizations']} organization(s), "
                    f"{stats['clients']} distinct key(s)"
                )
            else:
                warning(f"[{cycle}] refresh failed, keeping previous keys")
            if iterations is not None and cycle >= iterations:
                break
            time.sleep(interval)
