"""Exception hierarchy for moesifkeys.

All exceptions inherit from :class:`MoesifKeysError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`moesifkeys.exit_codes`.
:class:`~moesifkeys.retriever.KeyRetriever` contains every error below except
:class:`RetryInterrupted`, so library callers only ever see "a key" or
``None``. The CLI entry point in :func:`moesifkeys.app.main` catches
``MoesifKeysError`` and exits with the matching code.

Subclass hierarchy::

    MoesifKeysError (exit 1)
    +-- ConfigError        (exit 2)
    +-- TransportError     (exit 6)
    +-- DecodeError        (exit 5)
    +-- ClientFactoryError (exit 1)
    +-- RetryInterrupted   (exit 130)
"""

from __future__ import annotations

from moesifkeys.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_INVALID_USAGE,
)


class MoesifKeysError(Exception):
    """Base exception for all moesifkeys errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(MoesifKeysError):
    """Raised for configuration defects (malformed endpoint URL, bad settings, missing credentials).

    Never retried: repeating the call cannot fix it.
    """

    exit_code = EXIT_INVALID_USAGE


class TransportError(MoesifKeysError):
    """Raised on network failures and retryable (non-2xx, non-4xx) responses.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status that triggered the error, or ``None``
            for network-level failures.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(MoesifKeysError):
    """Raised when a microservice response body is not a valid key entry payload."""

    exit_code = EXIT_DECODE_ERROR


class ClientFactoryError(MoesifKeysError):
    """Raised when the client factory fails to build a handle for a service key.

    The cache is left exactly as it was before the failing upsert.
    """


class RetryInterrupted(MoesifKeysError):
    """Raised when a retry wait is cancelled before the next attempt.

    Unlike the other errors this one is never contained by the retriever.
    """

    exit_code = EXIT_INTERRUPTED
