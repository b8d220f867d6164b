"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~moesifkeys.exceptions.MoesifKeysError` subclass.

Example::

    $ moesifkeys lookup org-42
    $ echo $?
    4   # EXIT_NOT_FOUND -- no key is currently known for org-42
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or settings."""

EXIT_NOT_FOUND = 4
"""No key could be retrieved for the requested organization."""

EXIT_DECODE_ERROR = 5
"""The key microservice returned a body that could not be decoded."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error or retryable status persisted past the retry budget."""

EXIT_INTERRUPTED = 130
"""The operation was cancelled (Ctrl-C or retriever shutdown)."""
