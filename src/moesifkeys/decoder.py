"""Decoding of key microservice response bodies into :class:`KeyEntry` values.

The list endpoint returns a JSON array of ``{organization_id, moesif_key}``
objects and the detail endpoint returns one such object. Any body that does
not match raises :class:`~moesifkeys.exceptions.DecodeError`; the data is
wrong, so callers do not retry.
"""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from moesifkeys.exceptions import DecodeError
from moesifkeys.models import KeyEntry

_ENTRY_LIST = TypeAdapter(list[KeyEntry])


def decode_one(body: str) -> KeyEntry:
    """Decode a detail response body.

    Raises:
        DecodeError: If *body* is not a single valid key entry object.
    """
    try:
        return KeyEntry.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Invalid key entry: {_summarise(exc)}") from exc


def decode_many(body: str) -> list[KeyEntry]:
    """Decode a list response body, preserving order.

    An empty array decodes to an empty list.

    Raises:
        DecodeError: If *body* is not a JSON array of valid key entries.
    """
    try:
        return _ENTRY_LIST.validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Invalid key entry list: {_summarise(exc)}") from exc


def _summarise(exc: ValidationError) -> str:
    # Input values are left out so that keys never reach log records.
    errors = exc.errors(include_input=False, include_url=False)
    parts = []
    for err in errors[:3]:
        loc = ".".join(str(p) for p in err["loc"]) or "<body>"
        parts.append(f"{loc}: {err['msg']}")
    if len(errors) > 3:
        parts.append(f"... {len(errors) - 3} more")
    return "; ".join(parts)
