"""Facade that keeps the organization to Moesif key cache in sync.

:class:`KeyRetriever` ties together the microservice transport, the body
decoder, the retry policy and the :class:`~moesifkeys.cache.KeyCache`:

- :meth:`KeyRetriever.refresh_all` -- list every key, decode, bulk upsert.
- :meth:`KeyRetriever.lookup` -- fetch one organization's key live, upsert
  it, and return it.

Both operations contain every failure except
:class:`~moesifkeys.exceptions.RetryInterrupted`: callers get ``True`` /
``False`` or a key / ``None``. A ``None`` lookup means the key is currently
unknown, not that the organization is invalid.

The retriever is meant to be built once by the composition root and shared
between threads.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from moesifkeys.auth import Credentials
from moesifkeys.cache import EvictCallback, KeyCache, mask_key
from moesifkeys.client import (
    MicroserviceTransport,
    close_collector_client,
    collector_client_factory,
)
from moesifkeys.decoder import decode_many, decode_one
from moesifkeys.exceptions import (
    ClientFactoryError,
    ConfigError,
    DecodeError,
    TransportError,
)
from moesifkeys.models import Settings
from moesifkeys.retry import RetryPolicy

logger = logging.getLogger(__name__)


class KeyRetriever:
    """Refreshes and serves organization keys from the key microservice.

    Args:
        settings: Effective settings (endpoints, timeouts, retry budget).
        credentials: Basic-auth identity. Cleared by :meth:`close`.
        client_factory: Builds a client handle per distinct key. Defaults to
            a Moesif collector :class:`httpx.Client`.
        on_evict: Called with ``(key, handle)`` when a handle is dropped.
            Defaults to closing the handle.
        transport: Optional :class:`httpx.BaseTransport` for the
            microservice calls (tests use :class:`httpx.MockTransport`).

    Example::

        with KeyRetriever(settings, credentials) as retriever:
            retriever.refresh_all()
            client = retriever.get_client(retriever.lookup("org-42"))
    """

    def __init__(
        self,
        settings: Settings,
        credentials: Credentials,
        client_factory: Optional[Callable[[str], Any]] = None,
        on_evict: Optional[EvictCallback] = close_collector_client,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._transport = MicroserviceTransport(
            settings.microservice, settings.request, credentials, transport=transport,
        )
        self._cache = KeyCache(
            client_factory or collector_client_factory(settings.collector),
            on_evict=on_evict,
        )
        self._retry = RetryPolicy(settings.retry)
        self._closed = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> KeyRetriever:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    def refresh_all(self) -> bool:
        """Re-synchronise the cache from the microservice's list endpoint.

        On any failure the cache keeps its last known contents.

        Returns:
            ``True`` if a list was fetched and applied (an empty list
            counts), ``False`` otherwise. A list that arrives after
            :meth:`close` is discarded and reported as ``False``.

        Raises:
            RetryInterrupted: If the retriever is closed during a retry wait.
        """

        def fetch() -> Optional[int]:
            body = self._transport.list_all()
            if body is None:
                return None
            applied = self._cache.bulk_upsert(decode_many(body))
            if self._cache.closed:
                return None
            return applied

        applied = self._run(fetch, "Refreshing organization keys")
        if applied is None:
            return False
        logger.info("Refreshed %d organization key(s)", applied)
        return True

    def lookup(self, organization_id: str) -> Optional[str]:
        """Fetch *organization_id*'s key from the microservice.

        Always performs a live call; the cache is updated with the result
        but never consulted first.

        Returns:
            The key, or ``None`` if it could not be retrieved.

        Raises:
            RetryInterrupted: If the retriever is closed during a retry wait.
        """

        def fetch() -> Optional[str]:
            body = self._transport.detail(organization_id)
            if body is None:
                return None
            entry = decode_one(body)
            if not self._cache.upsert(entry):
                return None
            return entry.service_key

        key = self._run(fetch, f"Fetching key for organization {organization_id}")
        if key is not None:
            logger.debug("Organization %s uses key %s", organization_id, mask_key(key))
        return key

    def remove_key(self, organization_id: str) -> None:
        """Forget *organization_id*; its client is kept while other organizations share the key."""
        self._cache.remove(organization_id)

    def get_key_map(self) -> dict[str, str]:
        """Return a snapshot of the organization to key map."""
        return self._cache.snapshot()

    def get_client(self, service_key: str) -> Optional[Any]:
        """Return the cached client handle for *service_key*, if any."""
        return self._cache.lookup_client(service_key)

    @property
    def cache(self) -> KeyCache:
        return self._cache

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Cancel pending retry waits, evict every client, and wipe the credentials.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._retry.cancel()
        self._cache.close()
        self._credentials.clear()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _run(self, fetch: Callable[[], Any], description: str) -> Any:
        """Run *fetch* under the retry policy, containing every terminal failure."""
        try:
            return self._retry.run(fetch, description)
        except TransportError:
            logger.error("%s: retries exhausted, keeping cached keys", description)
        except (DecodeError, ConfigError, ClientFactoryError) as exc:
            logger.error("%s: %s", description, exc)
        return None
