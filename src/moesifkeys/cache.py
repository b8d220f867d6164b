"""Thread-safe organization to key cache with shared client handles.

:class:`KeyCache` keeps two maps:

- ``organization_id -> service_key``
- ``service_key -> client handle``

Several organizations may share one service key, so the cache counts how
many organizations reference each key and drops a client handle only when
that count reaches zero. Every organization present in the first map always
has its key present in the second; this holds between any two operations,
including in the middle of :meth:`KeyCache.bulk_upsert`.

All public methods take one internal :class:`threading.RLock`. Client
construction happens under the lock so that "check for a handle, then
create it" cannot interleave with a removal. Eviction callbacks run after
the lock has been released. After :meth:`KeyCache.close` every upsert is
dropped, so no handle outlives the cache.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any, Callable, Iterable, Optional

from moesifkeys.exceptions import ClientFactoryError
from moesifkeys.models import KeyEntry

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]
EvictCallback = Callable[[str, Any], None]


class KeyCache:
    """In-memory dual map from organization to key to client handle.

    Args:
        client_factory: Builds the handle for a service key the first time
            any organization maps to it.
        on_evict: Called with ``(service_key, handle)`` after a handle has
            been dropped because no organization references it any more.

    Example::

        cache = KeyCache(lambda key: object())
        cache.upsert(KeyEntry(organization_id="org1", service_key="k1"))
        cache.upsert(KeyEntry(organization_id="org2", service_key="k1"))
        assert cache.lookup_client("k1") is not None
        cache.remove("org1")
        assert cache.lookup_client("k1") is not None  # org2 still uses k1
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        on_evict: Optional[EvictCallback] = None,
    ) -> None:
        self._client_factory = client_factory
        self._on_evict = on_evict
        self._lock = threading.RLock()
        self._org_to_key: dict[str, str] = {}
        self._key_to_client: dict[str, Any] = {}
        self._key_refs: Counter[str] = Counter()
        self._closed = False

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def upsert(self, entry: KeyEntry) -> bool:
        """Map ``entry.organization_id`` to ``entry.service_key``.

        A handle is created for the key only if none exists yet; an existing
        handle is never replaced. When the organization previously mapped to
        a different key, that key loses one reference and its handle is
        evicted if nothing else uses it.

        Returns:
            ``False`` if the cache is closed and the entry was dropped.

        Raises:
            ClientFactoryError: If the handle for a new key cannot be built.
                The cache is left unchanged.
        """
        with self._lock:
            if self._closed:
                logger.debug(
                    "Cache closed, dropping key for organization %s", entry.organization_id
                )
                return False
            evicted = self._apply(entry)
        self._notify_evicted(evicted)
        return True

    def bulk_upsert(self, entries: Iterable[KeyEntry]) -> int:
        """Apply *entries* one by one in iteration order.

        Each entry is applied atomically on its own; concurrent readers may
        observe a partially applied batch, never a partially applied entry.
        A later entry for the same organization overwrites an earlier one.

        Returns:
            The number of entries applied. Entries arriving after
            :meth:`close` are dropped and not counted.
        """
        count = 0
        for entry in entries:
            if self.upsert(entry):
                count += 1
        return count

    def remove(self, organization_id: str) -> Optional[str]:
        """Forget *organization_id*.

        The key's client handle is dropped only when no other organization
        still maps to the same key.

        Returns:
            The key the organization mapped to, or ``None`` if it was unknown.
        """
        with self._lock:
            service_key = self._org_to_key.pop(organization_id, None)
            evicted = self._release(service_key) if service_key is not None else []
        self._notify_evicted(evicted)
        return service_key

    def clear(self) -> None:
        """Drop every mapping and evict every handle."""
        with self._lock:
            evicted = list(self._key_to_client.items())
            self._org_to_key.clear()
            self._key_to_client.clear()
            self._key_refs.clear()
        self._notify_evicted(evicted)

    def close(self) -> None:
        """Evict every handle and refuse all later upserts.

        A fetch that was already in flight when the cache closed has its
        entries dropped, so no handle is built after this returns.
        """
        with self._lock:
            self._closed = True
        self.clear()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def lookup_key(self, organization_id: str) -> Optional[str]:
        with self._lock:
            return self._org_to_key.get(organization_id)

    def lookup_client(self, service_key: str) -> Optional[Any]:
        with self._lock:
            return self._key_to_client.get(service_key)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the organization to key map."""
        with self._lock:
            return dict(self._org_to_key)

    def stats(self) -> dict[str, int]:
        """Return counts of organizations, client handles, and shared keys."""
        with self._lock:
            return {
                "organizations": len(self._org_to_key),
                "clients": len(self._key_to_client),
                "shared_keys": sum(1 for refs in self._key_refs.values() if refs > 1),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._org_to_key)

    def __contains__(self, organization_id: object) -> bool:
        with self._lock:
            return organization_id in self._org_to_key

    # ------------------------------------------------------------------ #
    # Private helpers (caller holds the lock)
    # ------------------------------------------------------------------ #

    def _apply(self, entry: KeyEntry) -> list[tuple[str, Any]]:
        org_id, service_key = entry.organization_id, entry.service_key
        previous = self._org_to_key.get(org_id)
        if previous == service_key:
            return []

        # Build the handle before touching the maps so a failing factory
        # leaves the cache as it was.
        if service_key not in self._key_to_client:
            try:
                client = self._client_factory(service_key)
            except Exception as exc:
                raise ClientFactoryError(
                    f"Could not build a client for key {mask_key(service_key)}: {exc}"
                ) from exc
            self._key_to_client[service_key] = client
            logger.debug("Created client for key %s", mask_key(service_key))

        self._org_to_key[org_id] = service_key
        self._key_refs[service_key] += 1
        if previous is None:
            return []
        return self._release(previous)

    def _release(self, service_key: str) -> list[tuple[str, Any]]:
        self._key_refs[service_key] -= 1
        if self._key_refs[service_key] > 0:
            return []
        del self._key_refs[service_key]
        client = self._key_to_client.pop(service_key, None)
        if client is None:
            return []
        return [(service_key, client)]

    def _notify_evicted(self, evicted: list[tuple[str, Any]]) -> None:
        for service_key, client in evicted:
            logger.debug("Evicted client for key %s", mask_key(service_key))
            if self._on_evict is not None:
                self._on_evict(service_key, client)


def mask_key(service_key: str) -> str:
    """Return a log-safe form of *service_key* showing only its edges."""
    if len(service_key) <= 8:
        return "****"
    return f"{service_key[:4]}...{service_key[-4:]}"
