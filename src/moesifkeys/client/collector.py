"""Per-key Moesif collector clients.

Each distinct Moesif application key gets one :class:`httpx.Client` bound to
the collector API with the key in the ``X-Moesif-Application-Id`` header.
:class:`~moesifkeys.cache.KeyCache` builds these lazily through
:func:`collector_client_factory` and closes them with
:func:`close_collector_client` once no organization references the key.
"""

from __future__ import annotations

from typing import Callable

import httpx

from moesifkeys.models import CollectorConfig

APPLICATION_ID_HEADER = "X-Moesif-Application-Id"


def create_collector_client(service_key: str, config: CollectorConfig) -> httpx.Client:
    """Build a collector client authenticated with *service_key*."""
    return httpx.Client(
        base_url=config.base_url,
        timeout=config.timeout,
        headers={
            APPLICATION_ID_HEADER: service_key,
            "Content-Type": "application/json",
        },
    )


def collector_client_factory(config: CollectorConfig) -> Callable[[str], httpx.Client]:
    """Return a one-argument factory suitable for :class:`~moesifkeys.cache.KeyCache`."""

    def factory(service_key: str) -> httpx.Client:
        return create_collector_client(service_key, config)

    return factory


def close_collector_client(service_key: str, client: object) -> None:
    """Eviction callback: close *client* if it exposes ``close()``."""
    close = getattr(client, "close", None)
    if callable(close):
        close()
