"""HTTP clients used by moesifkeys.

- :class:`MicroserviceTransport` -- blocking GETs against the key
  microservice's list and detail endpoints.
- :func:`create_collector_client` -- builds the per-key collector client
  handed out by :class:`~moesifkeys.cache.KeyCache`.
"""

from moesifkeys.client.collector import (
    APPLICATION_ID_HEADER,
    close_collector_client,
    collector_client_factory,
    create_collector_client,
)
from moesifkeys.client.transport import MicroserviceTransport

__all__ = [
    "APPLICATION_ID_HEADER",
    "MicroserviceTransport",
    "close_collector_client",
    "collector_client_factory",
    "create_collector_client",
]
