"""Blocking HTTP transport for the key microservice.

This module provides :class:`MicroserviceTransport`, which performs exactly
one authenticated GET per call against either the *list* or the *detail*
endpoint and classifies the outcome:

- **2xx** -- the response body text is returned.
- **4xx** -- a warning is logged and ``None`` is returned. Client errors are
  not transient, so callers must not retry them.
- **anything else** -- :class:`~moesifkeys.exceptions.TransportError` is
  raised. Every :class:`httpx.RequestError` (network failures, timeouts,
  undecodable content encodings) is wrapped the same way. These are the retryable outcomes.

A malformed endpoint URL raises :class:`~moesifkeys.exceptions.ConfigError`
before any connection is attempted.

Every call opens its own :class:`httpx.Client` and closes it on every exit
path, so no connection outlives the call.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from moesifkeys.auth import Credentials
from moesifkeys.exceptions import ConfigError, TransportError
from moesifkeys.models import MicroserviceConfig, RequestConfig

logger = logging.getLogger(__name__)


class MicroserviceTransport:
    """Stateless GET client for the key microservice's two read endpoints.

    Args:
        config: Microservice location and endpoint paths.
        request: Read timeout and SSL verification settings.
        credentials: Basic-auth identity sent with every call.
        transport: Optional :class:`httpx.BaseTransport` handed to each
            per-call client. Tests pass an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: MicroserviceConfig,
        request: RequestConfig,
        credentials: Credentials,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._request = request
        self._credentials = credentials
        self._transport = transport

    @property
    def list_url(self) -> str:
        return self._config.base_url.rstrip("/") + self._config.list_path

    @property
    def detail_url(self) -> str:
        return self._config.base_url.rstrip("/") + self._config.detail_path

    def list_all(self) -> Optional[str]:
        """Fetch every organization's key as a JSON array body.

        Returns:
            The body text on 2xx, or ``None`` on 4xx.

        Raises:
            ConfigError: If the list URL is malformed.
            TransportError: On network failure or a retryable status.
        """
        return self._get(self.list_url)

    def detail(self, organization_id: str) -> Optional[str]:
        """Fetch a single organization's key as a JSON object body.

        Args:
            organization_id: Sent as the configured query parameter.

        Returns:
            The body text on 2xx, or ``None`` on 4xx.

        Raises:
            ConfigError: If the detail URL is malformed.
            TransportError: On network failure or a retryable status.
        """
        params = {self._config.org_query_param: organization_id}
        return self._get(self.detail_url, params)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> Optional[str]:
        target = _parse_url(url)
        headers = {
            "Authorization": self._credentials.basic_auth_header(),
            "Content-Type": self._config.content_type,
            "Accept": "application/json",
        }
        timeout = httpx.Timeout(
            self._request.connect_timeout, read=self._request.read_timeout
        )

        try:
            with httpx.Client(
                timeout=timeout,
                verify=self._request.verify_ssl,
                transport=self._transport,
            ) as client:
                response = client.get(target, params=params, headers=headers)
                body = response.text
        except httpx.RequestError as exc:
            raise TransportError(f"Calling {url} failed: {exc}") from exc

        status = response.status_code
        if 200 <= status < 300:
            return body
        if 400 <= status < 500:
            logger.warning("Key microservice returned %d for %s", status, url)
            return None
        raise TransportError(f"Key microservice returned {status} for {url}", status_code=status)


def _parse_url(url: str) -> httpx.URL:
    """Validate an endpoint URL, raising :class:`ConfigError` if it is unusable."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        logger.error("Malformed key microservice URL: %s", url)
        raise ConfigError(f"Malformed key microservice URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        logger.error("Malformed key microservice URL: %s", url)
        raise ConfigError(f"Malformed key microservice URL {url!r}")
    return parsed
