"""Shared test fixtures for moesifkeys.

Provides settings with a zero retry delay, throwaway credentials, a factory
for recording mock transports of the key microservice, and automatic reset
of the global output manager and log handlers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
import pytest

from moesifkeys.auth import Credentials
from moesifkeys.models import MicroserviceConfig, RetryConfig, Settings
from moesifkeys.output import reset_output

BASE_URL = "https://keys.example.com"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Any:
    """Reset the global OutputManager and the package log handlers after every test."""
    yield
    reset_output()
    logger = logging.getLogger("moesifkeys")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake microservice with 2 retries and no delay."""
    return Settings(
        microservice=MicroserviceConfig(base_url=BASE_URL),
        retry=RetryConfig(attempts=2, delay_seconds=0),
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials("analytics", "s3cret")


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Return a factory wrapping a request handler in a :class:`RecordingTransport`."""
    return RecordingTransport
