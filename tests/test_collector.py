"""Tests for the default per-key collector client handles."""

from __future__ import annotations

import json

import httpx

from moesifkeys.client import (
    APPLICATION_ID_HEADER,
    close_collector_client,
    collector_client_factory,
    create_collector_client,
)
from moesifkeys.models import CollectorConfig, KeyEntry, Settings
from moesifkeys.retriever import KeyRetriever


class TestCreateCollectorClient:
    def test_client_carries_key_header_and_base_url(self) -> None:
        client = create_collector_client("k1", CollectorConfig())
        try:
            assert client.headers[APPLICATION_ID_HEADER] == "k1"
            assert str(client.base_url).startswith("https://api.moesif.net")
        finally:
            client.close()

    def test_factory_builds_distinct_clients(self) -> None:
        factory = collector_client_factory(CollectorConfig(base_url="https://collector.example.com"))
        first, second = factory("k1"), factory("k2")
        try:
            assert first is not second
            assert first.headers[APPLICATION_ID_HEADER] == "k1"
            assert second.headers[APPLICATION_ID_HEADER] == "k2"
        finally:
            first.close()
            second.close()


class TestCloseCollectorClient:
    def test_closes_httpx_client(self) -> None:
        client = create_collector_client("k1", CollectorConfig())
        close_collector_client("k1", client)
        assert client.is_closed

    def test_ignores_handles_without_close(self) -> None:
        close_collector_client("k1", object())


class TestDefaultHandles:
    def test_retriever_builds_and_closes_collector_clients(self, settings: Settings, credentials) -> None:
        body = json.dumps([KeyEntry(organization_id="org1", service_key="k1").model_dump(by_alias=True)])
        mock = httpx.MockTransport(lambda request: httpx.Response(200, text=body))
        retriever = KeyRetriever(settings, credentials, transport=mock)

        assert retriever.refresh_all() is True
        client = retriever.get_client("k1")
        assert isinstance(client, httpx.Client)
        assert client.headers[APPLICATION_ID_HEADER] == "k1"

        retriever.close()
        assert client.is_closed
