"""Tests for the key microservice transport."""

from __future__ import annotations

import base64
import logging

import httpx
import pytest

from moesifkeys.auth import Credentials
from moesifkeys.client import MicroserviceTransport
from moesifkeys.exceptions import ConfigError, TransportError
from moesifkeys.models import MicroserviceConfig, RequestConfig, Settings


def _transport(
    settings: Settings,
    credentials: Credentials,
    mock: httpx.BaseTransport,
    base_url: str | None = None,
) -> MicroserviceTransport:
    config = settings.microservice
    if base_url is not None:
        config = MicroserviceConfig(base_url=base_url)
    return MicroserviceTransport(config, RequestConfig(), credentials, transport=mock)


class TestRequestShape:
    def test_list_all_hits_list_endpoint(self, settings, credentials, make_transport) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        assert _transport(settings, credentials, mock).list_all() == "[]"

        request = mock.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://keys.example.com/moesif/keys"

    def test_detail_sends_org_query_param(self, settings, credentials, make_transport) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="{}"))
        _transport(settings, credentials, mock).detail("org 42")

        request = mock.requests[0]
        assert request.url.path == "/moesif/key"
        assert request.url.params["org_id"] == "org 42"

    def test_headers_carry_basic_auth_and_content_type(
        self, settings, credentials, make_transport
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        _transport(settings, credentials, mock).list_all()

        headers = mock.requests[0].headers
        expected = base64.b64encode(b"analytics:s3cret").decode("ascii")
        assert headers["Authorization"] == f"Basic {expected}"
        assert headers["Content-Type"] == "application/json"

    def test_read_timeout_is_separate_from_connect_timeout(
        self, settings, credentials, make_transport
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        request_config = RequestConfig(connect_timeout=3.0, read_timeout=25.0)
        MicroserviceTransport(
            settings.microservice, request_config, credentials, transport=mock
        ).list_all()

        timeout = mock.requests[0].extensions["timeout"]
        assert timeout["read"] == 25.0
        assert timeout["connect"] == 3.0
        assert timeout["write"] == 3.0
        assert timeout["pool"] == 3.0

    def test_trailing_slash_in_base_url(self, settings, credentials, make_transport) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        _transport(settings, credentials, mock, base_url="https://keys.example.com/").list_all()
        assert str(mock.requests[0].url) == "https://keys.example.com/moesif/keys"


class TestStatusHandling:
    @pytest.mark.parametrize("status", [200, 201, 202])
    def test_2xx_returns_body(self, settings, credentials, make_transport, status) -> None:
        mock = make_transport(lambda request: httpx.Response(status, text="body"))
        assert _transport(settings, credentials, mock).list_all() == "body"

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 429])
    def test_4xx_returns_none_and_warns(
        self, settings, credentials, make_transport, status, caplog
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(status))
        with caplog.at_level(logging.WARNING, logger="moesifkeys"):
            assert _transport(settings, credentials, mock).detail("org1") is None
        assert str(status) in caplog.text

    @pytest.mark.parametrize("status", [500, 502, 503, 302])
    def test_other_status_raises_transport_error(
        self, settings, credentials, make_transport, status
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(status))
        with pytest.raises(TransportError) as exc_info:
            _transport(settings, credentials, mock).list_all()
        assert exc_info.value.status_code == status

    def test_network_error_raises_transport_error(
        self, settings, credentials, make_transport
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        mock = make_transport(handler)
        with pytest.raises(TransportError) as exc_info:
            _transport(settings, credentials, mock).list_all()
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_corrupt_content_encoding_raises_transport_error(
        self, settings, credentials, make_transport
    ) -> None:
        mock = make_transport(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip"
            )
        )
        with pytest.raises(TransportError) as exc_info:
            _transport(settings, credentials, mock).detail("org1")
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    def test_timeout_raises_transport_error(self, settings, credentials, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        mock = make_transport(handler)
        with pytest.raises(TransportError):
            _transport(settings, credentials, mock).detail("org1")


class TestConfigurationErrors:
    @pytest.mark.parametrize("base_url", ["keys.example.com", "ftp://keys.example.com", "https://"])
    def test_malformed_url_raises_config_error_without_calling(
        self, settings, credentials, make_transport, base_url
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        with pytest.raises(ConfigError):
            _transport(settings, credentials, mock, base_url=base_url).list_all()
        assert mock.call_count == 0

    def test_cleared_credentials_raise_config_error(
        self, settings, credentials, make_transport
    ) -> None:
        mock = make_transport(lambda request: httpx.Response(200, text="[]"))
        credentials.clear()
        with pytest.raises(ConfigError):
            _transport(settings, credentials, mock).list_all()
        assert mock.call_count == 0
