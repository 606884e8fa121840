"""
Unit tests for the registrar HTTP client.

Tests cover:
  - Drop-list parsing and auth headers
  - Non-2xx answers returned as failed results
  - Transport faults and unparsable bodies raised as classified errors
  - Order submission payload and response handling
  - Availability checks
"""

import json
from datetime import date

import httpx
import pytest

from app.core.exceptions import RegistrarResponseError, RegistrarTransportError
from app.domain.models import OrderRequest
from app.infrastructure.registrar.client import RegistrarClient, parse_drop_list


def _client(handler) -> RegistrarClient:
    return RegistrarClient(
        base_url="https://registrar.test/api",
        api_key="key-1",
        api_secret="secret-1",
        reseller_id="R-9",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def _order() -> OrderRequest:
    return OrderRequest(domain_name="shop.au", registrant_contact_id="C-1")


@pytest.mark.asyncio
class TestFetchDropList:
    """Tests for RegistrarClient.fetch_drop_list()."""

    async def test_successful_fetch(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json=[
                {"domainName": "Shop.AU", "dropDate": "2024-05-01T00:00:00", "tld": ".au"},
                {"domainName": "pets.com.au", "dropDate": "2024-05-02"},
            ])

        result = await _client(handler).fetch_drop_list()

        assert result.success is True
        assert [d.domain_name for d in result.domains] == ["shop.au", "pets.com.au"]
        assert result.domains[0].drop_date == date(2024, 5, 1)
        assert result.domains[1].tld == ".com.au"
        assert seen["url"] == "https://registrar.test/api/domains/droplist/au"
        assert seen["headers"]["X-Api-Key"] == "key-1"
        assert seen["headers"]["X-Api-Secret"] == "secret-1"
        assert seen["headers"]["X-Reseller-Id"] == "R-9"

    async def test_server_error_returns_failed_result(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        result = await _client(handler).fetch_drop_list()

        assert result.success is False
        assert result.domains == []
        assert "503" in result.error_message
        assert "maintenance" in result.error_message

    async def test_timeout_raises_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RegistrarTransportError) as exc_info:
            await _client(handler).fetch_drop_list()

        assert "timed out" in exc_info.value.message.lower()

    async def test_connection_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(RegistrarTransportError):
            await _client(handler).fetch_drop_list()

    async def test_invalid_json_raises_response_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>not json</html>")

        with pytest.raises(RegistrarResponseError):
            await _client(handler).fetch_drop_list()


class TestParseDropList:
    """Tests for drop-list payload parsing."""

    def test_accepts_wrapped_payload_and_skips_bad_entries(self):
        payload = {"data": [
            {"domain_name": "good.au", "drop_date": "2024-01-02"},
            {"domain_name": "   ", "drop_date": "2024-01-02"},
            {"domain_name": "baddate.au", "drop_date": "not-a-date"},
            "garbage",
        ]}

        candidates = parse_drop_list(payload)

        assert [c.domain_name for c in candidates] == ["good.au"]

    def test_null_data_falls_back_to_domains(self):
        payload = {"data": None, "domains": [{"domainName": "shop.au", "dropDate": "2024-01-02"}]}

        assert [c.domain_name for c in parse_drop_list(payload)] == ["shop.au"]

    def test_empty_data_list_is_an_empty_drop_list(self):
        payload = {"data": [], "domains": [{"domainName": "shop.au", "dropDate": "2024-01-02"}]}

        assert parse_drop_list(payload) == []

    def test_rejects_non_list_payload(self):
        with pytest.raises(RegistrarResponseError):
            parse_drop_list({"unexpected": True})


@pytest.mark.asyncio
class TestSubmitOrder:
    """Tests for RegistrarClient.submit_order()."""

    async def test_successful_order(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"orderId": 4711, "status": "Submitted"})

        response = await _client(handler).submit_order(_order())

        assert response.success is True
        assert response.order_id == "4711"
        assert response.status == "Submitted"
        assert captured["method"] == "POST"
        assert captured["path"] == "/api/domains/register"
        assert captured["body"]["DomainName"] == "shop.au"
        assert captured["body"]["RegistrantContactId"] == "C-1"
        assert captured["body"]["Period"] == 1

    async def test_rejected_order_is_business_failure(self):
        def handler(request):
            return httpx.Response(400, text="Domain not available")

        response = await _client(handler).submit_order(_order())

        assert response.success is False
        assert response.error_message == "API returned status code 400: Domain not available"

    async def test_explicit_failure_body(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "errorMessage": "Insufficient funds"})

        response = await _client(handler).submit_order(_order())

        assert response.success is False
        assert response.error_message == "Insufficient funds"

    async def test_empty_body_counts_as_success(self):
        def handler(request):
            return httpx.Response(200)

        response = await _client(handler).submit_order(_order())

        assert response.success is True
        assert response.order_id is None

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("Connection reset", request=request)

        with pytest.raises(RegistrarTransportError):
            await _client(handler).submit_order(_order())


@pytest.mark.asyncio
class TestCheckAvailability:
    """Tests for RegistrarClient.check_availability()."""

    async def test_available(self):
        def handler(request):
            assert request.url.path == "/api/domains/check/shop.au"
            return httpx.Response(200, json={"available": True})

        assert await _client(handler).check_availability("shop.au") is True

    async def test_string_true_is_available(self):
        def handler(request):
            return httpx.Response(200, json={"available": "TRUE"})

        assert await _client(handler).check_availability("shop.au") is True

    async def test_failure_means_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        assert await _client(handler).check_availability("shop.au") is False
