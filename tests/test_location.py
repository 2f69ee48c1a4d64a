"""
Country detection and geo pricing.
"""
import asyncio

import httpx
import pytest

from jobhunter.services.location_service import DEFAULT_COUNTRY, lookup_country, pricing_for_country


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_pricing_for_india():
    pricing = pricing_for_country("in").to_dict()
    assert pricing == {"country": "IN", "currency": "INR", "amount": 999, "symbol": "₹", "display": "₹999"}


@pytest.mark.parametrize("country", ["US", "GB", None])
def test_pricing_elsewhere_is_usd(country):
    pricing = pricing_for_country(country)
    assert pricing.currency == "USD"
    assert pricing.to_dict()["display"] == "$29"


@pytest.mark.parametrize("ip", [
    "192.168.1.20",
    "172.20.0.5",
    "127.0.0.1",
    "169.254.10.1",
    "fd00::1",
    "fe80::1",
    "::1",
    "testclient",
    "unknown",
])
def test_private_ip_skips_lookup(ip):
    def handler(request):
        raise AssertionError("no lookup expected")

    assert asyncio.run(lookup_country(ip, mock_client(handler))) == DEFAULT_COUNTRY


def test_lookup_returns_country_code():
    def handler(request):
        assert "49.36.0.10" in str(request.url)
        return httpx.Response(200, text="in\n")

    assert asyncio.run(lookup_country("49.36.0.10", mock_client(handler))) == "IN"


@pytest.mark.parametrize("response", [
    httpx.Response(429, text="RateLimited"),
    httpx.Response(200, text="Undefined"),
])
def test_unusable_lookup_falls_back(response):
    assert asyncio.run(lookup_country("49.36.0.10", mock_client(lambda r: response))) == DEFAULT_COUNTRY


def test_lookup_transport_error_falls_back():
    def handler(request):
        raise httpx.ConnectTimeout("timed out")

    assert asyncio.run(lookup_country("49.36.0.10", mock_client(handler))) == DEFAULT_COUNTRY


def test_user_location_from_edge_header(client):
    response = client.get("/api/user-location", headers={"CF-IPCountry": "IN"})
    assert response.status_code == 200
    assert response.json()["currency"] == "INR"


def test_user_location_local_client_defaults_to_us(client):
    response = client.get("/api/user-location")
    assert response.json()["country"] == "US"
    assert response.json()["currency"] == "USD"
