"""
Country detection and per-country Pro pricing.
"""
import ipaddress
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from jobhunter.core import config
from jobhunter.core.rate_limit import get_client_ip

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "US"

# Headers set by common edge proxies, checked before any lookup
COUNTRY_HEADERS = ("CF-IPCountry", "X-Vercel-IP-Country", "X-Country-Code")


@dataclass
class Pricing:
    country: str
    currency: str
    amount: float
    symbol: str

    def to_dict(self) -> dict:
        return {
            "country": self.country,
            "currency": self.currency,
            "amount": self.amount,
            "symbol": self.symbol,
            "display": f"{self.symbol}{self.amount:g}",
        }


def pricing_for_country(country: Optional[str]) -> Pricing:
    country = (country or DEFAULT_COUNTRY).upper()
    if country == "IN":
        return Pricing(country, "INR", config.PRO_PRICE_INR, "₹")
    return Pricing(country, "USD", config.PRO_PRICE_USD, "$")


def _is_private(ip: str) -> bool:
    """Non-routable or unparseable addresses ("testclient", "unknown") never reach the lookup service."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return True
    return address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified


async def lookup_country(ip: str, http_client: Optional[httpx.AsyncClient] = None) -> str:
    """Resolve an IP to an ISO country code; DEFAULT_COUNTRY on any failure."""
    if _is_private(ip):
        return DEFAULT_COUNTRY

    client = http_client or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
    try:
        response = await client.get(config.GEOIP_URL.format(ip=ip))
        code = response.text.strip().upper()
        if response.status_code == 200 and len(code) == 2 and code.isalpha():
            return code
        logger.warning(f"Geolocation lookup unusable: status={response.status_code}")
    except httpx.HTTPError as e:
        logger.warning(f"Geolocation lookup failed: {e}")
    finally:
        if http_client is None:
            await client.aclose()
    return DEFAULT_COUNTRY


async def detect_country(request: Request, http_client: Optional[httpx.AsyncClient] = None) -> str:
    for header in COUNTRY_HEADERS:
        value = request.headers.get(header)
        if value and len(value.strip()) == 2:
            return value.strip().upper()
    return await lookup_country(get_client_ip(request), http_client)
