"""
Cashfree Payment Gateway service (PG REST API, version 2023-08-01).

Builds order-creation and order-status requests, normalizes responses and
turns every non-2xx reply into a ``GatewayError``. Nothing is retried here;
the HTTP handler decides what the client sees.
"""
import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from jobhunter.core import config
from jobhunter.core.errors import GatewayError, ValidationError
from jobhunter.core.logging_config import sanitize_log_data

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://sandbox.cashfree.com/pg"
PRODUCTION_URL = "https://api.cashfree.com/pg"

# Cashfree order_status -> local order status
ORDER_STATUS_MAP = {
    "PAID": "confirmed",
    "ACTIVE": "pending",
    "EXPIRED": "failed",
    "TERMINATED": "failed",
    "TERMINATION_REQUESTED": "failed",
}


@dataclass
class CustomerDetails:
    customer_id: str
    customer_email: str
    customer_phone: str
    customer_name: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "customer_id": self.customer_id,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "customer_name": self.customer_name,
        }


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def map_order_status(gateway_status: Optional[str]) -> str:
    return ORDER_STATUS_MAP.get((gateway_status or "").upper(), "pending")


class CashfreeClient:
    def __init__(
        self,
        app_id: Optional[str],
        secret_key: Optional[str],
        public_base_url: str,
        production: bool = False,
        api_version: str = "2023-08-01",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not app_id or not secret_key:
            raise ValidationError(
                "Cashfree credentials not configured. Set CASHFREE_APP_ID and CASHFREE_SECRET_KEY."
            )
        self.app_id = app_id
        self.secret_key = secret_key
        self.public_base_url = public_base_url.rstrip("/")
        self.base_url = PRODUCTION_URL if production else SANDBOX_URL
        self.api_version = api_version
        self._http = http_client

    @property
    def environment(self) -> str:
        return "production" if self.base_url == PRODUCTION_URL else "sandbox"

    def return_url(self, order_id: str) -> str:
        return f"{self.public_base_url}/api/payment/return?order_id={order_id}"

    def notify_url(self) -> str:
        return f"{self.public_base_url}/api/payment/webhook"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-client-id": self.app_id,
            "x-client-secret": self.secret_key,
            "x-api-version": self.api_version,
        }

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        endpoint = f"{self.base_url}{path}"
        client = self._http or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
        try:
            response = await client.request(method, endpoint, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Cashfree request failed: endpoint={endpoint}, error={e}")
            raise GatewayError("Cashfree", 503, str(e))
        finally:
            if self._http is None:
                await client.aclose()

        body = _parse_body(response)
        if response.status_code >= 400:
            logger.error("Cashfree API error response: %s", {
                "status": response.status_code,
                "endpoint": endpoint,
                "response": body,
                "request": sanitize_log_data(payload) if payload else None,
            })
            raise GatewayError("Cashfree", response.status_code, body)
        if not isinstance(body, dict):
            raise GatewayError("Cashfree", response.status_code, body)
        return body

    async def create_order(
        self,
        order_id: str,
        amount: float,
        currency: str,
        customer: CustomerDetails,
    ) -> dict:
        """
        Create a Cashfree order.

        Return and notify URLs always derive from the configured public base
        URL so the gateway calls back into this deployment.

        Returns:
            Gateway order dict (``order_id``, ``payment_session_id``, ``order_status`` ...)

        Raises:
            GatewayError: On any non-2xx response
        """
        payload = {
            "order_id": order_id,
            "order_amount": amount,
            "order_currency": currency,
            "customer_details": customer.to_payload(),
            "order_meta": {
                "return_url": self.return_url(order_id),
                "notify_url": self.notify_url(),
            },
        }
        logger.info(
            f"Creating Cashfree order: order_id={order_id}, amount={amount}, "
            f"currency={currency}, environment={self.environment}"
        )
        order = await self._request("POST", "/orders", payload)
        logger.info(
            f"Cashfree order created: order_id={order.get('order_id')}, "
            f"status={order.get('order_status')}"
        )
        return order

    async def get_order_status(self, order_id: str) -> dict:
        """
        Fetch a Cashfree order.

        Raises:
            GatewayError: On any non-2xx response
        """
        logger.info(f"Fetching Cashfree order status: order_id={order_id}")
        order = await self._request("GET", f"/orders/{order_id}")
        logger.info(f"Cashfree order status: order_id={order_id}, status={order.get('order_status')}")
        return order

    def verify_webhook(self, raw_body: bytes, timestamp: Optional[str], signature: Optional[str]) -> dict:
        """
        Verify a Cashfree webhook and return its parsed payload.

        Signature is base64(HMAC-SHA256(timestamp + raw body, secret key)).

        Raises:
            ValidationError: If headers are missing or the signature does not match
        """
        if not timestamp or not signature:
            raise ValidationError("Missing webhook signature headers")

        digest = hmac.new(
            self.secret_key.encode("utf-8"),
            timestamp.encode("utf-8") + raw_body,
            hashlib.sha256,
        ).digest()
        expected = base64.b64encode(digest).decode("utf-8")
        if not hmac.compare_digest(expected, signature):
            logger.warning("Cashfree webhook signature mismatch")
            raise ValidationError("Invalid webhook signature")

        try:
            return json.loads(raw_body)
        except ValueError:
            raise ValidationError("Invalid webhook payload")


def get_payment_gateway() -> CashfreeClient:
    """Dependency: Cashfree client built from configuration."""
    return CashfreeClient(
        config.CASHFREE_APP_ID,
        config.CASHFREE_SECRET_KEY,
        config.require_public_base_url(),
        production=config.CASHFREE_PRODUCTION,
        api_version=config.CASHFREE_API_VERSION,
    )
