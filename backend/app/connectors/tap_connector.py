"""
Tap Payments Connector
Creates hosted-checkout charges and reads their status back

Docs: https://developers.tap.company/reference/create-a-charge
"""
import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.connectors.gateway import GatewayResponse, error_message
from app.core.config import settings

logger = logging.getLogger(__name__)

STATEMENT_DESCRIPTOR = "Glorda Market"
CAPTURED = "CAPTURED"
CHARGE_ID_PATTERN = re.compile(r"^chg_[A-Za-z0-9_]+$")


def is_charge_id(value: str) -> bool:
    return bool(CHARGE_ID_PATTERN.match(value or ""))


class TapConnector:
    """
    Connector for Tap Payments API (v2)

    Handles:
    - Charge creation (3DS hosted checkout, every payment source)
    - Charge verification after the redirect back to the app
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        webhook_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = settings.TAP_SECRET_KEY if secret_key is None else secret_key
        self.base_url = (base_url or settings.TAP_BASE_URL).rstrip("/")
        self.webhook_url = webhook_url if webhook_url is not None else settings.TAP_WEBHOOK_URL
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _not_configured(self) -> GatewayResponse:
        logger.error("Tap secret key not set")
        return GatewayResponse(success=False, message="Tap Secret Key not configured")

    async def _request(self, method: str, path: str, payload: Optional[dict], failure_message: str) -> GatewayResponse:
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            try:
                response = await client.request(method, f"{self.base_url}{path}", json=payload, headers=self.headers)
                try:
                    data = response.json()
                except ValueError:
                    data = {"raw": response.text}

                if response.is_error:
                    logger.error(f"Tap API error {response.status_code} on {path}: {response.text}")
                    return GatewayResponse(
                        success=False,
                        status=data.get("status") if isinstance(data, dict) else None,
                        message=error_message(data, "Tap API Error"),
                        data=data,
                    )

                return GatewayResponse(success=True, status=data.get("status"), message=data.get("message"), data=data)

            except httpx.HTTPError as e:
                logger.error(f"Tap request error on {path}: {e}")
                return GatewayResponse(success=False, message=str(e) or failure_message)

    def build_charge_payload(
        self,
        amount: float,
        currency: str,
        customer: Dict[str, Any],
        order_id: str,
        redirect_url: str,
    ) -> dict:
        payload = {
            "amount": amount,
            "currency": currency,
            "threeDSecure": True,
            "save_card": False,
            "description": f"Order {order_id}",
            "statement_descriptor": STATEMENT_DESCRIPTOR,
            "metadata": {"order_id": order_id},
            "reference": {"transaction": order_id, "order": order_id},
            "customer": {
                "first_name": customer.get("first_name"),
                "last_name": customer.get("last_name"),
                "email": customer.get("email"),
                "phone": customer.get("phone"),
            },
            "source": {"id": "src_all"},
            "redirect": {"url": redirect_url},
        }
        if self.webhook_url:
            payload["post"] = {"url": self.webhook_url}
        return payload

    async def create_charge(
        self,
        amount: float,
        currency: str,
        customer: Dict[str, Any],
        order_id: str,
        redirect_url: str,
    ) -> GatewayResponse:
        """
        Create a hosted-checkout charge

        Returns:
            GatewayResponse whose data holds the charge, including
            data["transaction"]["url"] to redirect the customer to
        """
        if not self.is_configured:
            return self._not_configured()

        payload = self.build_charge_payload(amount, currency, customer, order_id, redirect_url)
        return await self._request("POST", "/charges", payload, "Failed to create Tap charge")

    async def verify_charge(self, charge_id: str) -> GatewayResponse:
        """Fetch a charge by ID; status CAPTURED means the payment went through"""
        if not is_charge_id(charge_id):
            return GatewayResponse(success=False, message="Invalid charge id")
        if not self.is_configured:
            return self._not_configured()

        return await self._request("GET", f"/charges/{charge_id}", None, "Failed to verify Tap charge")
