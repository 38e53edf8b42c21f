"""
Authentica Connector
Sends and verifies SMS one-time passwords through api.authentica.sa

Behaviour without a real gateway:
- OTP_TEST_PHONE (966500000000) never hits the API and accepts 1234 / 123456
- with no AUTHENTICA_API_KEY every phone is simulated and accepts 123456
"""
import logging
from typing import Optional

import httpx

from app.connectors.gateway import GatewayResponse, error_message
from app.core.config import settings

logger = logging.getLogger(__name__)

TEST_OTP_CODES = {"1234", "123456"}
SIMULATED_OTP_CODE = "123456"


class AuthenticaConnector:
    """
    Connector for the Authentica OTP API (v2)

    Phones are expected in international form (9665XXXXXXXX).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        test_phone: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.AUTHENTICA_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.AUTHENTICA_BASE_URL).rstrip("/")
        self.test_phone = test_phone or settings.OTP_TEST_PHONE
        self._transport = transport

    @property
    def headers(self) -> dict:
        return {
            "X-Authorization": self.api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: dict, failure_message: str) -> GatewayResponse:
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            try:
                response = await client.post(f"{self.base_url}{path}", json=payload, headers=self.headers)
                try:
                    data = response.json()
                except ValueError:
                    data = {"raw": response.text}

                if response.is_error:
                    logger.error(f"Authentica API error {response.status_code} on {path}: {response.text}")
                    return GatewayResponse(success=False, message=error_message(data, "API Error"), data=data)

                return GatewayResponse(success=True, message=error_message(data, "") or None, data=data)

            except httpx.HTTPError as e:
                logger.error(f"Authentica request error on {path}: {e}")
                return GatewayResponse(success=False, message=str(e) or failure_message)

    async def send_otp(self, phone: str) -> GatewayResponse:
        """Ask Authentica to text an OTP to `phone`"""
        if phone == self.test_phone:
            logger.info("Authentica: test number, OTP send skipped")
            return GatewayResponse(success=True, message="Test OTP sent successfully")

        if not self.api_key:
            logger.warning("Authentica API key not set, using simulation")
            return GatewayResponse(success=True, message="DEV: OTP sent successfully (simulated)")

        return await self._post(
            "/send-otp",
            {"phone": phone, "method": "sms", "template_id": 1},
            "Failed to send OTP",
        )

    async def verify_otp(self, phone: str, otp: str) -> GatewayResponse:
        """Check the OTP the user typed"""
        if phone == self.test_phone:
            if otp in TEST_OTP_CODES:
                return GatewayResponse(success=True, message="Test OTP verified successfully")
            return GatewayResponse(success=False, message="Invalid Test OTP (use 1234)")

        if not self.api_key:
            logger.warning("Authentica API key not set, using simulation")
            if otp == SIMULATED_OTP_CODE:
                return GatewayResponse(success=True, message="DEV: OTP verified successfully (simulated)")
            return GatewayResponse(success=False, message="DEV: Invalid OTP (simulation uses 123456)")

        return await self._post(
            "/verify-otp",
            {"phone": phone, "otp": otp},
            "Invalid OTP or verification failed",
        )
