"""
Expo Push Connector
Delivers push notifications to the customer and merchant apps
"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

# Expo accepts at most 100 messages per request
CHUNK_SIZE = 100

_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")


def is_expo_push_token(token: Any) -> bool:
    return isinstance(token, str) and bool(_TOKEN_PATTERN.match(token))


def chunk_messages(messages: List[dict], size: int = CHUNK_SIZE) -> List[List[dict]]:
    return [messages[i:i + size] for i in range(0, len(messages), size)]


class ExpoPushConnector:
    """Connector for the Expo push service"""

    def __init__(self, push_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.push_url = push_url or settings.EXPO_PUSH_URL
        self._transport = transport

    @staticmethod
    def build_messages(tokens: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> List[dict]:
        """One message per valid token; invalid tokens are logged and skipped"""
        messages = []
        for token in tokens:
            if not is_expo_push_token(token):
                logger.error(f"Invalid Expo push token: {token}")
                continue
            messages.append({
                "to": token,
                "sound": "default",
                "title": title,
                "body": body,
                "data": data or {},
            })
        return messages

    async def send(self, tokens: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> int:
        """
        Send one notification to every token

        Returns:
            Number of push tickets Expo handed back. Failed chunks are logged
            and skipped, never raised.
        """
        messages = self.build_messages(tokens, title, body, data)
        if not messages:
            return 0

        tickets = 0
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            for chunk in chunk_messages(messages):
                try:
                    response = await client.post(
                        self.push_url,
                        json=chunk,
                        headers={"Accept": "application/json", "Content-Type": "application/json"},
                    )
                    response.raise_for_status()
                    tickets += len(response.json().get("data", []))
                except httpx.HTTPStatusError as e:
                    logger.error(f"Expo push error: {e.response.status_code} - {e.response.text}")
                except (httpx.HTTPError, ValueError) as e:
                    logger.error(f"Expo push request error: {e}")

        logger.info(f"Expo push: sent {tickets} messages")
        return tickets
