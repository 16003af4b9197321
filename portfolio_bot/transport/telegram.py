"""
Telegram Bot API transport.

Every call is a single bounded HTTP round trip. Failures (network errors,
timeouts, non-JSON bodies, "ok": false) are logged and reported as None so the
router can decide what a failed delivery means for the request.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .interface import ChatTransport

logger = logging.getLogger(__name__)


class TelegramTransport(ChatTransport):
    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = f"{api_base.rstrip('/')}/bot{token}"
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, method: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            response = await self.client.post(f"{self.base_url}/{method}", json=payload)
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Telegram request '{method}' failed: {e!r}")
            return None
        except ValueError:
            logger.error(f"Telegram returned a non-JSON body for '{method}': {response.text[:200]}")
            return None

        if result.get("ok") is True:
            return result

        error_code = result.get("error_code", "N/A")
        description = result.get("description", "No description provided")
        logger.error(f"Telegram API Error [{error_code}] on '{method}': {description}")
        return None

    async def answer_callback(self, query_id: str, text: Optional[str] = None) -> bool:
        payload: Dict[str, Any] = {"callback_query_id": query_id}
        if text:
            payload["text"] = text
        return await self.send("answerCallbackQuery", payload) is not None

    async def aclose(self):
        await self.client.aclose()
