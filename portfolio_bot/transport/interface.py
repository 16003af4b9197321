from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ChatTransport(ABC):
    """
    Abstract Base Class interface that defines the contract for the chat
    transport (Telegram Bot API, a test double, ...).
    """

    @abstractmethod
    async def send(self, method: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Calls a transport method (sendMessage, editMessageText, deleteMessage, ...).
        Returns the decoded response, or None on any failure.
        """
        pass

    @abstractmethod
    async def answer_callback(self, query_id: str, text: Optional[str] = None) -> bool:
        """Stops the loading indicator of an inline button press."""
        pass
