"""
Schemas - Inbound Events

The router processes exactly one of these per invocation. They are the
transport-neutral form of a webhook update, built by the ChatService.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class TextMessage:
    """A plain text message (typed text or a reply-keyboard button)."""
    chat_id: int
    text: str
    originating_message_id: Optional[int] = None


@dataclass(frozen=True)
class CallbackQuery:
    """
    An inline button press. raw_payload is the button's callback_data, a JSON
    object with exactly one top-level key naming the command.
    """
    chat_id: int
    raw_payload: str
    query_id: str
    originating_message_id: Optional[int] = None


InboundEvent = Union[TextMessage, CallbackQuery]
