"""
API Layer - Request/Response Schemas

Pydantic models for the Telegram webhook envelope and the session resource.
Only the fields the bot reads are declared; everything else is ignored.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.events import CallbackQuery, InboundEvent, TextMessage
from ..services.chat import UserProfile


class TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramUser(TelegramModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(TelegramModel):
    id: int


class TelegramMessage(TelegramModel):
    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None


class TelegramCallbackQuery(TelegramModel):
    id: str
    from_user: TelegramUser = Field(alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = None


class TelegramUpdate(TelegramModel):
    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[TelegramCallbackQuery] = None

    def to_event(self) -> Optional[InboundEvent]:
        """
        The transport-neutral event, or None for update types the bot does
        not handle (edited messages, stickers, inline queries, ...).
        """
        if self.callback_query is not None:
            query = self.callback_query
            message = query.message
            # Buttons without data still need their spinner stopped.
            # An empty payload is acknowledged and answered as expired.
            return CallbackQuery(
                chat_id=message.chat.id if message else query.from_user.id,
                raw_payload=query.data or "",
                query_id=query.id,
                originating_message_id=message.message_id if message else None,
            )

        if self.message is not None and self.message.text is not None:
            return TextMessage(
                chat_id=self.message.chat.id,
                text=self.message.text,
                originating_message_id=self.message.message_id,
            )
        return None

    def sender_profile(self) -> UserProfile:
        if self.callback_query is not None:
            user = self.callback_query.from_user
        elif self.message is not None:
            user = self.message.from_user
        else:
            user = None

        if user is None:
            return UserProfile()
        return UserProfile(
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
        )


class WebhookResponse(BaseModel):
    status: Literal["ok", "failed", "ignored"]


class SessionRead(BaseModel):
    identity: int
    status: Literal["AT_NODE", "IN_STEP"]
    current_node: str
    progress: Optional[list[dict[str, Any]]] = None
    privileged: bool
    updated_at: datetime
