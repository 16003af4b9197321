"""
Schemas - Inbound events, callback commands and structured LLM outputs.
"""

from portfolio_bot.schemas.commands import CallbackCommand, decode_command, parse_payload
from portfolio_bot.schemas.events import CallbackQuery, InboundEvent, TextMessage
from portfolio_bot.schemas.extraction import DateTimeExtraction, ExtractionStatus

__all__ = [
    "CallbackCommand",
    "decode_command",
    "parse_payload",
    "CallbackQuery",
    "InboundEvent",
    "TextMessage",
    "DateTimeExtraction",
    "ExtractionStatus",
]
