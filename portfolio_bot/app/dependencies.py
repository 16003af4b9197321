"""
Composition root for the webhook app.

Each factory builds one process-wide instance (lru_cache): repositories
selected by MENU_SOURCE / SESSION_STORE, the Telegram transport with its
pooled HTTP client, the date extractor and the ChatService that ties them
together. Tests replace them through app.dependency_overrides.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends

from ..config import settings
from ..llm.interface import LLMProvider
from ..llm.adapters.openai_adapter import OpenAIAdapter
from ..repositories.menu import MenuRepository, StaticMenuRepository, PostgresMenuRepository
from ..repositories.records import RecordStore, PostgresRecordStore
from ..repositories.session import SessionRepository, InMemorySessionRepository, PostgresSessionRepository
from ..services.chat import ChatService
from ..services.datetime_extractor import DateTimeExtractor
from ..transport.interface import ChatTransport
from ..transport.telegram import TelegramTransport

logger = logging.getLogger(__name__)


def get_shared_secret() -> str:
    return settings.SHARED_SECRET


# LLM Provider (Singleton)
# Without a key the bot still runs; only date extraction is unavailable.
@lru_cache()
def get_llm_provider() -> Optional[LLMProvider]:
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; date extraction is disabled.")
        return None
    return OpenAIAdapter(
        api_key=settings.OPENAI_API_KEY,
        model_name=settings.OPENAI_MODEL,
        timeout=settings.EXTRACTION_TIMEOUT,
    )


# Date/time extraction (Singleton)
@lru_cache()
def get_datetime_extractor(
    llm: Optional[LLMProvider] = Depends(get_llm_provider)
) -> DateTimeExtractor:
    return DateTimeExtractor(
        llm_provider=llm,
        timeout=settings.EXTRACTION_TIMEOUT,
        temperature=settings.LLM_TEMPERATURE,
    )


# Transport (Singleton): one pooled HTTP client per process
@lru_cache()
def get_transport() -> ChatTransport:
    return TelegramTransport(
        token=settings.BOT_TOKEN,
        api_base=settings.TELEGRAM_API_BASE,
        timeout=settings.TRANSPORT_TIMEOUT,
    )


# Menu Repository (Singleton)
@lru_cache()
def get_menu_repository() -> MenuRepository:
    if settings.MENU_SOURCE == "static":
        return StaticMenuRepository()
    return PostgresMenuRepository()


# Session Repository (Singleton)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_session_repository() -> SessionRepository:
    if settings.SESSION_STORE == "memory":
        return InMemorySessionRepository()
    return PostgresSessionRepository()


# Record Store (Singleton)
@lru_cache()
def get_record_store() -> RecordStore:
    return PostgresRecordStore()


# The Chat Service (Singleton Service)
@lru_cache()
def get_chat_service(
    session_repo: SessionRepository = Depends(get_session_repository),
    menu_repo: MenuRepository = Depends(get_menu_repository),
    transport: ChatTransport = Depends(get_transport),
    record_store: RecordStore = Depends(get_record_store),
    extractor: DateTimeExtractor = Depends(get_datetime_extractor),
) -> ChatService:
    """
    Injects all necessary components into the ChatService.
    """
    return ChatService(
        session_repository=session_repo,
        menu_repository=menu_repo,
        transport=transport,
        record_store=record_store,
        extractor=extractor,
    )
