"""Shared fixtures for all tests."""

import os

# Settings are read at import time; give them harmless values first.
os.environ.setdefault("BOT_TOKEN", "123456:test-token")
os.environ.setdefault("SHARED_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from portfolio_bot.data.default_menu import DEFAULT_MENU
from portfolio_bot.domain.models import MenuTree
from portfolio_bot.execution.router import DialogRouter
from portfolio_bot.handlers.admin import AdminHandler
from portfolio_bot.handlers.base import HandlerRegistry
from portfolio_bot.handlers.holdings import HoldingsHandler
from portfolio_bot.handlers.loans import LoansHandler
from portfolio_bot.handlers.prices import PricesHandler
from portfolio_bot.repositories.menu import StaticMenuRepository
from portfolio_bot.repositories.records import InMemoryRecordStore
from portfolio_bot.repositories.session import InMemorySessionRepository
from portfolio_bot.schemas.extraction import DateTimeExtraction, ExtractionStatus
from portfolio_bot.services.chat import ChatService
from portfolio_bot.transport.interface import ChatTransport

USER_ID = 555


class FakeTransport(ChatTransport):
    """Records every call. Methods listed in 'failing' report a failure."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.acks: List[str] = []
        self.failing: set = set()
        self.ack_ok = True
        self._message_id = 1000

    async def send(self, method: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.calls.append((method, payload))
        if method in self.failing:
            return None
        self._message_id += 1
        return {
            "ok": True,
            "result": {"message_id": self._message_id, "chat": {"id": payload.get("chat_id")}},
        }

    async def answer_callback(self, query_id: str, text: Optional[str] = None) -> bool:
        self.acks.append(query_id)
        return self.ack_ok

    def payloads(self, method: str) -> List[Dict[str, Any]]:
        return [payload for name, payload in self.calls if name == method]

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1][1]

    @property
    def last_method(self) -> str:
        return self.calls[-1][0]


def keyboard_labels(payload: Dict[str, Any]) -> List[List[str]]:
    markup = payload.get("reply_markup") or {}
    rows = markup.get("keyboard") or markup.get("inline_keyboard") or []
    return [[button["text"] for button in row] for row in rows]


def seed_records() -> InMemoryRecordStore:
    return InMemoryRecordStore({
        "assets": [
            {"id": 1, "name": "Gold 18k", "asset_type": "Gold", "price": 1200.0,
             "base_currency": "USD", "exchange_rate": 1, "date": "2024-05-01", "time": "12:00"},
            {"id": 2, "name": "Bitcoin", "asset_type": "Crypto", "price": 60000.0,
             "base_currency": "USD", "exchange_rate": 1, "date": "2024-05-01", "time": "12:05"},
            {"id": 3, "name": "Ether", "asset_type": "Crypto", "price": 3000.0,
             "base_currency": "USD", "exchange_rate": 1, "date": "2024-05-01", "time": "12:05"},
        ],
        "holdings": [
            {"id": 7, "person_id": USER_ID, "asset_id": 1, "amount": 2.0, "avg_price": 1000.0,
             "note": None, "date": "2024-01-10", "time": "10:00"},
            {"id": 8, "person_id": USER_ID, "asset_id": 2, "amount": 0.5, "avg_price": 70000.0,
             "note": None, "date": None, "time": None},
            {"id": 9, "person_id": 999, "asset_id": 1, "amount": 1.0, "avg_price": 900.0,
             "note": None, "date": None, "time": None},
        ],
        "favorites": [
            {"id": 1, "person_id": USER_ID, "asset_id": 2},
        ],
    })


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def tree() -> MenuTree:
    return MenuTree.build(DEFAULT_MENU)


@pytest.fixture
def records() -> InMemoryRecordStore:
    return seed_records()


@pytest.fixture
def extractor() -> MagicMock:
    mock = MagicMock()
    mock.extract = AsyncMock(return_value=DateTimeExtraction(
        status=ExtractionStatus.SUCCESS, date="2024-03-01", time="14:30"
    ))
    return mock


@pytest.fixture
def handlers(tree, records, transport, extractor) -> HandlerRegistry:
    return HandlerRegistry([
        HoldingsHandler(records, transport, extractor),
        LoansHandler(records, extractor),
        PricesHandler(records),
        AdminHandler(tree),
    ])


@pytest.fixture
def router(tree, handlers, transport, records) -> DialogRouter:
    return DialogRouter(tree, handlers, transport, records)


@pytest.fixture
def session_repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def chat_service(session_repo, transport, records, extractor) -> ChatService:
    return ChatService(
        session_repository=session_repo,
        menu_repository=StaticMenuRepository(),
        transport=transport,
        record_store=records,
        extractor=extractor,
    )
