"""Tests for ChatService: session lifecycle and the failure boundary."""

import json
from unittest.mock import MagicMock

from portfolio_bot import messages
from portfolio_bot.domain.models import MenuConfigurationError
from portfolio_bot.schemas.events import CallbackQuery, TextMessage
from portfolio_bot.services.chat import UserProfile
from portfolio_bot.services.exceptions import ExtractionError, StoreError

from conftest import USER_ID


def text(value: str, chat_id: int = USER_ID) -> TextMessage:
    return TextMessage(chat_id=chat_id, text=value, originating_message_id=1)


class TestSessionLifecycle:
    async def test_first_user_becomes_admin(self, chat_service, session_repo) -> None:
        assert await chat_service.process_event(text("/start"), UserProfile(first_name="Ada")) is True
        first = session_repo.get(USER_ID)
        assert first.privileged is True
        assert first.first_name == "Ada"

        await chat_service.process_event(text("/start", chat_id=777))
        assert session_repo.get(777).privileged is False

    async def test_state_is_persisted_between_events(self, chat_service, session_repo) -> None:
        await chat_service.process_event(text("/start"))
        await chat_service.process_event(text("🧰 Tools"))
        await chat_service.process_event(text("📈 Prices"))
        assert session_repo.get(USER_ID).current_node == "5"

        await chat_service.process_event(text("🔙 Back"))
        assert session_repo.get(USER_ID).current_node == "3"

    async def test_callback_from_unknown_user_is_dropped(self, chat_service, session_repo, transport) -> None:
        event = CallbackQuery(chat_id=USER_ID, raw_payload=json.dumps({"view_asset": {"id": 1}}), query_id="q9")
        assert await chat_service.process_event(event) is False
        assert session_repo.get(USER_ID) is None
        assert transport.acks == ["q9"]
        assert transport.calls == []


class TestFailureBoundary:
    async def test_delivery_failure_skips_save(self, chat_service, session_repo, transport) -> None:
        await chat_service.process_event(text("/start"))
        transport.failing.add("sendMessage")

        assert await chat_service.process_event(text("🧰 Tools")) is False
        assert session_repo.get(USER_ID).current_node == "0"

    async def test_store_failure_keeps_workflow_for_retry(self, chat_service, session_repo, transport, records) -> None:
        await chat_service.process_event(text("/holdings"))
        session = session_repo.get(USER_ID)
        session.push_step("edit_holding_price", {"holding_id": 7})
        session_repo.save(session)

        records.apply = MagicMock(side_effect=StoreError("disk full"))
        assert await chat_service.process_event(text("1250")) is False

        stored = session_repo.get(USER_ID)
        assert stored.top_frame.step_name == "edit_holding_price"
        assert transport.last["text"] == messages.OPERATION_FAILED

    async def test_extraction_failure_is_reported(self, chat_service, session_repo, transport, extractor) -> None:
        await chat_service.process_event(text("/holdings"))
        session = session_repo.get(USER_ID)
        session.push_step("edit_holding_date", {"holding_id": 7})
        session_repo.save(session)

        extractor.extract.side_effect = ExtractionError("timed out")
        assert await chat_service.process_event(text("yesterday")) is False
        assert session_repo.get(USER_ID).in_step
        assert transport.last["text"] == messages.OPERATION_FAILED

    async def test_broken_menu_is_reported(self, chat_service, transport) -> None:
        chat_service.menu_repo = MagicMock()
        chat_service.menu_repo.load_tree.side_effect = MenuConfigurationError("no root")
        assert await chat_service.process_event(text("/start")) is False
        assert transport.last["text"] == messages.OPERATION_FAILED

    async def test_unexpected_error_is_contained(self, chat_service, transport) -> None:
        chat_service.build_router = MagicMock(side_effect=RuntimeError("boom"))
        assert await chat_service.process_event(text("/start")) is False
        assert transport.last["text"] == messages.OPERATION_FAILED

    async def test_failed_save_is_reported(self, chat_service, session_repo) -> None:
        await chat_service.process_event(text("/start"))
        session_repo.save = MagicMock(return_value=False)
        assert await chat_service.process_event(text("🧰 Tools")) is False


class TestRetryAfterFailure:
    async def test_retried_loan_completion_writes_one_row(self, chat_service, session_repo, transport, records) -> None:
        for value in ("/loans", messages.LOANS["new_button"], "Car", "1000"):
            await chat_service.process_event(text(value))

        transport.failing.add("sendMessage")
        assert await chat_service.process_event(text("yesterday")) is False
        assert session_repo.get(USER_ID).top_frame.step_name == "loan_received_date"
        assert len(records.read("loans")) == 1

        transport.failing.clear()
        assert await chat_service.process_event(text("yesterday")) is True
        assert session_repo.get(USER_ID).progress is None
        assert len(records.read("loans", {"person_id": USER_ID})) == 1
