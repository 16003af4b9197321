"""Tests for the loans feature: listing and the three-step creation workflow."""

from portfolio_bot import messages
from portfolio_bot.schemas.events import TextMessage
from portfolio_bot.schemas.extraction import DateTimeExtraction, ExtractionStatus
from portfolio_bot.state.models import SessionState

from conftest import USER_ID, keyboard_labels


def text(value: str) -> TextMessage:
    return TextMessage(chat_id=USER_ID, text=value, originating_message_id=1)


class TestListing:
    async def test_entry_offers_new_loan_button(self, router, transport) -> None:
        session = SessionState(identity=USER_ID)
        await router.route(session, text("🏦 Loans & installments"))
        assert session.current_node == "2"
        assert transport.last["text"] == messages.LOANS["empty"]
        assert keyboard_labels(transport.last) == [
            [messages.LOANS["new_button"]], ["🔙 Back", "❌ Cancel"],
        ]

    async def test_lists_loans_with_installments(self, router, transport, records) -> None:
        loan_id = records.create("loans", {"person_id": USER_ID, "name": "Car", "total_amount": 12000.0})
        records.create("loans", {"person_id": 999, "name": "Not mine", "total_amount": 1.0})
        records.create("installments", {"loan_id": loan_id, "amount": 1000.0, "due_date": "2024-02-01", "is_paid": True})
        records.create("installments", {"loan_id": loan_id, "amount": 1000.0, "due_date": "2024-03-01", "is_paid": False})

        await router.route(SessionState(identity=USER_ID), text("/loans"))
        body = transport.last["text"]
        assert body.startswith(messages.LOANS["title"])
        assert "Car: 12,000" in body
        assert "2024-02-01: 1,000 ✅" in body
        assert "2024-03-01: 1,000 ⏳" in body
        assert "Not mine" not in body


class TestCreation:
    async def test_full_workflow_creates_loan(self, router, transport, records, extractor) -> None:
        session = SessionState(identity=USER_ID, current_node="2")

        await router.route(session, text(messages.LOANS["new_button"]))
        assert session.top_frame.step_name == "loan_name"

        await router.route(session, text("Car"))
        assert session.top_frame.step_name == "loan_amount"
        assert session.top_frame.payload == {"name": "Car"}

        await router.route(session, text("12,000"))
        assert session.top_frame.step_name == "loan_received_date"
        assert session.top_frame.payload == {"name": "Car", "total_amount": 12000.0}

        await router.route(session, text("on the first of march"))
        assert session.progress is None
        assert transport.last["text"] == messages.LOANS["created"].format(name="Car")

        loan = records.read_one("loans", {"person_id": USER_ID})
        assert loan["name"] == "Car"
        assert loan["total_amount"] == 12000.0
        assert loan["received_date"] == "2024-03-01"

    async def test_invalid_amount_is_rejected(self, router, transport) -> None:
        session = SessionState(identity=USER_ID, current_node="2")
        session.push_step("loan_name")
        session.push_step("loan_amount", {"name": "Car"})
        await router.route(session, text("a lot"))
        assert transport.last["text"] == messages.NUMBER_ONLY["amount"]
        assert session.depth == 2

    async def test_long_name_is_rejected(self, router, transport) -> None:
        session = SessionState(identity=USER_ID, current_node="2")
        session.push_step("loan_name")
        await router.route(session, text("x" * 300))
        assert transport.last["text"] == messages.LOANS["name_too_long"].format(limit=191)
        assert session.depth == 1

    async def test_date_not_found(self, router, transport, records, extractor) -> None:
        extractor.extract.return_value = DateTimeExtraction(status=ExtractionStatus.ERROR, reason="none")
        session = SessionState(identity=USER_ID, current_node="2")
        session.push_step("loan_name")
        session.push_step("loan_amount", {"name": "Car"})
        session.push_step("loan_received_date", {"name": "Car", "total_amount": 10.0})
        await router.route(session, text("someday"))
        assert transport.last["text"] == messages.LOANS["date_not_found"]
        assert session.depth == 3
        assert records.read("loans") == []

    async def test_back_from_date_step_returns_to_name_prompt(self, router, transport) -> None:
        session = SessionState(identity=USER_ID, current_node="2")
        session.push_step("loan_name")
        session.push_step("loan_amount", {"name": "Car"})
        session.push_step("loan_received_date", {"name": "Car", "total_amount": 10.0})
        await router.route(session, text("🔙 Back"))
        assert session.depth == 1
        assert transport.last["text"] == messages.LOANS["ask_name"]
