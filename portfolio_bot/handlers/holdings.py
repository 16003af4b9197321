"""
Holdings feature (node "1").

Lists the user's holdings with their running profit or loss and lets the user
edit or delete a single holding through inline buttons. Editing a field is a
one-step workflow: the button pushes the step, the next text message answers it.
"""

import logging
import re
from typing import Dict, List, Optional

from .. import messages
from ..execution.schemas.outcomes import Advance, Complete, HandlerOutcome, Reject, Reply, Show
from ..repositories.records import Join, RecordStore, RecordWrite
from ..schemas.commands import (
    DeleteHolding,
    EditAmount,
    EditDate,
    EditHolding,
    EditPrice,
    ViewHolding,
)
from ..schemas.events import CallbackQuery, TextMessage
from ..schemas.extraction import ExtractionStatus
from ..services.datetime_extractor import DateTimeExtractor
from ..state.models import SessionState
from ..transport.interface import ChatTransport
from ..utils.numbers import beautiful_number, clean_and_validate_number
from .base import LevelHandler

logger = logging.getLogger(__name__)

EDIT_PRICE_STEP = "edit_holding_price"
EDIT_AMOUNT_STEP = "edit_holding_amount"
EDIT_DATE_STEP = "edit_holding_date"

ASSET_JOIN = Join(
    table="assets",
    on=("asset_id", "id"),
    columns={
        "name": "asset_name",
        "price": "current_price",
        "base_currency": "base_currency",
        "exchange_rate": "base_rate",
    },
)

# "/holding_7", or "/start holding_7" from a t.me deep link
DETAILS_PATTERN = re.compile(r"^/(?:start )?holding_(\d+)$")


def holding_profit(holding: dict) -> float:
    return (
        float(holding["amount"])
        * (float(holding["current_price"]) - float(holding["avg_price"]))
        * float(holding.get("base_rate") or 1)
    )


def holding_detail_text(holding: dict) -> str:
    amount = float(holding["amount"])
    avg_price = float(holding["avg_price"])
    current_price = float(holding["current_price"])
    currency = holding.get("base_currency") or ""
    profit = holding_profit(holding)

    lines = [holding["asset_name"]]
    if holding.get("date"):
        purchased = f"{holding['date']} {holding.get('time') or ''}".strip()
        lines.append(messages.HOLDING_DETAIL["date"].format(value=purchased))
    lines += [
        messages.HOLDING_DETAIL["amount"].format(value=beautiful_number(amount)),
        messages.HOLDING_DETAIL["unit_price"].format(value=beautiful_number(avg_price), currency=currency),
        messages.HOLDING_DETAIL["current_price"].format(value=beautiful_number(current_price), currency=currency),
        messages.HOLDING_DETAIL["total_price"].format(value=beautiful_number(avg_price * amount), currency=currency),
        messages.HOLDING_DETAIL["current_total"].format(value=beautiful_number(current_price * amount), currency=currency),
        messages.HOLDING_DETAIL["profit" if profit >= 0 else "loss"].format(value=beautiful_number(profit)),
    ]
    return "\n   ├─ ".join(lines[:-1]) + "\n   └─ " + lines[-1]


class HoldingsHandler(LevelHandler):
    node_id = "1"
    steps = (EDIT_PRICE_STEP, EDIT_AMOUNT_STEP, EDIT_DATE_STEP)
    commands = (ViewHolding, EditHolding, EditPrice, EditAmount, EditDate, DeleteHolding)

    def __init__(self, record_store: RecordStore, transport: ChatTransport, extractor: DateTimeExtractor):
        self.records = record_store
        self.transport = transport
        self.extractor = extractor
        super().__init__()

    def callback_table(self):
        return {
            ViewHolding: self._view,
            EditHolding: self._edit_menu,
            EditPrice: self._ask_price,
            EditAmount: self._ask_amount,
            EditDate: self._ask_date,
            DeleteHolding: self._delete,
        }

    # ==========================================================================
    # Reads
    # ==========================================================================

    def _holdings(self, identity: int) -> List[dict]:
        return self.records.read(
            "holdings", {"person_id": identity}, join=ASSET_JOIN, order_by={"id": "ASC"}
        )

    def _holding(self, identity: int, holding_id) -> Optional[dict]:
        if holding_id is None:
            return None
        # Scoped to the owner: a forged id never reaches someone else's row.
        return self.records.read_one(
            "holdings", {"id": holding_id, "person_id": identity}, join=ASSET_JOIN
        )

    # ==========================================================================
    # Node level
    # ==========================================================================

    async def enter(self, session: SessionState) -> HandlerOutcome:
        holdings = self._holdings(session.identity)
        if not holdings:
            return Show(Reply(messages.HOLDINGS["empty"]))

        blocks = [messages.HOLDINGS["title"]]
        for holding in holdings:
            blocks.append(
                holding_detail_text(holding)
                + "\n"
                + messages.HOLDINGS["details_link"].format(id=holding["id"])
            )

        total = sum(holding_profit(holding) for holding in holdings)
        summary = messages.HOLDINGS["profit" if total >= 0 else "loss"]
        blocks.append(summary.format(value=beautiful_number(total)))
        return Show(Reply("\n\n".join(blocks)))

    async def handle_text(self, session: SessionState, event: TextMessage) -> Optional[HandlerOutcome]:
        match = DETAILS_PATTERN.match(event.text)
        if not match:
            return None

        holding = self._holding(session.identity, int(match.group(1)))
        if holding is None:
            return Reject(messages.HOLDINGS["not_found"])
        return Show(Reply(holding_detail_text(holding), inline_keyboard=self._detail_keyboard(holding)))

    # ==========================================================================
    # Callbacks
    # ==========================================================================

    def _detail_keyboard(self, holding: dict):
        return [[EditHolding(holding_id=holding["id"]).button(messages.HOLDING_BUTTONS["edit"])]]

    def _back_to_menu(self, holding_id: int):
        return [[EditHolding(holding_id=holding_id).button(messages.HOLDING_BUTTONS["back"])]]

    async def _view(self, session: SessionState, command: ViewHolding, event: CallbackQuery) -> HandlerOutcome:
        holding = self._holding(session.identity, command.holding_id)
        if holding is None:
            return Reject(messages.HOLDINGS["not_found"], edit_message=True)
        return Show(Reply(
            holding_detail_text(holding),
            inline_keyboard=self._detail_keyboard(holding),
            edit_message=True,
        ))

    async def _edit_menu(self, session: SessionState, command: EditHolding, event: CallbackQuery) -> HandlerOutcome:
        holding = self._holding(session.identity, command.holding_id)
        if holding is None:
            return Reject(messages.HOLDINGS["not_found"], edit_message=True)

        hid = holding["id"]
        labels = messages.HOLDING_BUTTONS
        keyboard = [
            [EditPrice(holding_id=hid).button(labels["edit_price"]),
             EditAmount(holding_id=hid).button(labels["edit_amount"])],
            [EditDate(holding_id=hid).button(labels["edit_date"])],
            [DeleteHolding(holding_id=hid).button(labels["delete"])],
            [ViewHolding(holding_id=hid).button(labels["back"])],
        ]
        reply = Reply(
            f"{holding_detail_text(holding)}\n\n{messages.HOLDINGS['choose_field']}",
            inline_keyboard=keyboard,
            edit_message=True,
        )
        # Returning here from a field prompt abandons that prompt.
        return Complete(None, reply)

    async def _ask_field(self, session: SessionState, holding_id: int, step_name: str, prompt: str) -> HandlerOutcome:
        holding = self._holding(session.identity, holding_id)
        if holding is None:
            return Reject(messages.HOLDINGS["not_found"], edit_message=True)
        return Advance(
            step_name=step_name,
            payload={"holding_id": holding["id"]},
            reply=self._prompt(holding, prompt, edit_message=True),
            replace=True,
        )

    async def _ask_price(self, session: SessionState, command: EditPrice, event: CallbackQuery) -> HandlerOutcome:
        return await self._ask_field(session, command.holding_id, EDIT_PRICE_STEP, messages.HOLDINGS["ask_price"])

    async def _ask_amount(self, session: SessionState, command: EditAmount, event: CallbackQuery) -> HandlerOutcome:
        return await self._ask_field(session, command.holding_id, EDIT_AMOUNT_STEP, messages.HOLDINGS["ask_amount"])

    async def _ask_date(self, session: SessionState, command: EditDate, event: CallbackQuery) -> HandlerOutcome:
        return await self._ask_field(session, command.holding_id, EDIT_DATE_STEP, messages.HOLDINGS["ask_date"])

    async def _delete(self, session: SessionState, command: DeleteHolding, event: CallbackQuery) -> HandlerOutcome:
        holding = self._holding(session.identity, command.holding_id)
        if holding is None:
            return Reject(messages.HOLDINGS["not_found"], edit_message=True)

        if not command.confirmed:
            labels = messages.HOLDING_BUTTONS
            keyboard = [[
                DeleteHolding(holding_id=holding["id"], confirmed=True).button(labels["yes"]),
                EditHolding(holding_id=holding["id"]).button(labels["no"]),
            ]]
            return Show(Reply(
                f"{holding_detail_text(holding)}\n\n{messages.HOLDINGS['confirm_delete']}",
                inline_keyboard=keyboard,
                edit_message=True,
            ))

        write = RecordWrite(
            operation="delete",
            table="holdings",
            conditions={"id": holding["id"], "person_id": session.identity},
        )
        return Complete(write, Reply(messages.HOLDINGS["deleted"], edit_message=True))

    # ==========================================================================
    # Steps
    # ==========================================================================

    def _prompt(self, holding: dict, prompt: str, edit_message: bool = False) -> Reply:
        return Reply(
            f"{holding_detail_text(holding)}\n\n{prompt}",
            inline_keyboard=self._back_to_menu(holding["id"]),
            edit_message=edit_message,
        )

    async def handle_step(self, session: SessionState, event: Optional[TextMessage]) -> HandlerOutcome:
        frame = session.top_frame
        holding = self._holding(session.identity, frame.payload.get("holding_id"))
        if holding is None:
            # Deleted in the meantime; nothing left to edit.
            return Complete(None, Reply(messages.HOLDINGS["not_found"]))

        if frame.step_name == EDIT_PRICE_STEP:
            if event is None:
                return Show(self._prompt(holding, messages.HOLDINGS["ask_price"]))
            return self._update_number(session, holding, event.text, "avg_price", "price")

        if frame.step_name == EDIT_AMOUNT_STEP:
            if event is None:
                return Show(self._prompt(holding, messages.HOLDINGS["ask_amount"]))
            return self._update_number(session, holding, event.text, "amount", "amount")

        if event is None:
            return Show(self._prompt(holding, messages.HOLDINGS["ask_date"]))
        return await self._update_date(session, holding, event.text)

    def _update_number(self, session: SessionState, holding: dict, text: str, column: str, kind: str) -> HandlerOutcome:
        number = clean_and_validate_number(text)
        if not number:
            return Reject(messages.NUMBER_ONLY[kind])

        write = RecordWrite(
            operation="update",
            table="holdings",
            values={column: number},
            conditions={"id": holding["id"], "person_id": session.identity},
        )
        return Complete(write, Reply(messages.HOLDINGS["edited"]))

    async def _update_date(self, session: SessionState, holding: dict, text: str) -> HandlerOutcome:
        interim = await self.transport.send(
            "sendMessage", {"chat_id": session.identity, "text": messages.PROCESSING}
        )
        try:
            extraction = await self.extractor.extract(text, require_time=True)
        finally:
            if interim is not None:
                await self._delete_message(session.identity, interim)

        if extraction.status == ExtractionStatus.ERROR:
            logger.info(f"No date found in {text!r}: {extraction.reason}")
            return Reject(messages.HOLDINGS["date_not_found"])

        write = RecordWrite(
            operation="update",
            table="holdings",
            values={"date": extraction.date, "time": extraction.time},
            conditions={"id": holding["id"], "person_id": session.identity},
        )
        return Complete(write, Reply(messages.HOLDINGS["edited"]))

    async def _delete_message(self, chat_id: int, sent: Dict):
        message_id = (sent.get("result") or {}).get("message_id")
        if message_id is None:
            return
        if await self.transport.send("deleteMessage", {"chat_id": chat_id, "message_id": message_id}) is None:
            logger.warning(f"Could not delete interim message {message_id} in chat {chat_id}")
