"""
Loans feature (node "2").

Shows the user's loans with their installments. The "New loan" button starts a
three-step workflow (name, total amount, date received) whose answers
accumulate in the frame payloads until the last one creates the loan row.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from .. import messages
from ..execution.schemas.outcomes import Advance, Complete, HandlerOutcome, Reject, Reply, Show
from ..repositories.records import RecordStore, RecordWrite
from ..schemas.events import TextMessage
from ..schemas.extraction import ExtractionStatus
from ..services.datetime_extractor import DateTimeExtractor
from ..state.models import SessionState
from ..utils.numbers import beautiful_number, clean_and_validate_number
from .base import LevelHandler

logger = logging.getLogger(__name__)

NAME_STEP = "loan_name"
AMOUNT_STEP = "loan_amount"
RECEIVED_DATE_STEP = "loan_received_date"

MAX_NAME_LENGTH = 191
# A retried final step must land on the same row.
LOAN_KEY = ("person_id", "name", "received_date")


class LoansHandler(LevelHandler):
    node_id = "2"
    steps = (NAME_STEP, AMOUNT_STEP, RECEIVED_DATE_STEP)

    def __init__(self, record_store: RecordStore, extractor: DateTimeExtractor):
        self.records = record_store
        self.extractor = extractor
        super().__init__()

    @property
    def _new_loan_row(self):
        return [[{"text": messages.LOANS["new_button"]}]]

    async def enter(self, session: SessionState) -> HandlerOutcome:
        return Show(Reply(self._listing(session.identity), extra_rows=self._new_loan_row))

    def _listing(self, identity: int) -> str:
        loans = self.records.read("loans", {"person_id": identity}, order_by={"id": "ASC"})
        if not loans:
            return messages.LOANS["empty"]

        installments = defaultdict(list)
        rows = self.records.read(
            "installments",
            {"loan_id": [loan["id"] for loan in loans]},
            order_by={"due_date": "ASC"},
        )
        for installment in rows:
            installments[installment["loan_id"]].append(installment)

        lines = [messages.LOANS["title"]]
        for loan in loans:
            lines.append(f"┌ {loan['name']}: {beautiful_number(float(loan['total_amount']))}")
            for installment in installments[loan["id"]]:
                paid = "✅" if installment["is_paid"] else "⏳"
                lines.append(
                    f"│    {installment['due_date']}: "
                    f"{beautiful_number(float(installment['amount']))} {paid}"
                )
            if not installments[loan["id"]]:
                lines.append(f"│    {messages.LOANS['no_installments']}")
            lines.append("")
        return "\n".join(lines).rstrip()

    async def handle_text(self, session: SessionState, event: TextMessage) -> Optional[HandlerOutcome]:
        if event.text != messages.LOANS["new_button"]:
            return None
        return Advance(NAME_STEP, {}, Reply(messages.LOANS["ask_name"]))

    async def handle_step(self, session: SessionState, event: Optional[TextMessage]) -> HandlerOutcome:
        frame = session.top_frame
        collected = dict(frame.payload)

        if frame.step_name == NAME_STEP:
            if event is None:
                return Show(Reply(messages.LOANS["ask_name"]))

            name = event.text.strip()
            if not name:
                return Reject(messages.LOANS["ask_name"])
            if len(name) > MAX_NAME_LENGTH:
                return Reject(messages.LOANS["name_too_long"].format(limit=MAX_NAME_LENGTH))
            return Advance(
                AMOUNT_STEP,
                {**collected, "name": name},
                Reply(messages.LOANS["ask_amount"].format(name=name)),
            )

        if frame.step_name == AMOUNT_STEP:
            prompt = messages.LOANS["ask_amount"].format(name=collected.get("name", ""))
            if event is None:
                return Show(Reply(prompt))

            amount = clean_and_validate_number(event.text)
            if not amount:
                return Reject(messages.NUMBER_ONLY["amount"])
            return Advance(
                RECEIVED_DATE_STEP,
                {**collected, "total_amount": amount},
                Reply(messages.LOANS["ask_date"].format(name=collected.get("name", ""))),
            )

        prompt = messages.LOANS["ask_date"].format(name=collected.get("name", ""))
        if event is None:
            return Show(Reply(prompt))

        extraction = await self.extractor.extract(event.text)
        if extraction.status == ExtractionStatus.ERROR:
            logger.info(f"No date found in {event.text!r}: {extraction.reason}")
            return Reject(messages.LOANS["date_not_found"])

        write = RecordWrite(
            operation="upsert",
            table="loans",
            values={
                "person_id": session.identity,
                "name": collected["name"],
                "total_amount": collected["total_amount"],
                "received_date": extraction.date,
                "created_at": datetime.utcnow(),
            },
            conflict_keys=LOAN_KEY,
        )
        return Complete(
            write,
            Reply(
                messages.LOANS["created"].format(name=collected["name"]),
                extra_rows=self._new_loan_row,
            ),
        )
