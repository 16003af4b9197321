"""
Prices feature (node "5").

The entry screen puts one reply button per asset category (plus Favorites)
above the node's own keyboard. Those buttons are not menu nodes: their text is
claimed here as node-level free text. Assets open an inline view from which
price alerts can be listed and created.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from .. import messages
from ..execution.schemas.outcomes import Advance, Complete, HandlerOutcome, Keyboard, Reject, Reply, Show
from ..repositories.records import Join, RecordStore, RecordWrite
from ..schemas.commands import NewAlert, PriceAlert, ViewAsset
from ..schemas.events import CallbackQuery, TextMessage
from ..state.models import SessionState
from ..utils.numbers import beautiful_number, clean_and_validate_number
from .base import LevelHandler

logger = logging.getLogger(__name__)

NEW_ALERT_STEP = "new_alert"

DEEP_LINK_PATTERN = re.compile(r"^/start (\d+)$")

TRIGGER_ICONS = {"up": "⬆️", "down": "⬇️", "both": "↕️"}


class PricesHandler(LevelHandler):
    node_id = "5"
    steps = (NEW_ALERT_STEP,)
    commands = (ViewAsset, PriceAlert, NewAlert)

    def __init__(self, record_store: RecordStore):
        self.records = record_store
        super().__init__()

    def callback_table(self):
        return {
            ViewAsset: self._view_asset,
            PriceAlert: self._list_alerts,
            NewAlert: self._ask_target,
        }

    def _categories(self) -> List[str]:
        rows = self.records.read(
            "assets", columns=["asset_type"], distinct=True, order_by={"asset_type": "ASC"}
        )
        return [row["asset_type"] for row in rows]

    def _category_rows(self) -> Keyboard:
        return [[{"text": messages.PRICES["favorites_button"]}]] + [
            [{"text": category}] for category in self._categories()
        ]

    def _asset(self, asset_id: int) -> Optional[dict]:
        return self.records.read_one("assets", {"id": asset_id})

    # ==========================================================================
    # Node level
    # ==========================================================================

    async def enter(self, session: SessionState) -> HandlerOutcome:
        if not self._categories():
            return Show(Reply(messages.PRICES["no_categories"]))
        return Show(Reply(messages.PRICES["choose_category"], extra_rows=self._category_rows()))

    async def handle_text(self, session: SessionState, event: TextMessage) -> Optional[HandlerOutcome]:
        match = DEEP_LINK_PATTERN.match(event.text)
        if match:
            asset = self._asset(int(match.group(1)))
            if asset is None:
                return Reject(messages.PRICES["asset_not_found"])
            return Show(self._asset_view(asset))

        if event.text == messages.PRICES["favorites_button"]:
            return Show(Reply(self._favorites(session.identity), extra_rows=self._category_rows()))

        if event.text in self._categories():
            return Show(self._category_listing(event.text))

        return Show(Reply(messages.NOT_UNDERSTOOD, extra_rows=self._category_rows()))

    def _category_listing(self, category: str) -> Reply:
        assets = self.records.read("assets", {"asset_type": category}, order_by={"id": "ASC"})
        if not assets:
            return Reply(messages.PRICES["no_assets"], extra_rows=self._category_rows())

        latest = assets[0]
        lines = [messages.PRICES["latest"].format(date=latest.get("date") or "", time=latest.get("time") or "")]
        for asset in assets:
            lines.append(f"{asset['name']}: {beautiful_number(float(asset['price']))} {asset['base_currency']}")

        keyboard = [[ViewAsset(id=asset["id"]).button(asset["name"])] for asset in assets]
        return Reply("\n".join(lines), inline_keyboard=keyboard)

    def _favorites(self, identity: int) -> str:
        favorites = self.records.read(
            "favorites",
            {"person_id": identity},
            join=Join("assets", ("asset_id", "id"), {"name": "asset_name", "price": "price"}),
            order_by={"id": "ASC"},
        )
        if not favorites:
            return messages.PRICES["no_favorites"]
        return "\n".join(
            f"{favorite['asset_name']}: {beautiful_number(float(favorite['price']))}"
            for favorite in favorites
        )

    def _asset_view(self, asset: dict, edit_message: bool = False) -> Reply:
        return Reply(
            f"{asset['name']}: {beautiful_number(float(asset['price']))}",
            inline_keyboard=[[PriceAlert(id=asset["id"]).button(messages.PRICES["alerts_button"])]],
            edit_message=edit_message,
        )

    # ==========================================================================
    # Callbacks
    # ==========================================================================

    async def _view_asset(self, session: SessionState, command: ViewAsset, event: CallbackQuery) -> HandlerOutcome:
        asset = self._asset(command.id)
        if asset is None:
            return Reject(messages.PRICES["asset_not_found"], edit_message=True)
        # Also abandons a pending alert prompt for this asset.
        return Complete(None, self._asset_view(asset, edit_message=True))

    async def _list_alerts(self, session: SessionState, command: PriceAlert, event: CallbackQuery) -> HandlerOutcome:
        asset = self._asset(command.id)
        if asset is None:
            return Reject(messages.PRICES["asset_not_found"], edit_message=True)

        alerts = self.records.read(
            "alerts",
            {"person_id": session.identity, "asset_id": asset["id"]},
            order_by={"target_price": "ASC"},
        )
        if alerts:
            lines = [messages.PRICES["alerts_title"].format(name=asset["name"])]
            for alert in alerts:
                if alert["is_active"]:
                    status = "⚪"
                else:
                    status = "🟢" if alert.get("triggered_at") else "💤"
                trigger = TRIGGER_ICONS.get(alert.get("trigger_type"), TRIGGER_ICONS["both"])
                lines.append(
                    f"{status}    {beautiful_number(float(alert['target_price']))} "
                    f"{asset['base_currency']} {trigger}"
                )
            text = "\n".join(lines)
        else:
            text = messages.PRICES["no_alerts"]

        keyboard = [
            [NewAlert(id=asset["id"]).button(messages.PRICES["new_alert_button"])],
            [ViewAsset(id=asset["id"]).button(messages.HOLDING_BUTTONS["back"])],
        ]
        return Show(Reply(text, inline_keyboard=keyboard, edit_message=True))

    async def _ask_target(self, session: SessionState, command: NewAlert, event: CallbackQuery) -> HandlerOutcome:
        asset = self._asset(command.id)
        if asset is None:
            logger.error(f"New alert requested for missing asset {command.id}")
            return Reject(messages.PRICES["asset_not_found"], edit_message=True)
        return Advance(
            NEW_ALERT_STEP,
            {"asset_id": asset["id"]},
            Reply(self._target_prompt(asset), edit_message=True),
            replace=True,
        )

    def _target_prompt(self, asset: dict) -> str:
        return messages.PRICES["ask_target"].format(
            name=asset["name"], price=beautiful_number(float(asset["price"]))
        )

    # ==========================================================================
    # Steps
    # ==========================================================================

    async def handle_step(self, session: SessionState, event: Optional[TextMessage]) -> HandlerOutcome:
        asset = self._asset(session.top_frame.payload.get("asset_id"))
        if asset is None:
            return Complete(None, Reply(messages.PRICES["asset_not_found"]))

        if event is None:
            return Show(Reply(self._target_prompt(asset)))

        target_price = clean_and_validate_number(event.text)
        if not target_price:
            return Reject(messages.NUMBER_ONLY["price"])

        write = RecordWrite(
            operation="upsert",
            table="alerts",
            values={
                "person_id": session.identity,
                "asset_id": asset["id"],
                "target_price": target_price,
                "trigger_type": "both",
                "is_active": True,
                "created_at": datetime.now().isoformat(sep=" ", timespec="seconds"),
            },
            conflict_keys=("person_id", "asset_id", "target_price"),
        )
        return Complete(write, Reply(messages.PRICES["alert_created"], extra_rows=self._category_rows()))
