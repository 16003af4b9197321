"""Tests for the prices feature: categories, asset views and price alerts."""

import json

from portfolio_bot import messages
from portfolio_bot.schemas.events import CallbackQuery, TextMessage
from portfolio_bot.state.models import SessionState

from conftest import USER_ID, keyboard_labels


def text(value: str) -> TextMessage:
    return TextMessage(chat_id=USER_ID, text=value, originating_message_id=1)


def press(command: str, **arguments) -> CallbackQuery:
    return CallbackQuery(chat_id=USER_ID, raw_payload=json.dumps({command: arguments}),
                         query_id="q", originating_message_id=50)


def at_prices() -> SessionState:
    return SessionState(identity=USER_ID, current_node="5")


class TestEntry:
    async def test_entry_lists_categories_above_node_keyboard(self, router, transport) -> None:
        session = SessionState(identity=USER_ID, current_node="3")
        await router.route(session, text("📈 Prices"))
        assert session.current_node == "5"
        assert transport.last["text"] == messages.PRICES["choose_category"]
        assert keyboard_labels(transport.last) == [
            [messages.PRICES["favorites_button"]], ["Crypto"], ["Gold"], ["🔙 Back", "❌ Cancel"],
        ]

    async def test_no_categories(self, router, transport, records) -> None:
        records.delete("assets", {})
        await router.route(at_prices(), text("/prices"))
        assert transport.last["text"] == messages.PRICES["no_categories"]


class TestNodeText:
    async def test_category_lists_assets_with_view_buttons(self, router, transport) -> None:
        await router.route(at_prices(), text("Crypto"))
        body = transport.last["text"]
        assert "Bitcoin: 60,000 USD" in body
        assert "Gold" not in body
        buttons = transport.last["reply_markup"]["inline_keyboard"]
        assert json.loads(buttons[0][0]["callback_data"]) == {"view_asset": {"id": 2}}

    async def test_favorites(self, router, transport) -> None:
        await router.route(at_prices(), text(messages.PRICES["favorites_button"]))
        assert transport.last["text"] == "Bitcoin: 60,000"

    async def test_deep_link_opens_asset(self, router, transport) -> None:
        await router.route(at_prices(), text("/start 1"))
        assert transport.last["text"] == "Gold 18k: 1,200"
        assert keyboard_labels(transport.last) == [[messages.PRICES["alerts_button"]]]

    async def test_unknown_text_keeps_categories(self, router, transport) -> None:
        await router.route(at_prices(), text("Stocks"))
        assert transport.last["text"] == messages.NOT_UNDERSTOOD
        assert [messages.PRICES["favorites_button"]] in keyboard_labels(transport.last)


class TestAlerts:
    async def test_alert_listing_when_empty(self, router, transport) -> None:
        await router.route(at_prices(), press("price_alert", id=1))
        assert transport.last["text"] == messages.PRICES["no_alerts"]
        assert transport.last_method == "editMessageText"

    async def test_new_alert_workflow_upserts(self, router, transport, records) -> None:
        session = at_prices()
        await router.route(session, press("new_alert", id=1))
        assert session.top_frame.step_name == "new_alert"
        assert session.top_frame.payload == {"asset_id": 1}

        await router.route(session, text("1500"))
        assert session.progress is None
        assert transport.last["text"] == messages.PRICES["alert_created"]

        # Same target again updates instead of duplicating
        await router.route(session, press("new_alert", id=1))
        await router.route(session, text("1500"))
        alerts = records.read("alerts", {"person_id": USER_ID})
        assert len(alerts) == 1
        assert alerts[0]["target_price"] == 1500.0
        assert alerts[0]["is_active"] is True

    async def test_alert_listing_shows_targets(self, router, transport, records) -> None:
        records.create("alerts", {"person_id": USER_ID, "asset_id": 1, "target_price": 1500.0,
                                  "trigger_type": "up", "is_active": True})
        await router.route(at_prices(), press("price_alert", id=1))
        body = transport.last["text"]
        assert body.startswith(messages.PRICES["alerts_title"].format(name="Gold 18k"))
        assert "1,500 USD ⬆️" in body

    async def test_invalid_target_is_rejected(self, router, transport) -> None:
        session = at_prices()
        session.push_step("new_alert", {"asset_id": 1})
        await router.route(session, text("soon"))
        assert transport.last["text"] == messages.NUMBER_ONLY["price"]
        assert session.in_step

    async def test_view_asset_abandons_alert_prompt(self, router) -> None:
        session = at_prices()
        session.push_step("new_alert", {"asset_id": 1})
        await router.route(session, press("view_asset", id=1))
        assert session.progress is None

    async def test_missing_asset(self, router, transport) -> None:
        await router.route(at_prices(), press("view_asset", id=404))
        assert transport.last["text"] == messages.PRICES["asset_not_found"]
