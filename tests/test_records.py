"""Tests for the record stores (in-memory and SQL over SQLite)."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from portfolio_bot.infrastructure.database import tables  # noqa: F401
from portfolio_bot.repositories.records import (
    InMemoryRecordStore,
    Join,
    PostgresRecordStore,
    RecordWrite,
    chunked,
)
from portfolio_bot.services.exceptions import StoreError


@pytest.fixture
def sql_store() -> PostgresRecordStore:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    return PostgresRecordStore(engine)


@pytest.fixture(params=["memory", "sql"])
def store(request, sql_store):
    store = InMemoryRecordStore() if request.param == "memory" else sql_store
    for name, asset_type, price in [("Gold", "Metal", 10.0), ("Silver", "Metal", 2.0), ("BTC", "Crypto", 50.0)]:
        store.create("assets", {"name": name, "asset_type": asset_type, "price": price,
                                "base_currency": "USD", "exchange_rate": 1})
    return store


class TestRecordStore:
    def test_create_returns_id_and_read_filters(self, store) -> None:
        new_id = store.create("assets", {"name": "ETH", "asset_type": "Crypto", "price": 3.0,
                                         "base_currency": "USD", "exchange_rate": 1})
        assert new_id == 4
        names = [row["name"] for row in store.read("assets", {"asset_type": "Crypto"}, order_by={"id": "ASC"})]
        assert names == ["BTC", "ETH"]

    def test_in_condition(self, store) -> None:
        rows = store.read("assets", {"id": [1, 3]}, order_by={"id": "ASC"})
        assert [row["name"] for row in rows] == ["Gold", "BTC"]

    def test_distinct_columns(self, store) -> None:
        rows = store.read("assets", columns=["asset_type"], distinct=True, order_by={"asset_type": "ASC"})
        assert rows == [{"asset_type": "Crypto"}, {"asset_type": "Metal"}]

    def test_order_limit_offset(self, store) -> None:
        rows = store.read("assets", order_by={"price": "DESC"}, limit=2, offset=1)
        assert [row["name"] for row in rows] == ["Gold", "Silver"]

    def test_join(self, store) -> None:
        store.create("alerts", {"person_id": 5, "asset_id": 1, "target_price": 12.0,
                                "trigger_type": "up", "is_active": True})
        rows = store.read("alerts", {"person_id": 5}, join=Join("assets", ("asset_id", "id"), {"name": "asset_name"}))
        assert rows[0]["asset_name"] == "Gold"
        assert rows[0]["target_price"] == 12.0

    def test_update_and_delete_counts(self, store) -> None:
        assert store.update("assets", {"price": 11.0}, {"asset_type": "Metal"}) == 2
        assert store.read_one("assets", {"name": "Silver"})["price"] == 11.0
        assert store.delete("assets", {"asset_type": "Metal"}) == 2
        assert store.read_one("assets", {"name": "Gold"}) is None

    def test_upsert_inserts_then_updates(self, store) -> None:
        values = {"person_id": 5, "asset_id": 1, "target_price": 12.0, "trigger_type": "both", "is_active": True}
        store.upsert("alerts", values, ("person_id", "asset_id", "target_price"))
        store.upsert("alerts", {**values, "is_active": False}, ("person_id", "asset_id", "target_price"))
        rows = store.read("alerts")
        assert len(rows) == 1
        assert rows[0]["is_active"] is False

    def test_apply_dispatches_writes(self, store) -> None:
        store.apply(RecordWrite(operation="update", table="assets", values={"price": 1.0}, conditions={"id": 1}))
        assert store.read_one("assets", {"id": 1})["price"] == 1.0
        store.apply(RecordWrite(operation="delete", table="assets", conditions={"id": 1}))
        assert store.read_one("assets", {"id": 1}) is None

    def test_read_chunks(self, store) -> None:
        chunks = store.read_chunks("assets", 2, order_by={"id": "ASC"})
        assert [len(chunk) for chunk in chunks] == [2, 1]


class TestSqlStoreErrors:
    def test_unknown_table_raises_store_error(self, sql_store) -> None:
        with pytest.raises(StoreError):
            sql_store.read("nope")

    def test_constraint_violation_raises_store_error(self, sql_store) -> None:
        sql_store.create("assets", {"name": "Gold", "asset_type": "Metal", "price": 1.0})
        with pytest.raises(StoreError):
            sql_store.create("assets", {"name": "Gold", "asset_type": "Metal", "price": 1.0})


def test_chunked() -> None:
    assert chunked([{"a": 1}, {"a": 2}, {"a": 3}], 2) == [[{"a": 1}, {"a": 2}], [{"a": 3}]]


def test_loan_upsert_is_idempotent(store) -> None:
    values = {"person_id": 5, "name": "Car", "total_amount": 1000.0, "received_date": "2024-03-01"}
    key = ("person_id", "name", "received_date")
    store.upsert("loans", values, key)
    store.upsert("loans", {**values, "total_amount": 1200.0}, key)
    rows = store.read("loans")
    assert len(rows) == 1
    assert rows[0]["total_amount"] == 1200.0
