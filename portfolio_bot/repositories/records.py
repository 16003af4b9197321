"""
Record Store - the generic data store the feature handlers persist into.

Handlers never talk to SQL directly: they read through this interface and hand
their final writes to the router as RecordWrite values, which the router
applies once a workflow completes.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from ..infrastructure.database import tables  # noqa: F401  (registers metadata)
from ..infrastructure.database.connection import engine as default_engine
from ..services.exceptions import StoreError

logger = logging.getLogger(__name__)

Conditions = Mapping[str, Any]
OrderBy = Mapping[str, Literal["ASC", "DESC"]]


@dataclass(frozen=True)
class Join:
    """
    Inner join of a second table.

    Attributes:
        table: The joined table.
        on: (column of the main table, column of the joined table).
        columns: Joined columns to include, mapped to their alias in the row.
    """
    table: str
    on: Tuple[str, str]
    columns: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RecordWrite:
    """
    A single write a handler asks the router to perform on completion.
    """
    operation: Literal["create", "update", "upsert", "delete"]
    table: str
    values: Dict[str, Any] = field(default_factory=dict)
    conditions: Dict[str, Any] = field(default_factory=dict)
    conflict_keys: Tuple[str, ...] = ()


def chunked(rows: List[dict], size: int) -> List[List[dict]]:
    return [rows[i:i + size] for i in range(0, len(rows), size)]


class RecordStore(ABC):
    """
    Defines the data store contract: create / read / update / upsert / delete.
    Every method raises StoreError when the underlying store fails.
    """

    @abstractmethod
    def create(self, table: str, values: Dict[str, Any]) -> Any:
        """Inserts a row and returns its primary key."""
        pass

    @abstractmethod
    def read(
        self,
        table: str,
        conditions: Optional[Conditions] = None,
        columns: Optional[Sequence[str]] = None,
        join: Optional[Join] = None,
        order_by: Optional[OrderBy] = None,
        distinct: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[dict]:
        """
        Returns matching rows as dicts. A condition whose value is a list,
        tuple or set matches any of its members (IN).
        """
        pass

    @abstractmethod
    def update(self, table: str, values: Dict[str, Any], conditions: Conditions) -> int:
        """Returns the number of affected rows."""
        pass

    @abstractmethod
    def upsert(self, table: str, values: Dict[str, Any], conflict_keys: Sequence[str]) -> None:
        """Inserts, or updates the row that shares the conflict_keys values."""
        pass

    @abstractmethod
    def delete(self, table: str, conditions: Conditions) -> int:
        """Returns the number of deleted rows."""
        pass

    def read_one(self, table: str, conditions: Conditions, **kwargs) -> Optional[dict]:
        rows = self.read(table, conditions, limit=1, **kwargs)
        return rows[0] if rows else None

    def read_chunks(self, table: str, chunk_size: int, **kwargs) -> List[List[dict]]:
        return chunked(self.read(table, **kwargs), chunk_size)

    def apply(self, write: RecordWrite) -> Any:
        """Performs a handler's RecordWrite."""
        if write.operation == "create":
            return self.create(write.table, dict(write.values))
        if write.operation == "update":
            return self.update(write.table, dict(write.values), write.conditions)
        if write.operation == "upsert":
            return self.upsert(write.table, dict(write.values), write.conflict_keys)
        if write.operation == "delete":
            return self.delete(write.table, write.conditions)
        raise StoreError(f"Unknown record operation '{write.operation}'.")


def _matches(row: dict, conditions: Optional[Conditions]) -> bool:
    for key, expected in (conditions or {}).items():
        if isinstance(expected, (list, tuple, set, frozenset)):
            if row.get(key) not in expected:
                return False
        elif row.get(key) != expected:
            return False
    return True


class InMemoryRecordStore(RecordStore):
    """
    Dictionary-backed store for testing/dev purposes.
    """

    def __init__(self, data: Optional[Dict[str, List[dict]]] = None):
        self._tables: Dict[str, List[dict]] = {}
        self._next_id: Dict[str, int] = {}
        for table, rows in (data or {}).items():
            for row in rows:
                self.create(table, dict(row))

    def _rows(self, table: str) -> List[dict]:
        return self._tables.setdefault(table, [])

    def create(self, table: str, values: Dict[str, Any]) -> Any:
        row = dict(values)
        if row.get("id") is None:
            row["id"] = self._next_id.get(table, 1)
        self._next_id[table] = max(self._next_id.get(table, 1), row["id"] + 1)
        self._rows(table).append(row)
        return row["id"]

    def read(
        self,
        table: str,
        conditions: Optional[Conditions] = None,
        columns: Optional[Sequence[str]] = None,
        join: Optional[Join] = None,
        order_by: Optional[OrderBy] = None,
        distinct: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[dict]:
        rows = [dict(row) for row in self._rows(table) if _matches(row, conditions)]

        if join:
            local_key, other_key = join.on
            joined = []
            for row in rows:
                for other in self._rows(join.table):
                    if other.get(other_key) == row.get(local_key):
                        merged = dict(row)
                        for column, alias in join.columns.items():
                            merged[alias] = other.get(column)
                        joined.append(merged)
            rows = joined

        # Stable sort, least significant key first
        for column, direction in reversed(list((order_by or {}).items())):
            rows.sort(
                key=lambda row: (row.get(column) is None, row.get(column)),
                reverse=direction == "DESC",
            )

        if columns:
            rows = [{column: row.get(column) for column in columns} for row in rows]

        if distinct:
            unique, seen = [], set()
            for row in rows:
                marker = tuple(sorted(row.items()))
                if marker not in seen:
                    seen.add(marker)
                    unique.append(row)
            rows = unique

        start = offset or 0
        end = start + limit if limit is not None else None
        return rows[start:end]

    def update(self, table: str, values: Dict[str, Any], conditions: Conditions) -> int:
        affected = 0
        for row in self._rows(table):
            if _matches(row, conditions):
                row.update(values)
                affected += 1
        return affected

    def upsert(self, table: str, values: Dict[str, Any], conflict_keys: Sequence[str]) -> None:
        key = {column: values.get(column) for column in conflict_keys}
        if key and self.update(table, values, key):
            return
        self.create(table, values)

    def delete(self, table: str, conditions: Conditions) -> int:
        rows = self._rows(table)
        kept = [row for row in rows if not _matches(row, conditions)]
        self._tables[table] = kept
        return len(rows) - len(kept)


class PostgresRecordStore(RecordStore):
    """
    SQLAlchemy Core over the SQLModel table metadata.
    Upserts use native ON CONFLICT on PostgreSQL and SQLite.
    """

    def __init__(self, engine: Engine = default_engine):
        self.engine = engine

    def _table(self, name: str) -> Table:
        try:
            return SQLModel.metadata.tables[name]
        except KeyError as e:
            raise StoreError(f"Unknown table '{name}'.") from e

    def _where(self, statement, table: Table, conditions: Optional[Conditions]):
        for key, expected in (conditions or {}).items():
            column = table.c[key]
            if isinstance(expected, (list, tuple, set, frozenset)):
                statement = statement.where(column.in_(list(expected)))
            else:
                statement = statement.where(column == expected)
        return statement

    def create(self, table: str, values: Dict[str, Any]) -> Any:
        target = self._table(table)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(target).values(**values))
                return result.inserted_primary_key[0]
        except SQLAlchemyError as e:
            logger.error(f"Insert into '{table}' failed: {e}")
            raise StoreError(str(e)) from e

    def read(
        self,
        table: str,
        conditions: Optional[Conditions] = None,
        columns: Optional[Sequence[str]] = None,
        join: Optional[Join] = None,
        order_by: Optional[OrderBy] = None,
        distinct: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[dict]:
        target = self._table(table)
        selected = [target.c[column] for column in columns] if columns else list(target.c)

        if join:
            other = self._table(join.table)
            local_key, other_key = join.on
            selected += [other.c[column].label(alias) for column, alias in join.columns.items()]
            statement = select(*selected).select_from(
                target.join(other, target.c[local_key] == other.c[other_key])
            )
        else:
            statement = select(*selected)

        statement = self._where(statement, target, conditions)
        if distinct:
            statement = statement.distinct()
        for column, direction in (order_by or {}).items():
            statement = statement.order_by(
                target.c[column].desc() if direction == "DESC" else target.c[column].asc()
            )
        if limit is not None:
            statement = statement.limit(limit)
        if offset:
            statement = statement.offset(offset)

        try:
            with self.engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(statement)]
        except SQLAlchemyError as e:
            logger.error(f"Read from '{table}' failed: {e}")
            raise StoreError(str(e)) from e

    def update(self, table: str, values: Dict[str, Any], conditions: Conditions) -> int:
        target = self._table(table)
        statement = self._where(update(target), target, conditions).values(**values)
        try:
            with self.engine.begin() as conn:
                return conn.execute(statement).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Update of '{table}' failed: {e}")
            raise StoreError(str(e)) from e

    def upsert(self, table: str, values: Dict[str, Any], conflict_keys: Sequence[str]) -> None:
        target = self._table(table)
        dialect = self.engine.dialect.name

        try:
            with self.engine.begin() as conn:
                if dialect in ("postgresql", "sqlite"):
                    dialect_insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                    statement = dialect_insert(target).values(**values)
                    statement = statement.on_conflict_do_update(
                        index_elements=list(conflict_keys),
                        set_={k: v for k, v in values.items() if k not in conflict_keys},
                    )
                    conn.execute(statement)
                    return

                key = {column: values[column] for column in conflict_keys}
                updated = conn.execute(self._where(update(target), target, key).values(**values))
                if not updated.rowcount:
                    conn.execute(insert(target).values(**values))
        except SQLAlchemyError as e:
            logger.error(f"Upsert into '{table}' failed: {e}")
            raise StoreError(str(e)) from e

    def delete(self, table: str, conditions: Conditions) -> int:
        target = self._table(table)
        statement = self._where(delete(target), target, conditions)
        try:
            with self.engine.begin() as conn:
                return conn.execute(statement).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Delete from '{table}' failed: {e}")
            raise StoreError(str(e)) from e
