"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the domain models (MenuNode, SessionState).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, BigInteger, Column, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on Postgres, plain JSON elsewhere (tests, local SQLite).
JSONColumnType = JSON().with_variant(JSONB(), "postgresql")


class MenuNodeDBModel(SQLModel, table=True):
    """
    Persistence model for menu nodes.
    Maps 1-to-1 with the 'buttons' table.
    """

    __tablename__ = "buttons"

    id: str = Field(primary_key=True, max_length=36)

    # Button payload: {"text": ..., optional transport extras}
    attrs: Dict[str, Any] = Field(sa_column=Column(JSONColumnType, nullable=False))

    admin_only: Optional[bool] = Field(default=None)
    parent_id: Optional[str] = Field(default=None, max_length=36, index=True)

    # Keyboard layout: array of rows of child ids
    children_rows: Optional[List[List[str]]] = Field(
        default=None, sa_column=Column(JSONColumnType, nullable=True)
    )


class SessionDBModel(SQLModel, table=True):
    """
    Persistence model for user sessions.
    Maps 1-to-1 with the 'sessions' table.
    """

    __tablename__ = "sessions"

    identity: int = Field(sa_column=Column(BigInteger, primary_key=True))
    current_node: str = Field(default="0", max_length=36)

    # Progress stack as a JSON array of {step_name, payload}; NULL when idle
    progress: Optional[List[Dict[str, Any]]] = Field(
        default=None, sa_column=Column(JSONColumnType, nullable=True)
    )

    privileged: bool = Field(default=False, index=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ==============================================================================
# Records owned by the feature handlers
# ==============================================================================

class AssetDBModel(SQLModel, table=True):
    __tablename__ = "assets"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=191, unique=True)
    asset_type: str = Field(max_length=20, index=True)
    price: float = Field(default=0.0, sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    base_currency: str = Field(default="IRR", max_length=10)
    exchange_rate: int = Field(default=1)
    date: Optional[str] = Field(default=None, max_length=10)
    time: Optional[str] = Field(default=None, max_length=8)


class HoldingDBModel(SQLModel, table=True):
    __tablename__ = "holdings"
    __table_args__ = (UniqueConstraint("person_id", "asset_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    asset_id: int = Field(foreign_key="assets.id")
    amount: float = Field(default=0.0, sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    avg_price: float = Field(sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    note: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None


class FavoriteDBModel(SQLModel, table=True):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("person_id", "asset_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    asset_id: int = Field(foreign_key="assets.id")


class AlertDBModel(SQLModel, table=True):
    __tablename__ = "alerts"
    __table_args__ = (UniqueConstraint("person_id", "asset_id", "target_price"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    asset_id: int = Field(foreign_key="assets.id")
    target_price: float = Field(sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    trigger_type: str = Field(default="both", max_length=4)
    is_active: bool = Field(default=False)
    created_at: Optional[str] = None
    triggered_at: Optional[str] = None
    note: Optional[str] = None


class LoanDBModel(SQLModel, table=True):
    __tablename__ = "loans"
    __table_args__ = (UniqueConstraint("person_id", "name", "received_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    name: str = Field(max_length=191)
    total_amount: float = Field(sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    received_date: Optional[str] = Field(default=None, max_length=10)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class InstallmentDBModel(SQLModel, table=True):
    __tablename__ = "installments"
    __table_args__ = (UniqueConstraint("loan_id", "due_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    loan_id: int = Field(foreign_key="loans.id")
    amount: float = Field(sa_column=Column(Numeric(18, 8, asdecimal=False), nullable=False))
    due_date: str = Field(max_length=10)
    is_paid: bool = Field(default=False)
