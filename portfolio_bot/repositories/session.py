import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional
from datetime import datetime

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

# Domain & Infra Imports
from ..state.models import SessionState
from ..infrastructure.database.tables import SessionDBModel
from ..infrastructure.database.connection import engine as default_engine

logger = logging.getLogger(__name__)


class SessionRepository(ABC):
    """
    Storage contract for per-user routing state. save() reports failure
    as False instead of raising so the caller can log it and move on.

    Creating a session on first contact is the caller's decision;
    get() never creates one implicitly.
    """

    @abstractmethod
    def create(
        self,
        identity: int,
        privileged: bool = False,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> SessionState:
        """Creates a new session positioned at the root node."""
        pass

    @abstractmethod
    def get(self, identity: int) -> Optional[SessionState]:
        """Retrieves a session by identity."""
        pass

    @abstractmethod
    def save(self, session: SessionState) -> bool:
        """
        Overwrites current_node, progress and privileged.
        Returns False if the write did not happen.
        """
        pass

    @abstractmethod
    def has_privileged(self) -> bool:
        """True once any privileged user exists."""
        pass


class InMemorySessionRepository(SessionRepository):
    """
    Dict-backed store for local runs (SESSION_STORE=memory) and tests.
    Sessions are stored as JSON dumps so reads never share objects with writers.
    """

    def __init__(self):
        self._store: Dict[int, dict] = {}

    def create(
        self,
        identity: int,
        privileged: bool = False,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> SessionState:
        session = SessionState(
            identity=identity,
            privileged=privileged,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )
        self._store[identity] = session.model_dump(mode="json")
        return session

    def get(self, identity: int) -> Optional[SessionState]:
        data = self._store.get(identity)
        if data is None:
            return None
        return SessionState.model_validate(data)

    def save(self, session: SessionState) -> bool:
        if session.identity not in self._store:
            return False
        session.updated_at = datetime.utcnow()
        self._store[session.identity] = session.model_dump(mode="json")
        return True

    def has_privileged(self) -> bool:
        return any(data["privileged"] for data in self._store.values())


class PostgresSessionRepository(SessionRepository):
    """
    SQL storage for session state; progress lives in a JSON(B) column.
    """

    def __init__(self, engine: Engine = default_engine):
        self.engine = engine

    def create(
        self,
        identity: int,
        privileged: bool = False,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> SessionState:
        # Create the (Domain) Python object
        domain_session = SessionState(
            identity=identity,
            privileged=privileged,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )

        # Save to DB
        db_model = SessionDBModel(
            identity=identity,
            current_node=domain_session.current_node,
            progress=None,
            privileged=privileged,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )

        with Session(self.engine) as db:
            db.add(db_model)
            db.commit()

        return domain_session

    def get(self, identity: int) -> Optional[SessionState]:
        with Session(self.engine) as db:
            statement = select(SessionDBModel).where(
                SessionDBModel.identity == identity
            )
            result = db.exec(statement).first()

            if not result:
                return None

            # Deserialize the row back into the Pydantic Domain Model
            return SessionState(
                identity=result.identity,
                current_node=result.current_node,
                progress=result.progress,
                privileged=result.privileged,
                first_name=result.first_name,
                last_name=result.last_name,
                username=result.username,
                updated_at=result.updated_at,
            )

    def save(self, session: SessionState) -> bool:
        data = session.model_dump(mode="json")
        try:
            with Session(self.engine) as db:
                statement = select(SessionDBModel).where(
                    SessionDBModel.identity == session.identity
                )
                result = db.exec(statement).first()

                if not result:
                    logger.error(f"Session {session.identity} does not exist in DB.")
                    return False

                # Full overwrite of the routing state and the timestamp
                result.current_node = data["current_node"]
                result.progress = data["progress"]
                result.privileged = data["privileged"]
                result.updated_at = datetime.utcnow()
                db.add(result)
                db.commit()
                return True
        except SQLAlchemyError as e:
            logger.error(f"Failed to save session {session.identity}: {e}")
            return False

    def has_privileged(self) -> bool:
        with Session(self.engine) as db:
            statement = select(SessionDBModel.identity).where(
                SessionDBModel.privileged == True  # noqa: E712
            )
            return db.exec(statement).first() is not None
