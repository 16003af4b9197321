"""
Chat Service - Application Orchestration Layer

This service is the entry point for every inbound event. It orchestrates the
interaction between the Data Layer (Repositories), the Logic Layer
(DialogRouter + handlers) and the transport. It ensures that sessions are
loaded, routed and saved correctly, and that a failed request leaves the
stored session exactly as it was.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .. import messages
from ..domain.models import MenuConfigurationError
from ..execution.router import GLOBAL_COMMANDS, DialogRouter
from ..handlers.admin import AdminHandler
from ..handlers.base import HandlerRegistry
from ..handlers.holdings import HoldingsHandler
from ..handlers.loans import LoansHandler
from ..handlers.prices import PricesHandler
from ..repositories.menu import MenuRepository
from ..repositories.records import RecordStore
from ..repositories.session import SessionRepository
from ..schemas.events import CallbackQuery, InboundEvent
from ..state.models import SessionState
from ..transport.interface import ChatTransport
from .datetime_extractor import DateTimeExtractor
from .exceptions import CollaboratorError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserProfile:
    """Sender details stored when a session is first created."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None


class ChatService:
    def __init__(
        self,
        session_repository: SessionRepository,
        menu_repository: MenuRepository,
        transport: ChatTransport,
        record_store: RecordStore,
        extractor: DateTimeExtractor,
        global_commands: Mapping[str, str] = GLOBAL_COMMANDS,
    ):
        self.session_repo = session_repository
        self.menu_repo = menu_repository
        self.transport = transport
        self.records = record_store
        self.extractor = extractor
        self.global_commands = global_commands

    def get_session(self, identity: int) -> Optional[SessionState]:
        """Retrieves a session (for inspection)."""
        return self.session_repo.get(identity)

    def build_router(self) -> DialogRouter:
        """
        Loads the menu tree and wires a router around it.
        Raises MenuConfigurationError if the tree is unusable.
        """
        tree = self.menu_repo.load_tree()
        handlers = HandlerRegistry([
            HoldingsHandler(self.records, self.transport, self.extractor),
            LoansHandler(self.records, self.extractor),
            PricesHandler(self.records),
            AdminHandler(tree),
        ])
        return DialogRouter(tree, handlers, self.transport, self.records, self.global_commands)

    async def process_event(self, event: InboundEvent, profile: Optional[UserProfile] = None) -> bool:
        """
        The Core Loop:
        1. Load (or create) the session
        2. Route the event on a private copy
        3. Save the copy, only if routing finished

        Returns True if the session was saved.
        """
        try:
            session = await self._load_session(event, profile or UserProfile())
            if session is None:
                return False

            # Routing mutates the copy; the stored session stays untouched on failure.
            working = session.model_copy(deep=True)
            router = self.build_router()
            await router.route(working, event)

        except (CollaboratorError, MenuConfigurationError) as e:
            logger.error(f"Request for chat {event.chat_id} failed: {type(e).__name__}: {e}")
            await self._notify_failure(event.chat_id)
            return False
        except Exception:
            logger.exception(f"Unexpected error while handling chat {event.chat_id}")
            await self._notify_failure(event.chat_id)
            return False

        if not self.session_repo.save(working):
            logger.error(f"Session {working.identity} could not be saved; the update is lost.")
            return False
        return True

    async def _load_session(self, event: InboundEvent, profile: UserProfile) -> Optional[SessionState]:
        session = self.session_repo.get(event.chat_id)
        if session is not None:
            return session

        if isinstance(event, CallbackQuery):
            # Buttons can only come from messages we sent to a known user.
            logger.warning(f"Dropping callback query from unknown chat {event.chat_id}")
            await self.transport.answer_callback(event.query_id)
            return None

        privileged = not self.session_repo.has_privileged()
        if privileged:
            logger.info(f"First user {event.chat_id} registered as admin.")
        return self.session_repo.create(
            identity=event.chat_id,
            privileged=privileged,
            first_name=profile.first_name,
            last_name=profile.last_name,
            username=profile.username,
        )

    async def _notify_failure(self, chat_id: int):
        response = await self.transport.send(
            "sendMessage", {"chat_id": chat_id, "text": messages.OPERATION_FAILED}
        )
        if response is None:
            logger.warning(f"Could not deliver the failure notice to chat {chat_id}")
