"""
Level Handlers - the per-feature side of the router contract.

Each handler owns one top-level menu node and the workflow steps started from
it. Handlers read the session but never mutate it: every entry point returns a
HandlerOutcome which the DialogRouter applies.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, Optional, Tuple, Type

from .. import messages
from ..execution.schemas.outcomes import HandlerOutcome, Reject
from ..schemas.commands import CallbackCommand, decode_command
from ..schemas.events import CallbackQuery, TextMessage
from ..state.models import SessionState

logger = logging.getLogger(__name__)

CallbackMethod = Callable[[SessionState, Any, CallbackQuery], Awaitable[HandlerOutcome]]


class LevelHandler(ABC):
    """
    Attributes:
        node_id: The menu node this handler owns.
        steps: Step names this handler pushes onto the progress stack.
        commands: Callback commands understood while the user is at node_id.
    """
    node_id: str
    steps: Tuple[str, ...] = ()
    commands: Tuple[Type[CallbackCommand], ...] = ()

    def __init__(self):
        self._callbacks = self.callback_table()
        missing = [cls.name for cls in self.commands if cls not in self._callbacks]
        if missing:
            raise TypeError(f"{type(self).__name__} has no callback for {missing}")

    def callback_table(self) -> Dict[Type[CallbackCommand], CallbackMethod]:
        """Maps every command in 'commands' to the coroutine handling it."""
        return {}

    @abstractmethod
    async def enter(self, session: SessionState) -> HandlerOutcome:
        """Entry screen, shown when the user navigates to node_id."""
        pass

    async def handle_step(
        self, session: SessionState, event: Optional[TextMessage]
    ) -> HandlerOutcome:
        """
        Free-form input for the step named by the top progress frame.
        event is None when the router only needs the step's prompt again;
        implementations must not depend on new input in that case.
        """
        return Reject(messages.NOT_UNDERSTOOD)

    async def handle_text(
        self, session: SessionState, event: TextMessage
    ) -> Optional[HandlerOutcome]:
        """
        Free text typed at node_id outside a workflow. None lets the router
        answer with its generic "not understood" reply.
        """
        return None

    async def handle_callback(
        self, session: SessionState, payload: Dict[str, Any], event: CallbackQuery
    ) -> Optional[HandlerOutcome]:
        """
        Decodes the payload against 'commands' and dispatches it.
        None means the command is unknown here.
        """
        command = decode_command(payload, self.commands)
        if command is None:
            return None
        return await self._callbacks[type(command)](session, command, event)


class HandlerRegistry:
    """
    Index of handlers by the node they own and by the steps they push.
    """

    def __init__(self, handlers: Iterable[LevelHandler] = ()):
        self._by_node: Dict[str, LevelHandler] = {}
        self._by_step: Dict[str, LevelHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: LevelHandler):
        if handler.node_id in self._by_node:
            raise ValueError(f"Node '{handler.node_id}' already has a handler.")
        self._by_node[handler.node_id] = handler

        for step_name in handler.steps:
            if step_name in self._by_step:
                raise ValueError(f"Step '{step_name}' is owned by two handlers.")
            self._by_step[step_name] = handler

    def for_node(self, node_id: str) -> Optional[LevelHandler]:
        return self._by_node.get(node_id)

    def for_step(self, step_name: str) -> Optional[LevelHandler]:
        return self._by_step.get(step_name)

    def __iter__(self) -> Iterator[LevelHandler]:
        return iter(self._by_node.values())
