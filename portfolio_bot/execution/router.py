"""
Dialog Router - the per-request decision engine.

Turns "inbound event + stored session" into "next session + outbound render".
The session is in one of two coarse states:

- AtNode: no progress; the user is browsing the menu tree.
- InStep: progress is non-empty; its top frame names the awaited input.

Text messages are evaluated in a fixed priority order:
1. Global commands jump to a feature's entry, discarding any workflow.
2. A label of a visible child of the current node navigates (Back and Cancel
   are handed to the NavigationController).
3. Anything else is step input when InStep, or node-level free text when
   AtNode (the generic "not understood" reply if no handler claims it).

Callback queries skip label resolution entirely: they are acknowledged and
dispatched, still keyed, to the handler of the current node.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from .. import messages
from ..domain.models import BACK_NODE_ID, CANCEL_NODE_ID, MenuTree
from ..handlers.base import HandlerRegistry
from ..repositories.records import RecordStore
from ..schemas.commands import parse_payload
from ..schemas.events import CallbackQuery, InboundEvent, TextMessage
from ..services.exceptions import DeliveryError
from ..state.models import SessionState
from ..transport.interface import ChatTransport
from .keyboard import KeyboardResolver
from .navigation import NavigationController
from .schemas.outcomes import Advance, Complete, HandlerOutcome, Reject, Reply, Show
from .schemas.state_machine import NavigationTransition

logger = logging.getLogger(__name__)

# Feature-area shortcuts: command text -> node id
GLOBAL_COMMANDS: Dict[str, str] = {
    "/start": "0",
    "/holdings": "1",
    "/loans": "2",
    "/prices": "5",
}


class DialogRouter:
    def __init__(
        self,
        tree: MenuTree,
        handlers: HandlerRegistry,
        transport: ChatTransport,
        record_store: RecordStore,
        global_commands: Mapping[str, str] = GLOBAL_COMMANDS,
    ):
        self.tree = tree
        self.handlers = handlers
        self.transport = transport
        self.records = record_store
        self.global_commands = global_commands
        self.resolver = KeyboardResolver(tree)
        self.navigator = NavigationController(tree)

    async def route(self, session: SessionState, event: InboundEvent):
        """
        The Orchestrator. Mutates 'session' in place; the caller persists it
        only if this returns without raising.
        """
        if session.current_node not in self.tree:
            logger.error(
                f"Session {session.identity} points at missing node "
                f"'{session.current_node}'; resetting to the root."
            )
            session.current_node = self.tree.root_id
            session.reset_workflow()

        if isinstance(event, CallbackQuery):
            await self._route_callback(session, event)
        else:
            await self._route_text(session, event)

    # ==========================================================================
    # Dispatch
    # ==========================================================================

    async def _route_text(self, session: SessionState, event: TextMessage):
        # 1. Global commands
        target = self.global_commands.get(event.text)
        if target is not None:
            if target in self.tree:
                logger.info(f"Session {session.identity}: global command {event.text!r}")
                session.reset_workflow()
                session.current_node = target
                await self._enter_node(session, event)
                return
            logger.error(f"Global command {event.text!r} targets missing node '{target}'")

        # 2. Buttons of the current node
        pressed = self.resolver.resolve(session.current_node, session.privileged, event.text)
        if pressed is not None:
            if pressed.id == BACK_NODE_ID:
                transition = self.navigator.back(session)
                await self._after_navigation(session, transition, event)
            elif pressed.id == CANCEL_NODE_ID:
                transition = self.navigator.cancel(session)
                await self._after_navigation(session, transition, event)
            else:
                session.current_node = pressed.id
                session.reset_workflow()
                await self._enter_node(session, event)
            return

        # 3. Free text
        if session.in_step:
            step_name = session.top_frame.step_name
            handler = self.handlers.for_step(step_name)
            if handler is None:
                logger.error(f"No handler owns step '{step_name}'; dropping the workflow.")
                session.reset_workflow()
                await self._deliver(session, Reply(messages.NOT_UNDERSTOOD), event)
                return
            outcome = await handler.handle_step(session, event)
            await self._apply(session, outcome, event)
            return

        handler = self.handlers.for_node(session.current_node)
        outcome = await handler.handle_text(session, event) if handler else None
        if outcome is None:
            outcome = Show(Reply(messages.NOT_UNDERSTOOD))
        await self._apply(session, outcome, event)

    async def _route_callback(self, session: SessionState, event: CallbackQuery):
        # Acknowledge first so the button stops spinning whatever happens next.
        if not await self.transport.answer_callback(event.query_id):
            logger.warning(f"Failed to acknowledge callback query {event.query_id}")

        payload = parse_payload(event.raw_payload)
        handler = self.handlers.for_node(session.current_node)

        outcome = None
        if payload is not None and handler is not None:
            outcome = await handler.handle_callback(session, payload, event)

        if outcome is None:
            logger.info(
                f"Session {session.identity}: unrecognized callback at node "
                f"'{session.current_node}': {event.raw_payload!r}"
            )
            outcome = Show(Reply(messages.REQUEST_EXPIRED, edit_message=True))

        await self._apply(session, outcome, event)

    # ==========================================================================
    # State transitions
    # ==========================================================================

    async def _enter_node(self, session: SessionState, event: InboundEvent):
        handler = self.handlers.for_node(session.current_node)
        if handler is not None:
            outcome = await handler.enter(session)
            await self._apply(session, outcome, event)
            return

        node = self.tree.get(session.current_node)
        await self._deliver(session, Reply(node.label), event)

    async def _after_navigation(
        self, session: SessionState, transition: NavigationTransition, event: InboundEvent
    ):
        if transition == NavigationTransition.STEP_BACK:
            await self._rerender_step(session, event)
        else:
            await self._enter_node(session, event)

    async def _rerender_step(self, session: SessionState, event: InboundEvent):
        """
        Shows the prompt of the step now on top of the stack again.
        Never changes the session, whatever the handler returns.
        """
        step_name = session.top_frame.step_name
        handler = self.handlers.for_step(step_name)
        if handler is None:
            logger.error(f"No handler owns step '{step_name}'; dropping the workflow.")
            session.reset_workflow()
            await self._enter_node(session, event)
            return

        outcome = await handler.handle_step(session, None)
        if not isinstance(outcome, (Show, Reject)):
            logger.warning(
                f"Handler for step '{step_name}' returned {type(outcome).__name__} "
                f"on a re-render; only its reply is used."
            )
        await self._deliver(session, _reply_of(outcome), event)

    async def _apply(self, session: SessionState, outcome: HandlerOutcome, event: InboundEvent):
        if isinstance(outcome, Advance):
            if outcome.replace:
                session.replace_step(outcome.step_name, outcome.payload)
            else:
                session.push_step(outcome.step_name, outcome.payload)
            await self._deliver(session, outcome.reply, event)

        elif isinstance(outcome, Complete):
            # StoreError propagates: nothing is saved and the user may retry.
            if outcome.result is not None:
                self.records.apply(outcome.result)
            session.reset_workflow()
            await self._deliver(session, outcome.reply, event)

        elif isinstance(outcome, (Reject, Show)):
            await self._deliver(session, _reply_of(outcome), event)

        else:
            raise TypeError(f"Unknown handler outcome: {outcome!r}")

    # ==========================================================================
    # Rendering
    # ==========================================================================

    def _reply_markup(self, session: SessionState, reply: Reply) -> Optional[Dict[str, Any]]:
        if reply.inline_keyboard is not None:
            return {"inline_keyboard": reply.inline_keyboard}

        rows = list(reply.extra_rows) + (
            self.resolver.render(session.current_node, session.privileged) or []
        )
        if not rows:
            return None

        node = self.tree.get(session.current_node)
        return {
            "keyboard": rows,
            "resize_keyboard": True,
            "input_field_placeholder": node.label if node else "",
        }

    async def _deliver(self, session: SessionState, reply: Reply, event: InboundEvent) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": session.identity, "text": reply.text}
        if reply.parse_mode:
            payload["parse_mode"] = reply.parse_mode

        # Only messages the bot sent can be edited, i.e. the one under an inline button.
        can_edit = isinstance(event, CallbackQuery) and event.originating_message_id is not None

        if reply.edit_message and can_edit:
            method = "editMessageText"
            payload["message_id"] = event.originating_message_id
            if reply.inline_keyboard is not None:
                payload["reply_markup"] = {"inline_keyboard": reply.inline_keyboard}
        else:
            method = "sendMessage"
            markup = self._reply_markup(session, reply)
            if markup is not None:
                payload["reply_markup"] = markup

        response = await self.transport.send(method, payload)
        if response is None:
            raise DeliveryError(method)
        return response


def _reply_of(outcome: HandlerOutcome) -> Reply:
    if isinstance(outcome, Reject):
        return Reply(outcome.user_message, edit_message=outcome.edit_message)
    return outcome.reply
