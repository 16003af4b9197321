"""
Navigation Controller - Back and Cancel.

Mutates the session's progress stack and current node, then reports what it
did as a NavigationTransition. It never renders anything itself; the
DialogRouter re-enters the resulting state.

Back:
    2+ frames -> pop two frames (undo the last answered step)
    1 frame   -> drop the workflow, stay on the node
    0 frames  -> go up to the parent node (the root stays put)
Cancel:
    drop the workflow unconditionally; if there was none, go up one level
"""

import logging

from ..domain.models import MenuTree
from ..state.models import SessionState
from .schemas.state_machine import NavigationTransition

logger = logging.getLogger(__name__)


class NavigationController:
    def __init__(self, tree: MenuTree):
        self.tree = tree

    def back(self, session: SessionState) -> NavigationTransition:
        depth = session.depth

        if depth >= 2:
            removed = session.pop_last_answered()
            logger.debug(
                f"Session {session.identity}: stepped back over "
                f"{[frame.step_name for frame in removed]}"
            )
            if session.in_step:
                return NavigationTransition.STEP_BACK
            return NavigationTransition.EXIT_WORKFLOW

        if depth == 1:
            session.reset_workflow()
            return NavigationTransition.EXIT_WORKFLOW

        return self._ascend(session)

    def cancel(self, session: SessionState) -> NavigationTransition:
        had_workflow = session.in_step
        session.reset_workflow()

        if had_workflow:
            return NavigationTransition.EXIT_WORKFLOW
        return self._ascend(session)

    def _ascend(self, session: SessionState) -> NavigationTransition:
        current = self.tree.get(session.current_node)
        if current is None:
            logger.error(
                f"Session {session.identity} points at missing node "
                f"'{session.current_node}'; falling back to the root."
            )
            session.current_node = self.tree.root_id
            return NavigationTransition.FALLBACK_ROOT

        # The root has no parent: clamp.
        if current.id == self.tree.root_id:
            return NavigationTransition.ASCEND

        if current.parent_id is None or current.parent_id not in self.tree:
            logger.error(
                f"Node '{current.id}' has dangling parent '{current.parent_id}'; "
                f"falling back to the root."
            )
            session.current_node = self.tree.root_id
            return NavigationTransition.FALLBACK_ROOT

        session.current_node = current.parent_id
        return NavigationTransition.ASCEND
