"""
Keyboard Resolver.

Renders a node's children as a keyboard and maps typed text back to the child
it labels. Both operations are scoped to the node the viewer occupies and
filtered by the viewer's privilege, so a hidden button can neither be seen nor
pressed by typing its label.
"""

import logging
from typing import List, Optional

from ..domain.models import MenuNode, MenuTree
from .schemas.outcomes import Keyboard

logger = logging.getLogger(__name__)


class KeyboardResolver:
    def __init__(self, tree: MenuTree):
        self.tree = tree

    def visible_children(self, node_id: str, privileged: bool) -> List[List[MenuNode]]:
        rows = []
        for row in self.tree.children_rows(node_id):
            visible = [
                child for child in (self.tree.get(child_id) for child_id in row)
                if child is not None and child.visible_to(privileged)
            ]
            if visible:
                rows.append(visible)
        return rows

    def render(self, node_id: str, privileged: bool) -> Optional[Keyboard]:
        """
        Returns the node's visible children as rows of button attrs, in the
        stored row/column order. None if the node is missing or shows nothing.
        """
        if node_id not in self.tree:
            return None

        keyboard = [
            [dict(child.attrs) for child in row]
            for row in self.visible_children(node_id, privileged)
        ]
        return keyboard or None

    def resolve(self, node_id: str, privileged: bool, text: str) -> Optional[MenuNode]:
        """
        Finds the single visible child of node_id labelled exactly 'text'.
        """
        if node_id not in self.tree:
            return None

        # Keyed by id: the same node listed twice is not ambiguous.
        matches = list({
            child.id: child
            for row in self.visible_children(node_id, privileged)
            for child in row
            if child.label == text
        }.values())

        if len(matches) > 1:
            logger.error(
                f"Ambiguous label {text!r} under node '{node_id}': "
                f"{[child.id for child in matches]}"
            )
            return None

        return matches[0] if matches else None
