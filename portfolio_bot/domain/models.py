"""
Domain Layer - Menu Tree Models

This module defines the static structure of the bot's navigation: a forest of
named MenuNodes, each rendered as a keyboard of its children. The stored shape
(adjacency lists of string ids) is not trusted; MenuTree indexes the nodes and
validates the graph once per load.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set

logger = logging.getLogger(__name__)

ROOT_NODE_ID = "0"
BACK_NODE_ID = "s0"
CANCEL_NODE_ID = "s1"

"""
Reserved ids denote system actions rather than places in the tree:
- s0: Back (undo a step, or go up one level)
- s1: Cancel (abandon the workflow, or go up one level)
"""
SYSTEM_ACTION_IDS = frozenset({BACK_NODE_ID, CANCEL_NODE_ID})


class MenuConfigurationError(Exception):
    """Raised when the stored menu tree cannot be used at all."""
    pass


@dataclass
class MenuNode:
    """
    A single addressable position in the navigation tree.

    Attributes:
        id: Stable identifier, unique across the tree.
        attrs: Button payload. Must carry 'text'; other keys (e.g. 'web_app')
            are passed to the transport untouched.
        admin_only: True hides the node from unprivileged viewers.
            False and None both mean "visible to everyone".
        parent_id: Enclosing node. None for the root and for system actions.
        children_rows: Keyboard layout, rows of child ids.
    """
    id: str
    attrs: Dict[str, Any]
    admin_only: Optional[bool] = None
    parent_id: Optional[str] = None
    children_rows: List[List[str]] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.attrs.get("text", "")

    @property
    def is_system_action(self) -> bool:
        return self.id in SYSTEM_ACTION_IDS

    def visible_to(self, privileged: bool) -> bool:
        return privileged or not self.admin_only


class MenuTree:
    """
    Indexed, validated view over a set of MenuNodes.

    Holds a node table, a parent index and a children index (rows with
    dangling references removed). Built once per request.
    """

    def __init__(
        self,
        nodes: Dict[str, MenuNode],
        children: Dict[str, List[List[str]]],
        root_id: str = ROOT_NODE_ID,
    ):
        self.root_id = root_id
        self._nodes = nodes
        self._children = children
        self._parents: Dict[str, Optional[str]] = {
            node_id: node.parent_id for node_id, node in nodes.items()
        }

    @classmethod
    def build(cls, nodes: List[MenuNode], root_id: str = ROOT_NODE_ID) -> "MenuTree":
        index: Dict[str, MenuNode] = {}
        for node in nodes:
            if node.id in index:
                raise MenuConfigurationError(f"Duplicate menu node id '{node.id}'.")
            index[node.id] = node

        if root_id not in index:
            raise MenuConfigurationError(f"Root node '{root_id}' is missing.")

        children: Dict[str, List[List[str]]] = {}
        for node in index.values():
            rows = []
            for row in node.children_rows or []:
                kept = []
                for child_id in row:
                    if child_id in index:
                        kept.append(child_id)
                    else:
                        logger.error(
                            f"Menu node '{node.id}' references missing child '{child_id}'; dropped."
                        )
                if kept:
                    rows.append(kept)
            children[node.id] = rows

            if node.parent_id is not None and node.parent_id not in index:
                logger.error(
                    f"Menu node '{node.id}' has dangling parent '{node.parent_id}'."
                )

        tree = cls(index, children, root_id=root_id)
        tree._check_acyclic()
        return tree

    def _check_acyclic(self):
        # Iterative DFS; system actions are shared leaves and may appear under
        # many nodes, which is not a cycle.
        visiting: Set[str] = set()
        done: Set[str] = set()
        stack = [(self.root_id, False)]

        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                visiting.discard(node_id)
                done.add(node_id)
                continue
            if node_id in done:
                continue

            visiting.add(node_id)
            stack.append((node_id, True))
            for child_id in self.child_ids(node_id):
                if child_id in visiting:
                    raise MenuConfigurationError(
                        f"Menu cycle detected: '{node_id}' -> '{child_id}'."
                    )
                if child_id not in done:
                    stack.append((child_id, False))

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: Optional[str]) -> Optional[MenuNode]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    @property
    def root(self) -> MenuNode:
        return self._nodes[self.root_id]

    def parent_of(self, node_id: str) -> Optional[str]:
        return self._parents.get(node_id)

    def children_rows(self, node_id: str) -> List[List[str]]:
        return self._children.get(node_id, [])

    def child_ids(self, node_id: str) -> Iterator[str]:
        for row in self.children_rows(node_id):
            yield from row

    # ==========================================================================
    # Presentation
    # ==========================================================================

    def outline(self) -> str:
        """
        Renders the tree below the root as a box-drawing diagram.
        System actions are left out; they repeat under every node.
        """
        lines = [self.root.label or "Root"]
        self._outline_level(self.root_id, "", lines, set())
        return "\n".join(lines)

    def _outline_level(self, node_id: str, prefix: str, lines: List[str], seen: Set[str]):
        seen = seen | {node_id}
        child_ids = [
            child_id for child_id in self.child_ids(node_id)
            if child_id not in SYSTEM_ACTION_IDS and child_id not in seen
        ]
        for position, child_id in enumerate(child_ids):
            child = self._nodes[child_id]
            is_last = position == len(child_ids) - 1
            connector = "└── " if is_last else "├── "
            marker = " 🔒" if child.admin_only else ""
            lines.append(f"{prefix}{connector}{child.label}{marker}")
            self._outline_level(child_id, prefix + ("    " if is_last else "│   "), lines, seen)
