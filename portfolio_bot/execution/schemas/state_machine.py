"""
Transition Types - Navigation State Transitions

Type definitions for what the Navigation Controller did to the session.
The router reads them to decide what to render next.
"""

from enum import Enum, auto


class NavigationTransition(Enum):
    """
    Describes what happened to the session pointers on Back / Cancel.
    """

    STEP_BACK = auto()  # Two frames popped, a step remains: re-prompt it.
    EXIT_WORKFLOW = auto()  # Progress cleared, node unchanged: re-render its menu.
    ASCEND = auto()  # Moved to the parent node (clamped at the root).
    FALLBACK_ROOT = auto()  # Current node or its parent is missing: reset to the root.
