"""
Domain Layer - Static Data Models

Defines the navigation tree the bot renders as keyboards: MenuNodes and the
validated MenuTree built from them.
"""

from portfolio_bot.domain.models import (
    BACK_NODE_ID,
    CANCEL_NODE_ID,
    ROOT_NODE_ID,
    SYSTEM_ACTION_IDS,
    MenuConfigurationError,
    MenuNode,
    MenuTree,
)

__all__ = [
    "BACK_NODE_ID",
    "CANCEL_NODE_ID",
    "ROOT_NODE_ID",
    "SYSTEM_ACTION_IDS",
    "MenuConfigurationError",
    "MenuNode",
    "MenuTree",
]
