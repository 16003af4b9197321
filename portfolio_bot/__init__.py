"""
Portfolio Bot

A menu-tree dialog router for a Telegram finance bot: each webhook update is
resolved against the menu the user last saw, advancing a multi-step workflow
or re-rendering a menu.
"""

from portfolio_bot.domain import (
    MenuConfigurationError,
    MenuNode,
    MenuTree,
)
from portfolio_bot.state import (
    ProgressFrame,
    SessionState,
)
from portfolio_bot.schemas import CallbackQuery, InboundEvent, TextMessage
from portfolio_bot.execution import (
    DialogRouter,
    KeyboardResolver,
    NavigationController,
)

__all__ = [
    # Domain Layer
    "MenuConfigurationError",
    "MenuNode",
    "MenuTree",
    # State Layer
    "ProgressFrame",
    "SessionState",
    # Schemas
    "CallbackQuery",
    "InboundEvent",
    "TextMessage",
    # Execution Layer
    "DialogRouter",
    "KeyboardResolver",
    "NavigationController",
]
