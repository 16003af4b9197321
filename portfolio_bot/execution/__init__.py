"""
Execution Layer - Routing and Navigation

Defines the DialogRouter (per-request state machine), the KeyboardResolver
(label <-> node mapping) and the NavigationController (Back / Cancel).
"""

from portfolio_bot.execution.keyboard import KeyboardResolver
from portfolio_bot.execution.navigation import NavigationController
from portfolio_bot.execution.router import DialogRouter, GLOBAL_COMMANDS


__all__ = [
    "DialogRouter",
    "GLOBAL_COMMANDS",
    "KeyboardResolver",
    "NavigationController",
]
