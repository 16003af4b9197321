"""
State Layer - Runtime Data Models

Defines the per-user session record: the node the user is inside and the
stack of in-progress workflow steps.
"""

from portfolio_bot.state.models import (
    ProgressFrame,
    SessionState,
)

__all__ = [
    "ProgressFrame",
    "SessionState",
]
