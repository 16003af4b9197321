"""
Handler Outcomes - the LevelHandler contract.

A handler never mutates the session itself. It returns one of these values and
the DialogRouter applies it:

- Advance: push (or replace) the top progress frame and render the next prompt
- Complete: persist the result, clear progress, render a completion message
- Reject: leave progress untouched and render a corrective message
- Show: render a view without any state change
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ...repositories.records import RecordWrite

Button = Dict[str, Any]
Keyboard = List[List[Button]]


@dataclass(frozen=True)
class Reply:
    """
    What to send back to the user.

    Attributes:
        text: Message body.
        inline_keyboard: Buttons attached to the message. When absent, the
            reply keyboard of the current node is sent instead.
        extra_rows: Rows prepended to the node's reply keyboard.
        parse_mode: Transport formatting mode (e.g. "MarkdownV2").
        edit_message: Edit the message the event originated from instead of
            sending a new one (inline button flows).
    """
    text: str
    inline_keyboard: Optional[Keyboard] = None
    extra_rows: Keyboard = field(default_factory=list)
    parse_mode: Optional[str] = None
    edit_message: bool = False


@dataclass(frozen=True)
class Advance:
    step_name: str
    payload: Dict[str, Any]
    reply: Reply
    replace: bool = False


@dataclass(frozen=True)
class Complete:
    result: Optional[RecordWrite]
    reply: Reply


@dataclass(frozen=True)
class Reject:
    user_message: str
    edit_message: bool = False


@dataclass(frozen=True)
class Show:
    reply: Reply


HandlerOutcome = Union[Advance, Complete, Reject, Show]
