"""
State Layer - Runtime Data Models

This module defines the per-user session record the router reads at the start
of a request and persists at the end. The progress field implements a typed
stack of workflow steps: frames are appended as steps are entered and removed
in reverse order.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..domain.models import ROOT_NODE_ID


class ProgressFrame(BaseModel):
    """
    Represents a single item on the progress stack.
    """
    step_name: str

    # Partially collected input, owned by the LevelHandler
    payload: Dict[str, Any] = Field(default_factory=dict)


class SessionState(BaseModel):
    """
    The persisted state for a single end user.
    """
    identity: int
    current_node: str = ROOT_NODE_ID
    progress: Optional[List[ProgressFrame]] = None
    privileged: bool = False

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("progress")
    @classmethod
    def _empty_progress_is_absent(cls, value):
        return value or None

    @property
    def in_step(self) -> bool:
        return bool(self.progress)

    @property
    def top_frame(self) -> Optional[ProgressFrame]:
        if not self.progress:
            return None
        return self.progress[-1]

    @property
    def depth(self) -> int:
        return len(self.progress) if self.progress else 0

    def push_step(self, step_name: str, payload: Optional[Dict[str, Any]] = None) -> ProgressFrame:
        """Enters a new step on top of the stack."""
        frame = ProgressFrame(step_name=step_name, payload=payload or {})
        if self.progress is None:
            self.progress = []
        self.progress.append(frame)
        return frame

    def replace_step(self, step_name: str, payload: Optional[Dict[str, Any]] = None) -> ProgressFrame:
        """Swaps the top frame, or pushes when the stack is empty."""
        if self.progress:
            self.progress.pop()
        return self.push_step(step_name, payload)

    def pop_last_answered(self) -> List[ProgressFrame]:
        """
        Undoes one user-visible step.

        Every answered step pushes the frame for the prompt that follows it,
        so stepping back removes two frames: the prompt currently awaited and
        the answer that produced it. Leaves progress absent if nothing remains.
        """
        removed = []
        for _ in range(2):
            if self.progress:
                removed.append(self.progress.pop())
        if not self.progress:
            self.progress = None
        return removed

    def reset_workflow(self):
        """Abandons the in-flight workflow entirely."""
        self.progress = None
