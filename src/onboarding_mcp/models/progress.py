"""Step completion result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from onboarding_mcp.models.profile import EmployeeProfile


class CompletionStatus(str, Enum):
    """Outcome of a step completion request."""

    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    OUT_OF_ORDER = "out_of_order"


class CompletionResult(BaseModel):
    """Result of ``ProgressEngine.complete_step``."""

    status: CompletionStatus
    profile: EmployeeProfile
    completed_step: int
    next_step: int | None = None

    @property
    def is_finished(self) -> bool:
        """True when this completion finished the last configured step."""
        return self.status == CompletionStatus.COMPLETED and self.next_step is None
