"""Employee profile models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StepRecord(BaseModel):
    """Per-step data.

    ``completed_at``, ``notes`` and ``data`` are written by step completion.
    Any other key (e.g. a device request id) comes from side-channel
    operations and is kept as an extra field.
    """

    model_config = ConfigDict(extra="allow")

    completed_at: datetime | None = None
    notes: str | None = None
    data: dict[str, Any] | None = None


class ProfileMetadata(BaseModel):
    """Bookkeeping timestamps for a profile record."""

    created_at: datetime = Field(default_factory=utc_now)
    last_updated: datetime = Field(default_factory=utc_now)
    version: str = "1.0"


class EmployeeProfile(BaseModel):
    """Persisted onboarding state of one employee."""

    email: str = Field(description="Normalized (lower-cased) email, the profile key")
    name: str
    start_date: datetime = Field(default_factory=utc_now)
    buddy_email: str | None = None
    department: str | None = None
    current_step: int = Field(default=1, ge=1, description="Step to complete next")
    completed_steps: list[int] = Field(default_factory=list)
    step_data: dict[int, StepRecord] = Field(default_factory=dict)
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)

    def is_completed(self, step_id: int) -> bool:
        return step_id in self.completed_steps


class ProgressIndexEntry(BaseModel):
    """One row of the derived progress index."""

    email: str
    current_step: int
    last_updated: datetime


class ProgressIndex(BaseModel):
    """Derived summary of all profiles, most recently updated first."""

    updated_at: datetime = Field(default_factory=utc_now)
    total_employees: int = 0
    profiles: list[ProgressIndexEntry] = Field(default_factory=list)
