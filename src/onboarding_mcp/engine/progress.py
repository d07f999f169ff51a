"""Onboarding progress engine.

Owns the employee profile lifecycle and the step advancement rules:

1. A step that is already completed is reported as such; nothing changes.
2. Only the current step may be completed.
3. Completing it records the step, then moves ``current_step`` to the next
   configured step id, or to ``step + 1`` when there is none.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from onboarding_mcp.content.loader import StepContentLoader
from onboarding_mcp.errors import InvalidStepDataError
from onboarding_mcp.models.profile import EmployeeProfile, StepRecord, utc_now
from onboarding_mcp.models.progress import CompletionResult, CompletionStatus
from onboarding_mcp.storage.profile_store import ProfileStore, normalize_email

logger = logging.getLogger(__name__)


def derive_name_from_email(email: str) -> str:
    """Guess a display name from the email local part.

    ``jane.doe@x`` and ``jane_doe@x`` become ``Jane Doe``; ``jdoe@x`` becomes ``Jdoe``.
    """
    local_part = email.split("@")[0]
    for separator in (".", "_"):
        if separator in local_part:
            return " ".join(part.capitalize() for part in local_part.split(separator))
    return local_part.capitalize()


def _merge_record(record: StepRecord | None, fields: dict[str, Any]) -> StepRecord:
    merged = record.model_dump() if record is not None else {}
    merged.update(fields)
    try:
        return StepRecord.model_validate(merged)
    except ValidationError as e:
        bad_keys = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise InvalidStepDataError(
            f"Invalid value for step record field(s) {', '.join(bad_keys)}: "
            "completed_at must be a timestamp, notes a string and data an object"
        ) from e


class ProgressEngine:
    """Reads and advances employee onboarding progress."""

    def __init__(self, store: ProfileStore, loader: StepContentLoader) -> None:
        self.store = store
        self.loader = loader

    def persist(self, profile: EmployeeProfile) -> EmployeeProfile:
        return self.store.save(profile)

    def get_or_create_profile(
        self,
        email: str,
        name: str | None = None,
        buddy_email: str | None = None,
        department: str | None = None,
    ) -> EmployeeProfile:
        """Load the profile for ``email``, creating and saving it if absent.

        ``name``, ``buddy_email`` and ``department`` only apply when the
        profile is created; an existing profile is returned untouched.
        """
        email = normalize_email(email)
        profile = self.store.load(email)
        if profile is not None:
            return profile

        now = utc_now()
        profile = EmployeeProfile(
            email=email,
            name=name or derive_name_from_email(email),
            start_date=now,
            buddy_email=buddy_email,
            department=department,
        )
        profile.metadata.created_at = now
        logger.info("Created onboarding profile for %s", email)
        return self.persist(profile)

    def register_profile(
        self,
        email: str,
        name: str,
        buddy_email: str | None = None,
        department: str | None = None,
    ) -> EmployeeProfile:
        return self.get_or_create_profile(
            email, name=name, buddy_email=buddy_email, department=department
        )

    def complete_step(
        self,
        profile: EmployeeProfile,
        step_id: int | None = None,
        notes: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> CompletionResult:
        """Mark ``step_id`` (default: the current step) as completed.

        Rejections are returned as a status, never raised, and leave the
        profile unsaved and unchanged.
        """
        if step_id is None:
            step_id = profile.current_step

        if profile.is_completed(step_id):
            logger.info("%s: step %d already completed", profile.email, step_id)
            return CompletionResult(
                status=CompletionStatus.ALREADY_COMPLETED,
                profile=profile,
                completed_step=step_id,
            )

        if step_id != profile.current_step:
            logger.info(
                "%s: step %d requested but current step is %d",
                profile.email,
                step_id,
                profile.current_step,
            )
            return CompletionResult(
                status=CompletionStatus.OUT_OF_ORDER,
                profile=profile,
                completed_step=step_id,
            )

        fields: dict[str, Any] = {"completed_at": utc_now()}
        # Keep notes/data a side channel wrote earlier unless new ones are given
        if notes is not None:
            fields["notes"] = notes
        if data is not None:
            fields["data"] = data

        record = _merge_record(profile.step_data.get(step_id), fields)
        profile.completed_steps.append(step_id)
        profile.step_data[step_id] = record

        next_step = next(
            (s.id for s in self.loader.get_all_steps() if s.id > step_id), None
        )
        profile.current_step = next_step if next_step is not None else step_id + 1

        self.persist(profile)
        logger.info("%s: completed step %d, now on step %d", profile.email, step_id, profile.current_step)
        return CompletionResult(
            status=CompletionStatus.COMPLETED,
            profile=profile,
            completed_step=step_id,
            next_step=next_step,
        )

    def merge_step_data(
        self, profile: EmployeeProfile, step_id: int, fields: dict[str, Any]
    ) -> EmployeeProfile:
        """Shallow-merge ``fields`` into the step record and save.

        Keys not named in ``fields`` are left as they are. Progress
        (``completed_steps``, ``current_step``) is not touched.

        Raises:
            InvalidStepDataError: If a typed key (``completed_at``, ``notes``,
                ``data``) gets a value of the wrong type; nothing is saved.
        """
        profile.step_data[step_id] = _merge_record(profile.step_data.get(step_id), fields)
        logger.info("%s: recorded %s for step %d", profile.email, sorted(fields), step_id)
        return self.persist(profile)

    def list_profiles(self, buddy_email: str | None = None) -> list[EmployeeProfile]:
        """All profiles, most recently updated first, optionally for one buddy."""
        profiles = self.store.list_profiles()
        if buddy_email is not None:
            profiles = [p for p in profiles if p.buddy_email == buddy_email]
        return profiles

    def total_steps(self) -> int:
        return len(self.loader.get_all_steps())
