"""Employee onboarding MCP Server.

Exposes onboarding progress and step content as MCP tools so that an AI
assistant can walk a new employee through the onboarding steps.

Usage:
    uv run python -m onboarding_mcp.mcp                      # stdio mode
    uv run fastmcp run src/onboarding_mcp/mcp/server.py      # via CLI
"""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP

from onboarding_mcp.config import OnboardingSettings, get_settings
from onboarding_mcp.content.loader import StepContentLoader
from onboarding_mcp.engine.progress import ProgressEngine
from onboarding_mcp.errors import (
    IdentityUnresolvedError,
    InvalidEmailError,
    InvalidStepDataError,
    OnboardingError,
    StorageUnavailableError,
)
from onboarding_mcp.identity import EmployeeIdentifier, is_valid_email
from onboarding_mcp.models.profile import EmployeeProfile
from onboarding_mcp.models.progress import CompletionStatus
from onboarding_mcp.models.step import OnboardingStep
from onboarding_mcp.storage.profile_store import ProfileStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------
mcp = FastMCP(
    name="employee-onboarding",
    instructions="""
    Guides a new employee through the company onboarding steps one at a time.

    Basic flow:
    1. start_onboarding → greet the employee and show the first step
       (register_employee if the employee cannot be detected)
    2. get_current_step → show what to do now
    3. complete_step → mark the step done when the employee says "done"
    4. get_progress → overview of completed and remaining steps
    """,
)

# ---------------------------------------------------------------------------
# Components (built lazily from settings)
# ---------------------------------------------------------------------------
_components: dict[str, Any] = {}

REGISTRATION_MESSAGE = (
    "Employee registration required. Please use the register_employee tool "
    "first with your email and name."
)
NO_STEPS_MESSAGE = "No onboarding steps are configured yet."
FINISHED_MESSAGE = "🎉 Congratulations! You have completed all onboarding steps!"
DONE_HINT = 'Type "done" when you complete this step to move to the next one.'


def configure(settings: OnboardingSettings | None = None) -> None:
    """(Re)build the store, loader, engine and identifier from settings."""
    settings = settings or get_settings()
    store = ProfileStore(settings.data_path)
    loader = StepContentLoader(settings.steps_path)
    _components.clear()
    _components.update(
        settings=settings,
        store=store,
        loader=loader,
        engine=ProgressEngine(store, loader),
        identifier=EmployeeIdentifier(store),
    )


def _get(name: str) -> Any:
    if not _components:
        configure()
    return _components[name]


def _engine() -> ProgressEngine:
    return _get("engine")


def _loader() -> StepContentLoader:
    return _get("loader")


def _identifier() -> EmployeeIdentifier:
    return _get("identifier")


def _resolve_profile(email: str | None) -> EmployeeProfile:
    resolved = _identifier().resolve_email(email)
    return _engine().get_or_create_profile(resolved)


def _registration_required() -> dict[str, Any]:
    return {"status": "registration_required", "message": REGISTRATION_MESSAGE}


def _storage_error(e: StorageUnavailableError) -> dict[str, Any]:
    logger.error("Storage failure: %s", e)
    return {"status": "error", "message": f"Error: {e}"}


def _invalid_input(e: OnboardingError) -> dict[str, Any]:
    logger.warning("Rejected tool input: %s", e)
    return {"status": "error", "message": str(e)}


def _find_step(steps: list[OnboardingStep], step_id: int) -> OnboardingStep | None:
    return next((s for s in steps if s.id == step_id), None)


def _step_summary(step: OnboardingStep) -> dict[str, Any]:
    return {
        "id": step.id,
        "title": step.title,
        "description": step.description,
        "type": step.type,
        "required": step.required,
        "source_format": step.source_format.value,
        "resources": [r.to_markdown() for r in step.resources or []],
        "completion_criteria": step.completion_criteria,
    }


# ---------------------------------------------------------------------------
# Tool 1: start_onboarding
# ---------------------------------------------------------------------------
@mcp.tool
def start_onboarding(
    email: str | None = None,
    name: str | None = None,
    buddy_email: str | None = None,
    department: str | None = None,
) -> dict[str, Any]:
    """Start (or resume) onboarding for a new employee.

    Args:
        email: Employee email address (auto-detected when omitted)
        name: Employee full name (derived from the email when omitted)
        buddy_email: Onboarding buddy email address
        department: Employee department

    Returns:
        Welcome message with the employee's current step
    """
    try:
        resolved = _identifier().resolve_email(email)
        profile = _engine().get_or_create_profile(
            resolved, name=name, buddy_email=buddy_email, department=department
        )
        steps = _loader().get_all_steps()
    except IdentityUnresolvedError:
        return _registration_required()
    except InvalidEmailError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    message = f"Welcome {profile.name}! 🎉\n\n"
    result: dict[str, Any] = {
        "email": profile.email,
        "name": profile.name,
        "current_step": profile.current_step,
        "total_steps": len(steps),
    }

    if not steps:
        return {**result, "status": "no_steps", "message": message + NO_STEPS_MESSAGE}

    current = _find_step(steps, profile.current_step)
    if current is None:
        return {**result, "status": "finished", "message": message + FINISHED_MESSAGE}

    message += (
        f"You have {len(steps)} onboarding steps ahead. "
        f"Let's start with Step {profile.current_step}:\n\n"
        f"{_loader().format_for_display(current)}\n\n{DONE_HINT}"
    )
    return {**result, "status": "ok", "message": message}


# ---------------------------------------------------------------------------
# Tool 2: register_employee
# ---------------------------------------------------------------------------
@mcp.tool
def register_employee(
    email: str,
    name: str,
    buddy_email: str | None = None,
    department: str | None = None,
) -> dict[str, Any]:
    """Register a new employee when auto-detection fails.

    Args:
        email: Employee email address
        name: Employee full name
        buddy_email: Onboarding buddy email address
        department: Employee department

    Returns:
        The registered profile
    """
    if not email or not name:
        return {"status": "error", "message": "Email and name are required for registration"}
    if not is_valid_email(email.strip()):
        return {"status": "error", "message": f"Invalid email address: {email}"}

    try:
        profile = _engine().register_profile(
            email, name, buddy_email=buddy_email, department=department
        )
    except InvalidEmailError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    return {
        "status": "ok",
        "email": profile.email,
        "name": profile.name,
        "start_date": profile.start_date.isoformat(),
        "message": (
            "Employee registered successfully!\n\n"
            f"Name: {profile.name}\n"
            f"Email: {profile.email}\n"
            f"Start Date: {profile.start_date.date().isoformat()}\n\n"
            "You can now use other onboarding tools. "
            "Ask me about your current step to begin!"
        ),
    }


# ---------------------------------------------------------------------------
# Tool 3: get_current_step
# ---------------------------------------------------------------------------
@mcp.tool
def get_current_step(email: str | None = None) -> dict[str, Any]:
    """Get the step the employee has to complete next.

    Args:
        email: Employee email address (auto-detected when omitted)

    Returns:
        The current step rendered for display
    """
    try:
        profile = _resolve_profile(email)
        steps = _loader().get_all_steps()
    except IdentityUnresolvedError:
        return _registration_required()
    except InvalidEmailError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    if not steps:
        return {"status": "no_steps", "total_steps": 0, "message": NO_STEPS_MESSAGE}

    current = _find_step(steps, profile.current_step)
    if current is None:
        return {
            "status": "finished",
            "total_steps": len(steps),
            "message": "Congratulations! You have completed all onboarding steps.",
        }

    return {
        "status": "ok",
        "current_step": profile.current_step,
        "total_steps": len(steps),
        "step": _step_summary(current),
        "message": (
            f"**Current Step ({profile.current_step}/{len(steps)}):**\n\n"
            f"{_loader().format_for_display(current)}"
        ),
    }


# ---------------------------------------------------------------------------
# Tool 4: complete_step
# ---------------------------------------------------------------------------
@mcp.tool
def complete_step(
    step_id: int | None = None,
    email: str | None = None,
    notes: str | None = None,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Mark an onboarding step as completed and advance to the next step.

    Args:
        step_id: Step to complete (defaults to the current step)
        email: Employee email address (auto-detected when omitted)
        notes: Notes about the completion
        data: Additional data about the completion

    Returns:
        Completion status and the next step
    """
    try:
        profile = _resolve_profile(email)
        steps = _loader().get_all_steps()
    except IdentityUnresolvedError:
        return _registration_required()
    except InvalidEmailError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    if not steps:
        return {"status": "no_steps", "total_steps": 0, "message": NO_STEPS_MESSAGE}

    past_the_end = profile.current_step > steps[-1].id
    if past_the_end and (step_id is None or step_id == profile.current_step):
        return {"status": "finished", "total_steps": len(steps), "message": FINISHED_MESSAGE}

    try:
        result = _engine().complete_step(profile, step_id, notes=notes, data=data)
    except InvalidStepDataError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    if result.status == CompletionStatus.ALREADY_COMPLETED:
        return {
            "status": result.status.value,
            "step_id": result.completed_step,
            "message": f"Step {result.completed_step} is already completed.",
        }
    if result.status == CompletionStatus.OUT_OF_ORDER:
        return {
            "status": result.status.value,
            "step_id": result.completed_step,
            "current_step": profile.current_step,
            "message": (
                f"You must complete step {profile.current_step} "
                f"before moving to step {result.completed_step}."
            ),
        }

    completed = _find_step(steps, result.completed_step)
    upcoming = _find_step(steps, result.next_step) if result.next_step is not None else None
    title = completed.title if completed else "Unknown step"
    message = f"✅ Step {result.completed_step} completed: {title}\n\n"

    if upcoming is None:
        message += FINISHED_MESSAGE
    else:
        message += (
            f"🎯 Next step ({upcoming.id}/{len(steps)}): {upcoming.title}\n\n"
            f"{_loader().format_for_display(upcoming)}\n\n{DONE_HINT}"
        )

    return {
        "status": "ok",
        "completed_step": result.completed_step,
        "next_step": result.next_step,
        "current_step": result.profile.current_step,
        "finished": result.is_finished,
        "message": message,
    }


# ---------------------------------------------------------------------------
# Tool 5: get_progress
# ---------------------------------------------------------------------------
@mcp.tool
def get_progress(email: str | None = None) -> dict[str, Any]:
    """Get the complete onboarding progress of an employee.

    Args:
        email: Employee email address (auto-detected when omitted)

    Returns:
        Per-step status with completion dates
    """
    try:
        profile = _resolve_profile(email)
        steps = _loader().get_all_steps()
    except IdentityUnresolvedError:
        return _registration_required()
    except InvalidEmailError as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    completed_count = sum(1 for s in steps if profile.is_completed(s.id))
    lines = [
        f"**Onboarding Progress for {profile.name}**",
        "",
        f"Email: {profile.email}",
        f"Start Date: {profile.start_date.date().isoformat()}",
        f"Current Step: {profile.current_step}",
        f"Completed: {completed_count}/{len(steps)} steps",
        "",
    ]

    details = []
    if steps:
        lines.append("**Step Details:**")
    else:
        lines.append(NO_STEPS_MESSAGE)
    for step in steps:
        if profile.is_completed(step.id):
            icon, state = "✅", "completed"
        elif step.id == profile.current_step:
            icon, state = "🔄", "current"
        else:
            icon, state = "⏸️", "pending"

        line = f"{icon} Step {step.id}: {step.title}"
        record = profile.step_data.get(step.id)
        if state == "completed" and record is not None and record.completed_at is not None:
            line += f" (completed {record.completed_at.date().isoformat()})"
        lines.append(line)
        details.append({"id": step.id, "title": step.title, "state": state})

    if not steps:
        status = "no_steps"
    elif completed_count == len(steps):
        status = "finished"
    else:
        status = "ok"

    return {
        "status": status,
        "email": profile.email,
        "name": profile.name,
        "current_step": profile.current_step,
        "completed_steps": sorted(profile.completed_steps),
        "total_steps": len(steps),
        "steps": details,
        "message": "\n".join(lines),
    }


# ---------------------------------------------------------------------------
# Tool 6: get_all_steps
# ---------------------------------------------------------------------------
@mcp.tool
def get_all_steps() -> dict[str, Any]:
    """Get all available onboarding steps.

    Returns:
        Every configured step with its type and required flag
    """
    steps = _loader().get_all_steps()
    if not steps:
        return {"status": "no_steps", "steps": [], "count": 0, "message": NO_STEPS_MESSAGE}

    text = "**All Onboarding Steps:**\n\n"
    for step in steps:
        text += f"**Step {step.id}: {step.title}**\n"
        text += f"{step.description}\n"
        text += f"Type: {step.type} | Required: {'Yes' if step.required else 'No'}\n\n"

    return {
        "status": "ok",
        "steps": [_step_summary(s) for s in steps],
        "count": len(steps),
        "message": text,
    }


# ---------------------------------------------------------------------------
# Tool 7: list_employees
# ---------------------------------------------------------------------------
@mcp.tool
def list_employees(buddy_email: str | None = None) -> dict[str, Any]:
    """List onboarding employees, most recently active first.

    Args:
        buddy_email: Only list employees assigned to this onboarding buddy

    Returns:
        Progress summary per employee
    """
    try:
        profiles = _engine().list_profiles(buddy_email=buddy_email)
    except StorageUnavailableError as e:
        return _storage_error(e)
    total = _engine().total_steps()

    employees = [
        {
            "email": p.email,
            "name": p.name,
            "department": p.department,
            "buddy_email": p.buddy_email,
            "current_step": p.current_step,
            "completed": len(p.completed_steps),
            "last_updated": p.metadata.last_updated.isoformat(),
        }
        for p in profiles
    ]
    lines = [f"**Onboarding Employees ({len(employees)})**", ""]
    lines += [
        f"- {e['name']} <{e['email']}>: step {e['current_step']}, "
        f"{e['completed']}/{total} completed"
        for e in employees
    ]

    return {
        "status": "ok",
        "count": len(employees),
        "total_steps": total,
        "employees": employees,
        "message": "\n".join(lines),
    }


# ---------------------------------------------------------------------------
# Tool 8: record_step_data
# ---------------------------------------------------------------------------
@mcp.tool
def record_step_data(
    step_id: int,
    fields: dict[str, Any],
    email: str | None = None,
) -> dict[str, Any]:
    """Attach extra data to a step without completing it.

    Used for information that arrives before a step is done, such as the
    id of a device request raised during the hardware step.

    Args:
        step_id: Step the data belongs to
        fields: Key/value pairs merged into the step's record
        email: Employee email address (auto-detected when omitted)

    Returns:
        The step's merged data
    """
    try:
        profile = _resolve_profile(email)
        profile = _engine().merge_step_data(profile, step_id, fields)
    except IdentityUnresolvedError:
        return _registration_required()
    except (InvalidEmailError, InvalidStepDataError) as e:
        return _invalid_input(e)
    except StorageUnavailableError as e:
        return _storage_error(e)

    record = profile.step_data[step_id]
    return {
        "status": "ok",
        "email": profile.email,
        "step_id": step_id,
        "step_data": record.model_dump(mode="json"),
        "message": f"Recorded {', '.join(sorted(fields))} for step {step_id}.",
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    mcp.run()
