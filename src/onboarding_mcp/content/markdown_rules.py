"""Extraction rules for markdown step documents.

Each rule works on the document split into lines and is independent of the
others, so a malformed document only loses the fields whose rule fails.
"""

from __future__ import annotations

import re

from onboarding_mcp.models.step import OnboardingStep, ResourceLink, SourceFormat

_TITLE_RE = re.compile(r"^#\s+(.+)$")
_SECTION_RE = re.compile(r"^##")
# **Step 2 of 5** | **Required**
_HEADER_RE = re.compile(r"\*\*Step \d+ of \d+\*\*\s*\|\s*\*\*(.+?)\*\*")
_CRITERIA_RE = re.compile(r"^##\s+This step is complete when:(.*)$", re.IGNORECASE)
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def split_lines(content: str) -> list[str]:
    """Split a document into lines without trailing whitespace."""
    return [line.rstrip() for line in content.splitlines()]


def _title_index(lines: list[str]) -> int | None:
    for i, line in enumerate(lines):
        if _TITLE_RE.match(line):
            return i
    return None


def extract_title(lines: list[str]) -> str | None:
    """Text of the first top-level ``#`` heading."""
    idx = _title_index(lines)
    if idx is None:
        return None
    match = _TITLE_RE.match(lines[idx])
    return match.group(1).strip() if match else None


def extract_description(lines: list[str]) -> str:
    """First body line after the title, stopping at the first ``##`` heading."""
    idx = _title_index(lines)
    if idx is None:
        return ""
    for line in lines[idx + 1 :]:
        if not line.strip():
            continue
        if _SECTION_RE.match(line):
            return ""
        return line.strip()
    return ""


def extract_required(lines: list[str]) -> bool:
    """Required unless the step header label says optional.

    Documents without a ``**Step X of Y** | **<label>**`` line are required.
    """
    for line in lines:
        match = _HEADER_RE.search(line)
        if match:
            return "optional" not in match.group(1).lower()
    return True


def extract_completion_criteria(lines: list[str]) -> str | None:
    """Body of the completion section, up to the next ``##`` heading."""
    for i, line in enumerate(lines):
        match = _CRITERIA_RE.match(line)
        if not match:
            continue
        block = [match.group(1)]
        for body_line in lines[i + 1 :]:
            if _SECTION_RE.match(body_line):
                break
            block.append(body_line)
        return "\n".join(block).strip()
    return None


def extract_links(content: str) -> list[ResourceLink]:
    """All inline ``[label](url)`` links in document order."""
    return [
        ResourceLink(label=m.group(1), url=m.group(2))
        for m in _LINK_RE.finditer(content)
    ]


def parse_markdown_step(content: str, step_id: int) -> OnboardingStep:
    """Build a step record from a markdown document."""
    lines = split_lines(content)
    links = extract_links(content)
    return OnboardingStep(
        id=step_id,
        title=extract_title(lines) or f"Step {step_id}",
        description=extract_description(lines),
        type="general",
        required=extract_required(lines),
        content=content,
        source_format=SourceFormat.MARKDOWN,
        resources=links or None,
        completion_criteria=extract_completion_criteria(lines),
    )
