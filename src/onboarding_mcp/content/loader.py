"""Step document loader.

Reads step documents from a directory, parses them into ``OnboardingStep``
records and renders them for display. Markdown documents take precedence:
a markup document is only used when no markdown document claimed its id.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable

from onboarding_mcp.content.markdown_rules import parse_markdown_step
from onboarding_mcp.content.markup_rules import parse_markup_step, strip_markup
from onboarding_mcp.models.step import OnboardingStep, SourceFormat

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")
MARKUP_SUFFIXES = (".html", ".htm")

_STEP_ID_RE = re.compile(r"step-(\d+)")


def step_id_from_filename(filename: str) -> int:
    """Step id from a ``step-<N>`` file name, 0 when there is none."""
    match = _STEP_ID_RE.search(filename)
    return int(match.group(1)) if match else 0


class StepContentLoader:
    """Loads onboarding steps from a directory of step documents.

    Every call re-scans the directory; nothing is cached between calls.
    """

    def __init__(self, steps_path: str | Path) -> None:
        self.steps_path = Path(steps_path)

    def load_all_steps(self) -> list[OnboardingStep]:
        """Parse every step document, sorted ascending by id.

        A missing directory yields an empty list. Documents that cannot be
        read or have no usable id are skipped with a warning.
        """
        if not self.steps_path.is_dir():
            logger.warning("Step directory not found: %s", self.steps_path)
            return []

        files = sorted(p for p in self.steps_path.iterdir() if p.is_file())
        claimed: dict[int, OnboardingStep] = {}

        self._load_format(
            [p for p in files if p.suffix.lower() in MARKDOWN_SUFFIXES],
            parse_markdown_step,
            claimed,
        )
        self._load_format(
            [p for p in files if p.suffix.lower() in MARKUP_SUFFIXES],
            parse_markup_step,
            claimed,
        )

        return sorted(claimed.values(), key=lambda s: s.id)

    def _load_format(
        self,
        paths: list[Path],
        parse: Callable[[str, int], OnboardingStep],
        claimed: dict[int, OnboardingStep],
    ) -> None:
        for path in paths:
            step_id = step_id_from_filename(path.name)
            if step_id <= 0:
                logger.warning("Skipping step file %s: no step id in file name", path.name)
                continue
            if step_id in claimed:
                existing = claimed[step_id]
                if existing.source_format == SourceFormat.MARKDOWN and path.suffix.lower() in MARKUP_SUFFIXES:
                    logger.debug("Step %d already loaded from markdown, ignoring %s", step_id, path.name)
                else:
                    logger.warning("Skipping step file %s: step %d is already defined", path.name, step_id)
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to load step file %s: %s", path.name, e)
                continue
            try:
                claimed[step_id] = parse(content, step_id)
            except Exception as e:
                logger.warning("Failed to parse step file %s: %s", path.name, e)
                continue

    def get_all_steps(self) -> list[OnboardingStep]:
        return self.load_all_steps()

    def get_step(self, step_id: int) -> OnboardingStep | None:
        for step in self.load_all_steps():
            if step.id == step_id:
                return step
        return None

    @staticmethod
    def format_for_display(step: OnboardingStep) -> str:
        """Render a step as text for the employee.

        Markdown is returned verbatim. Markup is reduced to plain text under a
        synthesized heading and the description.
        """
        if step.source_format == SourceFormat.MARKDOWN:
            return step.content

        formatted = f"# {step.title}\n\n"
        if step.description:
            formatted += f"{step.description}\n\n"
        formatted += strip_markup(step.content)
        return formatted
