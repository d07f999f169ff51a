"""Onboarding step data models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SourceFormat(str, Enum):
    """Document format a step was parsed from."""

    MARKDOWN = "markdown"
    MARKUP = "markup"


class ResourceLink(BaseModel):
    """A labelled link found in a step document."""

    label: str
    url: str

    def to_markdown(self) -> str:
        return f"[{self.label}]({self.url})"


class OnboardingStep(BaseModel):
    """A single onboarding step parsed from a step document."""

    id: int = Field(description="Step id taken from the step-<N> part of the file name")
    title: str
    description: str = ""
    type: str = "general"
    required: bool = True
    content: str = Field(default="", description="Raw document text")
    source_format: SourceFormat
    resources: list[ResourceLink] | None = Field(
        default=None, description="Links in document order; None when the document has none"
    )
    completion_criteria: str | None = None
