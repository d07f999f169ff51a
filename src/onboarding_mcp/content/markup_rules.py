"""Extraction rules for markup (HTML) step documents.

Documents are tokenized with ``html.parser`` into a flat list of elements in
start-tag order, each carrying its attributes and the text it encloses. The
rules below only look at that list; there is no document tree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser

from onboarding_mcp.models.step import OnboardingStep, ResourceLink, SourceFormat

_WHITESPACE_RE = re.compile(r"\s+")

# Elements that never have a closing tag
_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
)
_HIDDEN_TAGS = frozenset({"script", "style"})


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


@dataclass
class MarkupElement:
    """An element with its attributes and enclosed text."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    parts: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return collapse_whitespace("".join(self.parts))

    @property
    def classes(self) -> list[str]:
        return self.attrs.get("class", "").split()


@dataclass
class MarkupDocument:
    """Token view of a markup document."""

    elements: list[MarkupElement]
    text: str

    def first(self, *tags: str) -> MarkupElement | None:
        for element in self.elements:
            if element.tag in tags:
                return element
        return None

    def attribute(self, name: str) -> str | None:
        """Value of the first occurrence of attribute ``name`` on any element."""
        for element in self.elements:
            if name in element.attrs:
                return element.attrs[name]
        return None


class _Tokenizer(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.elements: list[MarkupElement] = []
        self.text_parts: list[str] = []
        self._open: list[MarkupElement] = []
        self._hidden_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = MarkupElement(tag=tag, attrs={k: v or "" for k, v in attrs})
        self.elements.append(element)
        if tag in _HIDDEN_TAGS:
            self._hidden_depth += 1
        if tag not in _VOID_TAGS:
            self._open.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.elements.append(MarkupElement(tag=tag, attrs={k: v or "" for k, v in attrs}))

    def handle_endtag(self, tag: str) -> None:
        if tag in _HIDDEN_TAGS and self._hidden_depth:
            self._hidden_depth -= 1
        # Close up to the nearest matching open element; stray end tags are ignored
        for i in range(len(self._open) - 1, -1, -1):
            if self._open[i].tag == tag:
                del self._open[i:]
                break

    def handle_data(self, data: str) -> None:
        if self._hidden_depth:
            return
        self.text_parts.append(data)
        for element in self._open:
            element.parts.append(data)


def tokenize(content: str) -> MarkupDocument:
    parser = _Tokenizer()
    parser.feed(content)
    parser.close()
    return MarkupDocument(
        elements=parser.elements,
        text=collapse_whitespace("".join(parser.text_parts)),
    )


def extract_title(doc: MarkupDocument) -> str | None:
    """Text of the first ``h1`` or ``h2``."""
    element = doc.first("h1", "h2")
    if element is None or not element.text:
        return None
    return element.text


def extract_description(doc: MarkupDocument) -> str:
    element = doc.first("p")
    return element.text if element is not None else ""


def extract_step_type(doc: MarkupDocument) -> str:
    value = doc.attribute("data-step-type")
    return value.strip() if value and value.strip() else "general"


def extract_required(doc: MarkupDocument) -> bool:
    """``data-required`` parsed as a boolean; anything unrecognized means required."""
    value = doc.attribute("data-required")
    if value is None:
        return True
    return value.strip().lower() != "false"


def extract_completion_criteria(doc: MarkupDocument) -> str | None:
    for element in doc.elements:
        if "completion-criteria" in element.classes:
            return element.text
    return None


def extract_links(doc: MarkupDocument) -> list[ResourceLink]:
    """Anchors with an ``href`` and visible text, in document order."""
    links = []
    for element in doc.elements:
        if element.tag != "a":
            continue
        href = element.attrs.get("href", "")
        if href and element.text:
            links.append(ResourceLink(label=element.text, url=href))
    return links


def strip_markup(content: str) -> str:
    """Visible text of a document with scripts, styles and tags removed."""
    return tokenize(content).text


def parse_markup_step(content: str, step_id: int) -> OnboardingStep:
    """Build a step record from a markup document."""
    doc = tokenize(content)
    links = extract_links(doc)
    return OnboardingStep(
        id=step_id,
        title=extract_title(doc) or f"Step {step_id}",
        description=extract_description(doc),
        type=extract_step_type(doc),
        required=extract_required(doc),
        content=content,
        source_format=SourceFormat.MARKUP,
        resources=links or None,
        completion_criteria=extract_completion_criteria(doc),
    )
