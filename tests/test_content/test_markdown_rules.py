"""Tests for markdown step extraction rules."""

from __future__ import annotations

from conftest import ACCOUNT_SETUP_MD, MEET_BUDDY_MD

from onboarding_mcp.content.markdown_rules import (
    extract_completion_criteria,
    extract_description,
    extract_links,
    extract_required,
    extract_title,
    parse_markdown_step,
    split_lines,
)
from onboarding_mcp.models.step import SourceFormat


class TestExtractTitle:
    def test_top_level_heading(self):
        assert extract_title(split_lines(ACCOUNT_SETUP_MD)) == "Account Setup"

    def test_second_level_heading_is_not_a_title(self):
        assert extract_title(split_lines("## Only a section\n\ntext")) is None

    def test_missing_heading(self):
        assert extract_title(split_lines("just text")) is None


class TestExtractDescription:
    def test_first_body_line(self):
        lines = split_lines(ACCOUNT_SETUP_MD)
        assert extract_description(lines) == "Set up your company accounts and sign in to email."

    def test_only_first_line_is_used(self):
        lines = split_lines("# T\n\nline one\nline two\n")
        assert extract_description(lines) == "line one"

    def test_stops_at_section_heading(self):
        lines = split_lines("# T\n\n## Section\n\nbody")
        assert extract_description(lines) == ""

    def test_no_title(self):
        assert extract_description(split_lines("text only")) == ""


class TestExtractRequired:
    def test_required_label(self):
        assert extract_required(split_lines(ACCOUNT_SETUP_MD)) is True

    def test_optional_label(self):
        assert extract_required(split_lines(MEET_BUDDY_MD)) is False

    def test_optional_is_case_insensitive(self):
        assert extract_required(["**Step 4 of 9** | **OPTIONAL (recommended)**"]) is False

    def test_missing_header_defaults_to_required(self):
        assert extract_required(split_lines("# T\n\nbody")) is True

    def test_malformed_header_defaults_to_required(self):
        assert extract_required(["**Step four of nine** | **Optional**"]) is True


class TestExtractCompletionCriteria:
    def test_section_until_next_heading(self):
        criteria = extract_completion_criteria(split_lines(ACCOUNT_SETUP_MD))
        assert criteria == "- You can sign in to email\n- MFA is enabled"

    def test_section_until_end_of_document(self):
        lines = split_lines("# T\n\n## This step is complete when:\n\nYou said hi.\n")
        assert extract_completion_criteria(lines) == "You said hi."

    def test_absent_section(self):
        assert extract_completion_criteria(split_lines(MEET_BUDDY_MD)) is None


class TestExtractLinks:
    def test_links_in_document_order(self):
        links = extract_links(ACCOUNT_SETUP_MD)
        assert [link.to_markdown() for link in links] == [
            "[the SSO portal](https://sso.example.com)",
            "[IT handbook](https://wiki.example.com/it)",
        ]

    def test_no_links(self):
        assert extract_links(MEET_BUDDY_MD) == []

    def test_unclosed_link_is_ignored(self):
        assert extract_links("see [broken](https://x.example") == []


class TestParseMarkdownStep:
    def test_full_document(self):
        step = parse_markdown_step(ACCOUNT_SETUP_MD, 1)

        assert step.id == 1
        assert step.title == "Account Setup"
        assert step.type == "general"
        assert step.required is True
        assert step.source_format == SourceFormat.MARKDOWN
        assert step.content == ACCOUNT_SETUP_MD
        assert len(step.resources) == 2

    def test_fallbacks(self):
        step = parse_markdown_step("no structure at all", 7)

        assert step.title == "Step 7"
        assert step.description == ""
        assert step.required is True
        assert step.resources is None
        assert step.completion_criteria is None
