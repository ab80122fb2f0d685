"""Unit tests for the renderer (claudemd.generator.renderer).

Tests cover:
- Placeholder substitution, including unknown names and value formatting
- Conditional blocks: kept, dropped, standalone-line newline handling
- Non-nesting behaviour and unterminated markers
- Truthiness rules
- DocumentRenderer primary/secondary output and metadata
"""

from __future__ import annotations

import logging

import pytest

from claudemd.config import Config
from claudemd.generator.renderer import (
    ConditionalNode,
    DocumentRenderer,
    TextNode,
    find_placeholders,
    format_value,
    is_truthy,
    render,
    tokenize,
)
from claudemd.generator.templates import TemplateLibrary
from claudemd.models import FrameworkInfo, ProjectDescriptor


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------

class TestSubstitution:
    @pytest.mark.unit
    def test_replaces_known_placeholders(self):
        assert render("Hello {{NAME}}!", {"NAME": "demo"}) == "Hello demo!"

    @pytest.mark.unit
    def test_repeated_placeholder(self):
        assert render("{{A}}-{{A}}", {"A": "x"}) == "x-x"

    @pytest.mark.unit
    def test_unknown_placeholder_left_verbatim(self):
        assert render("{{UNSET_VAR}}", {}) == "{{UNSET_VAR}}"

    @pytest.mark.unit
    def test_values_are_not_re_evaluated(self):
        assert render("{{A}}", {"A": "{{B}}", "B": "nope"}) == "{{B}}"

    @pytest.mark.unit
    def test_value_containing_conditional_syntax_is_literal(self):
        out = render("{{A}}", {"A": "{{#IF B}}x{{/IF}}", "B": True})
        assert out == "{{#IF B}}x{{/IF}}"

    @pytest.mark.unit
    def test_text_without_tokens_unchanged(self):
        text = "plain text with { braces } and }} stray"
        assert render(text, {"A": 1}) == text


class TestFormatValue:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (["a", "b"], "a, b"),
            ([], ""),
            (0.95, "0.95"),
            (5173, "5173"),
            ("text", "text"),
        ],
    )
    def test_formats(self, value, expected):
        assert format_value(value) == expected


# ---------------------------------------------------------------------------
# Conditionals
# ---------------------------------------------------------------------------

class TestConditionals:
    TEMPLATE = "a\n{{#IF X}}\nb\n{{/IF}}\nc\n"

    @pytest.mark.unit
    def test_standalone_block_kept(self):
        assert render(self.TEMPLATE, {"X": True}) == "a\nb\nc\n"

    @pytest.mark.unit
    def test_standalone_block_dropped_without_blank_line(self):
        assert render(self.TEMPLATE, {"X": False}) == "a\nc\n"

    @pytest.mark.unit
    def test_inline_block(self):
        template = "x {{#IF X}}y{{/IF}} z"
        assert render(template, {"X": True}) == "x y z"
        assert render(template, {"X": False}) == "x  z"

    @pytest.mark.unit
    def test_placeholders_inside_kept_block(self):
        assert render("{{#IF X}}v={{X}}{{/IF}}", {"X": "on"}) == "v=on"

    @pytest.mark.unit
    def test_placeholders_inside_dropped_block_vanish(self):
        out = render("{{#IF X}}{{UNSET}}{{/IF}}done", {})
        assert out == "done"
        assert find_placeholders(out) == []

    @pytest.mark.unit
    def test_blocks_do_not_nest(self):
        template = "{{#IF A}}1{{#IF B}}2{{/IF}}3{{/IF}}"

        assert render(template, {"A": True, "B": False}) == "1{{#IF B}}23{{/IF}}"
        assert render(template, {"A": False, "B": True}) == "3{{/IF}}"

    @pytest.mark.unit
    def test_unterminated_start_is_literal(self):
        template = "{{#IF X}} never closed"
        assert render(template, {"X": True}) == template

    @pytest.mark.unit
    def test_stray_end_is_literal(self):
        assert render("a {{/IF}} b", {}) == "a {{/IF}} b"

    @pytest.mark.unit
    def test_marker_whitespace_tolerated(self):
        assert render("{{#IF   X }}y{{/IF}}", {"X": True}) == "y"


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------

class TestIdempotence:
    TEMPLATE = (
        "# {{PROJECT_NAME}}\n"
        "\n"
        "{{#IF HAS_TESTS}}\n"
        "Run `{{TEST_COMMAND}}` before committing.\n"
        "{{/IF}}\n"
        "Style: {{CODE_STYLE}} {{#IF FOCUS_SECURITY}}(security focus){{/IF}}\n"
        "Unresolved: {{NOT_PROVIDED}}\n"
    )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "variables",
        [
            {"PROJECT_NAME": "demo", "HAS_TESTS": True, "TEST_COMMAND": "pytest",
             "CODE_STYLE": "functional", "FOCUS_SECURITY": True},
            {"PROJECT_NAME": "demo", "HAS_TESTS": False, "TEST_COMMAND": "pytest",
             "CODE_STYLE": "oop", "FOCUS_SECURITY": False},
        ],
    )
    def test_rendering_output_again_is_a_no_op(self, variables):
        once = render(self.TEMPLATE, variables)

        assert render(once, variables) == once
        assert "{{#IF" not in once


class TestTokenize:
    @pytest.mark.unit
    def test_nodes(self):
        nodes = tokenize("a{{#IF X}}b{{/IF}}c")
        assert nodes == [TextNode("a"), ConditionalNode("X", "b"), TextNode("c")]

    @pytest.mark.unit
    def test_plain_text_single_node(self):
        assert tokenize("just text") == [TextNode("just text")]

    @pytest.mark.unit
    def test_empty(self):
        assert tokenize("") == []


class TestIsTruthy:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, True),
            (False, False),
            (None, False),
            ("", False),
            ("false", False),
            ("False", True),
            ("no", True),
            (0, False),
            (0.0, False),
            (1, True),
            ([], True),
            (["x"], True),
        ],
    )
    def test_values(self, value, expected):
        assert is_truthy({"X": value}, "X") is expected

    @pytest.mark.unit
    def test_absent_is_false(self):
        assert is_truthy({}, "X") is False


class TestFindPlaceholders:
    @pytest.mark.unit
    def test_unique_in_order(self):
        text = "{{B}} {{A}} {{B}} {{#IF C}}"
        assert find_placeholders(text) == ["{{B}}", "{{A}}", "{{#IF C}}"]


# ---------------------------------------------------------------------------
# DocumentRenderer
# ---------------------------------------------------------------------------

class TestDocumentRenderer:
    PRIMARY = "<!-- required-sections: ## Overview -->\n# {{PROJECT_NAME}}\n\n## Overview\n"
    SECONDARY = "# Agents for {{PROJECT_NAME}}\n"

    @pytest.fixture
    def descriptor(self) -> ProjectDescriptor:
        return ProjectDescriptor(
            framework=FrameworkInfo(name="Go", version="1.22"),
            confidence=0.85,
            project_path="/work/demo",
        )

    @pytest.mark.unit
    def test_primary_and_secondary(self, make_templates, make_selection, descriptor):
        library = TemplateLibrary(make_templates({"go": self.PRIMARY, "agents": self.SECONDARY}))
        selection = make_selection(
            {"PROJECT_NAME": "demo", "GENERATE_SECONDARY": True}, "go", descriptor
        )

        rendered = DocumentRenderer(library).render_selection(selection)

        assert rendered.content == "# demo\n\n## Overview\n"
        assert rendered.secondary_content == "# Agents for demo\n"
        assert rendered.template_id == "go"
        assert rendered.required_sections == ["## Overview"]
        assert rendered.framework_name == "Go"
        assert rendered.framework_version == "1.22"
        assert rendered.confidence == 0.85
        assert rendered.variables["PROJECT_NAME"] == "demo"

    @pytest.mark.unit
    def test_secondary_disabled(self, make_templates, make_selection, descriptor):
        library = TemplateLibrary(make_templates({"go": self.PRIMARY, "agents": self.SECONDARY}))
        selection = make_selection(
            {"PROJECT_NAME": "demo", "GENERATE_SECONDARY": False}, "go", descriptor
        )

        assert DocumentRenderer(library).render_selection(selection).secondary_content is None

    @pytest.mark.unit
    def test_missing_secondary_template_logged(self, make_templates, make_selection, descriptor, caplog):
        library = TemplateLibrary(make_templates({"go": self.PRIMARY}))
        selection = make_selection(
            {"PROJECT_NAME": "demo", "GENERATE_SECONDARY": True}, "go", descriptor
        )

        with caplog.at_level(logging.WARNING, logger="claudemd"):
            rendered = DocumentRenderer(library).render_selection(selection)

        assert rendered.secondary_content is None
        assert "Secondary template 'agents' not found" in caplog.text

    @pytest.mark.unit
    def test_secondary_template_from_config(self, make_templates, make_selection, descriptor):
        library = TemplateLibrary(
            make_templates({"go": self.PRIMARY, "copilot": "copilot for {{PROJECT_NAME}}\n"})
        )
        selection = make_selection(
            {"PROJECT_NAME": "demo", "GENERATE_SECONDARY": True}, "go", descriptor
        )
        renderer = DocumentRenderer(library, Config(secondary_template="copilot"))

        assert renderer.render_selection(selection).secondary_content == "copilot for demo\n"
