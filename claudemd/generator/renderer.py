"""Placeholder and conditional-block rendering.

Template syntax::

    {{NAME}}                      replaced by the value of NAME
    {{#IF NAME}} ... {{/IF}}      kept only when NAME is truthy

Rendering is two explicit passes. ``tokenize`` splits the template into
text and conditional nodes, and conditionals are resolved first. Placeholders
are then substituted on the surviving text in a single, non-recursive pass,
so a value that happens to contain template syntax is never evaluated.

Blocks do not nest: a block ends at the first ``{{/IF}}`` after its start
marker, and any ``{{#IF ...}}`` inside the body is plain text. A start marker
with no end marker, and an end marker with no start, are plain text too.

When a marker sits alone on its line, the newline that follows it is part
of the marker, so dropped blocks leave no blank lines behind.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Union

from claudemd.config import Config
from claudemd.generator.templates import TemplateLibrary
from claudemd.models import PlaceholderValue, RenderedContent, SelectionResult

logger = logging.getLogger(__name__)

END_MARKER = "{{/IF}}"

_RE_START = re.compile(r"\{\{#IF\s+([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_RE_PLACEHOLDER = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")
_RE_ANY_TOKEN = re.compile(r"\{\{[^{}]*\}\}")


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class ConditionalNode:
    name: str
    body: str


Node = Union[TextNode, ConditionalNode]


def _at_line_start(text: str, index: int) -> bool:
    return index == 0 or text[index - 1] == "\n"


def tokenize(template: str) -> list[Node]:
    """Split *template* into text and (non-nested) conditional nodes."""
    nodes: list[Node] = []
    pos = 0
    while True:
        start = _RE_START.search(template, pos)
        if start is None:
            break
        end = template.find(END_MARKER, start.end())
        if end == -1:
            break

        standalone = _at_line_start(template, start.start()) and template.startswith(
            "\n", start.end()
        )
        body_start = start.end() + 1 if standalone else start.end()
        after = end + len(END_MARKER)
        if standalone and _at_line_start(template, end) and template.startswith("\n", after):
            after += 1

        if start.start() > pos:
            nodes.append(TextNode(template[pos:start.start()]))
        nodes.append(ConditionalNode(start.group(1), template[body_start:end]))
        pos = after

    if pos < len(template):
        nodes.append(TextNode(template[pos:]))
    return nodes


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def is_truthy(variables: Mapping[str, PlaceholderValue], name: str) -> bool:
    """Whether a ``{{#IF name}}`` block is kept.

    Absent, ``False``, ``None``, ``""``, numeric zero and the string
    ``"false"`` are falsy. Every other present value is truthy, including
    an empty list.
    """
    if name not in variables:
        return False
    value = variables[name]
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value != "" and value != "false"
    if isinstance(value, (int, float)):
        return value != 0
    return True


def format_value(value: PlaceholderValue) -> str:
    """Textual form of a placeholder value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def substitute(text: str, variables: Mapping[str, PlaceholderValue]) -> str:
    """Replace every known ``{{NAME}}``; unknown names stay verbatim."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return format_value(variables[name])

    return _RE_PLACEHOLDER.sub(_replace, text)


def find_placeholders(text: str) -> list[str]:
    """Distinct ``{{...}}`` tokens left in *text*, in order of appearance."""
    return list(dict.fromkeys(_RE_ANY_TOKEN.findall(text)))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def resolve_conditionals(nodes: list[Node], variables: Mapping[str, PlaceholderValue]) -> list[str]:
    """First pass: keep or drop each conditional, yielding plain text chunks."""
    chunks: list[str] = []
    for node in nodes:
        if isinstance(node, ConditionalNode):
            if is_truthy(variables, node.name):
                chunks.append(node.body)
        else:
            chunks.append(node.text)
    return chunks


def render(template: str, variables: Mapping[str, PlaceholderValue]) -> str:
    """Render *template* with *variables*. Pure: no I/O."""
    chunks = resolve_conditionals(tokenize(template), variables)
    return "".join(substitute(chunk, variables) for chunk in chunks)


class DocumentRenderer:
    """Renders the primary (and optional secondary) document for a selection."""

    def __init__(self, library: TemplateLibrary, config: Config | None = None) -> None:
        self.library = library
        self.config = config or Config()

    def render_selection(self, selection: SelectionResult) -> RenderedContent:
        template = self.library.load(selection.template_id)
        variables = selection.variables
        content = render(template.body, variables)

        secondary: str | None = None
        if is_truthy(variables, "GENERATE_SECONDARY"):
            secondary_id = self.config.secondary_template
            if self.library.exists(secondary_id):
                secondary = render(self.library.load(secondary_id).body, variables)
            else:
                logger.warning(
                    "Secondary template '%s' not found; skipping %s",
                    secondary_id,
                    self.config.secondary_filename,
                )

        descriptor = selection.descriptor
        return RenderedContent(
            content=content,
            secondary_content=secondary,
            template_id=selection.template_id,
            framework_name=descriptor.framework.name,
            framework_version=descriptor.framework.version,
            confidence=descriptor.confidence,
            variables=dict(variables),
            required_sections=template.required_sections,
        )
