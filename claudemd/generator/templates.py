"""Template discovery and loading.

Templates are plain ``.md`` files under the configured template directory,
named ``<template_id>.md``. A template declares the headings its rendered
output must contain in a leading HTML comment::

    <!-- required-sections: ## Project Overview | ## Commands -->

The comment is stripped from the body when the template is loaded.
"""

from __future__ import annotations

import re
from pathlib import Path

from claudemd.models import Template

TEMPLATE_SUFFIX = ".md"

_RE_REQUIRED_SECTIONS = re.compile(
    r"\A\s*<!--\s*required-sections:\s*(?P<sections>.*?)\s*-->[ \t]*\r?\n?",
    re.DOTALL,
)


def parse_template(template_id: str, text: str, path: Path | None = None) -> Template:
    """Split the required-sections header from a raw template text."""
    required: list[str] = []
    body = text
    match = _RE_REQUIRED_SECTIONS.match(text)
    if match:
        required = [s.strip() for s in match.group("sections").split("|") if s.strip()]
        body = text[match.end():]
    return Template(template_id=template_id, body=body, required_sections=required, path=path)


class TemplateLibrary:
    """Looks up templates by id inside one directory."""

    def __init__(self, template_dir: str | Path) -> None:
        self.template_dir = Path(template_dir)

    def path_for(self, template_id: str) -> Path:
        return self.template_dir / f"{template_id}{TEMPLATE_SUFFIX}"

    def exists(self, template_id: str) -> bool:
        return self.path_for(template_id).is_file()

    def load(self, template_id: str) -> Template:
        """Read and parse a template.

        Raises:
            FileNotFoundError: If no such template exists.
        """
        path = self.path_for(template_id)
        return parse_template(template_id, path.read_text(encoding="utf-8"), path)

    def list_templates(self) -> list[str]:
        """Return the sorted ids of every template in the directory."""
        if not self.template_dir.is_dir():
            return []
        return sorted(p.stem for p in self.template_dir.glob(f"*{TEMPLATE_SUFFIX}"))
