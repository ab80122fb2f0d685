"""User preferences and their merge into the placeholder mapping.

The preferences themselves come from an external caller (an interactive
prompt or CLI flags); this module only validates and merges them.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from claudemd.models import PlaceholderValue, ProjectDescriptor, SelectionResult

CodeStyle = Literal["functional", "oop", "mixed"]
SpecialFocus = Literal["none", "security", "performance", "accessibility"]


class Preferences(BaseModel):
    """Answers supplied by the caller for one generation run."""

    description: Optional[str] = Field(
        default=None, description="Project description; derived from the framework when omitted"
    )
    code_style: CodeStyle = Field(default="functional")
    dependencies: Optional[str] = Field(
        default=None,
        description="Replacement for the detected dependency list; None keeps detection",
    )
    generate_secondary: bool = Field(default=True, description="Also write the secondary document")
    special_focus: SpecialFocus = Field(default="none")

    @classmethod
    def defaults_for(cls, descriptor: ProjectDescriptor) -> "Preferences":
        """Non-interactive defaults for a scanned project."""
        return cls(description=default_description(descriptor))


def default_description(descriptor: ProjectDescriptor) -> str:
    name = descriptor.framework.name
    if name:
        return f"A {name} project"
    return "A software project"


def merge_preferences(
    selection: SelectionResult,
    preferences: Optional[Preferences] = None,
) -> SelectionResult:
    """Return a new ``SelectionResult`` with *preferences* layered on top.

    Preference values take precedence over scan-derived defaults for the
    same key; the input selection is left untouched.
    """
    prefs = preferences or Preferences.defaults_for(selection.descriptor)
    description = prefs.description or default_description(selection.descriptor)

    overrides: dict[str, PlaceholderValue] = {
        "PROJECT_DESCRIPTION": description,
        "CODE_STYLE": prefs.code_style,
        "GENERATE_SECONDARY": prefs.generate_secondary,
        "SPECIAL_FOCUS": prefs.special_focus,
        "FOCUS_SECURITY": prefs.special_focus == "security",
        "FOCUS_PERFORMANCE": prefs.special_focus == "performance",
        "FOCUS_ACCESSIBILITY": prefs.special_focus == "accessibility",
    }
    if prefs.dependencies is not None:
        overrides["DEPENDENCIES"] = prefs.dependencies

    return selection.model_copy(update={"variables": {**selection.variables, **overrides}})
