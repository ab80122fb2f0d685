"""Document generation -- select, merge preferences, render, validate, write.

Quick usage::

    from claudemd.generator import TemplateLibrary, TemplateSelector, render

    library = TemplateLibrary("/path/to/templates")
    selection = TemplateSelector(library).select(descriptor)
    text = render(library.load(selection.template_id).body, selection.variables)
"""

from claudemd.generator.preferences import Preferences, merge_preferences
from claudemd.generator.renderer import DocumentRenderer, is_truthy, render, tokenize
from claudemd.generator.selector import (
    TEMPLATE_MAP,
    TemplateSelector,
    TemplatesMissingError,
    format_dependencies,
)
from claudemd.generator.templates import TemplateLibrary
from claudemd.generator.validator import ContentValidator
from claudemd.generator.writer import BackupError, DocumentWriter, PendingBackup

__all__ = [
    "TEMPLATE_MAP",
    "BackupError",
    "ContentValidator",
    "DocumentRenderer",
    "DocumentWriter",
    "PendingBackup",
    "Preferences",
    "TemplateLibrary",
    "TemplateSelector",
    "TemplatesMissingError",
    "format_dependencies",
    "is_truthy",
    "merge_preferences",
    "render",
    "tokenize",
]
