"""Validation of rendered documents before they are written.

Blocking errors: critical/high secret findings, missing required sections,
unresolved placeholders. Non-blocking warnings: medium secret findings
(strict mode only) and heading levels that jump by more than one.
"""

from __future__ import annotations

import logging
import re

from claudemd.generator.renderer import find_placeholders
from claudemd.guard.secrets import SecretDetector, SecretFinding, Severity
from claudemd.models import RenderedContent, ValidationResult

logger = logging.getLogger(__name__)

_RE_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_RE_FENCE = re.compile(r"^\s*(```|~~~)")


def iter_headings(content: str) -> list[tuple[int, str, int]]:
    """Return ``(level, text, line_number)`` for each ATX heading.

    Lines inside fenced code blocks are skipped.
    """
    headings: list[tuple[int, str, int]] = []
    in_fence = False
    for number, line in enumerate(content.splitlines(), start=1):
        if _RE_FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _RE_HEADING.match(line)
        if match:
            headings.append((len(match.group(1)), match.group(2), number))
    return headings


def _describe(finding: SecretFinding, label: str) -> str:
    return (
        f"{label}: potential {finding.pattern_name} ({finding.severity.value}) "
        f"at line {finding.line}: {finding.preview}"
    )


class ContentValidator:
    """Runs secret and structural checks over a ``RenderedContent``.

    Args:
        detector: Secret detector to use.
        strict: Run medium-severity secret patterns too. Their findings are
            reported as warnings and never block validity.
    """

    def __init__(self, detector: SecretDetector | None = None, strict: bool = True) -> None:
        self.detector = detector or SecretDetector()
        self.strict = strict

    def validate(self, rendered: RenderedContent) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        documents = [("primary document", rendered.content)]
        if rendered.secondary_content is not None:
            documents.append(("secondary document", rendered.secondary_content))

        for label, text in documents:
            secret_errors, secret_warnings = self.check_secrets(text, label)
            errors.extend(secret_errors)
            warnings.extend(secret_warnings)
            errors.extend(self.check_placeholders(text, label))

        errors.extend(self.check_required_sections(rendered.content, rendered.required_sections))
        warnings.extend(self.check_heading_hierarchy(rendered.content))

        if errors:
            logger.warning("Validation failed with %d error(s)", len(errors))
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            rendered=rendered,
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_secrets(self, content: str, label: str = "document") -> tuple[list[str], list[str]]:
        errors: list[str] = []
        warnings: list[str] = []
        for finding in self.detector.detect(content, strict=self.strict):
            if finding.severity in (Severity.CRITICAL, Severity.HIGH):
                errors.append(_describe(finding, label))
            else:
                warnings.append(_describe(finding, label))
        return errors, warnings

    def check_placeholders(self, content: str, label: str = "document") -> list[str]:
        return [f"Unresolved placeholder in {label}: {token}" for token in find_placeholders(content)]

    def check_required_sections(self, content: str, required: list[str]) -> list[str]:
        present = {f"{'#' * level} {text}" for level, text, _ in iter_headings(content)}
        return [f"Missing required section: {heading}" for heading in required if heading not in present]

    def check_heading_hierarchy(self, content: str) -> list[str]:
        warnings: list[str] = []
        previous = 0
        for level, text, line in iter_headings(content):
            if previous and level > previous + 1:
                warnings.append(
                    f"Heading level jumps from H{previous} to H{level} at line {line}: {text}"
                )
            previous = level
        return warnings
