"""Pattern-based secret detection and redaction.

Detection is best-effort and errs toward over-reporting: a false positive
costs a warning, a false negative leaks a credential into a committed file.
Matched values are truncated before they are surfaced so the detector never
echoes a full secret into logs or validation messages.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_PREVIEW_LENGTH = 20
PREVIEW_PREFIX_LENGTH = 6


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """How damaging a leaked match of a pattern would be."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class SecretPattern(BaseModel):
    """One detection rule. ``regex`` may define a group named ``value``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human-readable pattern name")
    category: str = Field(..., description="Short tag used in redaction markers")
    regex: str = Field(..., description="Regular expression source")
    severity: Severity
    flags: int = Field(default=0, description="``re`` flags used when compiling")


class SecretFinding(BaseModel):
    """A single potential secret located in scanned content."""

    pattern_name: str
    category: str
    severity: Severity
    position: int = Field(..., ge=0, description="Character offset of the match")
    line: int = Field(..., ge=1, description="1-based line number of the match")
    preview: str = Field(..., max_length=MAX_PREVIEW_LENGTH)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

DEFAULT_SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    SecretPattern(
        name="AWS Access Key ID",
        category="aws_access_key",
        regex=r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="GitHub Token",
        category="github_token",
        regex=r"\bgh[pousr]_[A-Za-z0-9]{36,}\b",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="Anthropic API Key",
        category="anthropic_key",
        regex=r"\bsk-ant-[A-Za-z0-9_\-]{20,}",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="OpenAI API Key",
        category="openai_key",
        regex=r"\bsk-(?!ant-)(?:proj-)?[A-Za-z0-9_\-]{20,}",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="Stripe Secret Key",
        category="stripe_key",
        regex=r"\b[sr]k_live_[A-Za-z0-9]{20,}\b",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="Private Key Block",
        category="private_key",
        regex=r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY(?: BLOCK)?-----",
        severity=Severity.CRITICAL,
    ),
    SecretPattern(
        name="Slack Token",
        category="slack_token",
        regex=r"\bxox[abposr]-[A-Za-z0-9\-]{10,}",
        severity=Severity.HIGH,
    ),
    SecretPattern(
        name="Google API Key",
        category="google_api_key",
        regex=r"\bAIza[0-9A-Za-z_\-]{35}",
        severity=Severity.HIGH,
    ),
    SecretPattern(
        name="JSON Web Token",
        category="jwt",
        regex=r"\beyJ[A-Za-z0-9_\-]{10,}\.eyJ[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]{10,}",
        severity=Severity.HIGH,
    ),
    SecretPattern(
        name="Bearer Token",
        category="bearer_token",
        regex=r"\bBearer\s+(?P<value>[A-Za-z0-9\-._~+/]{20,}=*)",
        severity=Severity.HIGH,
    ),
    SecretPattern(
        name="Database URL With Credentials",
        category="database_url",
        regex=(
            r"\b(?:postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://"
            r"[^\s:/@]+:(?P<value>[^\s@/]+)@"
        ),
        severity=Severity.HIGH,
    ),
    SecretPattern(
        name="Generic Secret Assignment",
        category="generic_secret",
        regex=(
            r"\b(?:api[_-]?key|secret(?:[_-]?key)?|access[_-]?token|auth[_-]?token|password|passwd)"
            r"\s*[:=]\s*[\"'](?P<value>[^\"'\s]{8,})[\"']"
        ),
        severity=Severity.MEDIUM,
        flags=re.IGNORECASE,
    ),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _truncate(value: str, limit: int = MAX_PREVIEW_LENGTH) -> str:
    """Preview of a matched secret: a short prefix and ``...``.

    At most half of *value* (and never more than ``PREVIEW_PREFIX_LENGTH``
    characters) is kept, so the preview never reproduces the whole secret.
    """
    keep = min(PREVIEW_PREFIX_LENGTH, len(value) // 2, limit - 3)
    return value[:keep] + "..."


def _find_line(content: str, offset: int) -> int:
    """Return the 1-based line number for a character offset."""
    return content.count("\n", 0, offset) + 1


def _matched_value(match: re.Match[str]) -> str:
    if "value" in match.re.groupindex and match.group("value") is not None:
        return match.group("value")
    return match.group(0)


# ---------------------------------------------------------------------------
# SecretDetector
# ---------------------------------------------------------------------------


class SecretDetector:
    """Applies an ordered, immutable set of :class:`SecretPattern` rules.

    Each instance compiles its own patterns, so detectors built with
    different tables (for example in tests) never interfere.
    """

    def __init__(self, patterns: tuple[SecretPattern, ...] = DEFAULT_SECRET_PATTERNS) -> None:
        self.patterns = tuple(patterns)
        self._compiled = tuple(
            (pattern, re.compile(pattern.regex, pattern.flags)) for pattern in self.patterns
        )

    def detect(self, content: str, strict: bool = False) -> list[SecretFinding]:
        """Scan *content* for secrets.

        Args:
            content: Text to scan.
            strict: Also run medium-severity patterns. They are noisy, so
                default scans skip them.

        Returns:
            Findings ordered by pattern, then by position.
        """
        findings: list[SecretFinding] = []
        for pattern, compiled in self._compiled:
            if pattern.severity is Severity.MEDIUM and not strict:
                continue
            for match in compiled.finditer(content):
                findings.append(
                    SecretFinding(
                        pattern_name=pattern.name,
                        category=pattern.category,
                        severity=pattern.severity,
                        position=match.start(),
                        line=_find_line(content, match.start()),
                        preview=_truncate(_matched_value(match)),
                    )
                )
        if findings:
            logger.debug("Secret scan produced %d finding(s)", len(findings))
        return findings

    def redact(self, content: str) -> str:
        """Replace critical and high severity matches with ``[REDACTED:<category>]``.

        Medium matches are left untouched.
        """
        redacted = content
        for pattern, compiled in self._compiled:
            if pattern.severity is Severity.MEDIUM:
                continue
            redacted = compiled.sub(f"[REDACTED:{pattern.category}]", redacted)
        return redacted
