"""Secret and path guard.

Pattern-based secret detection/redaction plus the read/write path policy
that keeps the writer confined to its own output files.
"""

from claudemd.guard.paths import (
    Operation,
    PathGuard,
    PathNotAllowedError,
    PathPolicy,
    has_path_traversal,
)
from claudemd.guard.secrets import (
    DEFAULT_SECRET_PATTERNS,
    SecretDetector,
    SecretFinding,
    SecretPattern,
    Severity,
)

__all__ = [
    "DEFAULT_SECRET_PATTERNS",
    "Operation",
    "PathGuard",
    "PathNotAllowedError",
    "PathPolicy",
    "SecretDetector",
    "SecretFinding",
    "SecretPattern",
    "Severity",
    "has_path_traversal",
]
