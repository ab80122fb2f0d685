"""Path allow/deny policy and traversal detection.

Reads and writes use independent lists. The pipeline may read broadly to
understand a project, but may only ever write its own output documents,
their backups and the ignore list.
"""

from __future__ import annotations

import fnmatch
import logging
from enum import Enum
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field

from claudemd.models import ClaudeMdError

logger = logging.getLogger(__name__)


class PathNotAllowedError(ClaudeMdError):
    """Raised when a path is rejected by the active :class:`PathPolicy`."""

    def __init__(self, path: str, operation: "Operation") -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"{operation.value} access denied for path: {path}")


class Operation(str, Enum):
    READ = "read"
    WRITE = "write"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

DEFAULT_READ_ALLOW: tuple[str, ...] = (
    "package.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "bun.lock",
    "bun.lockb",
    "package-lock.json",
    "pyproject.toml",
    "requirements*.txt",
    "setup.py",
    "setup.cfg",
    "Pipfile",
    "Pipfile.lock",
    "poetry.lock",
    "uv.lock",
    "go.mod",
    "go.sum",
    "Cargo.toml",
    "Cargo.lock",
    "*.md",
    "*.json",
    "*.toml",
    "*.yaml",
    "*.yml",
    "src",
    "app",
    "apps",
    "pages",
    "tests",
    "templates",
)

DEFAULT_DENY: tuple[str, ...] = (
    ".env",
    ".env.*",
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    "id_rsa*",
    "id_ed25519*",
    ".ssh",
    ".aws",
    ".gnupg",
    "credentials*",
    "secrets.*",
    "/etc/*",
)


class PathPolicy(BaseModel):
    """Immutable glob lists consulted by :class:`PathGuard`."""

    model_config = ConfigDict(frozen=True)

    read_allow: tuple[str, ...] = Field(default=DEFAULT_READ_ALLOW)
    read_deny: tuple[str, ...] = Field(default=DEFAULT_DENY)
    write_allow: tuple[str, ...] = Field(default=())
    write_deny: tuple[str, ...] = Field(default=DEFAULT_DENY)

    @classmethod
    def for_outputs(
        cls,
        primary: str,
        secondary: str | None = None,
        ignore_file: str = ".gitignore",
    ) -> "PathPolicy":
        """Build the default policy whose write list is only the output artefacts."""
        names = [primary] + ([secondary] if secondary else [])
        write_allow: list[str] = []
        for name in names:
            write_allow.extend([name, f"{name}.backup.*"])
        write_allow.append(ignore_file)
        return cls(write_allow=tuple(write_allow))

    def lists_for(self, operation: Operation) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Return ``(allow, deny)`` for *operation*."""
        if operation is Operation.WRITE:
            return self.write_allow, self.write_deny
        return self.read_allow, self.read_deny


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_path(path: str) -> str:
    """Use forward slashes and collapse duplicate separators."""
    normalized = path.replace("\\", "/")
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    return normalized


def has_path_traversal(path: str) -> bool:
    """Return ``True`` if *path* escapes upward via a ``..`` segment.

    The raw path, its URL-decoded form and its doubly URL-decoded form are
    all checked, so ``..%2f`` and ``%252e%252e%252f`` are caught.
    """
    candidates = [path]
    decoded = path
    for _ in range(2):
        decoded = unquote(decoded)
        candidates.append(decoded)
    for candidate in candidates:
        segments = normalize_path(candidate).split("/")
        if any(segment.strip() == ".." for segment in segments):
            return True
    return False


def _components(path: str) -> list[str]:
    return [part for part in path.split("/") if part and part != "."]


def _matches(path: str, pattern: str) -> bool:
    """Match *pattern* against the whole path or any single component."""
    if fnmatch.fnmatchcase(path, pattern):
        return True
    if "/" in pattern.strip("/"):
        return False
    return any(fnmatch.fnmatchcase(part, pattern) for part in _components(path))


# ---------------------------------------------------------------------------
# PathGuard
# ---------------------------------------------------------------------------


class PathGuard:
    """Decides whether the pipeline may read or write a path.

    Deny patterns are checked first and always win. A path must then match
    at least one allow pattern, either as a whole or as one of its
    components. Anything else is denied.
    """

    def __init__(self, policy: PathPolicy | None = None) -> None:
        self.policy = policy or PathPolicy()

    def is_path_allowed(self, path: str, operation: Operation | str) -> bool:
        operation = Operation(operation)
        if has_path_traversal(path):
            logger.debug("Denied %s of %s: path traversal", operation.value, path)
            return False

        normalized = normalize_path(path)
        allow, deny = self.policy.lists_for(operation)

        for pattern in deny:
            if _matches(normalized, pattern):
                logger.debug("Denied %s of %s: matches %r", operation.value, path, pattern)
                return False

        return any(_matches(normalized, pattern) for pattern in allow)

    def check(self, path: str, operation: Operation | str) -> None:
        """Raise :class:`PathNotAllowedError` unless *path* is allowed."""
        operation = Operation(operation)
        if not self.is_path_allowed(path, operation):
            raise PathNotAllowedError(path, operation)
