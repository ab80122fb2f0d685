"""Ordered detection rules for the project scanner.

Each table is an explicit, ordered tuple of ``Rule`` entries evaluated
first-match-wins by :func:`first_match`. Priority is the position in the
tuple, so more specific rules come first and carry higher confidence.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Optional, Sequence, TypeVar

from claudemd.models import ProjectType

T = TypeVar("T")

SKIP_DIRS = frozenset({"node_modules", "__pycache__", ".git", "dist", "build", ".venv", "venv", "vendor", "target"})


# ---------------------------------------------------------------------------
# Scan context
# ---------------------------------------------------------------------------


@dataclass
class ScanContext:
    """Facts about one project directory that rule predicates inspect."""

    root: Path
    dependencies: dict[str, str] = field(default_factory=dict)
    manifest_text: str = ""

    def has_dir(self, name: str) -> bool:
        return (self.root / name).is_dir()

    def has_file(self, name: str) -> bool:
        return (self.root / name).is_file()

    def has_dep(self, *names: str) -> bool:
        return any(name in self.dependencies for name in names)

    def mentions(self, needle: str) -> bool:
        """Case-sensitive substring test against the raw manifest text."""
        return needle in self.manifest_text

    def version_of(self, package: str) -> Optional[str]:
        """Best-effort version for *package*.

        Raw manifest text is searched with a loose constraint pattern first
        (``fastapi>=0.110``, ``django = "^5.0"``); declared dependency
        versions are the fallback.
        """
        if self.manifest_text:
            match = _version_pattern(package).search(self.manifest_text)
            if match:
                return match.group(1)
        return self.dependencies.get(package)


def _version_pattern(package: str) -> re.Pattern[str]:
    return re.compile(
        re.escape(package)
        + r"\s*(?:\[[^\]]*\])?\s*[\"']?\s*[=~^<>!]{1,2}\s*[\"']?[\^~<>=!]*\s*v?(\d+(?:\.\d+)*)"
    )


def find_files(root: Path, predicate: Callable[[str], bool]) -> list[Path]:
    """Recursively collect files whose name satisfies *predicate*.

    Dependency, cache and build directories are pruned.
    """
    results: list[Path] = []
    if not root.is_dir():
        return results
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            if predicate(filename):
                results.append(Path(dirpath) / filename)
    return results


def _is_js_test_file(name: str) -> bool:
    return ".test." in name or ".spec." in name


# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Classification:
    """What a framework rule concludes about a project."""

    project_type: ProjectType
    confidence: float
    framework: str
    version_key: Optional[str] = None
    router: Optional[str] = None


@dataclass(frozen=True)
class Rule(Generic[T]):
    """A named ``(predicate, outcome)`` pair."""

    name: str
    predicate: Callable[[ScanContext], bool]
    outcome: T


def first_match(rules: Sequence[Rule[T]], ctx: ScanContext) -> Optional[Rule[T]]:
    """Return the first rule whose predicate holds, or ``None``."""
    for rule in rules:
        if rule.predicate(ctx):
            return rule
    return None


def classify(rules: Sequence[Rule[T]], ctx: ScanContext) -> Rule[T]:
    """Like :func:`first_match`, for tables that end with a catch-all rule.

    Raises:
        LookupError: If no rule matched, meaning the table lacks its
            catch-all entry.
    """
    rule = first_match(rules, ctx)
    if rule is None:
        raise LookupError(f"No rule matched for {ctx.root}; table has no catch-all entry")
    return rule


def _always(_: ScanContext) -> bool:
    return True


# ---------------------------------------------------------------------------
# Node.js
# ---------------------------------------------------------------------------

NODE_FRAMEWORK_RULES: tuple[Rule[Classification], ...] = (
    Rule(
        "nextjs-app-router",
        lambda ctx: ctx.has_dep("next") and ctx.has_dir("app"),
        Classification(ProjectType.NEXTJS, 0.95, "Next.js", "next", router="app"),
    ),
    Rule(
        "nextjs-pages-router",
        lambda ctx: ctx.has_dep("next") and ctx.has_dir("pages"),
        Classification(ProjectType.NEXTJS, 0.90, "Next.js", "next", router="pages"),
    ),
    Rule(
        "nextjs",
        lambda ctx: ctx.has_dep("next"),
        Classification(ProjectType.NEXTJS, 0.85, "Next.js", "next", router="unknown"),
    ),
    Rule(
        "react-vite",
        lambda ctx: ctx.has_dep("react") and ctx.has_dep("vite", "@vitejs/plugin-react"),
        Classification(ProjectType.REACT_VITE, 0.90, "React", "react"),
    ),
    Rule(
        "react-cra",
        lambda ctx: ctx.has_dep("react") and ctx.has_dep("react-scripts"),
        Classification(ProjectType.REACT, 0.85, "React", "react"),
    ),
    Rule(
        "vite",
        lambda ctx: ctx.has_dep("vite"),
        Classification(ProjectType.VITE, 0.70, "Vite", "vite"),
    ),
    Rule(
        "nodejs",
        _always,
        Classification(ProjectType.NODEJS, 0.60, "Node.js"),
    ),
)

NODE_TEST_RULES: tuple[Rule[str], ...] = (
    Rule("vitest", lambda ctx: ctx.has_dep("vitest"), "vitest"),
    Rule("jest", lambda ctx: ctx.has_dep("jest"), "jest"),
    Rule("playwright", lambda ctx: ctx.has_dep("@playwright/test"), "playwright"),
    Rule(
        "custom-tests-dir",
        lambda ctx: bool(find_files(ctx.root / "tests", _is_js_test_file)),
        "custom",
    ),
)

NODE_PACKAGE_MANAGER_RULES: tuple[Rule[str], ...] = (
    Rule("pnpm", lambda ctx: ctx.has_file("pnpm-lock.yaml"), "pnpm"),
    Rule("yarn", lambda ctx: ctx.has_file("yarn.lock"), "yarn"),
    Rule("bun", lambda ctx: ctx.has_file("bun.lockb") or ctx.has_file("bun.lock"), "bun"),
    Rule("npm", lambda ctx: ctx.has_file("package-lock.json"), "npm"),
    Rule("npm-default", _always, "npm"),
)


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

PYTHON_FRAMEWORK_RULES: tuple[Rule[Classification], ...] = (
    Rule(
        "fastapi",
        lambda ctx: ctx.mentions("fastapi"),
        Classification(ProjectType.FASTAPI, 0.90, "FastAPI", "fastapi"),
    ),
    Rule(
        "django-apps",
        lambda ctx: ctx.mentions("django") and ctx.has_dir("apps"),
        Classification(ProjectType.DJANGO, 0.95, "Django", "django"),
    ),
    Rule(
        "django",
        lambda ctx: ctx.mentions("django"),
        Classification(ProjectType.DJANGO, 0.90, "Django", "django"),
    ),
    Rule(
        "flask",
        lambda ctx: ctx.mentions("flask"),
        Classification(ProjectType.FLASK, 0.85, "Flask", "flask"),
    ),
    Rule(
        "python",
        _always,
        Classification(ProjectType.PYTHON, 0.70, "Python"),
    ),
)

PYTHON_TEST_RULES: tuple[Rule[str], ...] = (
    Rule("pytest", lambda ctx: ctx.mentions("pytest"), "pytest"),
    Rule("unittest", lambda ctx: ctx.mentions("unittest"), "unittest"),
)

PYTHON_PACKAGE_MANAGER_RULES: tuple[Rule[str], ...] = (
    Rule("uv", lambda ctx: ctx.has_file("uv.lock"), "uv"),
    Rule("poetry", lambda ctx: ctx.has_file("poetry.lock"), "poetry"),
    Rule("pipenv", lambda ctx: ctx.has_file("Pipfile.lock"), "pipenv"),
    Rule("pip", lambda ctx: ctx.has_file("requirements.txt"), "pip"),
    Rule("pip-default", _always, "pip"),
)


# ---------------------------------------------------------------------------
# Go and Rust
# ---------------------------------------------------------------------------

GO_CLASSIFICATION = Classification(ProjectType.GO, 0.85, "Go")
RUST_CLASSIFICATION = Classification(ProjectType.RUST, 0.85, "Rust")


# ---------------------------------------------------------------------------
# No manifest at all
# ---------------------------------------------------------------------------

FALLBACK_CONFIDENCE_RULES: tuple[Rule[float], ...] = (
    Rule("src-dir", lambda ctx: ctx.has_dir("src"), 0.30),
    Rule("vcs-dir", lambda ctx: ctx.has_dir(".git"), 0.20),
)


def fallback_confidence(ctx: ScanContext) -> float:
    """Highest confidence among the fallback hints (never their sum)."""
    return max(
        (rule.outcome for rule in FALLBACK_CONFIDENCE_RULES if rule.predicate(ctx)),
        default=0.0,
    )
