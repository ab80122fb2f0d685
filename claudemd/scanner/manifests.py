"""Tolerant readers for ecosystem manifest files.

Every reader returns ``None`` when its manifest is absent, unreadable,
rejected by the read policy, or malformed. A malformed manifest is logged
as a warning and then treated exactly like a missing one, so one broken
file never aborts a scan.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from claudemd.guard.paths import Operation, PathGuard
from claudemd.utils import load_json

logger = logging.getLogger(__name__)

PYTHON_MANIFESTS: tuple[str, ...] = (
    "pyproject.toml",
    "requirements.txt",
    "setup.py",
    "setup.cfg",
    "Pipfile",
)

_RE_REQUIREMENT = re.compile(
    r"^\s*(?P<name>[A-Za-z0-9][A-Za-z0-9._\-]*)\s*(?:\[[^\]]*\])?\s*(?P<spec>[^;#]*)"
)
_RE_GO_DIRECTIVE = re.compile(r"^go\s+(\d+(?:\.\d+)*)\s*$", re.MULTILINE)
_RE_GO_REQUIRE_LINE = re.compile(r"^\s*(?:require\s+)?([^\s()]+)\s+(v[^\s]+)")


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------


class PythonManifest(BaseModel):
    """Combined view over the Python manifests present in a project."""

    text: str = Field(default="", description="Raw text of every readable manifest")
    files: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)


class GoModule(BaseModel):
    """Parsed ``go.mod``."""

    text: str
    go_version: Optional[str] = None
    dependencies: dict[str, str] = Field(default_factory=dict)


class CargoManifest(BaseModel):
    """Parsed ``Cargo.toml``."""

    rust_version: Optional[str] = None
    dependencies: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _readable(root: Path, name: str, guard: PathGuard | None) -> Optional[Path]:
    """Return ``root / name`` if it exists and the read policy allows it."""
    path = root / name
    if not path.is_file():
        return None
    if guard is not None and not guard.is_path_allowed(name, Operation.READ):
        logger.warning("Skipping %s: read not permitted by path policy", name)
        return None
    return path


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def _version_text(value: Any) -> str:
    """Render a dependency spec from TOML/JSON (string or table) as text."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if "version" in value:
            return str(value["version"])
        if "path" in value:
            return f"path:{value['path']}"
        if "git" in value:
            return f"git:{value['git']}"
    return "*"


def parse_requirement(line: str) -> Optional[tuple[str, str]]:
    """Split a PEP 508-ish requirement line into ``(name, spec)``.

    Comments, blank lines and pip options (``-r``, ``--index-url``) yield
    ``None``. A missing version spec is reported as ``"*"``.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(("#", "-")):
        return None
    match = _RE_REQUIREMENT.match(stripped)
    if not match:
        return None
    spec = match.group("spec").strip() or "*"
    return match.group("name"), spec


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def read_package_json(root: Path, guard: PathGuard | None = None) -> Optional[dict[str, Any]]:
    """Load ``package.json`` as a dict, or ``None`` if absent or malformed."""
    path = _readable(root, "package.json", guard)
    if path is None:
        return None
    try:
        data = load_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring malformed package.json in %s: %s", root, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring package.json in %s: top level is not an object", root)
        return None
    return data


def node_dependencies(manifest: dict[str, Any]) -> dict[str, str]:
    """Merge ``dependencies`` and ``devDependencies``; dev entries win on collision."""
    merged: dict[str, str] = {}
    for group in ("dependencies", "devDependencies"):
        entries = manifest.get(group)
        if not isinstance(entries, dict):
            continue
        for name, version in entries.items():
            merged[str(name)] = str(version)
    return merged


def read_python_manifests(root: Path, guard: PathGuard | None = None) -> Optional[PythonManifest]:
    """Collect the raw text and declared dependencies of Python manifests."""
    texts: list[str] = []
    files: list[str] = []
    dependencies: dict[str, str] = {}

    for name in PYTHON_MANIFESTS:
        path = _readable(root, name, guard)
        if path is None:
            continue
        text = _read_text(path)
        if text is None:
            continue

        if name == "pyproject.toml":
            try:
                data = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                logger.warning("Ignoring malformed pyproject.toml in %s: %s", root, exc)
                continue
            dependencies.update(_pyproject_dependencies(data, path))
        elif name == "requirements.txt":
            for line in text.splitlines():
                parsed = parse_requirement(line)
                if parsed is not None:
                    dependencies.setdefault(*parsed)

        texts.append(text)
        files.append(name)

    if not files:
        return None
    return PythonManifest(text="\n".join(texts), files=files, dependencies=dependencies)


def _table(data: dict[str, Any], key: str, source: Path) -> dict[str, Any]:
    """Return ``data[key]`` if it is a table; warn and return ``{}`` otherwise."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(
            "Ignoring '%s' in %s: expected a table, got %s", key, source, type(value).__name__
        )
        return {}
    return value


def _pyproject_dependencies(data: dict[str, Any], source: Path) -> dict[str, str]:
    deps: dict[str, str] = {}
    project = _table(data, "project", source)
    requirements = project.get("dependencies") or []
    if isinstance(requirements, list):
        for line in requirements:
            parsed = parse_requirement(str(line))
            if parsed is not None:
                deps[parsed[0]] = parsed[1]
    else:
        logger.warning("Ignoring project.dependencies in %s: expected a list", source)

    poetry = _table(_table(data, "tool", source), "poetry", source)
    for name, value in _table(poetry, "dependencies", source).items():
        if name.lower() == "python":
            continue
        deps.setdefault(name, _version_text(value))
    return deps


def read_go_mod(root: Path, guard: PathGuard | None = None) -> Optional[GoModule]:
    """Parse the ``go`` directive and ``require`` entries of ``go.mod``."""
    path = _readable(root, "go.mod", guard)
    if path is None:
        return None
    text = _read_text(path)
    if text is None:
        return None

    version_match = _RE_GO_DIRECTIVE.search(text)
    dependencies: dict[str, str] = {}
    in_block = False
    for raw_line in text.splitlines():
        line = raw_line.split("//", 1)[0].rstrip()
        if line.strip().startswith("require ("):
            in_block = True
            continue
        if in_block and line.strip() == ")":
            in_block = False
            continue
        if in_block or line.strip().startswith("require "):
            match = _RE_GO_REQUIRE_LINE.match(line)
            if match:
                dependencies[match.group(1)] = match.group(2)

    return GoModule(
        text=text,
        go_version=version_match.group(1) if version_match else None,
        dependencies=dependencies,
    )


def read_cargo_toml(root: Path, guard: PathGuard | None = None) -> Optional[CargoManifest]:
    """Parse ``Cargo.toml``; a malformed file is treated as absent."""
    path = _readable(root, "Cargo.toml", guard)
    if path is None:
        return None
    text = _read_text(path)
    if text is None:
        return None
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("Ignoring malformed Cargo.toml in %s: %s", root, exc)
        return None

    dependencies: dict[str, str] = {}
    for table in ("dependencies", "dev-dependencies"):
        for name, value in _table(data, table, path).items():
            dependencies[name] = _version_text(value)

    package = _table(data, "package", path)
    rust_version = package.get("rust-version")
    return CargoManifest(
        rust_version=str(rust_version) if rust_version is not None else None,
        dependencies=dependencies,
    )
