"""Shared pytest fixtures for the claudemd test suite.

Provides reusable fixtures for:
- Temporary project directories built from a ``{relative path: content}`` map
- Ready-made manifests for each supported ecosystem
- Configuration and template libraries (packaged or custom)
- Descriptors and selections for generator tests
"""

from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from claudemd.config import DEFAULT_TEMPLATE_DIR, Config
from claudemd.generator.templates import TemplateLibrary
from claudemd.models import FrameworkInfo, ProjectDescriptor, ProjectType, SelectionResult


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_claudemd_logger():
    """Undo ``configure_logging`` so caplog keeps seeing records after CLI tests."""
    yield
    logger = logging.getLogger("claudemd")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Project directories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a project directory under ``tmp_path``.

    Keys ending in ``/`` create empty directories; everything else is
    written as a UTF-8 file (dicts are dumped as JSON).
    """

    def _make(files: dict[str, Any] | None = None, name: str = "demo") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in (files or {}).items():
            target = root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                content = json.dumps(content, indent=2)
            target.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def nextjs_package_json() -> dict[str, Any]:
    """package.json for a Next.js 14 project with vitest."""
    return {
        "name": "demo",
        "version": "0.1.0",
        "dependencies": {
            "next": "14.2.5",
            "react": "18.3.1",
            "react-dom": "18.3.1",
            "zustand": "4.5.2",
        },
        "devDependencies": {
            "@types/react": "18.3.3",
            "eslint": "8.57.0",
            "typescript": "5.4.5",
            "vitest": "1.6.0",
        },
    }


@pytest.fixture
def fastapi_pyproject() -> str:
    return textwrap.dedent("""\
        [project]
        name = "demo-api"
        version = "0.1.0"
        dependencies = [
            "fastapi>=0.110.0",
            "uvicorn[standard]>=0.29",
            "pydantic>=2.6",
        ]

        [project.optional-dependencies]
        test = ["pytest>=8.0"]
    """)


# ---------------------------------------------------------------------------
# Configuration and templates
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> Config:
    """Default configuration using the packaged templates."""
    return Config()


@pytest.fixture
def library() -> TemplateLibrary:
    return TemplateLibrary(DEFAULT_TEMPLATE_DIR)


@pytest.fixture
def make_templates(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Factory writing ``{template_id: text}`` into a fresh template directory."""

    def _make(templates: dict[str, str]) -> Path:
        template_dir = tmp_path / "templates"
        template_dir.mkdir(exist_ok=True)
        for template_id, text in templates.items():
            (template_dir / f"{template_id}.md").write_text(text, encoding="utf-8")
        return template_dir

    return _make


# ---------------------------------------------------------------------------
# Descriptors and selections
# ---------------------------------------------------------------------------

@pytest.fixture
def nextjs_descriptor() -> ProjectDescriptor:
    return ProjectDescriptor(
        project_type=ProjectType.NEXTJS,
        framework=FrameworkInfo(name="Next.js", version="14.2.5", router="app"),
        dependencies={"next": "14.2.5", "react": "18.3.1", "eslint": "8.57.0"},
        has_tests=True,
        test_framework="vitest",
        package_manager="pnpm",
        confidence=0.95,
        project_path="/work/demo",
    )


@pytest.fixture
def unknown_descriptor() -> ProjectDescriptor:
    return ProjectDescriptor(project_path="/work/empty")


@pytest.fixture
def make_selection() -> Callable[..., SelectionResult]:
    """Factory for a ``SelectionResult`` with an arbitrary variable mapping."""

    def _make(
        variables: dict[str, Any] | None = None,
        template_id: str = "generic",
        descriptor: ProjectDescriptor | None = None,
    ) -> SelectionResult:
        return SelectionResult(
            template_id=template_id,
            variables=variables or {},
            descriptor=descriptor or ProjectDescriptor(project_path="/work/demo"),
        )

    return _make
