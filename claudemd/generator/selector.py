"""Template selection and initial placeholder mapping.

Several project types deliberately share a neighbouring template (Flask
reuses Django's, Rust reuses Go's, bare Python reuses FastAPI's) rather
than each type carrying its own.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from claudemd.config import Config
from claudemd.generator.templates import TemplateLibrary
from claudemd.models import (
    ClaudeMdError,
    PlaceholderValue,
    ProjectDescriptor,
    ProjectType,
    SelectionResult,
)

logger = logging.getLogger(__name__)


class TemplatesMissingError(ClaudeMdError):
    """Raised when not even the generic fallback template is available."""

    def __init__(self, template_dir: str, template_id: str) -> None:
        self.template_dir = template_dir
        self.template_id = template_id
        super().__init__(
            f"No usable template: fallback '{template_id}' not found in {template_dir}"
        )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

TEMPLATE_MAP: dict[ProjectType, str] = {
    ProjectType.NEXTJS: "nextjs",
    ProjectType.REACT_VITE: "react-vite",
    ProjectType.REACT: "react-vite",
    ProjectType.VITE: "react-vite",
    ProjectType.FASTAPI: "fastapi",
    ProjectType.PYTHON: "fastapi",
    ProjectType.DJANGO: "django",
    ProjectType.FLASK: "django",
    ProjectType.GO: "go",
    ProjectType.RUST: "go",
}

# Dependencies whose name contains any of these are tooling noise.
TOOLING_NOISE: tuple[str, ...] = (
    "@types/",
    "eslint",
    "prettier",
    "typescript",
    "mypy",
    "ruff",
    "flake8",
)

RUN_COMMANDS: dict[str, str] = {
    "npm": "npm run",
    "pnpm": "pnpm",
    "yarn": "yarn",
    "bun": "bun run",
    "uv": "uv run",
    "poetry": "poetry run",
    "pipenv": "pipenv run",
    "go modules": "go",
    "cargo": "cargo",
}

DEFAULT_HMR_PORT = 5173


def _nextjs_extras(descriptor: ProjectDescriptor) -> dict[str, PlaceholderValue]:
    return {
        "SUPPORTS_SSR": True,
        "IS_APP_ROUTER": descriptor.framework.router == "app",
    }


def _vite_extras(descriptor: ProjectDescriptor) -> dict[str, PlaceholderValue]:
    return {"HMR_PORT": DEFAULT_HMR_PORT}


def _fastapi_extras(descriptor: ProjectDescriptor) -> dict[str, PlaceholderValue]:
    return {"API_DOCS_PATH": "/docs"}


def _django_extras(descriptor: ProjectDescriptor) -> dict[str, PlaceholderValue]:
    if descriptor.project_type is ProjectType.FLASK:
        return {"MANAGE_COMMAND": "flask", "DEV_SERVER_COMMAND": "flask run"}
    return {"MANAGE_COMMAND": "python manage.py", "DEV_SERVER_COMMAND": "python manage.py runserver"}


FRAMEWORK_EXTRAS: dict[ProjectType, Callable[[ProjectDescriptor], dict[str, PlaceholderValue]]] = {
    ProjectType.NEXTJS: _nextjs_extras,
    ProjectType.REACT_VITE: _vite_extras,
    ProjectType.VITE: _vite_extras,
    ProjectType.FASTAPI: _fastapi_extras,
    ProjectType.DJANGO: _django_extras,
    ProjectType.FLASK: _django_extras,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_tooling_noise(name: str) -> bool:
    return any(noise in name for noise in TOOLING_NOISE)


def format_dependencies(dependencies: dict[str, str], limit: int = 10) -> str:
    """Render the first *limit* non-tooling dependencies as ``name (version)``.

    Manifest order is preserved. Example::

        format_dependencies({"next": "14.2.5", "eslint": "8"}) -> "next (14.2.5)"
    """
    kept = [
        f"{name} ({version})"
        for name, version in dependencies.items()
        if not is_tooling_noise(name)
    ]
    return ", ".join(kept[:limit])


# ---------------------------------------------------------------------------
# TemplateSelector
# ---------------------------------------------------------------------------


class TemplateSelector:
    """Maps a ``ProjectDescriptor`` to a template and initial variables."""

    def __init__(self, library: TemplateLibrary, config: Optional[Config] = None) -> None:
        self.library = library
        self.config = config or Config()

    def template_id_for(self, project_type: ProjectType) -> str:
        return TEMPLATE_MAP.get(project_type, self.config.generic_template)

    def select(self, descriptor: ProjectDescriptor) -> SelectionResult:
        """Choose a template for *descriptor* and build its placeholder mapping.

        Raises:
            TemplatesMissingError: If neither the mapped template nor the
                generic fallback exists.
        """
        generic = self.config.generic_template
        template_id = self.template_id_for(descriptor.project_type)
        warnings: list[str] = []

        if not self.library.exists(template_id):
            if template_id != generic:
                message = f"Template '{template_id}' not found; falling back to '{generic}'"
                logger.warning(message)
                warnings.append(message)
            template_id = generic
            if not self.library.exists(generic):
                raise TemplatesMissingError(str(self.library.template_dir), generic)

        return SelectionResult(
            template_id=template_id,
            variables=self.build_variables(descriptor),
            descriptor=descriptor,
            warnings=warnings,
        )

    def build_variables(self, descriptor: ProjectDescriptor) -> dict[str, PlaceholderValue]:
        """Initial placeholder mapping derived purely from the scan."""
        framework = descriptor.framework
        variables: dict[str, PlaceholderValue] = {
            "PROJECT_NAME": descriptor.project_name,
            "PROJECT_TYPE": descriptor.project_type.value,
            "FRAMEWORK": framework.name,
            "FRAMEWORK_VERSION": framework.version,
            "PACKAGE_MANAGER": descriptor.package_manager,
            "TEST_FRAMEWORK": descriptor.test_framework,
            "ROUTER": framework.router,
            "PROJECT_PATH": descriptor.project_path,
            "GENERATED_DATE": date.today().isoformat(),
            "HAS_TESTS": descriptor.has_tests,
            "CONFIDENCE": descriptor.confidence,
            "DEPENDENCIES": format_dependencies(
                descriptor.dependencies, self.config.max_dependencies
            ),
            "RUN_COMMAND": RUN_COMMANDS.get(descriptor.package_manager or ""),
        }

        extras_for = FRAMEWORK_EXTRAS.get(descriptor.project_type)
        if extras_for is not None:
            for key, value in extras_for(descriptor).items():
                variables.setdefault(key, value)
        return variables
