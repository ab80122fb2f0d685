"""Pydantic v2 models shared by every stage of the generation pipeline.

Each stage produces one of these structures and hands it to the next:
``ProjectDescriptor`` (scanner) -> ``SelectionResult`` (selector and
preference merger) -> ``RenderedContent`` (renderer) -> ``ValidationResult``
(validator) -> ``WriteResult`` (writer).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

# A placeholder value as accepted by the renderer.
PlaceholderValue = Union[str, bool, int, float, list[str], None]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ClaudeMdError(Exception):
    """Base class for every error raised by the generation pipeline."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ProjectType(str, Enum):
    """Project classification produced by the scanner."""

    NEXTJS = "nextjs"
    REACT_VITE = "react-vite"
    REACT = "react"
    VITE = "vite"
    FASTAPI = "fastapi"
    DJANGO = "django"
    FLASK = "flask"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    NODEJS = "nodejs"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


class FrameworkInfo(BaseModel):
    """Detected framework name and version.

    ``router`` is only meaningful for Next.js projects (``app``, ``pages`` or
    ``unknown``).
    """

    name: Optional[str] = Field(default=None, description="Display name, e.g. 'Next.js'")
    version: Optional[str] = Field(default=None, description="Version string as declared")
    router: Optional[str] = Field(default=None, description="Next.js router flavour")


class ProjectDescriptor(BaseModel):
    """Structured description of a scanned project directory."""

    project_type: ProjectType = Field(default=ProjectType.UNKNOWN)
    framework: FrameworkInfo = Field(default_factory=FrameworkInfo)
    dependencies: dict[str, str] = Field(
        default_factory=dict,
        description="Package name -> version, in manifest order",
    )
    has_tests: bool = Field(default=False)
    test_framework: Optional[str] = Field(default=None)
    package_manager: Optional[str] = Field(default=None)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    project_path: str = Field(default="")
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def project_name(self) -> str:
        """Last path segment of the scanned directory."""
        return Path(self.project_path).name if self.project_path else ""


# ---------------------------------------------------------------------------
# Selection and templates
# ---------------------------------------------------------------------------


class Template(BaseModel):
    """A template body plus the headings it requires in rendered output."""

    template_id: str
    body: str
    required_sections: list[str] = Field(default_factory=list)
    path: Optional[Path] = None


class SelectionResult(BaseModel):
    """Chosen template and the placeholder mapping accumulated so far."""

    template_id: str
    variables: dict[str, PlaceholderValue] = Field(default_factory=dict)
    descriptor: ProjectDescriptor
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Rendering, validation and writing
# ---------------------------------------------------------------------------


class RenderedContent(BaseModel):
    """Final document text plus the metadata it was produced from."""

    content: str
    secondary_content: Optional[str] = Field(
        default=None, description="Secondary document, when generation was requested"
    )
    template_id: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    framework_name: Optional[str] = None
    framework_version: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    variables: dict[str, PlaceholderValue] = Field(default_factory=dict)
    required_sections: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Verdict over a ``RenderedContent``; warnings never block validity."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    rendered: RenderedContent


class WriteResult(BaseModel):
    """Outcome of persisting documents to disk.

    Also used as the pipeline's failure object: ``success=False`` with the
    reasons in ``errors``.
    """

    success: bool
    written_files: list[str] = Field(default_factory=list)
    backup_files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    gitignore_updated: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
