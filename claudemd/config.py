"""claudemd configuration.

Centralised, typed configuration for the generation pipeline. Settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from claudemd.guard.paths import PathPolicy

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global claudemd configuration.

    Instances are typically created once by the CLI entry point (or by a
    caller embedding the pipeline) and passed to ``GenerationPipeline``.
    """

    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)
    generic_template: str = Field(default="generic", description="Fallback template id")
    secondary_template: str = Field(default="agents", description="Template for the secondary document")

    primary_filename: str = Field(default="CLAUDE.md")
    secondary_filename: str = Field(default="AGENTS.md")
    ignore_filename: str = Field(default=".gitignore")

    strict_secrets: bool = Field(
        default=True,
        description="Run medium-severity secret patterns during validation (reported as warnings)",
    )
    max_dependencies: int = Field(
        default=10, ge=1, description="How many dependencies the rendered list may show"
    )

    # ------------------------------------------------------------------
    # Derived values (read-only properties)
    # ------------------------------------------------------------------

    @property
    def path_policy(self) -> PathPolicy:
        """Path policy whose write list covers exactly the configured outputs."""
        return PathPolicy.for_outputs(
            self.primary_filename,
            self.secondary_filename,
            self.ignore_filename,
        )

    @property
    def backup_patterns(self) -> list[str]:
        """Ignore-list globs matching backups of the output documents."""
        return [
            f"{self.primary_filename}.backup.*",
            f"{self.secondary_filename}.backup.*",
        ]

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            CLAUDEMD_TEMPLATE_DIR, CLAUDEMD_PRIMARY_FILE,
            CLAUDEMD_SECONDARY_FILE, CLAUDEMD_STRICT_SECRETS,
            CLAUDEMD_MAX_DEPENDENCIES.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CLAUDEMD_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["CLAUDEMD_TEMPLATE_DIR"])
        if os.environ.get("CLAUDEMD_PRIMARY_FILE"):
            kwargs["primary_filename"] = os.environ["CLAUDEMD_PRIMARY_FILE"]
        if os.environ.get("CLAUDEMD_SECONDARY_FILE"):
            kwargs["secondary_filename"] = os.environ["CLAUDEMD_SECONDARY_FILE"]
        if os.environ.get("CLAUDEMD_STRICT_SECRETS"):
            kwargs["strict_secrets"] = (
                os.environ["CLAUDEMD_STRICT_SECRETS"].strip().lower() in _TRUE_VALUES
            )
        if os.environ.get("CLAUDEMD_MAX_DEPENDENCIES"):
            kwargs["max_dependencies"] = int(os.environ["CLAUDEMD_MAX_DEPENDENCIES"])
        return cls(**kwargs)
