"""claudemd generation pipeline.

Wires the five stages together:

1. SCAN     -- classify the project directory (read-only).
2. SELECT   -- pick a template and build the scan-derived placeholder mapping.
3. MERGE    -- layer user preferences on top of the mapping.
4. RENDER   -- resolve conditionals, substitute placeholders.
5. VALIDATE -- secret scan plus structural checks.

and finally WRITE, which backs up any existing document before replacing it.

Each stage is a pure transformation of the previous stage's output, except
WRITE. The stages never print; the CLI below owns all console output.

Usage::

    python -m claudemd ./my-project
    python -m claudemd ./my-project --focus security --no-secondary
    python -m claudemd ./my-project --dry-run
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.panel import Panel
from rich.text import Text

from claudemd.config import Config
from claudemd.generator.preferences import Preferences, merge_preferences
from claudemd.generator.renderer import DocumentRenderer
from claudemd.generator.selector import TemplateSelector, TemplatesMissingError
from claudemd.generator.templates import TemplateLibrary
from claudemd.generator.validator import ContentValidator
from claudemd.generator.writer import DocumentWriter
from claudemd.guard.paths import PathGuard
from claudemd.guard.secrets import SecretDetector
from claudemd.models import (
    ClaudeMdError,
    ProjectDescriptor,
    RenderedContent,
    SelectionResult,
    ValidationResult,
    WriteResult,
)
from claudemd.scanner.detector import PathNotFoundError, ProjectScanner
from claudemd.utils import (
    configure_logging,
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

logger = logging.getLogger(__name__)

STAGE_NAMES: dict[str, str] = {
    "scan": "SCAN",
    "select": "SELECT",
    "merge": "MERGE",
    "render": "RENDER",
    "validate": "VALIDATE",
    "write": "WRITE",
}

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(ClaudeMdError):
    """Raised when a stage fails irrecoverably."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"{STAGE_NAMES.get(stage, stage.upper())}: {message}")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class GenerationPipeline:
    """Scan a project and produce its assistant-context documents.

    Attributes:
        config: Pipeline configuration.
        path_guard: Read/write policy shared by the scanner and writer.
        library: Template lookup rooted at ``config.template_dir``.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self.path_guard = PathGuard(self.config.path_policy)
        self.library = TemplateLibrary(self.config.template_dir)

        self.scanner = ProjectScanner(self.path_guard)
        self.selector = TemplateSelector(self.library, self.config)
        self.renderer = DocumentRenderer(self.library, self.config)
        self.validator = ContentValidator(SecretDetector(), strict=self.config.strict_secrets)
        self.writer = DocumentWriter(self.path_guard, self.config)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def scan(self, target_dir: str | Path) -> ProjectDescriptor:
        return self.scanner.scan(target_dir)

    def select(self, descriptor: ProjectDescriptor) -> SelectionResult:
        return self.selector.select(descriptor)

    def merge(
        self, selection: SelectionResult, preferences: Optional[Preferences] = None
    ) -> SelectionResult:
        return merge_preferences(selection, preferences)

    def render(self, selection: SelectionResult) -> RenderedContent:
        return self.renderer.render_selection(selection)

    def validate(self, rendered: RenderedContent) -> ValidationResult:
        return self.validator.validate(rendered)

    def write(self, validated: ValidationResult, target_dir: str | Path) -> WriteResult:
        return self.writer.write(validated, target_dir)

    # ------------------------------------------------------------------
    # Composite runs
    # ------------------------------------------------------------------

    def generate(
        self, target_dir: str | Path, preferences: Optional[Preferences] = None
    ) -> ValidationResult:
        """Run every stage except WRITE.

        Selection warnings (such as a template fallback) are carried into the
        returned ``ValidationResult``.

        Raises:
            PipelineError: If the directory is missing or no template is
                usable.
        """
        try:
            descriptor = self.scan(target_dir)
        except PathNotFoundError as exc:
            raise PipelineError("scan", str(exc)) from exc

        try:
            selection = self.select(descriptor)
        except TemplatesMissingError as exc:
            raise PipelineError("select", str(exc)) from exc

        merged = self.merge(selection, preferences)
        try:
            rendered = self.render(merged)
        except OSError as exc:
            raise PipelineError("render", f"Could not read template '{merged.template_id}': {exc}") from exc

        validated = self.validate(rendered)
        if selection.warnings:
            validated = validated.model_copy(
                update={"warnings": [*selection.warnings, *validated.warnings]}
            )
        logger.info(
            "Rendered '%s' for %s (valid=%s)",
            rendered.template_id,
            descriptor.project_type.value,
            validated.is_valid,
        )
        return validated

    def run(
        self, target_dir: str | Path = ".", preferences: Optional[Preferences] = None
    ) -> WriteResult:
        """Generate and write the documents for *target_dir*.

        Never raises for expected failures: they come back as a
        ``WriteResult`` with ``success=False``.
        """
        try:
            validated = self.generate(target_dir, preferences)
        except PipelineError as exc:
            logger.info("Stopped: %s", exc)
            return WriteResult(success=False, errors=[str(exc)])

        result = self.write(validated, target_dir)
        if result.success:
            logger.info("Wrote %s", ", ".join(result.written_files))
        else:
            logger.info("Generation failed: %s", "; ".join(result.errors))
        return result


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------


def _print_messages(warnings: list[str], errors: list[str]) -> None:
    for warning in warnings:
        print_warning(f"Warning: {warning}")
    for error in errors:
        print_error(f"Error: {error}")


def _print_dry_run(validated: ValidationResult) -> None:
    rendered = validated.rendered
    print_summary_table(
        {
            "Template": rendered.template_id,
            "Framework": " ".join(
                part for part in (rendered.framework_name, rendered.framework_version) if part
            )
            or "(none detected)",
            "Confidence": f"{rendered.confidence:.2f}",
            "Secondary document": "yes" if rendered.secondary_content is not None else "no",
            "Valid": "yes" if validated.is_valid else "no",
        },
        title="Dry Run",
    )
    console.print(Panel(Text(rendered.content), title="Primary document", border_style="cyan"))
    if rendered.secondary_content is not None:
        console.print(
            Panel(Text(rendered.secondary_content), title="Secondary document", border_style="cyan")
        )
    _print_messages(validated.warnings, validated.errors)


def _print_write_result(result: WriteResult) -> None:
    if result.success:
        print_summary_table(
            {
                "Written": ", ".join(result.written_files) or "(none)",
                "Backups": ", ".join(result.backup_files) or "(none)",
                "Ignore list updated": "yes" if result.gitignore_updated else "no",
            },
            title="Generation Results",
        )
    _print_messages(result.warnings, result.errors)


def _load_config(path: Optional[str]) -> Config:
    if path is None:
        return Config.from_env()
    return Config.load(Path(path))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``python -m claudemd`` and ``claudemd``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="claudemd",
        description="Generate CLAUDE.md / AGENTS.md context documents for a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  claudemd ./my-project\n"
            "  claudemd ./my-project --focus security --code-style oop\n"
            "  claudemd ./my-project --dry-run\n"
        ),
    )

    parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Project directory to scan and write into (default: .)",
    )
    parser.add_argument(
        "--description",
        default=None,
        help="Project description (derived from the detected framework if omitted)",
    )
    parser.add_argument(
        "--code-style",
        choices=["functional", "oop", "mixed"],
        default="functional",
        help="Preferred code style (default: functional)",
    )
    parser.add_argument(
        "--focus",
        choices=["none", "security", "performance", "accessibility"],
        default="none",
        help="Special focus section to include (default: none)",
    )
    parser.add_argument(
        "--dependencies",
        default=None,
        help="Replace the detected key-dependency list with this text",
    )
    parser.add_argument(
        "--no-secondary",
        action="store_true",
        help="Do not generate the secondary AGENTS.md document",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Render and validate only; print the result instead of writing",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON configuration file (default: environment variables)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = _load_config(args.config)
    except (OSError, ValueError, ValidationError) as exc:
        print_error(f"Error: could not load configuration: {exc}")
        sys.exit(1)

    preferences = Preferences(
        description=args.description,
        code_style=args.code_style,
        dependencies=args.dependencies,
        generate_secondary=not args.no_secondary,
        special_focus=args.focus,
    )
    pipeline = GenerationPipeline(config)

    if args.dry_run:
        try:
            validated = pipeline.generate(args.target, preferences)
        except PipelineError as exc:
            print_error(f"Error: {exc}")
            sys.exit(1)
        _print_dry_run(validated)
        if not validated.is_valid:
            sys.exit(1)
        return

    result = pipeline.run(args.target, preferences)
    _print_write_result(result)
    if result.success:
        print_success(f"Generated {config.primary_filename} in {Path(args.target).resolve()}")
    else:
        print_error("Generation failed.")
        sys.exit(1)


if __name__ == "__main__":
    main()
