"""Project scanner: turns a directory into a ``ProjectDescriptor``.

One probe per ecosystem (Node.js, Python, Go, Rust). A probe only runs its
rules when its marker manifest is present. When several probes match, the
result with the highest confidence wins and ties go to the earlier probe,
so a less specific classification can never lower the confidence already
established by a more specific one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field

from claudemd.guard.paths import PathGuard
from claudemd.models import ClaudeMdError, FrameworkInfo, ProjectDescriptor, ProjectType
from claudemd.scanner import manifests
from claudemd.scanner.rules import (
    GO_CLASSIFICATION,
    NODE_FRAMEWORK_RULES,
    NODE_PACKAGE_MANAGER_RULES,
    NODE_TEST_RULES,
    PYTHON_FRAMEWORK_RULES,
    PYTHON_PACKAGE_MANAGER_RULES,
    PYTHON_TEST_RULES,
    RUST_CLASSIFICATION,
    Classification,
    ScanContext,
    classify,
    fallback_confidence,
    find_files,
    first_match,
)

logger = logging.getLogger(__name__)


class PathNotFoundError(ClaudeMdError):
    """Raised when the directory to scan does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Project path does not exist: {path}")


class ProbeResult(BaseModel):
    """Everything one ecosystem probe learned about the project."""

    probe: str
    project_type: ProjectType
    confidence: float = Field(..., ge=0.0, le=1.0)
    framework: FrameworkInfo
    dependencies: dict[str, str] = Field(default_factory=dict)
    test_framework: Optional[str] = None
    package_manager: Optional[str] = None


def _framework(classification: Classification, ctx: ScanContext) -> FrameworkInfo:
    version = ctx.version_of(classification.version_key) if classification.version_key else None
    return FrameworkInfo(
        name=classification.framework,
        version=version,
        router=classification.router,
    )


class ProjectScanner:
    """Read-only inspector that classifies a project directory.

    Args:
        path_guard: Optional read policy consulted before each manifest is
            opened.
    """

    def __init__(self, path_guard: PathGuard | None = None) -> None:
        self.path_guard = path_guard
        self._probes: tuple[Callable[[Path], Optional[ProbeResult]], ...] = (
            self.probe_node,
            self.probe_python,
            self.probe_go,
            self.probe_rust,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self, path: str | Path) -> ProjectDescriptor:
        """Scan *path* and describe the project found there.

        Raises:
            PathNotFoundError: If *path* does not exist or is not a directory.
        """
        root = Path(path).expanduser()
        if not root.is_dir():
            raise PathNotFoundError(root)
        root = root.resolve()

        best: Optional[ProbeResult] = None
        for probe in self._probes:
            result = probe(root)
            if result is None:
                continue
            if best is None or result.confidence > best.confidence:
                best = result
            else:
                logger.debug(
                    "Ignoring %s probe (%s, %.2f): %s already matched with %.2f",
                    result.probe,
                    result.project_type.value,
                    result.confidence,
                    best.probe,
                    best.confidence,
                )

        if best is None:
            confidence = fallback_confidence(ScanContext(root=root))
            logger.debug("No manifest found in %s; confidence %.2f", root, confidence)
            return ProjectDescriptor(
                project_type=ProjectType.UNKNOWN,
                confidence=confidence,
                project_path=str(root),
                scanned_at=datetime.now(timezone.utc),
            )

        logger.debug(
            "Detected %s (%.2f) via %s probe",
            best.project_type.value,
            best.confidence,
            best.probe,
        )
        return ProjectDescriptor(
            project_type=best.project_type,
            framework=best.framework,
            dependencies=best.dependencies,
            has_tests=best.test_framework is not None,
            test_framework=best.test_framework,
            package_manager=best.package_manager,
            confidence=best.confidence,
            project_path=str(root),
            scanned_at=datetime.now(timezone.utc),
        )

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def probe_node(self, root: Path) -> Optional[ProbeResult]:
        manifest = manifests.read_package_json(root, self.path_guard)
        if manifest is None:
            return None

        ctx = ScanContext(root=root, dependencies=manifests.node_dependencies(manifest))
        rule = classify(NODE_FRAMEWORK_RULES, ctx)
        test_rule = first_match(NODE_TEST_RULES, ctx)
        pm_rule = first_match(NODE_PACKAGE_MANAGER_RULES, ctx)

        logger.debug("Node rule matched: %s", rule.name)
        return ProbeResult(
            probe="node",
            project_type=rule.outcome.project_type,
            confidence=rule.outcome.confidence,
            framework=_framework(rule.outcome, ctx),
            dependencies=ctx.dependencies,
            test_framework=test_rule.outcome if test_rule else None,
            package_manager=pm_rule.outcome if pm_rule else "npm",
        )

    def probe_python(self, root: Path) -> Optional[ProbeResult]:
        manifest = manifests.read_python_manifests(root, self.path_guard)
        if manifest is None:
            return None

        ctx = ScanContext(
            root=root,
            dependencies=manifest.dependencies,
            manifest_text=manifest.text,
        )
        rule = classify(PYTHON_FRAMEWORK_RULES, ctx)
        test_rule = first_match(PYTHON_TEST_RULES, ctx)
        pm_rule = first_match(PYTHON_PACKAGE_MANAGER_RULES, ctx)

        logger.debug("Python rule matched: %s (from %s)", rule.name, ", ".join(manifest.files))
        return ProbeResult(
            probe="python",
            project_type=rule.outcome.project_type,
            confidence=rule.outcome.confidence,
            framework=_framework(rule.outcome, ctx),
            dependencies=ctx.dependencies,
            test_framework=test_rule.outcome if test_rule else None,
            package_manager=pm_rule.outcome if pm_rule else "pip",
        )

    def probe_go(self, root: Path) -> Optional[ProbeResult]:
        module = manifests.read_go_mod(root, self.path_guard)
        if module is None:
            return None

        has_tests = bool(find_files(root, lambda name: name.endswith("_test.go")))
        return ProbeResult(
            probe="go",
            project_type=GO_CLASSIFICATION.project_type,
            confidence=GO_CLASSIFICATION.confidence,
            framework=FrameworkInfo(name=GO_CLASSIFICATION.framework, version=module.go_version),
            dependencies=module.dependencies,
            test_framework="go test" if has_tests else None,
            package_manager="go modules",
        )

    def probe_rust(self, root: Path) -> Optional[ProbeResult]:
        cargo = manifests.read_cargo_toml(root, self.path_guard)
        if cargo is None:
            return None

        return ProbeResult(
            probe="rust",
            project_type=RUST_CLASSIFICATION.project_type,
            confidence=RUST_CLASSIFICATION.confidence,
            framework=FrameworkInfo(name=RUST_CLASSIFICATION.framework, version=cargo.rust_version),
            dependencies=cargo.dependencies,
            test_framework="cargo test" if (root / "tests").is_dir() else None,
            package_manager="cargo",
        )
