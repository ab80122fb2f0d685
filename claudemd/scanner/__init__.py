"""Project scanner -- detects framework, dependencies, tests and package manager.

Quick usage::

    from claudemd.scanner import ProjectScanner

    descriptor = ProjectScanner().scan("/path/to/project")
    print(descriptor.project_type, descriptor.confidence)
"""

from claudemd.scanner.detector import PathNotFoundError, ProbeResult, ProjectScanner
from claudemd.scanner.rules import Classification, Rule, ScanContext, classify, first_match

__all__ = [
    "Classification",
    "PathNotFoundError",
    "ProbeResult",
    "ProjectScanner",
    "Rule",
    "ScanContext",
    "classify",
    "first_match",
]
