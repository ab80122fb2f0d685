"""Unit tests for rule-table evaluation (claudemd.scanner.rules)."""

from __future__ import annotations

from pathlib import Path

import pytest

from claudemd.models import ProjectType
from claudemd.scanner.rules import (
    NODE_FRAMEWORK_RULES,
    PYTHON_FRAMEWORK_RULES,
    Rule,
    ScanContext,
    classify,
    first_match,
)

RULES: tuple[Rule[str], ...] = (
    Rule("has-next", lambda ctx: ctx.has_dep("next"), "next"),
    Rule("has-react", lambda ctx: ctx.has_dep("react"), "react"),
)


class TestFirstMatch:
    @pytest.mark.unit
    def test_earlier_rule_wins(self, tmp_path: Path):
        ctx = ScanContext(root=tmp_path, dependencies={"react": "18", "next": "14"})
        assert first_match(RULES, ctx).outcome == "next"

    @pytest.mark.unit
    def test_no_match_is_none(self, tmp_path: Path):
        assert first_match(RULES, ScanContext(root=tmp_path)) is None


class TestClassify:
    @pytest.mark.unit
    def test_returns_matching_rule(self, tmp_path: Path):
        ctx = ScanContext(root=tmp_path, dependencies={"react": "18"})
        assert classify(RULES, ctx).name == "has-react"

    @pytest.mark.unit
    def test_table_without_catch_all_raises(self, tmp_path: Path):
        with pytest.raises(LookupError, match="no catch-all"):
            classify(RULES, ScanContext(root=tmp_path))

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("rules", "expected"),
        [(NODE_FRAMEWORK_RULES, ProjectType.NODEJS), (PYTHON_FRAMEWORK_RULES, ProjectType.PYTHON)],
    )
    def test_framework_tables_end_with_catch_all(self, tmp_path: Path, rules, expected):
        rule = classify(rules, ScanContext(root=tmp_path))
        assert rule.outcome.project_type is expected
