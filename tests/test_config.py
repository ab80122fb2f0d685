"""Unit tests for Config (claudemd.config).

Tests cover:
- Defaults and field validation
- Derived values (path policy, backup patterns)
- save/load round trip
- from_env
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from claudemd.config import DEFAULT_TEMPLATE_DIR, Config
from claudemd.guard.paths import Operation, PathGuard


class TestConfigDefaults:
    @pytest.mark.unit
    def test_defaults(self):
        config = Config()

        assert config.template_dir == DEFAULT_TEMPLATE_DIR
        assert config.primary_filename == "CLAUDE.md"
        assert config.secondary_filename == "AGENTS.md"
        assert config.ignore_filename == ".gitignore"
        assert config.generic_template == "generic"
        assert config.secondary_template == "agents"
        assert config.strict_secrets is True
        assert config.max_dependencies == 10

    @pytest.mark.unit
    def test_packaged_template_dir_exists(self):
        assert DEFAULT_TEMPLATE_DIR.is_dir()
        assert (DEFAULT_TEMPLATE_DIR / "generic.md").is_file()

    @pytest.mark.unit
    def test_max_dependencies_must_be_positive(self):
        with pytest.raises(ValidationError):
            Config(max_dependencies=0)


class TestDerivedValues:
    @pytest.mark.unit
    def test_path_policy_follows_file_names(self):
        guard = PathGuard(Config(primary_filename="CONTEXT.md").path_policy)

        assert guard.is_path_allowed("CONTEXT.md", Operation.WRITE) is True
        assert guard.is_path_allowed("CONTEXT.md.backup.20260101-120000", Operation.WRITE) is True
        assert guard.is_path_allowed("CLAUDE.md", Operation.WRITE) is False

    @pytest.mark.unit
    def test_backup_patterns(self):
        assert Config().backup_patterns == ["CLAUDE.md.backup.*", "AGENTS.md.backup.*"]


class TestSaveLoad:
    @pytest.mark.unit
    def test_round_trip(self, tmp_path: Path):
        config = Config(template_dir=tmp_path / "tpl", strict_secrets=False, max_dependencies=3)

        path = config.save(tmp_path / "nested" / "claudemd.json")
        loaded = Config.load(path)

        assert loaded == config

    @pytest.mark.unit
    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "absent.json")


class TestFromEnv:
    @pytest.mark.unit
    def test_empty_environment_gives_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            assert Config.from_env() == Config()

    @pytest.mark.unit
    def test_reads_variables(self, tmp_path: Path):
        env = {
            "CLAUDEMD_TEMPLATE_DIR": str(tmp_path),
            "CLAUDEMD_PRIMARY_FILE": "CONTEXT.md",
            "CLAUDEMD_SECONDARY_FILE": "COPILOT.md",
            "CLAUDEMD_STRICT_SECRETS": "false",
            "CLAUDEMD_MAX_DEPENDENCIES": "5",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config.from_env()

        assert config.template_dir == tmp_path
        assert config.primary_filename == "CONTEXT.md"
        assert config.secondary_filename == "COPILOT.md"
        assert config.strict_secrets is False
        assert config.max_dependencies == 5

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_strict_truthy_values(self, value: str):
        with patch.dict(os.environ, {"CLAUDEMD_STRICT_SECRETS": value}, clear=True):
            assert Config.from_env().strict_secrets is True
