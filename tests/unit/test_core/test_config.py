"""Tests for the configuration system."""

import pytest
from pathlib import Path
from pydantic import ValidationError

from depindex.core.config import (
    DepindexConfig,
    EnvSettings,
    IndexerConfig,
    load_yaml_config,
    _deep_merge,
    load_config,
)
from depindex.core.languages import detect_language, resolve_suffixes


class TestDeepMerge:
    def test_simple_merge(self):
        result = _deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"indexer": {"max_file_size": 10, "parse_symbols": True}}
        override = {"indexer": {"parse_symbols": False}}
        result = _deep_merge(base, override)
        assert result == {"indexer": {"max_file_size": 10, "parse_symbols": False}}

    def test_does_not_mutate_base(self):
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": {"y": 2}})
        assert base == {"a": {"x": 1}}


class TestIndexerConfig:
    def test_defaults(self):
        config = IndexerConfig()
        assert ".ts" in config.extensions
        assert ".py" in config.extensions
        assert "node_modules" in config.ignore_patterns
        assert config.max_file_size == 1024 * 1024
        assert config.parse_symbols is True
        assert config.build_dependency_graph is True
        assert config.calculate_hashes is True
        assert config.parse_languages == ["javascript", "python", "typescript"]

    def test_extensions_are_normalized(self):
        config = IndexerConfig(extensions=["TS", ".JSX"])
        assert config.extensions == [".ts", ".jsx"]

    def test_max_file_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            IndexerConfig(max_file_size=0)

    def test_root_defaults(self):
        config = DepindexConfig()
        assert config.codemap.output == "CODEMAPS.md"


class TestLoadYamlConfig:
    def test_missing_file(self, tmp_path):
        assert load_yaml_config(tmp_path / "nope.yaml") == {}

    def test_non_mapping_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_yaml_config(path) == {}

    def test_valid_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("indexer:\n  top_n: 3\n")
        assert load_yaml_config(path) == {"indexer": {"top_n": 3}}


class TestLoadConfig:
    def test_defaults_without_files(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEPINDEX_MAX_FILE_SIZE", raising=False)
        config = load_config(project_dir=tmp_path, global_config_dir=tmp_path / "global")
        assert config == DepindexConfig()

    def test_project_overrides_global(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEPINDEX_MAX_FILE_SIZE", raising=False)
        global_dir = tmp_path / "global"
        global_dir.mkdir()
        (global_dir / "config.yaml").write_text(
            "indexer:\n  max_file_size: 100\n  calculate_hashes: false\n"
        )
        project_conf = tmp_path / "proj" / ".depindex"
        project_conf.mkdir(parents=True)
        (project_conf / "config.yaml").write_text("indexer:\n  max_file_size: 200\n")

        config = load_config(project_dir=tmp_path / "proj", global_config_dir=global_dir)
        assert config.indexer.max_file_size == 200
        assert config.indexer.calculate_hashes is False

    def test_env_overrides_files(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEPINDEX_MAX_FILE_SIZE", "4096")
        project_conf = tmp_path / ".depindex"
        project_conf.mkdir()
        (project_conf / "config.yaml").write_text("indexer:\n  max_file_size: 200\n")

        config = load_config(project_dir=tmp_path, global_config_dir=tmp_path / "global")
        assert config.indexer.max_file_size == 4096


class TestEnvSettings:
    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("DEPINDEX_LOG_LEVEL", "DEBUG")
        assert EnvSettings().log_level == "DEBUG"


class TestLanguages:
    def test_detect_language(self):
        assert detect_language(".ts") == "typescript"
        assert detect_language(".PY") == "python"
        assert detect_language(".xyz") == "unknown"

    def test_resolve_suffixes(self):
        assert resolve_suffixes("python") == ("", ".py", "/__init__.py")
        js = resolve_suffixes("javascript")
        assert js[0] == ""
        assert js.index(".ts") < js.index("/index.ts")
