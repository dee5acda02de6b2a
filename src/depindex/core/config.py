"""Configuration system for depindex using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from depindex.core.languages import (
    DEFAULT_EXTENSIONS,
    DEFAULT_IGNORE_PATTERNS,
    EXTRACTABLE_LANGUAGES,
)


class IndexerConfig(BaseModel):
    """What to index and how much work to do per file."""

    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    max_file_size: int = Field(default=1024 * 1024, gt=0)  # bytes
    parse_symbols: bool = True
    build_dependency_graph: bool = True
    calculate_hashes: bool = True
    parse_languages: list[str] = Field(
        default_factory=lambda: sorted(EXTRACTABLE_LANGUAGES)
    )
    top_n: int = Field(default=10, ge=0)  # largest / most-imported list length

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class CodemapConfig(BaseModel):
    """Markdown codemap output."""

    output: str = "CODEMAPS.md"


class DepindexConfig(BaseModel):
    """Root configuration model."""

    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    codemap: CodemapConfig = Field(default_factory=CodemapConfig)


class EnvSettings(BaseSettings):
    """Environment variable overrides."""

    model_config = SettingsConfigDict(
        env_prefix="DEPINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    max_file_size: int | None = None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, override wins on conflicts."""
    result = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, return empty dict if not found."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config(
    project_dir: Path | None = None,
    global_config_dir: Path | None = None,
) -> DepindexConfig:
    """Load configuration with layered precedence.

    Order (later overrides earlier):
    1. Built-in defaults (Pydantic defaults)
    2. ~/.depindex/config.yaml (global user config)
    3. <project>/.depindex/config.yaml (project-level config)
    4. Environment variables (DEPINDEX_*)
    """
    global_dir = global_config_dir or Path.home() / ".depindex"
    project_config_dir = (project_dir or Path.cwd()) / ".depindex"

    merged: dict[str, Any] = {}
    for config_path in [
        global_dir / "config.yaml",
        project_config_dir / "config.yaml",
    ]:
        layer = load_yaml_config(config_path)
        merged = _deep_merge(merged, layer)

    config = DepindexConfig(**merged)

    env = EnvSettings()
    if env.max_file_size:
        config = config.model_copy(
            update={
                "indexer": config.indexer.model_copy(
                    update={"max_file_size": env.max_file_size}
                )
            }
        )

    return config
