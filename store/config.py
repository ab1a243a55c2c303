"""Store configuration with YAML and environment support."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal, TypeVar

import yaml
from pydantic import BaseModel, field_validator

from .base import RunStore
from .filesystem import FileRunStore
from .naming import RUN_SUFFIX, SEPARATOR
from .sqlite import SQLiteRunStore


ENV_OUTPUT_DIR = "PROFRUNS_OUTPUT_DIR"
ENV_BACKEND = "PROFRUNS_BACKEND"
ENV_DATABASE = "PROFRUNS_DATABASE"

TStoreConfig = TypeVar("TStoreConfig", bound="StoreConfig")


class StoreConfig(BaseModel):
    """Where and how profiling runs are stored."""

    backend: Literal["file", "sqlite"] = "file"

    # Filesystem store
    output_dir: str | None = None
    default_dir: str | None = None
    suffix: str = RUN_SUFFIX
    atomic_writes: bool = True

    # SQLite store
    database_path: str = "runs.db"

    strict: bool = False

    @field_validator("suffix")
    @classmethod
    def suffix_is_single_field(cls, value: str) -> str:
        if not value or SEPARATOR in value:
            raise ValueError(f"suffix must be non-empty and must not contain {SEPARATOR!r}")
        return value

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_dict(cls: type[TStoreConfig], data: Mapping[str, object]) -> TStoreConfig:
        return cls.model_validate(data)

    @classmethod
    def from_env(
        cls: type[TStoreConfig],
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> TStoreConfig:
        """Build a config from ``PROFRUNS_*`` variables; overrides win."""
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        if env.get(ENV_OUTPUT_DIR):
            data["default_dir"] = env[ENV_OUTPUT_DIR]
        if env.get(ENV_BACKEND):
            data["backend"] = env[ENV_BACKEND].lower()
        if env.get(ENV_DATABASE):
            data["database_path"] = env[ENV_DATABASE]
        data.update(overrides)
        return cls.model_validate(data)


def load_config(yaml_path: str | Path) -> StoreConfig:
    """Load store configuration from a YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        StoreConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or has bad values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not data or not isinstance(data, dict):
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

    try:
        return StoreConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: StoreConfig, yaml_path: str | Path) -> None:
    """Save store configuration to a YAML file."""
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)


def create_store(config: StoreConfig | None = None) -> RunStore:
    """Build the run store described by ``config`` (environment when omitted)."""
    if config is None:
        config = StoreConfig.from_env()

    if config.backend == "sqlite":
        return SQLiteRunStore(config.database_path, strict=config.strict)

    return FileRunStore(
        config.output_dir,
        fallback_dir=config.default_dir,
        suffix=config.suffix,
        atomic_writes=config.atomic_writes,
        strict=config.strict,
    )
