from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import CsvDialect, DatabaseConfig, ImportConfig

"""Config loader.

Responsibilities:
- Load the optional YAML file (config/import.yml by default)
- Validate it against config_schema.json
- Apply defaults (schema=public, table=keanggotaan, batch_size=300, ...)
- Apply environment overrides: DB_SCHEMA, IMPORT_BATCH_SIZE

The resulting ImportConfig is passed explicitly into the pipeline.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_SCHEMA = "DB_SCHEMA"
ENV_BATCH_SIZE = "IMPORT_BATCH_SIZE"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ImportConfig:
    """Build the ImportConfig for one run.

    ``path`` None means "no file": defaults + environment only. An explicit
    path that does not exist is an error.
    """
    env = os.environ if env is None else env
    data = _read_yaml(path) if path is not None else {}
    _validate_config_schema(data)

    csv_raw = data.get("csv", {})
    db_raw = data.get("database", {})
    cfg = ImportConfig(
        dialect=CsvDialect(**csv_raw),
        database=DatabaseConfig(**db_raw),
        **{k: v for k, v in data.items() if k not in ("csv", "database")},
    )

    schema = env.get(ENV_SCHEMA)
    if schema:
        cfg = replace(cfg, schema=schema)
    batch_size = env.get(ENV_BATCH_SIZE)
    if batch_size:
        try:
            cfg = replace(cfg, batch_size=int(batch_size))
        except ValueError as e:
            raise ConfigError(f"{ENV_BATCH_SIZE} must be an integer: {batch_size!r}") from e
    if cfg.batch_size < 1:
        raise ConfigError(f"batch_size must be >= 1, got {cfg.batch_size}")
    return cfg
