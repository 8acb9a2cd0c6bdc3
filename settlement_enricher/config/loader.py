from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from settlement_enricher.models.config_models import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_REDIS_URL,
    EnricherConfig,
    StoreConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML config file (every key optional)
- Validate it against config_schema.json (unknown keys rejected)
- Apply defaults
- Resolve the Redis URL, REDIS_URL in the environment taking precedence
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/enricher.yml")
REDIS_URL_ENV = "REDIS_URL"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or if the
            config data fails schema validation.
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


def _build_config(data: dict[str, Any], environ: Mapping[str, str]) -> EnricherConfig:
    redis_raw = data.get("redis") or {}
    url = environ.get(REDIS_URL_ENV) or redis_raw.get("url") or DEFAULT_REDIS_URL
    store = StoreConfig(
        url=url,
        connect_timeout=float(redis_raw.get("connect_timeout", 10)),
        socket_timeout=redis_raw.get("socket_timeout"),
    )
    return EnricherConfig(
        store=store,
        key_prefix=data.get("key_prefix", DEFAULT_KEY_PREFIX),
        output_directory=data.get("output_directory", "./output"),
        error_log_directory=data.get("error_log_directory", "./logs"),
        progress_interval=data.get("progress_interval", 10),
    )


def default_config(environ: Mapping[str, str] | None = None) -> EnricherConfig:
    """Configuration used when no config file is present."""
    return _build_config({}, os.environ if environ is None else environ)


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> EnricherConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    return _build_config(data, os.environ if environ is None else environ)
