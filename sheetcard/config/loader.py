from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError
from ..ingest.columns import compile_patterns
from ..remote.google_sheets import DEFAULT_TIMEOUT_SECONDS
from ..vcard.serializer import QR_MAX_CONTACTS

"""Config loader.

Responsibilities:
- Load YAML config (default: config/sheetcard.yml)
- Validate against config_schema.json (unknown keys rejected)
- Apply defaults for every optional key
"""

__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "RemoteConfig",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sheetcard.yml")


@dataclass(frozen=True)
class RemoteConfig:
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class AppConfig:
    output_directory: str = "./out"
    label_prefix: str = ""
    qr_max_contacts: int = QR_MAX_CONTACTS
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    header_patterns: dict[str, list[str]] = field(default_factory=dict)

    def compiled_patterns(self) -> dict[str, list[re.Pattern[str]]]:
        """Default header patterns with the configured extras appended."""
        return compile_patterns(self.header_patterns)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
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


def load_config(path: Path | None = None, *, required: bool = False) -> AppConfig:
    """Load configuration from ``path``.

    A missing file yields the built-in defaults unless ``required`` is set
    (the path was requested explicitly), in which case it is an error.
    """
    path = path or DEFAULT_CONFIG_PATH
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return AppConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    remote_raw = data.get("remote") or {}
    patterns = {k: list(v) for k, v in (data.get("header_patterns") or {}).items()}
    try:
        compile_patterns(patterns)
    except re.error as e:
        raise ConfigError(f"invalid header pattern: {e}") from e

    return AppConfig(
        output_directory=data.get("output_directory", "./out"),
        label_prefix=data.get("label_prefix", ""),
        qr_max_contacts=data.get("qr_max_contacts", QR_MAX_CONTACTS),
        remote=RemoteConfig(
            timeout_seconds=float(remote_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        ),
        header_patterns=patterns,
    )
