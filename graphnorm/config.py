"""Configuration loading and store factory.

Reads a YAML config file, overlays environment variables, builds the
schema source adapter and wires it into an ``EntityStore``.

Env vars take precedence over YAML values.
Env var naming: GRAPHNORM__{section}__{key} (double underscore separator)
e.g., GRAPHNORM__DENORMALIZE__GUARD_CYCLES=false
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Walk up from this file (graphnorm/config.py) to the project root and load .env
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env", override=True)

from graphnorm.domain.errors import ConfigError
from graphnorm.ports.payload_source import PayloadSourcePort
from graphnorm.ports.schema_source import SchemaSourcePort
from graphnorm.services.store import EntityStore

log = logging.getLogger(__name__)

ENV_PREFIX = "GRAPHNORM__"


@dataclass
class SchemaSettings:
    adapter: str = "yaml"
    path: str = "schemas.yaml"


@dataclass
class DenormalizeSettings:
    guard_cycles: bool = True


@dataclass
class LoggingSettings:
    level: str = "INFO"


@dataclass
class Settings:
    schemas: SchemaSettings = field(default_factory=SchemaSettings)
    denormalize: DenormalizeSettings = field(default_factory=DenormalizeSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def load_config(path: str = "config.yaml") -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")
    with open(p) as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse config file {path}: {exc}") from exc


def load_settings(path: str | None = "config.yaml") -> Settings:
    """Defaults, then YAML (if *path* exists), then environment overrides.

    Relative schema paths are resolved against the config file's directory.
    """
    settings = Settings()

    if path is not None and Path(path).exists():
        cfg = load_config(path)
        settings = _apply_yaml(settings, cfg)
        schema_path = Path(settings.schemas.path)
        if not schema_path.is_absolute():
            settings.schemas.path = str(Path(path).resolve().parent / schema_path)

    return _apply_env_vars(settings)


def _apply_yaml(settings: Settings, cfg: dict[str, Any]) -> Settings:
    if "schemas" in cfg:
        sc = cfg["schemas"] or {}
        settings.schemas = SchemaSettings(
            adapter=sc.get("adapter", settings.schemas.adapter),
            path=sc.get("path", settings.schemas.path),
        )

    if "denormalize" in cfg:
        dn = cfg["denormalize"] or {}
        settings.denormalize = DenormalizeSettings(
            guard_cycles=bool(dn.get("guard_cycles", settings.denormalize.guard_cycles)),
        )

    if "logging" in cfg:
        lg = cfg["logging"] or {}
        settings.logging = LoggingSettings(
            level=str(lg.get("level", settings.logging.level)).upper(),
        )

    return settings


def _apply_env_vars(settings: Settings) -> Settings:
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        parts = key[len(ENV_PREFIX):].lower().split("__")
        if len(parts) != 2:
            continue

        section, field_name = parts
        _set_field(settings, section, field_name, value)

    return settings


def _set_field(settings: Settings, section: str, field_name: str, value: str) -> None:
    section_obj = getattr(settings, section, None)
    if section_obj is None or not hasattr(section_obj, field_name):
        log.debug("Ignoring unknown setting %s.%s", section, field_name)
        return

    current_value = getattr(section_obj, field_name)

    # Type coercion based on current type
    if isinstance(current_value, bool):
        setattr(section_obj, field_name, value.lower() in ("true", "1", "yes"))
    elif isinstance(current_value, int):
        setattr(section_obj, field_name, int(value))
    else:
        setattr(section_obj, field_name, value)


# ── Adapter factories ──


def build_schema_source(settings: SchemaSettings) -> SchemaSourcePort:
    if settings.adapter == "yaml":
        from graphnorm.adapters.schemas.yaml_schema import YamlSchemaSource
        return YamlSchemaSource(settings.path)

    raise ConfigError(f"Unknown schema adapter: {settings.adapter}")


def build_payload_source(path: str) -> PayloadSourcePort:
    from graphnorm.adapters.payloads.json_file import JsonFilePayloadSource
    return JsonFilePayloadSource(path)


# ── Top-level builder ──


def build_store(
    config_path: str | None = "config.yaml",
    *,
    schema_path: str | None = None,
) -> EntityStore:
    """Load settings and build an ``EntityStore`` from the configured schemas."""
    settings = load_settings(config_path)
    if schema_path is not None:
        settings.schemas.path = schema_path

    log.info("  → loading schemas (%s: %s) …", settings.schemas.adapter, settings.schemas.path)
    store = EntityStore.from_source(
        build_schema_source(settings.schemas),
        guard_cycles=settings.denormalize.guard_cycles,
    )
    log.info("  ✓ %d schema(s) ready", len(store.schemas))
    return store
