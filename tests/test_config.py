"""Tests for settings loading and the store factory."""

from __future__ import annotations

from pathlib import Path

import pytest

from graphnorm.config import build_schema_source, build_store, load_config, load_settings
from graphnorm.config import SchemaSettings
from graphnorm.domain.errors import ConfigError

SCHEMAS_YAML = """
schemas:
  users: {id_key: username}
  comments:
    relationships:
      author: {has_one: users}
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "schemas.yaml").write_text(SCHEMAS_YAML)
    (tmp_path / "config.yaml").write_text(
        "schemas:\n  path: schemas.yaml\n"
        "denormalize:\n  guard_cycles: false\n"
        "logging:\n  level: debug\n"
    )
    return tmp_path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os
    for key in list(os.environ):
        if key.startswith("GRAPHNORM__"):
            monkeypatch.delenv(key)


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path):
        s = load_settings(str(tmp_path / "missing.yaml"))
        assert s.schemas.adapter == "yaml"
        assert s.schemas.path == "schemas.yaml"
        assert s.denormalize.guard_cycles is True
        assert s.logging.level == "INFO"

    def test_yaml_values(self, config_dir):
        s = load_settings(str(config_dir / "config.yaml"))
        assert s.denormalize.guard_cycles is False
        assert s.logging.level == "DEBUG"

    def test_schema_path_resolved_against_config_dir(self, config_dir):
        s = load_settings(str(config_dir / "config.yaml"))
        assert Path(s.schemas.path) == (config_dir / "schemas.yaml").resolve()

    def test_env_overrides(self, config_dir, monkeypatch):
        monkeypatch.setenv("GRAPHNORM__DENORMALIZE__GUARD_CYCLES", "true")
        monkeypatch.setenv("GRAPHNORM__LOGGING__LEVEL", "WARNING")
        s = load_settings(str(config_dir / "config.yaml"))
        assert s.denormalize.guard_cycles is True
        assert s.logging.level == "WARNING"

    def test_unknown_env_ignored(self, monkeypatch):
        monkeypatch.setenv("GRAPHNORM__NOPE__FIELD", "1")
        monkeypatch.setenv("GRAPHNORM__LOGGING__NOPE", "1")
        load_settings(None)


class TestLoadConfig:
    def test_missing(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}


class TestFactories:
    def test_unknown_adapter(self):
        with pytest.raises(ConfigError):
            build_schema_source(SchemaSettings(adapter="sqlite"))

    def test_build_store(self, config_dir):
        store = build_store(str(config_dir / "config.yaml"))
        assert set(store.schemas) == {"users", "comments"}
        store.add_normalized_data(
            {"id": "c1", "author": {"username": "u1"}}, "comments"
        )
        assert store.stats() == {"users": 1, "comments": 1}

    def test_build_store_schema_override(self, config_dir, tmp_path):
        other = tmp_path / "other.yaml"
        other.write_text("schemas:\n  tags: {}\n")
        store = build_store(str(config_dir / "config.yaml"), schema_path=str(other))
        assert list(store.schemas) == ["tags"]

    def test_build_store_missing_schemas(self, tmp_path):
        with pytest.raises(ConfigError):
            build_store(None, schema_path=str(tmp_path / "absent.yaml"))
