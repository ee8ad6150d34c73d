"""Tests for specshift.config -- XDG paths, atomic writes, precedence, credentials."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specshift.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_project_config,
    load_service_config,
    resolve_config,
    resolve_credential,
    resolve_store_key,
    save_service_config,
)
from specshift.exceptions import ConfigError
from specshift.models import ServiceConfig, StoreConfig


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestPaths:
    def test_config_dir_follows_xdg(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "specshift"
        assert get_config_dir().is_dir()

    def test_data_dir_follows_xdg(self, isolated_config: Path) -> None:
        assert get_data_dir() == isolated_config / "data" / "specshift"


class TestAtomicWrite:
    def test_writes_and_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"

        _atomic_write(target, "one")
        _atomic_write(target, "two")

        assert target.read_text() == "two"
        assert [p.name for p in target.parent.iterdir()] == ["file.json"]


class TestServiceConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        assert load_service_config() == ServiceConfig()

    def test_round_trip(self, isolated_config: Path) -> None:
        config = ServiceConfig(port=8080, store=StoreConfig(url="https://xyz.supabase.co"))

        save_service_config(config)

        assert load_service_config() == config

    def test_invalid_json(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{broken")

        with pytest.raises(ConfigError, match="Invalid config"):
            load_service_config()

    def test_invalid_values(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"port": "not-a-port"})

        with pytest.raises(ConfigError):
            load_service_config()


class TestProjectConfig:
    def test_absent(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_must_be_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specshift.json", [1, 2])

        with pytest.raises(ConfigError, match="must be a JSON object"):
            load_project_config()


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()

        assert config.host == "127.0.0.1"
        assert config.port == 5000

    def test_precedence(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_service_config(ServiceConfig(host="user-host", port=1111, log_level="ERROR"))
        _write_json(
            isolated_config / "specshift.json",
            {"port": 2222, "resolver": {"allow_external_refs": False}},
        )
        monkeypatch.setenv("SPECSHIFT_LOG_LEVEL", "DEBUG")

        config = resolve_config(cli_host="cli-host")

        assert config.host == "cli-host"
        assert config.port == 2222
        assert config.log_level == "DEBUG"
        assert config.resolver.allow_external_refs is False
        # untouched nested fields survive the project merge
        assert config.resolver.fetch_timeout == 30

    def test_env_beats_project(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "specshift.json", {"port": 2222})
        monkeypatch.setenv("SPECSHIFT_PORT", "3333")
        monkeypatch.setenv("SPECSHIFT_STORE_URL", "https://env.supabase.co")

        config = resolve_config()

        assert config.port == 3333
        assert config.store.url == "https://env.supabase.co"

    def test_cli_beats_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECSHIFT_PORT", "3333")

        assert resolve_config(cli_port=4444).port == 4444

    def test_invalid_env_value(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECSHIFT_PORT", "abc")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config()


class TestCredentials:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_KEY", "abc")

        assert resolve_credential("env:MY_KEY") == "abc"

    def test_env_source_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_KEY", raising=False)

        with pytest.raises(ConfigError, match="MY_KEY"):
            resolve_credential("env:MY_KEY")

    def test_file_source(self, tmp_path: Path) -> None:
        key_file = tmp_path / "key"
        key_file.write_text("  file-secret\n")

        assert resolve_credential(f"file:{key_file}") == "file-secret"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'missing'}")

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:thing")

    def test_store_key_env_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECSHIFT_STORE_KEY", "from-env")
        monkeypatch.setenv("OTHER", "from-source")
        config = ServiceConfig(store=StoreConfig(key_source="env:OTHER"))

        assert resolve_store_key(config) == "from-env"

    def test_store_key_from_source(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTHER", "from-source")
        config = ServiceConfig(store=StoreConfig(key_source="env:OTHER"))

        assert resolve_store_key(config) == "from-source"

    def test_no_store_key(self, isolated_config: Path) -> None:
        assert resolve_store_key(ServiceConfig()) is None
