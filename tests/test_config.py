"""Tests for moesifkeys.config -- XDG paths, settings, env overrides, credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from moesifkeys.config import (
    _atomic_write,
    get_config_dir,
    load_settings,
    resolve_credential,
    save_settings,
    settings_path,
)
from moesifkeys.exceptions import ConfigError
from moesifkeys.models import RetryConfig, Settings


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("moesifkeys.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("MOESIFKEYS_BASE_URL", "MOESIFKEYS_USERNAME", "MOESIFKEYS_AUTH_SOURCE"):
        monkeypatch.delenv(var, raising=False)


class TestPaths:
    def test_config_dir_under_xdg(self, tmp_path: Path) -> None:
        path = get_config_dir()
        assert path == tmp_path / "xdg" / "moesifkeys"
        assert path.is_dir()

    def test_non_xdg_platform_uses_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("moesifkeys.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
        assert get_config_dir() == tmp_path / "home" / ".moesifkeys"


class TestSettings:
    def test_defaults_when_file_missing(self) -> None:
        settings = load_settings()
        assert settings == Settings()
        assert settings.retry.attempts == 3
        assert settings.retry.delay_seconds == 10.0
        assert settings.microservice.org_query_param == "org_id"

    def test_round_trip(self) -> None:
        settings = Settings(retry=RetryConfig(attempts=5, delay_seconds=1.5))
        save_settings(settings)
        assert load_settings().retry.attempts == 5
        assert json.loads(settings_path().read_text())["retry"]["delay_seconds"] == 1.5

    def test_partial_file_keeps_defaults(self) -> None:
        settings_path().write_text(json.dumps({"auth": {"username": "analytics"}}))
        settings = load_settings()
        assert settings.auth.username == "analytics"
        assert settings.request.read_timeout == 10.0

    def test_invalid_json_raises(self) -> None:
        settings_path().write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()

    def test_invalid_value_raises(self) -> None:
        settings_path().write_text(json.dumps({"retry": {"attempts": -1}}))
        with pytest.raises(ConfigError):
            load_settings()

    def test_env_overrides_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        settings_path().write_text(json.dumps({"auth": {"username": "file-user"}}))
        monkeypatch.setenv("MOESIFKEYS_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("MOESIFKEYS_USERNAME", "env-user")
        monkeypatch.setenv("MOESIFKEYS_AUTH_SOURCE", "file:/run/secret")
        settings = load_settings()
        assert settings.microservice.base_url == "https://env.example.com"
        assert settings.auth.username == "env-user"
        assert settings.auth.source == "file:/run/secret"

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.json"
        save_settings(Settings(retry=RetryConfig(attempts=1)), path)
        assert load_settings(path).retry.attempts == 1


class TestAtomicWrite:
    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "config.json"
        _atomic_write(target, "{}\n")
        assert target.read_text() == "{}\n"
        assert os.listdir(target.parent) == ["config.json"]


class TestResolveCredential:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEYS_PW", "hunter2")
        assert resolve_credential("env:KEYS_PW") == "hunter2"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("KEYS_PW", raising=False)
        with pytest.raises(ConfigError, match="KEYS_PW"):
            resolve_credential("env:KEYS_PW")

    def test_file_is_stripped(self, tmp_path: Path) -> None:
        secret = tmp_path / "secret"
        secret.write_text("  hunter2\n")
        assert resolve_credential(f"file:{secret}") == "hunter2"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'missing'}")

    def test_prompt_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "typed-secret")
        assert resolve_credential("prompt") == "typed-secret"

    def test_prompt_without_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="TTY"):
            resolve_credential("prompt")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown"):
            resolve_credential("vault:secret/keys")
