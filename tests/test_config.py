"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from formpulse.config import FormpulseSettings, load_settings


class TestDefaults:

    def test_local_server_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("API_BASE", "WS_BASE", "DB_URL", "PORT", "LOG_DIR"):
            monkeypatch.delenv(f"FORMPULSE_{name}", raising=False)
        settings = FormpulseSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.api_base == "http://localhost:8080/api"
        assert settings.ws_base == "ws://localhost:8080/ws"
        assert settings.db_url == "sqlite://"
        assert settings.port == 8080
        assert settings.log_dir is None


class TestLoadSettings:

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FORMPULSE_API_BASE", "https://forms.example.com/api")
        monkeypatch.setenv("FORMPULSE_PORT", "9000")
        settings = load_settings()
        assert settings.api_base == "https://forms.example.com/api"
        assert settings.port == 9000

    def test_override_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FORMPULSE_WS_BASE", "ws://env.example.com/ws")
        settings = load_settings(ws_base="ws://cli.example.com/ws")
        assert settings.ws_base == "ws://cli.example.com/ws"

    def test_none_override_falls_through(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FORMPULSE_WS_BASE", "ws://env.example.com/ws")
        settings = load_settings(ws_base=None)
        assert settings.ws_base == "ws://env.example.com/ws"

    def test_trailing_slash_stripped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FORMPULSE_WS_BASE", "ws://env.example.com/ws/")
        settings = load_settings(api_base="http://cli.example.com/api/")
        assert settings.api_base == "http://cli.example.com/api"
        assert settings.ws_base == "ws://env.example.com/ws"

    def test_log_dir_is_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("FORMPULSE_LOG_DIR", str(tmp_path))
        assert load_settings().log_dir == tmp_path
