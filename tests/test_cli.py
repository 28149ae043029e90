"""Tests for the formpulse command line."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from formpulse import __version__
from formpulse.api_client import FormsClient
from formpulse.cli import app
from formpulse.errors import ApiError
from formpulse.schema import parse_form

runner = CliRunner()


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestCheck:
    def test_form_document(self, tmp_path: Path, survey_form_doc) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "form.json"
        path.write_text(json.dumps(survey_form_doc), encoding="utf-8")

        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 0
        assert "Launch feedback" in result.output
        assert "5 field(s) ok" in result.output

    def test_bare_field_list(self, tmp_path: Path) -> None:
        path = tmp_path / "fields.json"
        path.write_text(json.dumps([{"id": "q1", "type": "rating", "min": 0, "max": 10}]))

        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 0
        assert "1 field(s) ok" in result.output

    def test_schema_error(self, tmp_path: Path) -> None:
        path = tmp_path / "fields.json"
        path.write_text(json.dumps([{"id": "q1", "type": "rating", "min": 9, "max": 1}]))

        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Schema error" in result.output

    def test_not_json(self, tmp_path: Path) -> None:
        path = tmp_path / "form.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Not valid JSON" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["check", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output


class TestWatch:
    def test_help(self) -> None:
        result = runner.invoke(app, ["watch", "--help"])
        assert result.exit_code == 0
        assert "refresh" in result.output
        assert "--log-dir" not in result.output

    def test_unreachable_api(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FORMPULSE_LOG_DIR", raising=False)
        with patch(
            "formpulse.api_client.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            result = runner.invoke(app, ["watch", "abc", "--api", "http://127.0.0.1:9/api"])
        assert result.exit_code == 1
        assert "not reachable" in result.output

    def test_failed_summary_exits(  # type: ignore[no-untyped-def]
        self, monkeypatch: pytest.MonkeyPatch, survey_form_doc, make_channel
    ) -> None:
        monkeypatch.delenv("FORMPULSE_LOG_DIR", raising=False)
        form = parse_form(survey_form_doc)
        with (
            patch(
                "formpulse.api_client.httpx.get",
                return_value=httpx.Response(200, json={"status": "ok"}),
            ),
            patch.object(FormsClient, "get_form", AsyncMock(return_value=form)),
            patch.object(
                FormsClient, "get_summary", AsyncMock(side_effect=ApiError(500, "boom"))
            ),
            patch("formpulse.live.channel.WebSocketChannel", lambda *a, **kw: make_channel()),
        ):
            result = runner.invoke(app, ["watch", form.id])
        assert result.exit_code == 1
        assert "API 500" in result.output
