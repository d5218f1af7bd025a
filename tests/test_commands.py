"""Command boundary validation, config and CLI wiring."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from Wasit.__main__ import main
from Wasit.commands import build_batch, build_request, load_batch_file, parse_assignments
from Wasit.config import Settings
from Wasit.errors import InvalidRequestError, TemplateError

from conftest import PROCESS_ID, TOKEN_REGISTRY


@pytest.mark.parametrize("process_id", ["", "   ", None])
def test_empty_process_id_fails_fast(process_id) -> None:
    with pytest.raises(InvalidRequestError, match="Process ID is required and cannot be empty"):
        build_request(process_id, "check balance")


def test_build_request_validates_mode_and_text() -> None:
    with pytest.raises(InvalidRequestError):
        build_request(PROCESS_ID, "check balance", mode="sideways")
    with pytest.raises(InvalidRequestError):
        build_request(PROCESS_ID, "  ")
    request = build_request(PROCESS_ID, "", action="Info", mode="READ")
    assert request.mode == "read"
    assert request.action == "Info"


def test_parse_assignments() -> None:
    assert parse_assignments(["amount=10", "to=alice", "flag=true", "raw=a=b"]) == {
        "amount": 10,
        "to": "alice",
        "flag": True,
        "raw": "a=b",
    }
    with pytest.raises(InvalidRequestError):
        parse_assignments(["novalue"])


def test_build_batch_accepts_strings_and_objects() -> None:
    items = build_batch(["check balance", {"action": "Mint", "parameters": {"quantity": 1}, "mode": "write"}])
    assert items[0].request == "check balance"
    assert items[1].action == "Mint"
    assert items[1].mode == "write"
    with pytest.raises(InvalidRequestError):
        build_batch([])
    with pytest.raises(InvalidRequestError):
        build_batch([{"parameters": {}}])


def test_load_batch_file(tmp_path: Path) -> None:
    path = tmp_path / "batch.json"
    path.write_text(json.dumps({"rollbackOnError": True, "requests": ["check balance"]}), encoding="utf-8")
    items, rollback = load_batch_file(path, confirmed=True)
    assert rollback is True
    assert items[0].confirmed is True


def test_settings_load_reads_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WASIT_CONFIG_DIR", str(tmp_path))
    (tmp_path / "config.json").write_text(json.dumps({"cache_ttl_seconds": 60, "unknown": 1}), encoding="utf-8")
    monkeypatch.setenv("WASIT_DISCOVERY_TIMEOUT_MS", "2500")

    settings = Settings.load()

    assert settings.cache_ttl_seconds == 60
    assert settings.discovery_timeout_ms == 2500
    assert settings.large_amount_threshold == 1_000_000
    assert settings.high_value_threshold == 100_000


def test_cli_rejects_empty_process_id(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["run", "", "check balance"])
    assert excinfo.value.code == 2
    assert "Process ID is required" in capsys.readouterr().out


def test_cli_rejects_unknown_template() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["template", PROCESS_ID, "nope"])
    assert excinfo.value.code == 2
    assert issubclass(TemplateError, InvalidRequestError)


def test_cli_lists_templates(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["templates"])
    assert excinfo.value.code == 0
    assert "full-token-audit" in capsys.readouterr().out


def test_cli_renders_saved_payload(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "info.json"
    path.write_text(json.dumps(TOKEN_REGISTRY), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["render", str(path), "--raw", "--process-id", PROCESS_ID])
    assert excinfo.value.code == 0
    assert "## Available Handlers" in capsys.readouterr().out
