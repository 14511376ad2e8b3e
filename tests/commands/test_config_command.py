"""CLI tests for the config commands."""

from __future__ import annotations

import json
import re

import pytest
from typer.testing import CliRunner

from breakwatch.commands.config_command import _parse_value
from breakwatch.main import app
from breakwatch.services.config_service import get_config_service
from breakwatch.utils.exit_codes import ERROR_INVALID_ARGS

runner = CliRunner()


def strip_ansi(text: str) -> str:
    ansi = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi.sub("", text)


def invoke(*args: str, **kwargs):
    result = runner.invoke(app, list(args), **kwargs)
    return result, strip_ansi(result.output)


@pytest.mark.parametrize(
    "raw, parsed",
    [("true", True), ("False", False), ("none", None), ("12", 12), ("2.5", 2.5), ("table", "table")],
)
def test_parse_value(raw, parsed):
    assert _parse_value(raw) == parsed


def test_view_flattens_sections():
    result, output = invoke("config", "view")

    assert result.exit_code == 0
    assert "Timer.Tick Interval Seconds" in output


def test_view_json():
    result, output = invoke("config", "view", "-o", "json")

    data = json.loads(output)
    assert data["storage"]["state_file"] == "state.json"


def test_get_value():
    result, output = invoke("config", "get", "storage.state_file")

    assert result.exit_code == 0
    assert output.strip() == "state.json"


def test_get_unset_value():
    result, output = invoke("config", "get", "storage.data_dir")

    assert result.exit_code == ERROR_INVALID_ARGS
    assert "not found or unset" in output


def test_set_value_is_persisted(tmp_path):
    result, _ = invoke("config", "set", "timer.notification_cooldown_minutes", "10")

    assert result.exit_code == 0
    on_disk = json.loads((tmp_path / "config" / "config.json").read_text())
    assert on_disk["timer"]["notification_cooldown_minutes"] == 10


def test_set_unknown_key():
    result, output = invoke("config", "set", "timer.colour", "red")

    assert result.exit_code == ERROR_INVALID_ARGS
    assert "Unknown configuration key" in output


def test_set_invalid_value():
    result, _ = invoke("config", "set", "timer.tick_interval_seconds", "-1")

    assert result.exit_code == ERROR_INVALID_ARGS


def test_reset_key():
    invoke("config", "set", "output.format", "json")

    result, _ = invoke("config", "reset", "output.format", "--yes")

    assert result.exit_code == 0
    assert get_config_service().get("output.format") == "table"


def test_reset_cancelled():
    invoke("config", "set", "output.format", "json")

    result, output = invoke("config", "reset", input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in output
    assert get_config_service().get("output.format") == "json"


def test_data_dir_setting_moves_state(tmp_path):
    target = tmp_path / "elsewhere"
    invoke("config", "set", "storage.data_dir", str(target))
    get_config_service.cache_clear()

    result, _ = invoke("start")

    assert result.exit_code == 0
    assert (target / "state.json").exists()
