"""Tests for configuration and settings models."""

import pytest
from pydantic import ValidationError

from breakwatch.models.config_models import AppConfig, BreakSettings, BreakTypeConfig, TimerConfig


def test_app_config_defaults():
    config = AppConfig()

    assert config.storage.state_file == "state.json"
    assert config.storage.data_dir is None
    assert config.timer.tick_interval_seconds == 1.0
    assert config.output.format == "table"


def test_timer_config_rejects_non_positive_tick():
    with pytest.raises(ValidationError):
        TimerConfig(tick_interval_seconds=0)


def test_break_settings_defaults():
    settings = BreakSettings()

    assert settings.work_time_threshold_minutes == 30
    assert settings.notifications_enabled is True
    assert settings.dismiss_resets_work_timer is True
    assert {k: v.duration for k, v in settings.break_types.items()} == {
        "short": 5,
        "medium": 15,
        "long": 30,
    }


@pytest.mark.parametrize("minutes", [4, 181])
def test_threshold_bounds(minutes):
    with pytest.raises(ValidationError):
        BreakSettings(work_time_threshold_minutes=minutes)


def test_break_types_must_cover_catalog():
    with pytest.raises(ValidationError, match="medium"):
        BreakSettings(
            break_types={
                "short": BreakTypeConfig(duration=5, label="Short"),
                "long": BreakTypeConfig(duration=30, label="Long"),
            }
        )


def test_break_type_duration_positive():
    with pytest.raises(ValidationError):
        BreakTypeConfig(duration=0, label="Nothing")


def test_break_type_duration_capped_at_two_hours():
    assert BreakTypeConfig(duration=120, label="Lunch").duration == 120
    with pytest.raises(ValidationError):
        BreakTypeConfig(duration=121, label="Nap")


def test_break_types_reject_unknown_entries():
    catalog = {**BreakSettings().break_types, "micro": BreakTypeConfig(duration=1, label="Micro")}

    with pytest.raises(ValidationError, match="micro"):
        BreakSettings(break_types=catalog)
