"""Shared test fixtures and configuration.

Provides a controllable clock, in-memory capabilities and isolation of all
platform directories under ``tmp_path``.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from breakwatch.adapters.memory import MemoryStore
from breakwatch.repositories import BadgeDisplay, NotificationService, Scheduler
from breakwatch.services.error_coordinator import BreakErrorCoordinator, Capabilities
from breakwatch.services.notification_service import BreakNotificationService
from breakwatch.services.settings_service import BreakSettingsService
from breakwatch.services.timer_service import BreakTimerService
from breakwatch.utils.clock import MS_PER_MINUTE

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def advance_minutes(self, minutes: float) -> int:
        return self.advance(int(minutes * MS_PER_MINUTE))


def make_notifier() -> MagicMock:
    notifier = MagicMock(spec=NotificationService)
    notifier.create = AsyncMock(return_value=True)
    notifier.clear = AsyncMock(return_value=True)
    notifier.get_permission_level = AsyncMock(return_value="granted")
    notifier.open_primary_ui = AsyncMock(return_value=True)
    return notifier


def make_badge() -> MagicMock:
    badge = MagicMock(spec=BadgeDisplay)
    badge.set_badge_text = AsyncMock()
    badge.set_badge_background_color = AsyncMock()
    badge.set_title = AsyncMock()
    return badge


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_dirs(tmp_path):
    """Point every platformdirs lookup of the config service at tmp_path."""
    from breakwatch.services.config_service import get_config_service

    get_config_service.cache_clear()
    with (
        patch("breakwatch.services.config_service.user_config_dir", return_value=str(tmp_path / "config")),
        patch("breakwatch.services.config_service.user_data_dir", return_value=str(tmp_path / "data")),
        patch("breakwatch.services.config_service.user_cache_dir", return_value=str(tmp_path / "cache")),
    ):
        yield tmp_path
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Engine parts
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def notifier() -> MagicMock:
    return make_notifier()


@pytest.fixture()
def badge() -> MagicMock:
    return make_badge()


@pytest.fixture()
def scheduler() -> MagicMock:
    return MagicMock(spec=Scheduler)


@pytest.fixture()
def feedback() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def capabilities(store, notifier, badge, scheduler) -> Capabilities:
    return Capabilities(storage=store, notifications=notifier, badge=badge, scheduler=scheduler)


@pytest.fixture()
def coordinator(capabilities, clock, feedback) -> BreakErrorCoordinator:
    return BreakErrorCoordinator(capabilities, clock=clock, feedback=feedback)


@pytest.fixture()
def settings(coordinator) -> BreakSettingsService:
    return BreakSettingsService(lambda: coordinator.storage)


@pytest.fixture()
def timer(coordinator, settings, clock) -> BreakTimerService:
    return BreakTimerService(coordinator, settings, clock=clock)


@pytest.fixture()
def notifications(coordinator, timer, settings, clock) -> BreakNotificationService:
    return BreakNotificationService(coordinator, timer, settings, clock=clock)
