"""Unit tests for BreakTimerService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from breakwatch.models.timer_state import TIMER_STATE_KEY, WORK_SESSION_KEY, TimerState
from breakwatch.services.analytics_service import BreakAnalyticsService
from breakwatch.services.timer_service import (
    BREAK_BADGE_COLOR,
    INACTIVITY_CHECK,
    BreakTimerService,
)
from breakwatch.utils.clock import MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND


async def _persisted(store) -> dict:
    records = await store.get_multiple([TIMER_STATE_KEY, WORK_SESSION_KEY])
    return TimerState.merge_records(records.get(TIMER_STATE_KEY), records.get(WORK_SESSION_KEY))


# ---------------------------------------------------------------------------
# Work timer transitions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_work_timer(timer, clock, store):
    assert await timer.start_work_timer()

    assert timer.state.is_work_timer_active
    assert timer.state.work_start_time == clock.now
    persisted = await _persisted(store)
    assert persisted["is_work_timer_active"] is True
    assert persisted["work_start_time"] == clock.now


@pytest.mark.asyncio
async def test_start_work_timer_is_idempotent(timer, clock):
    await timer.start_work_timer()
    started = timer.state.work_start_time
    clock.advance_minutes(3)

    assert await timer.start_work_timer()
    assert timer.state.work_start_time == started


@pytest.mark.asyncio
async def test_pause_folds_segment_into_total(timer, clock, store):
    await timer.start_work_timer()
    clock.advance_minutes(10)

    assert await timer.pause_work_timer()

    assert timer.state.total_work_time == 10 * MS_PER_MINUTE
    assert timer.state.work_start_time is None
    assert not timer.state.is_work_timer_active
    assert (await _persisted(store))["total_work_time"] == 10 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_pause_when_stopped_does_nothing(timer, store):
    assert await timer.pause_work_timer() is False
    assert store.snapshot() == {}


@pytest.mark.asyncio
async def test_current_work_time_is_conserved_across_pause_resume(timer, clock):
    await timer.start_work_timer()
    clock.advance_minutes(7)
    await timer.pause_work_timer()
    clock.advance_minutes(60)
    await timer.resume_work_timer()
    clock.advance_minutes(4)

    assert timer.get_current_work_time() == 11 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_current_work_time_never_decreases_while_working(timer, clock):
    await timer.start_work_timer()
    readings = []
    for _ in range(5):
        clock.advance(30_000)
        readings.append(timer.get_current_work_time())

    assert readings == sorted(readings)


@pytest.mark.asyncio
async def test_resume_refused_while_active(timer):
    await timer.start_work_timer()

    assert await timer.resume_work_timer() is False


@pytest.mark.asyncio
async def test_pause_caps_total_at_one_day(timer, clock):
    timer.state.total_work_time = 23 * MS_PER_HOUR
    await timer.start_work_timer()
    clock.advance(2 * MS_PER_HOUR)

    await timer.pause_work_timer()

    assert timer.state.total_work_time == 24 * MS_PER_HOUR


@pytest.mark.asyncio
async def test_reset_work_timer_restarts_from_zero(timer, clock):
    await timer.start_work_timer()
    clock.advance_minutes(20)

    assert await timer.reset_work_timer()

    assert timer.state.total_work_time == 0
    assert timer.state.work_start_time == clock.now
    assert timer.get_current_work_time() == 0


@pytest.mark.asyncio
async def test_reset_work_timer_refused_on_break(timer):
    await timer.start_break("short", 5)

    assert await timer.reset_work_timer() is False
    assert not timer.state.is_work_timer_active


# ---------------------------------------------------------------------------
# Breaks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_break_pauses_work_and_sets_badge(timer, clock, badge):
    await timer.start_work_timer()
    clock.advance_minutes(30)

    assert await timer.start_break("medium", 15)

    state = timer.state
    assert state.is_on_break and not state.is_work_timer_active
    assert state.break_type == "medium"
    assert state.break_start_time == clock.now
    assert state.break_duration == 15 * MS_PER_MINUTE
    assert state.total_work_time == 30 * MS_PER_MINUTE
    badge.set_badge_text.assert_awaited_with("15m")
    badge.set_badge_background_color.assert_awaited_with(BREAK_BADGE_COLOR)
    badge.set_title.assert_awaited_with("Break: 15 minutes remaining")


@pytest.mark.asyncio
async def test_second_break_refused(timer):
    await timer.start_break("short", 5)

    assert await timer.start_break("long", 30) is False
    assert timer.state.break_type == "short"


@pytest.mark.asyncio
@pytest.mark.parametrize("break_type, minutes", [("nap", 5), ("short", 0), ("long", 121)])
async def test_invalid_break_refused(timer, store, break_type, minutes):
    assert await timer.start_break(break_type, minutes) is False
    assert not timer.state.is_on_break
    assert store.snapshot() == {}


@pytest.mark.asyncio
async def test_end_break_resets_work_timer(timer, clock, badge):
    await timer.start_work_timer()
    clock.advance_minutes(40)
    await timer.start_break("short", 5)
    clock.advance_minutes(5)

    assert await timer.end_break()

    state = timer.state
    assert not state.is_on_break
    assert state.break_type is None
    assert state.break_start_time is None
    assert state.break_duration == 0
    assert state.total_work_time == 0
    assert state.is_work_timer_active
    assert state.work_start_time == clock.now
    badge.set_badge_text.assert_awaited_with("")


@pytest.mark.asyncio
async def test_cancel_break_behaves_like_end(timer, clock):
    await timer.start_break("long", 30)
    clock.advance_minutes(2)

    assert await timer.cancel_break()
    assert not timer.state.is_on_break
    assert timer.state.total_work_time == 0


@pytest.mark.asyncio
async def test_end_break_when_not_on_break(timer):
    assert await timer.end_break() is False


@pytest.mark.asyncio
async def test_remaining_break_time(timer, clock):
    assert timer.get_remaining_break_time() == 0

    await timer.start_break("short", 5)
    clock.advance_minutes(2)
    assert timer.get_remaining_break_time() == 3 * MS_PER_MINUTE

    clock.advance_minutes(10)
    assert timer.get_remaining_break_time() == 0


@pytest.mark.asyncio
async def test_badge_rounds_remaining_minutes_up(timer, clock, badge):
    await timer.start_break("short", 5)
    clock.advance(90_000)

    await timer.update_badge()

    badge.set_badge_text.assert_awaited_with("4m")


@pytest.mark.asyncio
async def test_fractional_break_duration(timer):
    assert await timer.start_break("short", 0.5)
    assert timer.state.break_duration == 30_000


# ---------------------------------------------------------------------------
# Threshold
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_threshold_exceeded_at_exact_boundary(timer, clock):
    await timer.start_work_timer()
    clock.advance_minutes(29)
    assert not timer.is_work_time_threshold_exceeded()

    clock.advance_minutes(1)
    assert timer.is_work_time_threshold_exceeded()


@pytest.mark.asyncio
async def test_update_threshold(timer, store):
    assert await timer.update_work_time_threshold(45)

    assert timer.state.work_time_threshold == 45 * MS_PER_MINUTE
    assert timer.get_current_settings()["work_time_threshold_minutes"] == 45
    assert (await _persisted(store))["work_time_threshold"] == 45 * MS_PER_MINUTE


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes", [4, 181, 30.5, "30", None])
async def test_update_threshold_rejects_invalid(timer, minutes):
    assert await timer.update_work_time_threshold(minutes) is False
    assert timer.state.work_time_threshold == 30 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_timer_status_snapshot(timer, clock):
    await timer.start_work_timer()
    clock.advance_minutes(31)

    status = timer.get_timer_status()

    assert status.is_work_timer_active
    assert status.current_work_time == 31 * MS_PER_MINUTE
    assert status.total_work_time == 0
    assert status.is_threshold_exceeded
    assert status.remaining_break_time == 0
    assert status.to_dict()["break_type"] is None


# ---------------------------------------------------------------------------
# Activity and focus
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_activity_resumes_stopped_timer(timer, clock):
    assert await timer.update_activity()

    assert timer.state.is_work_timer_active
    assert timer.state.last_activity_time == clock.now


@pytest.mark.asyncio
async def test_activity_does_not_resume_during_break(timer):
    await timer.start_break("short", 5)

    await timer.update_activity()

    assert not timer.state.is_work_timer_active


@pytest.mark.asyncio
async def test_activity_without_focus_only_records_time(timer, clock, store):
    timer.state.is_browser_focused = False
    clock.advance_minutes(1)

    await timer.update_activity()

    assert not timer.state.is_work_timer_active
    assert (await _persisted(store))["last_activity_time"] == clock.now


@pytest.mark.asyncio
async def test_focus_lost_arms_inactivity_check(timer, scheduler, clock):
    await timer.handle_focus_lost()

    assert not timer.state.is_browser_focused
    assert timer.state.last_focus_change_time == clock.now
    scheduler.call_later.assert_called_once_with(
        INACTIVITY_CHECK, 5 * MS_PER_MINUTE, timer.check_inactivity
    )


@pytest.mark.asyncio
async def test_inactivity_pauses_after_full_threshold(timer, clock):
    await timer.start_work_timer()
    await timer.handle_focus_lost()
    clock.advance_minutes(5)

    assert await timer.check_inactivity()

    assert not timer.state.is_work_timer_active
    assert timer.state.total_work_time == 5 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_inactivity_check_ignores_short_absence(timer, clock):
    await timer.start_work_timer()
    await timer.handle_focus_lost()
    clock.advance_minutes(2)

    assert await timer.check_inactivity() is False
    assert timer.state.is_work_timer_active


@pytest.mark.asyncio
async def test_focus_regained_cancels_check_and_keeps_working(timer, scheduler, clock):
    await timer.start_work_timer()
    await timer.handle_focus_lost()
    clock.advance_minutes(1)

    await timer.handle_focus_gained()

    scheduler.cancel.assert_called_with(INACTIVITY_CHECK)
    assert timer.state.is_browser_focused
    assert timer.state.is_work_timer_active
    assert await timer.check_inactivity() is False


@pytest.mark.asyncio
async def test_focus_gained_resumes_paused_timer(timer, clock):
    await timer.start_work_timer()
    await timer.handle_focus_lost()
    clock.advance_minutes(5)
    await timer.check_inactivity()

    await timer.handle_focus_gained()

    assert timer.state.is_work_timer_active
    assert timer.state.work_start_time == clock.now


# ---------------------------------------------------------------------------
# Persistence and restart recovery
# ---------------------------------------------------------------------------


async def _restart(coordinator, settings, clock) -> BreakTimerService:
    fresh = BreakTimerService(coordinator, settings, clock=clock)
    await fresh.init()
    return fresh


@pytest.mark.asyncio
async def test_init_without_records_is_clean(timer, clock):
    await timer.init()

    assert timer.state == TimerState.clean(clock.now)


@pytest.mark.asyncio
async def test_restart_with_short_gap_keeps_running(timer, coordinator, settings, clock):
    await timer.start_work_timer()
    clock.advance_minutes(3)

    restarted = await _restart(coordinator, settings, clock)

    assert restarted.state.is_work_timer_active
    assert restarted.get_current_work_time() == 3 * MS_PER_MINUTE
    assert restarted.state.last_activity_time == clock.now


@pytest.mark.asyncio
async def test_restart_with_long_gap_pauses(timer, coordinator, settings, clock):
    await timer.start_work_timer()
    clock.advance_minutes(45)

    restarted = await _restart(coordinator, settings, clock)

    assert not restarted.state.is_work_timer_active
    assert restarted.state.total_work_time == 45 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_restart_ends_elapsed_break(timer, coordinator, settings, clock):
    await timer.start_break("short", 5)
    clock.advance_minutes(6)

    restarted = await _restart(coordinator, settings, clock)

    assert not restarted.state.is_on_break
    assert restarted.state.is_work_timer_active
    assert restarted.state.total_work_time == 0


@pytest.mark.asyncio
async def test_restart_keeps_running_break(timer, coordinator, settings, clock):
    await timer.start_break("medium", 15)
    clock.advance_minutes(6)

    restarted = await _restart(coordinator, settings, clock)

    assert restarted.state.is_on_break
    assert restarted.get_remaining_break_time() == 9 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_inconsistent_records_go_through_recovery(timer, store, clock, feedback):
    await store.set_multiple(
        {
            TIMER_STATE_KEY: {"is_work_timer_active": True, "is_on_break": True, "break_type": None},
            WORK_SESSION_KEY: {"total_work_time": 5 * MS_PER_MINUTE},
        }
    )

    await timer.init()

    assert not (timer.state.is_work_timer_active and timer.state.is_on_break)
    assert timer.state.total_work_time == 5 * MS_PER_MINUTE
    assert feedback.call_args.args[0].context == "Timer Recovery"


@pytest.mark.asyncio
async def test_non_mapping_record_is_reset(timer, store, clock):
    await store.set_multiple({TIMER_STATE_KEY: "garbage", WORK_SESSION_KEY: 7})

    await timer.init()

    assert timer.state == TimerState.clean(clock.now)
    persisted = await _persisted(store)
    assert persisted["total_work_time"] == 0


@pytest.mark.asyncio
async def test_invalid_field_goes_through_recovery(timer, store):
    await store.set_multiple(
        {
            TIMER_STATE_KEY: {"is_work_timer_active": False, "is_on_break": False},
            WORK_SESSION_KEY: {"total_work_time": -50, "break_duration": 0},
        }
    )

    await timer.init()

    assert timer.state.total_work_time == 0


@pytest.mark.asyncio
async def test_applies_configured_threshold_on_init(timer, settings, store):
    await settings.update_work_time_threshold(50)

    await timer.init()

    assert timer.state.work_time_threshold == 50 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_failed_write_keeps_transition(timer, store, coordinator):
    store.set_multiple = AsyncMock(side_effect=OSError("read-only"))

    assert await timer.start_work_timer()

    assert timer.state.is_work_timer_active
    assert coordinator.is_using_fallback("storage")


@pytest.mark.asyncio
async def test_reset_all_removes_records(timer, store, clock, scheduler):
    await timer.start_work_timer()
    clock.advance_minutes(10)

    assert await timer.reset_all()

    assert TIMER_STATE_KEY not in store.snapshot()
    assert WORK_SESSION_KEY not in store.snapshot()
    assert timer.get_current_work_time() == 0
    scheduler.cancel.assert_called_with(INACTIVITY_CHECK)


@pytest.mark.asyncio
async def test_corruption_in_cooldown_still_persists_clean_state(timer, store, clock, feedback):
    await store.set_multiple({TIMER_STATE_KEY: "garbage", WORK_SESSION_KEY: 7})
    await timer.init()
    feedback.reset_mock()

    await store.set_multiple({TIMER_STATE_KEY: "garbage again", WORK_SESSION_KEY: 8})
    await timer.init()

    feedback.assert_not_called()
    assert timer.state == TimerState.clean(clock.now)
    assert store.snapshot()[TIMER_STATE_KEY]["is_work_timer_active"] is False
    assert store.snapshot()[WORK_SESSION_KEY]["total_work_time"] == 0


# ---------------------------------------------------------------------------
# Tracking processes and heartbeat
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_non_tracking_process_leaves_idle_segment_running(timer, coordinator, settings, clock, store):
    await timer.start_work_timer()
    clock.advance_minutes(45)

    query = BreakTimerService(coordinator, settings, clock=clock)
    await query.init(tracking=False)

    assert query.state.is_work_timer_active
    assert query.get_current_work_time() == 45 * MS_PER_MINUTE
    persisted = await _persisted(store)
    assert persisted["is_work_timer_active"] is True
    assert persisted["total_work_time"] == 0


@pytest.mark.asyncio
async def test_non_tracking_process_still_ends_elapsed_break(timer, coordinator, settings, clock):
    await timer.start_break("short", 5)
    clock.advance_minutes(6)

    query = BreakTimerService(coordinator, settings, clock=clock)
    await query.init(tracking=False)

    assert not query.state.is_on_break


@pytest.mark.asyncio
async def test_heartbeat_is_throttled(timer, clock, store):
    assert await timer.heartbeat()
    assert (await _persisted(store))["last_heartbeat_time"] == clock.now

    clock.advance(30 * MS_PER_SECOND)
    assert await timer.heartbeat() is False

    clock.advance(31 * MS_PER_SECOND)
    assert await timer.heartbeat()
    assert (await _persisted(store))["last_heartbeat_time"] == clock.now


@pytest.mark.asyncio
async def test_recent_heartbeat_keeps_segment_running_across_restart(timer, coordinator, settings, clock):
    await timer.start_work_timer()
    clock.advance_minutes(40)
    await timer.heartbeat()
    clock.advance_minutes(2)

    restarted = await _restart(coordinator, settings, clock)

    assert restarted.state.is_work_timer_active
    assert restarted.get_current_work_time() == 42 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_stale_heartbeat_pauses_on_restart(timer, coordinator, settings, clock):
    await timer.start_work_timer()
    clock.advance_minutes(10)
    await timer.heartbeat()
    clock.advance_minutes(6)

    restarted = await _restart(coordinator, settings, clock)

    assert not restarted.state.is_work_timer_active
    assert restarted.state.total_work_time == 16 * MS_PER_MINUTE


# ---------------------------------------------------------------------------
# Break history
# ---------------------------------------------------------------------------


@pytest.fixture()
def analytics(store, clock) -> BreakAnalyticsService:
    return BreakAnalyticsService(lambda: store, clock=clock)


@pytest.fixture()
def recording_timer(coordinator, settings, clock, analytics) -> BreakTimerService:
    return BreakTimerService(coordinator, settings, clock=clock, analytics=analytics)


@pytest.mark.asyncio
async def test_cancelled_break_is_recorded(recording_timer, analytics, clock):
    await recording_timer.start_break("medium", 15)
    clock.advance_minutes(4)

    await recording_timer.cancel_break()

    [session] = await analytics.get_sessions()
    assert session.break_type == "medium"
    assert session.completed is False
    assert session.planned_duration == 15 * MS_PER_MINUTE
    assert session.actual_duration == 4 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_break_ended_late_counts_planned_length(recording_timer, analytics, clock):
    await recording_timer.start_break("short", 5)
    clock.advance_minutes(50)

    await recording_timer.end_break()

    [session] = await analytics.get_sessions()
    assert session.completed is True
    assert session.actual_duration == 5 * MS_PER_MINUTE


@pytest.mark.asyncio
async def test_nothing_recorded_without_a_break(recording_timer, analytics):
    assert await recording_timer.end_break() is False

    assert await analytics.get_sessions() == []
