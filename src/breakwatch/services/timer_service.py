"""Work/break timer state machine.

States: stopped, working, paused and on break. ``BreakTimerService`` owns
the single ``TimerState`` of the process. Every transition updates the
in-memory state first and then persists both records in one write through
the error coordinator, so a failed write never undoes a transition.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from breakwatch.models.exceptions import StateCorruptionError
from breakwatch.models.timer_state import (
    TIMER_STATE_KEY,
    WORK_SESSION_KEY,
    BreakType,
    TimerState,
    TimerStatus,
)
from breakwatch.services import validation
from breakwatch.services.analytics_service import BreakAnalyticsService
from breakwatch.services.error_coordinator import BreakErrorCoordinator
from breakwatch.services.settings_service import BreakSettingsService
from breakwatch.utils.clock import MS_PER_MINUTE, Clock, minutes_to_ms, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("timer")

INACTIVITY_CHECK = "inactivity-check"
DEFAULT_INACTIVITY_THRESHOLD_MS = 5 * MS_PER_MINUTE
HEARTBEAT_INTERVAL_MS = MS_PER_MINUTE
BREAK_BADGE_COLOR = "#4CAF50"
IDLE_TITLE = "breakwatch"


class BreakTimerService:
    """Owns the work/break lifecycle."""

    def __init__(
        self,
        coordinator: BreakErrorCoordinator,
        settings: BreakSettingsService,
        *,
        clock: Clock = now_ms,
        inactivity_threshold_ms: int = DEFAULT_INACTIVITY_THRESHOLD_MS,
        analytics: BreakAnalyticsService | None = None,
    ):
        self.coordinator = coordinator
        self.settings = settings
        self.clock = clock
        self.inactivity_threshold_ms = inactivity_threshold_ms
        self.heartbeat_interval_ms = min(HEARTBEAT_INTERVAL_MS, max(1, inactivity_threshold_ms // 2))
        self.analytics = analytics
        self.state = TimerState.clean(clock(), settings.get_work_time_threshold_ms())

    async def init(self, *, tracking: bool = True) -> None:
        """Load persisted state, apply the configured threshold and recover from the restart.

        ``tracking`` marks the process that keeps the reminder loop running.
        Only that process pauses a work segment left idle across a restart.
        """
        await self.load_persisted_state()
        self.state.work_time_threshold = self.settings.get_work_time_threshold_ms()
        await self.recover_from_restart(tracking=tracking)

    async def load_persisted_state(self) -> None:
        records = await self.coordinator.load_records(
            [TIMER_STATE_KEY, WORK_SESSION_KEY], "load_persisted_state"
        )
        if not records:
            logger.debug("no persisted timer state, starting clean")
            self.state = TimerState.clean(self.clock(), self.settings.get_work_time_threshold_ms())
            return

        raw = TimerState.merge_records(
            records.get(TIMER_STATE_KEY), records.get(WORK_SESSION_KEY)
        )
        try:
            self.state = self._decode_records(records, raw)
            return
        except StateCorruptionError as e:
            logger.warning("persisted timer state rejected: %s", e)

        outcome = await self.coordinator.handle_timer_state_corruption(raw, "load")
        if outcome.recovered_state is not None:
            self.state = outcome.recovered_state
        else:
            # Corruption already handled within the cooldown window
            self.state = TimerState.clean(self.clock(), self.settings.get_work_time_threshold_ms())
            await self.persist_state("load")

    def _decode_records(self, records: dict[str, Any], raw: dict[str, Any]) -> TimerState:
        problems = [
            f"{key} is not a mapping"
            for key, value in records.items()
            if not isinstance(value, Mapping)
        ]
        problems.extend(validation.find_inconsistencies(raw))
        if problems:
            raise StateCorruptionError("; ".join(problems))

        result = self.coordinator.validate_and_sanitize(raw, "timer_state")
        if not result.is_valid:
            raise StateCorruptionError("; ".join(result.errors))
        return TimerState.from_dict({"last_activity_time": self.clock(), **result.sanitized})

    async def recover_from_restart(self, *, tracking: bool = True) -> None:
        """Settle state left behind by a process that is no longer running.

        An elapsed break always ends. A running work segment is paused only
        when ``tracking`` is set and nothing has kept it alive (its start or
        the last heartbeat) for longer than the inactivity threshold.
        """
        now = self.clock()
        state = self.state

        if tracking and state.is_work_timer_active and state.work_start_time is not None:
            last_seen = max(state.work_start_time, state.last_heartbeat_time or 0)
            if now - last_seen > self.inactivity_threshold_ms:
                logger.info("work timer idle across restart, pausing")
                await self.pause_work_timer()
            else:
                state.last_activity_time = now

        if state.is_on_break and state.break_start_time is not None and state.break_duration > 0:
            if now - state.break_start_time >= state.break_duration:
                logger.info("break elapsed while not running, ending it")
                await self.end_break()

    async def heartbeat(self) -> bool:
        """Record that a tracking process is alive, at most once per interval.

        Returns True when the heartbeat was written.
        """
        now = self.clock()
        last = self.state.last_heartbeat_time
        if last is not None and 0 <= now - last < self.heartbeat_interval_ms:
            return False
        self.state.last_heartbeat_time = now
        await self.persist_state("heartbeat")
        return True

    async def persist_state(self, context: str = "persist_state") -> bool:
        result = self.coordinator.validate_and_sanitize(self.state.to_dict(), "timer_state")
        if not result.is_valid:
            self.state = TimerState.from_dict({**self.state.to_dict(), **result.sanitized})
        return await self.coordinator.save_records(self.state.to_records(), context)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start_work_timer(self) -> bool:
        if self.state.is_on_break:
            return False
        if self.state.is_work_timer_active:
            return True
        self.state.work_start_time = self.clock()
        self.state.is_work_timer_active = True
        await self.persist_state("start_work_timer")
        logger.info("work timer started")
        return True

    async def pause_work_timer(self) -> bool:
        state = self.state
        if not state.is_work_timer_active or state.is_on_break:
            return False
        if state.work_start_time is not None:
            elapsed = max(0, self.clock() - state.work_start_time)
            state.total_work_time = min(state.total_work_time + elapsed, validation.MAX_WORK_TIME_MS)
        state.work_start_time = None
        state.is_work_timer_active = False
        await self.persist_state("pause_work_timer")
        logger.info("work timer paused at %d ms", state.total_work_time)
        return True

    async def resume_work_timer(self) -> bool:
        if self.state.is_work_timer_active or self.state.is_on_break:
            return False
        self.state.work_start_time = self.clock()
        self.state.is_work_timer_active = True
        await self.persist_state("resume_work_timer")
        logger.info("work timer resumed")
        return True

    async def reset_work_timer(self) -> bool:
        if self.state.is_on_break:
            return False
        self.state.total_work_time = 0
        self.state.work_start_time = self.clock()
        self.state.is_work_timer_active = True
        await self.persist_state("reset_work_timer")
        logger.info("work timer reset")
        return True

    async def start_break(self, break_type: BreakType, duration_minutes: float) -> bool:
        if self.state.is_on_break:
            return False
        if not validation.is_valid_break_type(break_type):
            logger.warning("refusing to start break of unknown type %r", break_type)
            return False
        if not validation.is_valid_break_duration(duration_minutes):
            logger.warning("refusing to start break of %r minutes", duration_minutes)
            return False

        await self.pause_work_timer()
        state = self.state
        state.is_work_timer_active = False
        state.work_start_time = None
        state.is_on_break = True
        state.break_type = break_type
        state.break_start_time = self.clock()
        state.break_duration = int(duration_minutes * MS_PER_MINUTE)
        await self.persist_state("start_break")
        await self.update_badge()
        logger.info("%s break started for %s minutes", break_type, duration_minutes)
        return True

    async def end_break(self) -> bool:
        return await self._finish_break("ended")

    async def cancel_break(self) -> bool:
        return await self._finish_break("cancelled")

    async def _finish_break(self, how: str) -> bool:
        if not self.state.is_on_break:
            return False
        state = self.state
        break_type = state.break_type
        planned = state.break_duration
        started = state.break_start_time or self.clock()
        # A break noticed late, after a restart, still counts only its planned length
        taken = min(max(0, self.clock() - started), planned)
        state.is_on_break = False
        state.break_type = None
        state.break_start_time = None
        state.break_duration = 0
        await self.reset_work_timer()
        await self.clear_badge()
        logger.info("break %s", how)
        if self.analytics is not None and break_type is not None:
            await self.analytics.record_break_session(
                break_type, planned, taken, completed=how == "ended"
            )
        return True

    # ------------------------------------------------------------------
    # Activity and focus
    # ------------------------------------------------------------------

    async def update_activity(self) -> bool:
        state = self.state
        state.last_activity_time = self.clock()
        if not state.is_work_timer_active and not state.is_on_break and state.is_browser_focused:
            return await self.resume_work_timer()
        if state.is_on_break:
            await self.update_badge()
        await self.persist_state("update_activity")
        return True

    async def handle_focus_lost(self) -> None:
        self.state.is_browser_focused = False
        self.state.last_focus_change_time = self.clock()
        self.coordinator.schedule(
            INACTIVITY_CHECK, self.inactivity_threshold_ms, self.check_inactivity
        )
        await self.persist_state("handle_focus_lost")

    async def check_inactivity(self) -> bool:
        """Pause if focus has stayed away for the whole inactivity threshold."""
        state = self.state
        if state.is_browser_focused:
            return False
        changed = state.last_focus_change_time
        if changed is not None and self.clock() - changed < self.inactivity_threshold_ms:
            return False
        logger.info("no focus for %d ms, pausing", self.inactivity_threshold_ms)
        return await self.pause_work_timer()

    async def handle_focus_gained(self) -> None:
        now = self.clock()
        state = self.state
        state.is_browser_focused = True
        state.last_focus_change_time = now
        state.last_activity_time = now
        self.coordinator.scheduler.cancel(INACTIVITY_CHECK)
        if not state.is_work_timer_active and not state.is_on_break:
            await self.resume_work_timer()
        else:
            await self.persist_state("handle_focus_gained")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_current_work_time(self) -> int:
        state = self.state
        current = state.total_work_time
        if state.is_work_timer_active and state.work_start_time is not None:
            current += max(0, self.clock() - state.work_start_time)
        return current

    def is_work_time_threshold_exceeded(self) -> bool:
        return self.get_current_work_time() >= self.state.work_time_threshold

    def get_remaining_break_time(self) -> int:
        state = self.state
        if not state.is_on_break or not state.break_start_time or not state.break_duration:
            return 0
        return max(0, state.break_duration - (self.clock() - state.break_start_time))

    def get_timer_status(self) -> TimerStatus:
        state = self.state
        return TimerStatus(
            is_work_timer_active=state.is_work_timer_active,
            is_on_break=state.is_on_break,
            break_type=state.break_type,
            work_start_time=state.work_start_time,
            current_work_time=self.get_current_work_time(),
            total_work_time=state.total_work_time,
            work_time_threshold=state.work_time_threshold,
            is_threshold_exceeded=self.is_work_time_threshold_exceeded(),
            remaining_break_time=self.get_remaining_break_time(),
            last_activity_time=state.last_activity_time,
            is_browser_focused=state.is_browser_focused,
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def update_work_time_threshold(self, minutes: Any) -> bool:
        if not await self.settings.update_work_time_threshold(minutes):
            return False
        self.state.work_time_threshold = minutes_to_ms(minutes)
        await self.persist_state("update_work_time_threshold")
        logger.info("work time threshold set to %s minutes", minutes)
        return True

    def are_notifications_enabled(self) -> bool:
        return self.settings.are_notifications_enabled()

    def get_current_settings(self) -> dict[str, Any]:
        settings = self.settings.get_settings()
        return {
            "work_time_threshold_minutes": settings.work_time_threshold_minutes,
            "notifications_enabled": settings.notifications_enabled,
            "break_types": {k: v.model_dump() for k, v in settings.break_types.items()},
        }

    # ------------------------------------------------------------------
    # Badge
    # ------------------------------------------------------------------

    async def update_badge(self) -> None:
        if not self.state.is_on_break:
            return
        remaining = self.get_remaining_break_time()
        if remaining <= 0:
            await self.clear_badge()
            return
        minutes = math.ceil(remaining / MS_PER_MINUTE)
        await self.coordinator.update_badge(
            f"{minutes}m", BREAK_BADGE_COLOR, f"Break: {minutes} minutes remaining"
        )

    async def clear_badge(self) -> None:
        await self.coordinator.update_badge("", None, IDLE_TITLE)

    async def reset_all(self) -> bool:
        """Forget the timer entirely: clean state in memory, both records removed."""
        self.coordinator.scheduler.cancel(INACTIVITY_CHECK)
        self.state = TimerState.clean(self.clock(), self.settings.get_work_time_threshold_ms())
        removed = True
        for key in (TIMER_STATE_KEY, WORK_SESSION_KEY):
            try:
                await self.coordinator.storage.remove(key)
            except Exception as e:
                logger.error("failed to remove %s: %s", key, e)
                removed = False
        if not removed:
            await self.persist_state("reset_all")
        await self.clear_badge()
        logger.info("timer state reset")
        return removed
