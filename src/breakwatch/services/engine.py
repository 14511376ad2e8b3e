"""Engine wiring and the serialized event loop.

``BreakEngine`` builds the coordinator, settings, timer and notification
services around one set of capabilities. All state changes go through
``dispatch``; ``run`` consumes posted events one at a time while a
producer posts a ``Tick`` every tick interval.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import replace
from pathlib import Path
from typing import Any

from breakwatch.adapters import (
    AsyncioScheduler,
    ConsoleNotifier,
    JsonFileStore,
    TerminalBadge,
)
from breakwatch.models.config_models import TimerConfig
from breakwatch.models.events import (
    ActivityDetected,
    CancelBreak,
    Deferred,
    EndBreak,
    EngineEvent,
    FocusChanged,
    NotificationButtonClicked,
    NotificationClicked,
    NotificationClosed,
    PauseWork,
    ResetWork,
    ResumeWork,
    StartBreak,
    StartWork,
    Tick,
)
from breakwatch.repositories import SchedulerCallback
from breakwatch.services.analytics_service import BreakAnalyticsService
from breakwatch.services.config_service import ConfigService
from breakwatch.services.error_coordinator import (
    BreakErrorCoordinator,
    Capabilities,
    FeedbackSink,
)
from breakwatch.services.notification_service import BreakNotificationService
from breakwatch.services.settings_service import BreakSettingsService
from breakwatch.services.timer_service import BreakTimerService
from breakwatch.utils.clock import MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND, Clock, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("engine")


class BreakEngine:
    """Owns the break reminder services and serializes every mutation."""

    def __init__(
        self,
        capabilities: Capabilities,
        *,
        timer_config: TimerConfig | None = None,
        clock: Clock = now_ms,
        feedback: FeedbackSink | None = None,
        fallback_dir: Path | None = None,
    ):
        timer_config = timer_config or TimerConfig()
        self.clock = clock
        self.tick_interval = timer_config.tick_interval_seconds

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[EngineEvent] = asyncio.Queue()
        self._completed_break_start: int | None = None

        if capabilities.scheduler is None:
            capabilities = replace(
                capabilities, scheduler=AsyncioScheduler(runner=self._run_deferred)
            )

        self.coordinator = BreakErrorCoordinator(
            capabilities,
            clock=clock,
            error_cooldown_ms=int(timer_config.error_cooldown_seconds * MS_PER_SECOND),
            max_resume_gap_ms=int(timer_config.max_resume_gap_hours * MS_PER_HOUR),
            feedback=feedback,
            fallback_dir=fallback_dir,
            scheduler_runner=self._run_deferred,
        )
        self.settings = BreakSettingsService(lambda: self.coordinator.storage)
        self.analytics = BreakAnalyticsService(lambda: self.coordinator.storage, clock=clock)
        self.timer = BreakTimerService(
            self.coordinator,
            self.settings,
            clock=clock,
            inactivity_threshold_ms=int(timer_config.inactivity_threshold_minutes * MS_PER_MINUTE),
            analytics=self.analytics,
        )
        self.notifier = BreakNotificationService(
            self.coordinator,
            self.timer,
            self.settings,
            clock=clock,
            cooldown_ms=int(timer_config.notification_cooldown_minutes * MS_PER_MINUTE),
        )

    @classmethod
    def create(
        cls,
        config_service: ConfigService,
        *,
        capabilities: Capabilities | None = None,
        clock: Clock = now_ms,
        feedback: FeedbackSink | None = None,
    ) -> "BreakEngine":
        """Build an engine from the application configuration with terminal adapters."""
        if capabilities is None:
            capabilities = Capabilities(
                storage=JsonFileStore(config_service.state_path),
                notifications=ConsoleNotifier(),
                badge=TerminalBadge(),
            )
        return cls(
            capabilities,
            timer_config=config_service.config.timer,
            clock=clock,
            feedback=feedback,
            fallback_dir=config_service.fallback_dir,
        )

    async def start(self, *, tracking: bool = True) -> None:
        """Load settings, diagnostics and timer state, then check notification permission.

        Pass ``tracking=False`` for a short-lived process that only queries or
        applies one command; it leaves an idle work segment for the process
        running the reminder loop to settle.
        """
        await self.settings.load_settings()
        await self.coordinator.load_diagnostics()
        await self.timer.init(tracking=tracking)
        await self.notifier.check_notification_permission()
        await self.coordinator.save_diagnostics()
        logger.info("engine started (fallback mode: %s)", self.coordinator.fallback_mode)

    async def reload(self) -> None:
        """Pick up settings and state written by another process."""
        await self.settings.load_settings()
        await self.coordinator.load_diagnostics()
        await self.timer.load_persisted_state()
        self.timer.state.work_time_threshold = self.settings.get_work_time_threshold_ms()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, event: EngineEvent) -> Any:
        """Apply one event. The only entry point that mutates timer state."""
        logger.debug("dispatch %s", event)
        match event:
            case Tick():
                return await self.tick()
            case ActivityDetected():
                return await self.timer.update_activity()
            case FocusChanged(focused=True):
                await self.timer.handle_focus_gained()
                return True
            case FocusChanged(focused=False):
                await self.timer.handle_focus_lost()
                return True
            case NotificationClicked(notification_id=nid):
                return await self.notifier.handle_notification_click(nid)
            case NotificationButtonClicked(notification_id=nid, button_index=index):
                return await self.notifier.handle_notification_button_click(nid, index)
            case NotificationClosed(notification_id=nid, by_user=by_user):
                return await self.notifier.handle_notification_closed(nid, by_user)
            case StartWork():
                return await self.timer.start_work_timer()
            case PauseWork():
                return await self.timer.pause_work_timer()
            case ResumeWork():
                return await self.timer.resume_work_timer()
            case ResetWork():
                return await self.timer.reset_work_timer()
            case StartBreak(break_type=break_type, duration_minutes=minutes):
                if minutes is None:
                    entry = self.settings.get_break_types().get(break_type)
                    if entry is None:
                        logger.warning("unknown break type %r", break_type)
                        return False
                    minutes = entry.duration
                return await self.timer.start_break(break_type, minutes)
            case EndBreak():
                return await self.timer.end_break()
            case CancelBreak():
                return await self.timer.cancel_break()
            case Deferred(callback=callback):
                result = callback()
                if inspect.isawaitable(result):
                    result = await result
                return result
            case _:
                raise TypeError(f"Unknown engine event: {event!r}")

    async def tick(self) -> bool:
        """Periodic work: expire breaks, refresh the badge, check the threshold.

        Returns True when a threshold reminder went out.
        """
        await self.timer.heartbeat()
        state = self.timer.state
        if state.is_on_break:
            if self.timer.get_remaining_break_time() > 0:
                await self.timer.update_badge()
                return False
            break_type = state.break_type
            break_start = state.break_start_time
            if await self.timer.end_break() and break_start != self._completed_break_start:
                self._completed_break_start = break_start
                await self.notifier.show_break_completion_notification(break_type)
            return False
        if state.is_work_timer_active and not state.is_browser_focused:
            # Focus may have been reported by another process without a timer here
            await self.timer.check_inactivity()
        return await self.notifier.check_and_notify_work_time_threshold()

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def post(self, event: EngineEvent) -> None:
        """Queue ``event`` for the run loop. Safe to call from any thread."""
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        else:
            self._queue.put_nowait(event)

    def _run_deferred(self, callback: SchedulerCallback) -> None:
        self.post(Deferred(callback))

    async def _produce_ticks(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            self._queue.put_nowait(Tick())
            await asyncio.sleep(self.tick_interval)

    async def run(self, stop: asyncio.Event | None = None, *, follow_store: bool = False) -> None:
        """Consume events until ``stop`` is set.

        With ``follow_store`` the persisted state is re-read before each tick,
        so commands run by other processes take effect.
        """
        stop = stop or asyncio.Event()
        self._loop = asyncio.get_running_loop()
        producer = asyncio.create_task(self._produce_ticks(stop))
        logger.info("engine loop running (tick %.1fs)", self.tick_interval)
        try:
            while not stop.is_set():
                try:
                    event = await asyncio.wait_for(self._queue.get(), timeout=self.tick_interval)
                except TimeoutError:
                    continue
                if follow_store and isinstance(event, Tick):
                    await self.reload()
                try:
                    await self.dispatch(event)
                except Exception:
                    logger.exception("error while dispatching %s", event)
                await self.coordinator.save_diagnostics()
        finally:
            producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)
            self.coordinator.scheduler.cancel_all()
            self._loop = None
            logger.info("engine loop stopped")

    def snapshot(self) -> dict[str, Any]:
        """Everything a status display needs, as plain data."""
        return {
            "timer": self.timer.get_timer_status().to_dict(),
            "settings": self.settings.get_settings_summary(),
            "notifications": self.notifier.get_notification_status(),
            "errors": self.coordinator.get_error_stats(),
        }
