"""Error & fallback coordinator for the break reminder engine.

Handles four kinds of trouble:

- timer-state corruption: salvage what is valid, otherwise reset cleanly
- notification failure: walk a cascade of cheaper channels
- platform capability unavailable: swap in an in-memory or secondary
  implementation and stay in fallback mode until told otherwise
- invalid data: sanitize and report

Each kind is throttled per error key so a burst of failures with one cause
is handled once per cooldown window. Nothing in here raises to the caller.

Error counts and the fallback reminder buffer are kept in the store under
``break_diagnostics`` so every process sees and can clear the same history.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Literal

from breakwatch.adapters.json_store import JsonFileStore
from breakwatch.adapters.memory import MemoryBadge, MemoryStore, QueuedNotifier
from breakwatch.adapters.scheduler import Runner, ThreadTimerScheduler
from breakwatch.models.exceptions import PlatformApiUnavailableError, StateCorruptionError
from breakwatch.models.notifications import (
    DEFAULT_MESSAGE,
    DEFAULT_TITLE,
    FALLBACK_PREFIX,
    FallbackNotification,
    NotificationOptions,
    make_notification_id,
)
from breakwatch.models.results import Feedback, FeedbackLevel, OperationResult
from breakwatch.models.timer_state import TimerState
from breakwatch.repositories import (
    BadgeDisplay,
    KeyValueStore,
    NotificationService,
    Scheduler,
    SchedulerCallback,
)
from breakwatch.services import validation
from breakwatch.utils.clock import MS_PER_HOUR, Clock, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("errors")

ApiName = Literal["notifications", "storage", "scheduler", "badge"]

TIMER_STATE_CORRUPTION = "TIMER_STATE_CORRUPTION"
NOTIFICATION_FAILURE = "NOTIFICATION_FAILURE"
PLATFORM_API_UNAVAILABLE = "PLATFORM_API_UNAVAILABLE"

FALLBACK_BUFFER_SIZE = 5
ALERT_BADGE_COLOR = "#FF6B6B"
MAX_TOOLTIP_LENGTH = 100
DEFAULT_ERROR_COOLDOWN_MS = 5000
DEFAULT_MAX_RESUME_GAP_MS = 4 * MS_PER_HOUR
FALLBACK_STORE_FILE = "fallback-state.json"
DIAGNOSTICS_KEY = "break_diagnostics"

FeedbackSink = Callable[[Feedback], None]


@dataclass
class Capabilities:
    """One implementation per platform capability. ``None`` means absent."""

    storage: KeyValueStore | None = None
    notifications: NotificationService | None = None
    badge: BadgeDisplay | None = None
    scheduler: Scheduler | None = None


@dataclass
class ErrorTrackingEntry:
    count: int
    last_occurrence_time: int


def _log_feedback(feedback: Feedback) -> None:
    level = {"success": "info", "info": "info", "warning": "warning"}[feedback.level]
    getattr(logger, level)("feedback [%s] %s", feedback.context or "-", feedback.message)


class BreakErrorCoordinator:
    """Guards every platform call the engine makes."""

    def __init__(
        self,
        capabilities: Capabilities,
        *,
        clock: Clock = now_ms,
        error_cooldown_ms: int = DEFAULT_ERROR_COOLDOWN_MS,
        max_resume_gap_ms: int = DEFAULT_MAX_RESUME_GAP_MS,
        feedback: FeedbackSink | None = None,
        fallback_dir: Path | None = None,
        scheduler_runner: Runner | None = None,
    ):
        self.clock = clock
        self.error_cooldown_ms = error_cooldown_ms
        self.max_resume_gap_ms = max_resume_gap_ms
        self.feedback = feedback or _log_feedback
        self.fallback_dir = fallback_dir
        self.scheduler_runner = scheduler_runner

        self.fallback_mode = False
        self.fallback_notifications: deque[FallbackNotification] = deque(
            maxlen=FALLBACK_BUFFER_SIZE
        )
        self.recent_feedback: deque[Feedback] = deque(maxlen=20)
        self._errors: dict[str, ErrorTrackingEntry] = {}
        self._fallback_alarm_handler: Callable[[str], Any] | None = None
        self._stored_diagnostics = self._diagnostics_record()

        self._primary = replace(capabilities)
        self._active = replace(capabilities)
        self._fallbacks: dict[str, Any] = {}

        for api in ("storage", "notifications", "badge", "scheduler"):
            if getattr(capabilities, api) is None:
                self._switch_to_fallback(api)

    # ------------------------------------------------------------------
    # Active capabilities
    # ------------------------------------------------------------------

    @property
    def storage(self) -> KeyValueStore:
        return self._active.storage

    @property
    def notifications(self) -> NotificationService:
        return self._active.notifications

    @property
    def badge(self) -> BadgeDisplay:
        return self._active.badge

    @property
    def scheduler(self) -> Scheduler:
        return self._active.scheduler

    @property
    def primary(self) -> Capabilities:
        return self._primary

    def is_using_fallback(self, api: ApiName) -> bool:
        return getattr(self._active, api) is not getattr(self._primary, api)

    def _fallback_for(self, api: str) -> Any:
        if api not in self._fallbacks:
            if api == "storage":
                impl = self._make_secondary_store()
            elif api == "notifications":
                impl = QueuedNotifier(self.fallback_notifications, clock=self.clock)
            elif api == "badge":
                impl = MemoryBadge()
            elif api == "scheduler":
                impl = ThreadTimerScheduler(runner=self.scheduler_runner)
            else:
                raise ValueError(f"Unknown capability: {api}")
            self._fallbacks[api] = impl
        return self._fallbacks[api]

    def _make_secondary_store(self) -> KeyValueStore:
        if self.fallback_dir is not None:
            try:
                self.fallback_dir.mkdir(parents=True, exist_ok=True)
                marker = self.fallback_dir / ".write-test"
                marker.touch()
                marker.unlink()
                return JsonFileStore(self.fallback_dir / FALLBACK_STORE_FILE)
            except OSError as e:
                logger.warning("secondary store dir %s unusable: %s", self.fallback_dir, e)
        return MemoryStore()

    def _switch_to_fallback(self, api: str) -> Any:
        impl = self._fallback_for(api)
        if getattr(self._active, api) is not impl:
            setattr(self._active, api, impl)
            logger.warning("capability %s switched to fallback %s", api, type(impl).__name__)
        self.fallback_mode = True
        return impl

    def clear_fallback_mode(self) -> None:
        """Restore every capability that has a primary implementation."""
        for api in ("storage", "notifications", "badge", "scheduler"):
            primary = getattr(self._primary, api)
            if primary is not None:
                setattr(self._active, api, primary)
        self.fallback_mode = any(
            getattr(self._primary, api) is None
            for api in ("storage", "notifications", "badge", "scheduler")
        )
        logger.info("fallback mode cleared (still degraded: %s)", self.fallback_mode)

    # ------------------------------------------------------------------
    # Error tracking and cooldown
    # ------------------------------------------------------------------

    def record_error(self, error_key: str) -> None:
        entry = self._errors.get(error_key)
        now = self.clock()
        if entry is None:
            self._errors[error_key] = ErrorTrackingEntry(count=1, last_occurrence_time=now)
        else:
            entry.count += 1
            entry.last_occurrence_time = now

    def is_in_error_cooldown(self, error_key: str) -> bool:
        entry = self._errors.get(error_key)
        if entry is None:
            return False
        return self.clock() - entry.last_occurrence_time < self.error_cooldown_ms

    def _enter(self, error_key: str) -> bool:
        """Record ``error_key`` unless it is cooling down. True means proceed."""
        if self.is_in_error_cooldown(error_key):
            logger.debug("error %s suppressed by cooldown", error_key)
            return False
        self.record_error(error_key)
        return True

    def get_error_stats(self) -> dict[str, Any]:
        return {
            "error_counts": {key: e.count for key, e in self._errors.items()},
            "last_errors": {key: e.last_occurrence_time for key, e in self._errors.items()},
            "fallback_mode": self.fallback_mode,
            "fallback_capabilities": [
                api
                for api in ("storage", "notifications", "badge", "scheduler")
                if self.is_using_fallback(api)
            ],
        }

    def reset_error_tracking(self) -> None:
        """Forget all recorded errors. Fallback mode is left as it is."""
        self._errors.clear()

    def _diagnostics_record(self) -> dict[str, Any]:
        return {
            "errors": {key: asdict(entry) for key, entry in self._errors.items()},
            "fallback_notifications": [asdict(n) for n in self.fallback_notifications],
        }

    async def load_diagnostics(self) -> None:
        """Replace error tracking and the fallback buffer with the stored copy."""
        try:
            stored = await self.storage.get(DIAGNOSTICS_KEY)
        except Exception as e:
            logger.warning("could not read stored diagnostics: %s", e)
            return
        if not isinstance(stored, Mapping):
            stored = {}
        stored_errors = stored.get("errors")
        if not isinstance(stored_errors, Mapping):
            stored_errors = {}

        errors: dict[str, ErrorTrackingEntry] = {}
        for key, entry in stored_errors.items():
            try:
                errors[key] = ErrorTrackingEntry(
                    count=int(entry["count"]),
                    last_occurrence_time=int(entry["last_occurrence_time"]),
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("skipping stored error entry %s", key)
        buffered: list[FallbackNotification] = []
        for entry in stored.get("fallback_notifications") or []:
            try:
                buffered.append(FallbackNotification(**entry))
            except TypeError:
                logger.debug("skipping stored fallback notification %r", entry)

        self._errors = errors
        self.fallback_notifications.clear()
        self.fallback_notifications.extend(buffered)
        self._stored_diagnostics = self._diagnostics_record()

    async def save_diagnostics(self) -> bool:
        """Write error tracking and the fallback buffer if either changed since last stored."""
        record = self._diagnostics_record()
        if record == self._stored_diagnostics:
            return True
        try:
            await self.storage.set(DIAGNOSTICS_KEY, record)
        except Exception as e:
            logger.warning("could not store diagnostics: %s", e)
            return False
        self._stored_diagnostics = record
        return True

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def show_user_feedback(
        self,
        message: str,
        level: FeedbackLevel = "info",
        *,
        context: str | None = None,
        persistent: bool = False,
        actions: tuple[str, ...] = (),
    ) -> None:
        feedback = Feedback(
            message=message, level=level, context=context, persistent=persistent, actions=actions
        )
        self.recent_feedback.append(feedback)
        try:
            self.feedback(feedback)
        except Exception:
            logger.exception("feedback sink failed for: %s", message)

    # ------------------------------------------------------------------
    # Data validation
    # ------------------------------------------------------------------

    def validate_and_sanitize(
        self, record: Any, context: str = "break_data"
    ) -> validation.ValidationResult:
        result = validation.validate(record, context, now=self.clock())
        if not result.is_valid:
            logger.warning("data validation errors in %s: %s", context, result.errors)
            self.show_user_feedback(
                "Data validation issues detected and corrected",
                "warning",
                context="Data Validation",
            )
        return result

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    async def save_records(self, items: dict[str, Any], context: str) -> bool:
        """Write ``items`` in one call, falling back when storage fails."""
        try:
            await self.storage.set_multiple(items)
            return True
        except Exception as e:
            logger.error("storage write failed during %s: %s", context, e)
            result = await self.handle_api_unavailable(
                "storage", "set", {"items": items, "operation": context}
            )
            return result.success

    async def load_records(self, keys: list[str], context: str) -> dict[str, Any]:
        """Read ``keys``, falling back when storage fails.

        If the store had to discard an unreadable file, every key comes back
        as None so the caller runs its corruption handling.
        """
        try:
            return await self.storage.get_multiple(keys)
        except StateCorruptionError as e:
            logger.error("stored records lost during %s: %s", context, e)
            return {key: None for key in keys}
        except Exception as e:
            logger.error("storage read failed during %s: %s", context, e)
            result = await self.handle_api_unavailable(
                "storage", "get", {"keys": keys, "operation": context}
            )
            return result.data or {}

    async def load_record(self, key: str, context: str) -> Any | None:
        return (await self.load_records([key], context)).get(key)

    # ------------------------------------------------------------------
    # Timer state corruption
    # ------------------------------------------------------------------

    async def handle_timer_state_corruption(
        self, corrupted_state: Any, context: str = "timer"
    ) -> OperationResult:
        error_key = f"{TIMER_STATE_CORRUPTION}:{context}"
        if not self._enter(error_key):
            return OperationResult.cooldown()

        logger.warning("timer state corruption detected in %s: %r", context, corrupted_state)

        try:
            result = await self.recover_timer_state(corrupted_state)
        except Exception as e:
            logger.exception("timer state recovery raised")
            result = OperationResult(success=False, error=str(e))

        if result.success:
            self.show_user_feedback(
                "Timer state recovered successfully", "success", context="Timer Recovery"
            )
            self._errors.pop(error_key, None)
            return result

        return await self.fallback_timer_recovery()

    async def recover_timer_state(self, corrupted_state: Any) -> OperationResult:
        """Rebuild a TimerState from whatever fields of ``corrupted_state`` still hold up."""
        if not isinstance(corrupted_state, Mapping):
            return OperationResult(success=False, message="Nothing to salvage from timer state")

        now = self.clock()
        recovered = TimerState.clean(now)
        salvaged = 0

        threshold = corrupted_state.get("work_time_threshold")
        if validation.is_valid_work_time_threshold(threshold):
            recovered.work_time_threshold = int(threshold)
            salvaged += 1

        total = corrupted_state.get("total_work_time")
        if validation.is_valid_work_time(total):
            recovered.total_work_time = int(total)
            salvaged += 1

        last_activity = corrupted_state.get("last_activity_time")
        if validation.is_valid_timestamp(last_activity, now):
            recovered.last_activity_time = int(last_activity)
            salvaged += 1

        work_start = corrupted_state.get("work_start_time")
        if (
            corrupted_state.get("is_work_timer_active") is True
            and corrupted_state.get("is_on_break") is not True
            and validation.is_valid_timestamp(work_start, now)
            and work_start <= now
        ):
            elapsed = now - int(work_start)
            if elapsed < self.max_resume_gap_ms:
                # Fold the segment so far into the total and keep it running from now
                recovered.total_work_time = min(
                    recovered.total_work_time + elapsed, validation.MAX_WORK_TIME_MS
                )
                recovered.work_start_time = now
                recovered.is_work_timer_active = True
                salvaged += 1
            else:
                logger.info("dropping work segment started %d ms ago", elapsed)

        break_start = corrupted_state.get("break_start_time")
        break_duration = corrupted_state.get("break_duration")
        if (
            corrupted_state.get("is_on_break") is True
            and validation.is_valid_timestamp(break_start, now)
            and validation.is_valid_break_type(corrupted_state.get("break_type"))
            and validation.is_valid_break_duration_ms(break_duration)
            and break_duration > 0
        ):
            if now - break_start < break_duration:
                recovered.is_on_break = True
                recovered.is_work_timer_active = False
                recovered.work_start_time = None
                recovered.break_type = corrupted_state["break_type"]
                recovered.break_start_time = int(break_start)
                recovered.break_duration = int(break_duration)
                salvaged += 1
            else:
                logger.info("dropping break that already elapsed")

        if salvaged == 0:
            return OperationResult(success=False, message="Nothing to salvage from timer state")

        await self.save_records(recovered.to_records(), "recover_timer_state")
        logger.info("timer state recovered: %s", recovered)
        return OperationResult(
            success=True,
            method="recover",
            recovered_state=recovered,
            message="Timer state successfully recovered",
            fallback_mode=self.fallback_mode,
        )

    async def fallback_timer_recovery(self) -> OperationResult:
        """Replace the timer state with a clean one and persist it."""
        logger.warning("resetting timer state to a clean state")
        clean = TimerState.clean(self.clock())
        saved = await self.save_records(clean.to_records(), "fallback_timer_recovery")

        self.show_user_feedback(
            "Timer reset to clean state due to corruption",
            "warning",
            context="Timer Recovery",
            persistent=True,
            actions=("Start Fresh",),
        )
        return OperationResult(
            success=True,
            method="reset",
            recovered_state=clean,
            message="Timer reset to clean state",
            was_reset=True,
            fallback_mode=self.fallback_mode or not saved,
        )

    # ------------------------------------------------------------------
    # Notification failure cascade
    # ------------------------------------------------------------------

    async def handle_notification_failure(
        self,
        options: NotificationOptions,
        error: BaseException | str | None = None,
        context: str = "notification",
    ) -> OperationResult:
        error_key = f"{NOTIFICATION_FAILURE}:{context}"
        if not self._enter(error_key):
            return OperationResult.cooldown()

        logger.warning("notification failure in %s: %s", context, error)

        result = await self.try_notification_fallbacks(options)
        if result.success:
            self.show_user_feedback(
                "Notification delivered via fallback method",
                "info",
                context="Notification System",
            )
        else:
            self.show_user_feedback(
                "Unable to show notifications. Please check notification permissions.",
                "warning",
                context="Notification System",
                persistent=True,
                actions=("Check Permissions",),
            )
        return result

    async def try_notification_fallbacks(self, options: NotificationOptions) -> OperationResult:
        steps = (
            ("basic_notification", self._try_basic_notification),
            ("badge_notification", self._try_badge_notification),
            ("title_notification", self._try_title_notification),
            ("console_notification", self._try_console_notification),
        )
        for method, step in steps:
            try:
                if await step(options):
                    return OperationResult(success=True, method=method, fallback_mode=self.fallback_mode)
                logger.debug("fallback %s unavailable", method)
            except Exception as e:
                logger.warning("fallback %s failed: %s", method, e)

        return OperationResult(success=False, message="All notification fallbacks failed")

    def _primary_or_none(self, api: ApiName) -> Any:
        # The cascade only counts real platform channels; in-memory mirrors
        # would make every step look successful.
        impl = getattr(self._active, api)
        return None if impl is self._fallbacks.get(api) else impl

    async def _try_basic_notification(self, options: NotificationOptions) -> bool:
        notifier = self._primary_or_none("notifications")
        if notifier is None:
            return False
        notification_id = make_notification_id(FALLBACK_PREFIX, self.clock())
        await notifier.create(notification_id, options.without_buttons())
        return True

    async def _try_badge_notification(self, options: NotificationOptions) -> bool:
        badge = self._primary_or_none("badge")
        if badge is None:
            return False
        await badge.set_badge_text("!")
        await badge.set_badge_background_color(ALERT_BADGE_COLOR)
        await badge.set_title(options.title or f"{DEFAULT_TITLE} - Click to view")
        return True

    async def _try_title_notification(self, options: NotificationOptions) -> bool:
        badge = self._primary_or_none("badge")
        if badge is None:
            return False
        title = f"{options.title or DEFAULT_TITLE} - {options.message or DEFAULT_MESSAGE}"
        await badge.set_title(title[:MAX_TOOLTIP_LENGTH])
        return True

    async def _try_console_notification(self, options: NotificationOptions) -> bool:
        now = self.clock()
        record = FallbackNotification(
            id=make_notification_id(FALLBACK_PREFIX, now),
            title=options.title or DEFAULT_TITLE,
            message=options.message or DEFAULT_MESSAGE,
            timestamp=now,
            method="console",
        )
        self.fallback_notifications.append(record)
        logger.warning("BREAK REMINDER: %s - %s", record.title, record.message)
        return True

    def get_fallback_notifications(self) -> list[FallbackNotification]:
        return list(self.fallback_notifications)

    def clear_fallback_notifications(self) -> None:
        self.fallback_notifications.clear()

    async def request_notification_permission(self) -> bool:
        notifier = self._primary_or_none("notifications")
        if notifier is None:
            return False
        try:
            return await notifier.get_permission_level() == "granted"
        except Exception as e:
            logger.error("permission check failed: %s", e)
            return False

    # ------------------------------------------------------------------
    # Platform API unavailable
    # ------------------------------------------------------------------

    async def handle_api_unavailable(
        self, api: ApiName, operation: str, payload: dict[str, Any] | None = None
    ) -> OperationResult:
        error_key = f"{PLATFORM_API_UNAVAILABLE}:{api}"
        impl = self._switch_to_fallback(api)

        if not self._enter(error_key):
            # Already degraded and reported; still serve the operation
            return await self._run_on_fallback(api, impl, operation, payload or {})

        logger.warning("platform api unavailable: %s for operation %s", api, operation)
        result = await self._run_on_fallback(api, impl, operation, payload or {})
        self.show_user_feedback(
            f"Running in limited mode due to {api} unavailability",
            "warning",
            context="System Compatibility",
        )
        return result

    async def _run_on_fallback(
        self, api: str, impl: Any, operation: str, payload: dict[str, Any]
    ) -> OperationResult:
        try:
            if api == "storage":
                return await self._storage_fallback(impl, operation, payload)
            if api == "notifications":
                return await self._notification_fallback(impl, operation, payload)
            if api == "badge":
                return await self._badge_fallback(impl, operation, payload)
            if api == "scheduler":
                return self._scheduler_fallback(impl, operation, payload)
        except Exception as e:
            logger.error("fallback for %s.%s failed: %s", api, operation, e)
            return OperationResult(success=False, error=str(e), fallback_mode=True)
        return OperationResult(
            success=False, message=f"No fallback available for {api}", fallback_mode=True
        )

    async def _storage_fallback(
        self, store: KeyValueStore, operation: str, payload: dict[str, Any]
    ) -> OperationResult:
        method = type(store).__name__
        if operation == "get":
            keys = payload.get("keys") or [payload.get("key", "fallback_storage")]
            data = await store.get_multiple(keys)
            return OperationResult(success=True, method=method, data=data, fallback_mode=True)
        if operation == "set":
            items = payload.get("items")
            if items is None:
                items = {payload.get("key", "fallback_storage"): payload.get("value")}
            await store.set_multiple(items)
            return OperationResult(success=True, method=method, fallback_mode=True)
        return OperationResult(success=False, message=f"Unsupported operation: {operation}")

    async def _notification_fallback(
        self, notifier: NotificationService, operation: str, payload: dict[str, Any]
    ) -> OperationResult:
        if operation == "create":
            options = payload.get("options") or NotificationOptions(
                title=payload.get("title") or DEFAULT_TITLE,
                message=payload.get("message") or DEFAULT_MESSAGE,
            )
            notification_id = payload.get("id") or make_notification_id(
                FALLBACK_PREFIX, self.clock()
            )
            await notifier.create(notification_id, options)
            return OperationResult(
                success=True, method="in_memory_notification", data=notification_id, fallback_mode=True
            )
        if operation == "clear":
            await notifier.clear(payload.get("id", ""))
            return OperationResult(success=True, method="in_memory_notification", fallback_mode=True)
        if operation == "get_permission_level":
            return OperationResult(success=True, method="in_memory_notification", data="granted", fallback_mode=True)
        return OperationResult(success=False, message=f"Unsupported operation: {operation}")

    async def _badge_fallback(
        self, badge: BadgeDisplay, operation: str, payload: dict[str, Any]
    ) -> OperationResult:
        if operation == "set_badge_text":
            await badge.set_badge_text(payload.get("text", ""))
        elif operation == "set_badge_background_color":
            await badge.set_badge_background_color(payload.get("color", ""))
        elif operation == "set_title":
            await badge.set_title(payload.get("title", ""))
        else:
            return OperationResult(success=False, message=f"Unsupported operation: {operation}")
        return OperationResult(success=True, method="in_memory_badge", fallback_mode=True)

    def _scheduler_fallback(
        self, scheduler: Scheduler, operation: str, payload: dict[str, Any]
    ) -> OperationResult:
        name = payload.get("name") or f"alarm_{self.clock()}"
        if operation == "call_later":
            callback = payload.get("callback") or self._make_alarm_callback(name)
            scheduler.call_later(name, int(payload.get("delay_ms", 60_000)), callback)
            return OperationResult(success=True, method="thread_timer", data=name, fallback_mode=True)
        if operation == "cancel":
            scheduler.cancel(name)
            return OperationResult(success=True, method="thread_timer", fallback_mode=True)
        return OperationResult(success=False, message=f"Unsupported operation: {operation}")

    def _make_alarm_callback(self, name: str) -> SchedulerCallback:
        def fire() -> Any:
            logger.info("fallback alarm triggered: %s", name)
            if self._fallback_alarm_handler is not None:
                return self._fallback_alarm_handler(name)
            return None

        return fire

    def set_fallback_alarm_handler(self, handler: Callable[[str], Any] | None) -> None:
        self._fallback_alarm_handler = handler

    # ------------------------------------------------------------------
    # Guarded calls used by the services
    # ------------------------------------------------------------------

    def schedule(self, name: str, delay_ms: int, callback: SchedulerCallback) -> bool:
        """Arm a named single-shot callback, moving to the fallback scheduler if needed."""
        try:
            self.scheduler.call_later(name, delay_ms, callback)
            return True
        except PlatformApiUnavailableError:
            impl = self._switch_to_fallback("scheduler")
            logger.warning("scheduler unavailable, using %s for %s", type(impl).__name__, name)
            impl.call_later(name, delay_ms, callback)
            return True
        except Exception as e:
            logger.error("failed to schedule %s: %s", name, e)
            return False

    async def update_badge(self, text: str, color: str | None, title: str) -> bool:
        """Set badge text, colour and tooltip, moving to the in-memory badge on failure."""
        try:
            await self.badge.set_badge_text(text)
            if color is not None:
                await self.badge.set_badge_background_color(color)
            await self.badge.set_title(title)
            return True
        except Exception as e:
            logger.error("badge update failed: %s", e)
            await self.handle_api_unavailable("badge", "set_badge_text", {"text": text})
            if color is not None:
                await self._badge_fallback(
                    self.badge, "set_badge_background_color", {"color": color}
                )
            await self._badge_fallback(self.badge, "set_title", {"title": title})
            return False
