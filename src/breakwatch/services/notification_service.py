"""Break reminder notifications.

Decides when the threshold reminder fires, builds reminder, confirmation
and completion notifications, and turns the user's response into timer
transitions. Every notification goes out through ``create_notification``,
which hands failures to the error coordinator.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from breakwatch.models.config_models import BreakTypeConfig
from breakwatch.models.exceptions import NotificationDeliveryError, PlatformApiUnavailableError
from breakwatch.models.notifications import (
    COMPLETION_PREFIX,
    DEFAULT_MESSAGE,
    DEFAULT_TITLE,
    STARTED_PREFIX,
    THRESHOLD_PREFIX,
    NotificationOptions,
    NotificationRecord,
    make_notification_id,
    notification_kind,
)
from breakwatch.models.timer_state import BREAK_TYPES
from breakwatch.services.error_coordinator import BreakErrorCoordinator
from breakwatch.services.settings_service import BreakSettingsService
from breakwatch.services.timer_service import BreakTimerService
from breakwatch.utils.clock import MS_PER_MINUTE, Clock, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("notifications")

DEFAULT_NOTIFICATION_COOLDOWN_MS = 5 * MS_PER_MINUTE
START_WORKING_LABEL = "Start Working"


class BreakNotificationService:
    """Threshold reminders and the user's answers to them."""

    def __init__(
        self,
        coordinator: BreakErrorCoordinator,
        timer: BreakTimerService,
        settings: BreakSettingsService,
        *,
        clock: Clock = now_ms,
        cooldown_ms: int = DEFAULT_NOTIFICATION_COOLDOWN_MS,
    ):
        self.coordinator = coordinator
        self.timer = timer
        self.settings = settings
        self.clock = clock
        self.cooldown_ms = cooldown_ms
        self.permission_granted: bool | None = None
        self.last_break_notification_time: int | None = None
        self.active_notifications: dict[str, NotificationRecord] = {}

    async def check_notification_permission(self) -> bool:
        try:
            level = await self.coordinator.notifications.get_permission_level()
            self.permission_granted = level == "granted"
        except Exception as e:
            logger.error("error checking notification permission: %s", e)
            result = await self.coordinator.handle_api_unavailable(
                "notifications", "get_permission_level"
            )
            self.permission_granted = result.success and result.data == "granted"

        if not self.permission_granted:
            logger.warning("notification permission not granted")
        return self.permission_granted

    async def create_notification(self, notification_id: str, options: NotificationOptions) -> bool:
        """Show a notification, falling back through the coordinator on any failure."""
        checked = self.coordinator.validate_and_sanitize(
            {"title": options.title, "message": options.message}, "notification_data"
        )
        options = replace(
            options,
            title=checked.sanitized.get("title") or DEFAULT_TITLE,
            message=checked.sanitized.get("message") or DEFAULT_MESSAGE,
        )

        if self.permission_granted is None:
            await self.check_notification_permission()

        try:
            if not self.permission_granted:
                raise NotificationDeliveryError("Notification permission not granted")
            if notification_id in self.active_notifications:
                await self.clear_notification(notification_id)
            await self.coordinator.notifications.create(notification_id, options)
        except PlatformApiUnavailableError as e:
            logger.warning("notification service unavailable: %s", e)
            result = await self.coordinator.handle_api_unavailable(
                "notifications", "create", {"id": notification_id, "options": options}
            )
            if result.success:
                self._track(notification_id, options)
            return result.success
        except NotificationDeliveryError as e:
            result = await self.coordinator.handle_notification_failure(
                options, e, "permission_denied"
            )
            return result.success
        except Exception as e:
            logger.error("failed to create notification %s: %s", notification_id, e)
            result = await self.coordinator.handle_notification_failure(
                options, e, "create_notification"
            )
            return result.success

        self._track(notification_id, options)
        return True

    def _track(self, notification_id: str, options: NotificationOptions) -> None:
        self.active_notifications[notification_id] = NotificationRecord(
            id=notification_id, created_at=self.clock(), options=options
        )

    def _in_cooldown(self, now: int) -> bool:
        last = self.last_break_notification_time
        return last is not None and now - last < self.cooldown_ms

    def _break_choices(self) -> list[tuple[str, BreakTypeConfig]]:
        """Reminder buttons in catalog order, one per break type."""
        catalog = self.settings.get_break_types()
        return [(key, catalog[key]) for key in BREAK_TYPES if key in catalog]

    async def show_work_time_threshold_notification(self, work_time_minutes: int) -> bool:
        now = self.clock()
        if not self.settings.are_notifications_enabled():
            logger.debug("break notifications disabled")
            return False
        if self._in_cooldown(now):
            logger.debug("break notification on cooldown")
            return False

        options = NotificationOptions(
            title="Break Reminder!",
            message=f"You've been working for {work_time_minutes} minutes. Time to take a break!",
            buttons=[entry.label for _, entry in self._break_choices()],
        )
        sent = await self.create_notification(make_notification_id(THRESHOLD_PREFIX, now), options)
        if sent:
            self.last_break_notification_time = now
            logger.info("threshold notification shown after %d minutes", work_time_minutes)
        return sent

    async def show_break_completion_notification(self, break_type: str) -> bool:
        if not self.settings.are_notifications_enabled():
            return False
        options = NotificationOptions(
            title="Break Complete!",
            message=f"Your {break_type} break is over. Ready to get back to work?",
            buttons=[START_WORKING_LABEL],
        )
        return await self.create_notification(
            make_notification_id(COMPLETION_PREFIX, self.clock()), options
        )

    async def check_and_notify_work_time_threshold(self) -> bool:
        if not self.settings.are_notifications_enabled():
            return False
        if self._in_cooldown(self.clock()):
            return False
        status = self.timer.get_timer_status()
        if status.is_on_break or not status.is_threshold_exceeded:
            return False
        return await self.show_work_time_threshold_notification(
            status.current_work_time // MS_PER_MINUTE
        )

    async def handle_notification_click(self, notification_id: str) -> bool:
        await self.clear_notification(notification_id)
        try:
            await self.coordinator.notifications.open_primary_ui()
        except Exception as e:
            logger.info("could not open primary ui: %s", e)
        logger.debug("notification clicked: %s", notification_id)
        return True

    async def handle_notification_button_click(self, notification_id: str, button_index: int) -> bool:
        await self.clear_notification(notification_id)

        match notification_kind(notification_id):
            case "threshold":
                catalog = self._break_choices()
                if not 0 <= button_index < len(catalog):
                    logger.warning("no break type for button %d", button_index)
                    return False
                break_type, entry = catalog[button_index]
                if not await self.timer.start_break(break_type, entry.duration):
                    return False
                logger.info("started %s break (%s min) from notification", break_type, entry.duration)
                await self.create_notification(
                    make_notification_id(STARTED_PREFIX, self.clock()),
                    NotificationOptions(
                        title="Break Started!",
                        message=(
                            f"Enjoy your {entry.label.lower()}. "
                            "You'll be notified when it's time to return."
                        ),
                        require_interaction=False,
                    ),
                )
                return True
            case "completion":
                if button_index != 0:
                    return False
                logger.info("work timer reset from break completion notification")
                return await self.timer.reset_work_timer()
            case _:
                return True

    async def handle_notification_closed(self, notification_id: str, by_user: bool) -> bool:
        self.active_notifications.pop(notification_id, None)
        if not by_user:
            return True
        logger.info("notification dismissed by user: %s", notification_id)
        if (
            notification_kind(notification_id) == "threshold"
            and self.settings.get_settings().dismiss_resets_work_timer
        ):
            logger.info("work timer reset due to notification dismissal")
            return await self.timer.reset_work_timer()
        return True

    async def clear_notification(self, notification_id: str) -> bool:
        self.active_notifications.pop(notification_id, None)
        try:
            await self.coordinator.notifications.clear(notification_id)
            return True
        except Exception as e:
            logger.error("error clearing notification %s: %s", notification_id, e)
            return False

    async def clear_all_notifications(self) -> bool:
        results = [await self.clear_notification(nid) for nid in list(self.active_notifications)]
        self.active_notifications.clear()
        return all(results)

    def get_notification_status(self) -> dict[str, Any]:
        now = self.clock()
        last = self.last_break_notification_time
        return {
            "permission_granted": bool(self.permission_granted),
            "active_notifications": len(self.active_notifications),
            "last_notification_time": last,
            "cooldown_remaining": 0 if last is None else max(0, self.cooldown_ms - (now - last)),
            "fallback_notifications": len(self.coordinator.get_fallback_notifications()),
        }

    async def update_break_types(self, break_types: Any) -> bool:
        return await self.settings.update_break_types(break_types)
