"""Services module for breakwatch - the break reminder engine."""

from .analytics_service import BreakAnalyticsService
from .config_service import ConfigService, get_config_service
from .engine import BreakEngine
from .error_coordinator import BreakErrorCoordinator, Capabilities
from .notification_service import BreakNotificationService
from .settings_service import BreakSettingsService
from .timer_service import BreakTimerService

__all__ = [
    "BreakAnalyticsService",
    "BreakEngine",
    "BreakErrorCoordinator",
    "BreakNotificationService",
    "BreakSettingsService",
    "BreakTimerService",
    "Capabilities",
    "ConfigService",
    "get_config_service",
]
