"""Exception taxonomy for the break-reminder engine."""


class BreakwatchError(Exception):
    """Base exception for all breakwatch errors."""


class StateCorruptionError(BreakwatchError):
    """Raised when a persisted timer record cannot be interpreted."""


class NotificationDeliveryError(BreakwatchError):
    """Raised when a notification could not be shown (call failed or permission denied)."""


class PlatformApiUnavailableError(BreakwatchError):
    """Raised by an adapter when its underlying capability is missing entirely."""

    def __init__(self, api: str, operation: str, message: str | None = None):
        super().__init__(message or f"{api} unavailable for {operation}")
        self.api = api
        self.operation = operation


class DataValidationError(BreakwatchError):
    """Raised when caller-supplied data is out of bounds and cannot be sanitized."""
