"""breakwatch - continuous work-time tracking with break reminders."""

__version__ = "0.3.0"
