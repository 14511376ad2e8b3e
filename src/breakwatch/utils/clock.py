"""Wall-clock helpers. All engine timestamps are epoch milliseconds."""

import time
from collections.abc import Callable

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def minutes_to_ms(minutes: float) -> int:
    return int(minutes * MS_PER_MINUTE)


def ms_to_minutes(ms: int) -> int:
    """Whole minutes contained in ``ms`` (floored)."""
    return int(ms // MS_PER_MINUTE)


def format_duration(ms: int) -> str:
    """Render a millisecond duration as ``H:MM:SS`` or ``MM:SS``."""
    total_seconds = max(0, int(ms // MS_PER_SECOND))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"
