"""Break history: every ended or cancelled break, summarized per day.

Sessions live in the key/value store under ``break_sessions`` as a plain
list and are pruned after ``SESSION_RETENTION_DAYS``. Recording never
raises; a failed write only costs the history entry.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta

from breakwatch.models.analytics import ANALYTICS_KEY, BreakSession, DailyBreakStats
from breakwatch.models.timer_state import BREAK_TYPES
from breakwatch.repositories import KeyValueStore
from breakwatch.utils.clock import MS_PER_DAY, MS_PER_MINUTE, MS_PER_SECOND, Clock, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("analytics")

SESSION_RETENTION_DAYS = 90


def local_date(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / MS_PER_SECOND).date()


class BreakAnalyticsService:
    """Records finished breaks and reports daily totals."""

    def __init__(self, store_provider: Callable[[], KeyValueStore], *, clock: Clock = now_ms):
        self._store_provider = store_provider
        self.clock = clock

    @property
    def store(self) -> KeyValueStore:
        return self._store_provider()

    async def get_sessions(self) -> list[BreakSession]:
        """Stored sessions, oldest first. Unreadable entries are skipped."""
        try:
            stored = await self.store.get(ANALYTICS_KEY)
        except Exception as e:
            logger.error("failed to read break history: %s", e)
            return []
        if not isinstance(stored, list):
            if stored is not None:
                logger.warning("break history is not a list, ignoring it")
            return []

        sessions: list[BreakSession] = []
        for entry in stored:
            if not isinstance(entry, dict):
                continue
            try:
                sessions.append(BreakSession.from_dict(entry))
            except ValueError as e:
                logger.warning("skipping break history entry: %s", e)
        return sessions

    async def record_break_session(
        self, break_type: str, planned_ms: int, actual_ms: int, *, completed: bool
    ) -> BreakSession | None:
        """Append one finished break and drop sessions past retention.

        Returns the stored session, or None if the write failed.
        """
        now = self.clock()
        session = BreakSession(
            id=f"break-{now}",
            break_type=break_type,
            start_time=now - actual_ms,
            end_time=now,
            planned_duration=planned_ms,
            actual_duration=actual_ms,
            completed=completed,
        )
        cutoff = now - SESSION_RETENTION_DAYS * MS_PER_DAY
        sessions = [s for s in await self.get_sessions() if s.end_time > cutoff]
        sessions.append(session)
        try:
            await self.store.set(ANALYTICS_KEY, [s.to_dict() for s in sessions])
        except Exception as e:
            logger.error("failed to record %s break: %s", break_type, e)
            return None
        logger.info(
            "%s break %s after %d of %d ms",
            break_type,
            "completed" if completed else "cancelled",
            actual_ms,
            planned_ms,
        )
        return session

    async def get_daily_stats(self, days: int = 7) -> list[DailyBreakStats]:
        """One entry per day for the last ``days`` days, today last."""
        today = local_date(self.clock())
        stats = {
            (today - timedelta(days=offset)).isoformat(): DailyBreakStats(
                date=(today - timedelta(days=offset)).isoformat(),
                breaks_by_type={key: 0 for key in BREAK_TYPES},
            )
            for offset in reversed(range(days))
        }

        for session in await self.get_sessions():
            day = stats.get(local_date(session.start_time).isoformat())
            if day is None:
                continue
            day.total_breaks += 1
            if session.completed:
                day.completed_breaks += 1
            else:
                day.cancelled_breaks += 1
            day.total_break_minutes += session.actual_duration / MS_PER_MINUTE
            day.planned_break_minutes += session.planned_duration / MS_PER_MINUTE
            day.breaks_by_type[session.break_type] = day.breaks_by_type.get(session.break_type, 0) + 1

        for day in stats.values():
            day.total_break_minutes = round(day.total_break_minutes, 1)
            day.planned_break_minutes = round(day.planned_break_minutes, 1)
        return list(stats.values())

    async def clear_history(self) -> bool:
        try:
            await self.store.remove(ANALYTICS_KEY)
        except Exception as e:
            logger.error("failed to clear break history: %s", e)
            return False
        logger.info("break history cleared")
        return True
