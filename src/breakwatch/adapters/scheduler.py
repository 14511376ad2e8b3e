"""Delayed single-shot callbacks.

``AsyncioScheduler`` is the primary implementation and needs a running
event loop. ``ThreadTimerScheduler`` is the fallback and works without one;
its callbacks fire on timer threads, so the engine passes a ``runner`` that
hands them back to the loop.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Callable

from breakwatch.models.exceptions import PlatformApiUnavailableError
from breakwatch.repositories import Scheduler, SchedulerCallback
from breakwatch.utils.logger import get_logger

logger = get_logger("scheduler")

Runner = Callable[[SchedulerCallback], None]


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later``."""

    def __init__(self, runner: Runner | None = None):
        self.runner = runner
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    def call_later(self, name: str, delay_ms: int, callback: SchedulerCallback) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise PlatformApiUnavailableError("scheduler", "call_later", "no running event loop") from e

        self.cancel(name)
        self._handles[name] = loop.call_later(
            max(0, delay_ms) / 1000, self._fire, name, callback
        )

    def _fire(self, name: str, callback: SchedulerCallback) -> None:
        self._handles.pop(name, None)
        if self.runner is not None:
            self.runner(callback)
            return
        result = callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def cancel(self, name: str) -> bool:
        handle = self._handles.pop(name, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for name in list(self._handles):
            self.cancel(name)

    def pending(self) -> list[str]:
        return list(self._handles)


class ThreadTimerScheduler(Scheduler):
    """Scheduler backed by ``threading.Timer``."""

    def __init__(self, runner: Runner | None = None):
        self.runner = runner
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def call_later(self, name: str, delay_ms: int, callback: SchedulerCallback) -> None:
        timer = threading.Timer(max(0, delay_ms) / 1000, self._fire, args=(name, callback))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(name, None)
            if previous is not None:
                previous.cancel()
            self._timers[name] = timer
        timer.start()

    def _fire(self, name: str, callback: SchedulerCallback) -> None:
        with self._lock:
            self._timers.pop(name, None)
        logger.debug("fallback timer fired: %s", name)
        if self.runner is not None:
            self.runner(callback)
            return
        result = callback()
        if inspect.isawaitable(result):
            asyncio.run(_await(result))

    def cancel(self, name: str) -> bool:
        with self._lock:
            timer = self._timers.pop(name, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._timers)


async def _await(awaitable) -> None:
    await awaitable
