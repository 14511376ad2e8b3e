"""Shared helpers for commands that drive the engine."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from breakwatch.models.events import EngineEvent
from breakwatch.services.config_service import get_config_service
from breakwatch.services.engine import BreakEngine
from breakwatch.utils.exit_codes import ERROR_INVALID_STATE
from breakwatch.utils.ui.formatters import format_feedback

from .decorators import AppError


@asynccontextmanager
async def open_engine(*, tracking: bool = False) -> AsyncIterator[BreakEngine]:
    """Build and start an engine from the current configuration.

    Only ``watch`` tracks work time; every other command opens a non-tracking
    engine so it never pauses the segment a running watch is timing.
    Diagnostics recorded while the engine was open are stored on exit.
    """
    engine = BreakEngine.create(get_config_service(), feedback=format_feedback)
    await engine.start(tracking=tracking)
    try:
        yield engine
    finally:
        await engine.coordinator.save_diagnostics()


async def run_event(event: EngineEvent, refused: str) -> BreakEngine:
    """Dispatch one event on a fresh engine.

    Raises:
        AppError: With ``refused`` as message if the engine rejected the event
    """
    async with open_engine() as engine:
        if not await engine.dispatch(event):
            raise AppError(refused, exit_code=ERROR_INVALID_STATE)
        return engine
