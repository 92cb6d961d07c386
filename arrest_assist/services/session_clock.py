"""
Cooperative 1-Hz scheduler for the resuscitation engine.

Key patterns:
- Async context manager for the clock lifecycle
- Async generator yielding one snapshot per delivered tick
- Fixed sleep between ticks: time lost while the host is suspended is not replayed

Ticks and user commands run on the same event loop, so a tick can never
interleave with a command halfway through its mutation.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog

from arrest_assist.config import ClockConfig
from arrest_assist.domain.models import SessionSnapshot
from arrest_assist.services.resuscitation import ResuscitationEngine

logger = structlog.get_logger(__name__)


class SessionClock:
    """Invokes engine.tick() once per interval while the session is running."""

    def __init__(
        self,
        engine: ResuscitationEngine,
        config: ClockConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.engine = engine
        self.config = config or ClockConfig()
        self._sleep = sleep
        self._is_running = False
        self.ticks_delivered = 0
        self.logger = logger.bind(component="session_clock")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @asynccontextmanager
    async def running(self) -> AsyncIterator["SessionClock"]:
        self._is_running = True
        self.logger.info("session_clock_started", interval_seconds=self.config.tick_interval_seconds)
        try:
            yield self
        finally:
            self._is_running = False
            self.logger.info("session_clock_stopped", ticks_delivered=self.ticks_delivered)

    def stop(self) -> None:
        self._is_running = False

    async def run(self) -> AsyncIterator[SessionSnapshot]:
        """
        Yield the engine snapshot after every delivered tick.

        While the session is idle or paused the scheduler keeps sleeping but
        delivers nothing, so frozen values stay frozen.
        """
        if not self._is_running:
            raise RuntimeError("Clock not running - use running()")

        while self._is_running:
            await self._sleep(self.config.tick_interval_seconds)
            if not self._is_running:
                break
            if not self.engine.is_clock_running:
                continue

            snapshot = self.engine.tick()
            self.ticks_delivered += 1
            yield snapshot
