"""Periodic reclamation of timed-out reviews."""

from __future__ import annotations

import asyncio

from starlette.concurrency import run_in_threadpool

from find_reviewer.api.dispatcher import Dispatcher
from find_reviewer.service.logging import Loggers

logger = Loggers.sweeper()


class TimeoutSweeper:
    """Runs ``Dispatcher.sweep`` once per interval for the process lifetime."""

    def __init__(self, dispatcher: Dispatcher, interval_s: float = 1.0):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self._dispatcher = dispatcher
        self._interval_s = interval_s
        self._task: asyncio.Task | None = None
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._tick_loop())
        logger.info(
            "Timeout sweeper started",
            event_type="sweeper_started",
            interval_s=self._interval_s,
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Timeout sweeper stopped", event_type="sweeper_stopped")

    async def _tick_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._interval_s)
                reclaimed = await run_in_threadpool(self._dispatcher.sweep)
                self.tick_count += 1
                if reclaimed:
                    logger.info(
                        "Timed-out reviews reclaimed",
                        event_type="sweep",
                        review_ids=reclaimed,
                    )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Sweep error",
                    event_type="sweep_error",
                    error=str(e),
                    exc_info=True,
                )
