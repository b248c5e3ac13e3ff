"""Background task that purges expired links."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .common.logging_config import get_logger


class SweeperState(Enum):
    """Lifecycle states of the expiry sweeper."""

    RUNNING = "running"
    SCANNING = "scanning"
    STOPPED = "stopped"


class ExpirySweeper:
    """Periodically runs a sweep callable until stopped.

    The loop waits on a dedicated stop event with the interval as timeout, so
    a stop request interrupts the wait immediately. Stopping during a scan
    cancels the scan instead of waiting for it.
    """

    def __init__(
        self,
        sweep: Callable[[], Awaitable[int]],
        interval_seconds: float,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the sweeper.

        Args:
            sweep: Coroutine function running one scan-and-delete pass,
                returning the number of removed entries
            interval_seconds: Delay between passes
            logger: Optional logger instance
        """
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive")

        self.sweep = sweep
        self.interval_seconds = interval_seconds
        self.logger = logger or get_logger("sweeper")
        self.state = SweeperState.RUNNING
        self.passes = 0

        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Spawn the sweeper task on the running event loop."""
        if self._task is not None:
            raise RuntimeError("Expiry sweeper already started")
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="expiry-sweeper"
        )
        self.logger.debug(f"Expiry sweeper started (interval={self.interval_seconds}s)")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self._tick()

    async def _tick(self) -> None:
        self.state = SweeperState.SCANNING
        self.logger.info("Running scheduled cleaner for expired entries...")
        try:
            removed = await self.sweep()
            self.logger.info(f"Scheduled cleaner completed, {removed} expired entries removed")
        except Exception as e:
            self.logger.error(f"Error while running cleaner for expired entries: {e}")
        finally:
            self.passes += 1
            if not self._stop_event.is_set():
                self.state = SweeperState.RUNNING

    async def stop(self) -> None:
        """Signal the loop to exit and cancel any in-flight pass."""
        self.logger.info("Closing cleaner for expired entries...")
        self._stop_event.set()
        self.state = SweeperState.STOPPED

        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self.logger.info("Cleaner for expired entries successfully closed")
