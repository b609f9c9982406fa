"""Periodic driver for the expiration sweep.

One ``AlertScheduler`` is built by the application lifespan and kept on
``app.state``. It owns a single asyncio task: the first sweep runs after a short
delay so startup finishes first, and later sweeps run every interval counted
from ``start()``. Each sweep runs in a worker thread and is awaited before the
next firing becomes eligible, so sweeps never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_DELAY_SECONDS = 60.0
DEFAULT_INTERVAL_SECONDS = 24 * 60 * 60.0


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class AlertScheduler:
    """Runs ``check`` on a fixed cadence until stopped.

    Args:
        check: Zero-arg callable performing one sweep (opens and closes its own
            session) and returning a dict with ``message`` and ``alerts_created``.
        initial_delay: Seconds before the first sweep.
        interval: Seconds between scheduled sweeps.
    """

    def __init__(
        self,
        check: Callable[[], dict],
        initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._check = check
        self.initial_delay = initial_delay
        self.interval = interval
        self.state = SchedulerState.STOPPED
        self.fire_count = 0
        self.last_result: dict | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    def start(self) -> None:
        """Schedule the sweeps. Must be called from a running event loop."""
        if self.is_running:
            logger.warning("Alert scheduler already running; start() ignored")
            return
        logger.info(
            "Starting alert scheduler: first check in %.0fs, then every %.0fs",
            self.initial_delay,
            self.interval,
        )
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.state = SchedulerState.RUNNING

    def stop(self) -> None:
        """Cancel future sweeps. A sweep already running in its thread finishes."""
        if not self.is_running:
            return
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.state = SchedulerState.STOPPED
        logger.info("Alert scheduler stopped")

    def run_manual_check(self) -> dict:
        """Run one sweep synchronously, outside the timer."""
        return self._check()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        await asyncio.sleep(self.initial_delay)
        await self._fire()

        next_at = started + self.interval
        while True:
            delay = next_at - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            await self._fire()
            next_at += self.interval

    async def _fire(self) -> None:
        self.fire_count += 1
        try:
            logger.info("Running scheduled expiration alert check")
            result = await asyncio.to_thread(self._check)
        except Exception:
            logger.exception("Scheduled expiration alert check failed")
            return
        self.last_result = result
        logger.info("Scheduled check completed: %s", result.get("message"))
        if result.get("alerts_created", 0) > 0:
            logger.info(
                "%d new alerts created and WhatsApp links generated",
                result["alerts_created"],
            )
