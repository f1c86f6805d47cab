"""
Run scheduler for the sync job.

Runs the job immediately, then waits ``interval`` seconds after each run
completes before starting the next one. Runs never overlap and missed
intervals are never caught up.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[None]]


class RunScheduler:
    """Completion-triggered repeating runner.

    Usage:
        scheduler = RunScheduler(job, interval=3600)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, job: Job, interval: float, sleep: Optional[Sleep] = None):
        self.job = job
        self.interval = interval
        self._sleep = sleep
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the loop. The first run happens immediately."""
        if self.running:
            return self._task
        self._stopping.clear()
        self._task = asyncio.create_task(self.run(), name="agroland-sync-scheduler")
        logger.info(f"Scheduler started. First run immediately. Interval: {self.interval}s")
        return self._task

    async def stop(self) -> None:
        """Cancel the pending wait and let an in-flight run finish."""
        self._stopping.set()
        task = self._task
        if task is not None and task is not asyncio.current_task():
            await task
        logger.info("Scheduler stopped")

    async def run(self) -> None:
        """Loop: run job, wait interval or stop, repeat."""
        while not self._stopping.is_set():
            try:
                await self.job()
            except Exception:
                logger.exception("Error during API synchronization")
            finally:
                self.runs += 1

            if self._stopping.is_set():
                break

            next_run = datetime.now() + timedelta(seconds=self.interval)
            logger.info(f"All processes completed. Next run scheduled at: {next_run:%Y-%m-%d %H:%M:%S}")
            await self._wait()

    async def _wait(self) -> None:
        if self._sleep is not None:
            await self._sleep(self.interval)
            return
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass


__all__ = ["RunScheduler"]
