"""
Inventory Store - Staleness Sweeper.

Background asyncio task that periodically evicts external
inventory older than the freshness window. The sweeper only
schedules; the eviction rule itself lives in the store's
sweep_stale().
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


class StaleInventorySweeper:
    """
    Runs a sweep callable every `interval_seconds`.

    An exception raised by one sweep is logged and the loop
    keeps going.
    """

    def __init__(
        self,
        sweep: Callable[[], int],
        interval_seconds: float,
        name: str = "inventory-sweeper",
    ) -> None:
        self._sweep = sweep
        self._interval = interval_seconds
        self._name = name
        self._task: Optional[asyncio.Task] = None

        self._runs = 0
        self._errors = 0
        self._total_removed = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.is_running:
            logger.debug(f"[{self._name}] Already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        logger.info(f"[{self._name}] Started (interval={self._interval}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"[{self._name}] Stopped after {self._runs} sweeps")

    def run_once(self) -> int:
        """Run a single sweep now, with the same isolation as the loop."""
        try:
            removed = self._sweep()
        except Exception as e:
            self._errors += 1
            logger.error(f"[{self._name}] Sweep failed: {e}", exc_info=True)
            return 0

        self._runs += 1
        self._total_removed += removed
        if removed:
            logger.info(f"[{self._name}] Evicted {removed} stale entries")
        return removed

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                self.run_once()
        except asyncio.CancelledError:
            logger.debug(f"[{self._name}] Cancelled")
            raise

    def get_stats(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_seconds": self._interval,
            "runs": self._runs,
            "errors": self._errors,
            "total_removed": self._total_removed,
        }
