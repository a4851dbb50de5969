"""
Periodic removal of finished sessions.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from ..domain.session import is_terminal
from ..interfaces.lifecycle import IComponent
from ..interfaces.relay import ISessionStore

logger = logging.getLogger(__name__)


class Reaper(IComponent):
    """
    Background sweep deleting TIMED_OUT and DONE sessions.

    Waiting and in-progress sessions are never touched.
    """

    def __init__(self, store: ISessionStore, interval: float = 180.0) -> None:
        """
        Initialize the reaper.

        Args:
            store: Session registry to sweep
            interval: Seconds between sweeps
        """
        if interval <= 0:
            raise ValueError(f"Reaper interval must be positive, got {interval}")

        self._store = store
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None
        self._running = False
        self._sweeps = 0
        self._removed_total = 0
        self._last_sweep: Optional[float] = None

    @property
    def name(self) -> str:
        return "Reaper"

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Reaper started, sweeping every {self._interval:g}s")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Reaper stopped")

    async def sweep(self) -> int:
        """Remove terminal sessions now. Returns the number removed."""
        removed = await self._store.sweep(is_terminal)
        self._sweeps += 1
        self._removed_total += len(removed)
        self._last_sweep = time.time()

        if removed:
            logger.info(f"Reaped {len(removed)} finished sessions")
        return len(removed)

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "details": {
                "interval_seconds": self._interval,
                "sweeps": self._sweeps,
                "removed_total": self._removed_total,
                "last_sweep": self._last_sweep,
            }
        }

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Reaper sweep failed: {e}")
