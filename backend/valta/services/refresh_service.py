"""Periodic refresh of a SyncCoordinator.

Usage:
    scheduler = RefreshScheduler(coordinator, interval_seconds=60)
    await scheduler.start()
    # ... client runs ...
    scheduler.stop()
"""

import asyncio
import logging
from typing import Optional

from valta.config import settings
from valta.services.sync_service import SyncCoordinator

logger = logging.getLogger(__name__)


class RefreshScheduler:
    def __init__(
        self,
        coordinator: SyncCoordinator,
        interval_seconds: Optional[float] = None,
        enabled: bool = True,
    ):
        self.coordinator = coordinator
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.sync_interval_seconds
        )
        self.enabled = enabled
        self.tick = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def start(self) -> None:
        if not self.enabled:
            logger.info("Refresh scheduler disabled")
            return

        if self._running:
            logger.warning("Refresh scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Refresh scheduler started (interval: {self.interval_seconds}s)")

    def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("Refresh scheduler stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self._running:
                    break
                await self.run_once()
            except asyncio.CancelledError:
                break

    async def run_once(self) -> bool:
        """Run a single refresh. Failures are logged and retried next tick."""
        self.tick += 1
        try:
            await self.coordinator.refresh()
        except Exception as e:
            self.failures += 1
            logger.error(f"Refresh failed: {e}")
            return False
        return True

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    def get_status(self) -> dict:
        return {
            "enabled": self.enabled,
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "tick": self.tick,
            "failures": self.failures,
            "pending_upload": self.coordinator.has_pending_upload,
        }
