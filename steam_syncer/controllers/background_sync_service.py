"""Background sync service.

Watches for the Steam client starting and runs a sync when it does.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

POLL_INTERVAL = 15  # seconds
LAUNCH_COOLDOWN = 5 * 60  # seconds


class BackgroundSyncService:
    """Background service that syncs when Steam is seen running"""

    def __init__(
        self,
        app,
        steam_process,
        poll_interval: float = POLL_INTERVAL,
        cooldown: float = LAUNCH_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            app: Object exposing ``is_syncing`` and ``async trigger_sync()``
            steam_process: SteamProcessController used to poll for Steam
        """
        self.app = app
        self.steam_process = steam_process
        self.poll_interval = poll_interval
        self.cooldown = cooldown
        self.clock = clock
        self.running = False
        self.task = None
        self.launch_handled_at: Optional[float] = None

    async def start(self):
        """Start background sync"""
        if self.running:
            logger.warning("Background sync already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._sync_loop())
        logger.info("Background sync service started")

    async def stop(self):
        """Stop background sync"""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Background sync service stopped")

    def mark_handled(self) -> None:
        """Restart the launch cooldown from now."""
        self.launch_handled_at = self.clock()

    async def check_once(self) -> bool:
        """Run one poll. Returns True if a sync was triggered."""
        if self.app.is_syncing:
            return False
        if not await self.steam_process.is_running():
            return False

        now = self.clock()
        if self.launch_handled_at is not None and now - self.launch_handled_at < self.cooldown:
            return False

        self.launch_handled_at = now
        logger.info("Steam is running, starting background sync")
        try:
            await self.app.trigger_sync()
        finally:
            self.mark_handled()
        return True

    async def _sync_loop(self):
        while self.running:
            try:
                await self.check_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sync loop: {e}")
            await asyncio.sleep(self.poll_interval)
