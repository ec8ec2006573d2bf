"""Steam Syncer application entry point and command line."""

import os
import sys
import json
import asyncio
import logging
import argparse
from typing import Any, Callable, Dict, Optional

from steam_syncer.controllers.background_sync_service import BackgroundSyncService
from steam_syncer.controllers.steam_process import SteamProcessController
from steam_syncer.controllers.sync_progress import SyncStatus
from steam_syncer.services.sync_service import SyncService
from steam_syncer.utils.paths import LOG_PATH, SETTINGS_PATH, PlatformPaths
from steam_syncer.utils.settings import load_settings, save_settings
from steam_syncer.utils.steam_user import get_logged_in_steam_user

logger = logging.getLogger(__name__)

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


def setup_logging(level: int = logging.INFO, log_path: Optional[str] = LOG_PATH) -> None:
    """Log to the console and, when possible, to the log file in the data directory."""
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_path:
        try:
            os.makedirs(os.path.dirname(log_path), exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"[INIT] Could not open log file {log_path}: {e}")

    # aiohttp logs every connection at DEBUG
    logging.getLogger('aiohttp').setLevel(logging.WARNING)


class SteamSyncerApp:
    """Wires settings, Steam control, the sync orchestrator and the Steam watcher."""

    def __init__(
        self,
        settings_path: str = SETTINGS_PATH,
        platform_paths: Optional[PlatformPaths] = None,
        steam_process: Optional[SteamProcessController] = None,
        sync_service: Optional[SyncService] = None,
        on_status: Optional[Callable[[SyncStatus], Any]] = None,
    ):
        self.settings_path = settings_path
        self.platform_paths = platform_paths or PlatformPaths()
        self.steam_process = steam_process or SteamProcessController()
        self.sync_service = sync_service or SyncService(
            platform_paths=self.platform_paths,
            steam_process=self.steam_process,
            settings_saver=lambda s: save_settings(s, self.settings_path),
        )
        self.on_status = on_status
        self.last_status = SyncStatus()
        self.background_sync = BackgroundSyncService(self, self.steam_process)

    @property
    def is_syncing(self) -> bool:
        return self.sync_service.is_syncing

    def update_status(self, status: SyncStatus) -> None:
        self.last_status = status
        logger.debug(f"[Status] {status.state}: {status.message}")
        if self.on_status:
            self.on_status(status)

    async def trigger_sync(self) -> SyncStatus:
        """Run a sync unless one is already running. Returns the latest status."""
        if self.is_syncing:
            return self.last_status

        try:
            settings = load_settings(self.settings_path)
            result = await self.sync_service.run_sync(settings, self.update_status)
        finally:
            # Watcher cooldown counts from the end of any sync
            self.background_sync.mark_handled()
        self.update_status(result.status)
        return result.status

    async def launch_steam(self) -> Dict[str, Any]:
        """Sync, then start Steam."""
        if self.is_syncing:
            return {'ok': False, 'message': 'Sync in progress'}

        await self.trigger_sync()
        steam_path = self.platform_paths.get_steam_path()
        if steam_path:
            await self.steam_process.launch(steam_path)
            self.background_sync.mark_handled()
        return {'ok': True}

    def describe(self) -> Dict[str, Any]:
        """Detected Steam install, user and settings, for the status command."""
        settings = load_settings(self.settings_path)
        steam_path = self.platform_paths.get_steam_path()
        return {
            'steamPath': steam_path,
            'steamUser': get_logged_in_steam_user(steam_path) if steam_path else None,
            'settingsPath': self.settings_path,
            'scanFolders': settings.scan_folders,
            'includeKnownStores': settings.include_known_stores,
            'steamGridDbConfigured': bool(settings.steamgriddb_api_key),
            'launchOverrides': len(settings.launch_overrides),
            'status': self.last_status.to_dict(),
        }

    async def start(self):
        """Initial sync followed by the background Steam watcher."""
        logger.info("[INIT] Steam Syncer starting")
        await self.trigger_sync()
        await self.background_sync.start()

    async def stop(self):
        logger.info("[UNLOAD] Stopping background sync service")
        await self.background_sync.stop()


def _print_status(status: SyncStatus) -> None:
    print(f"{status.state}: {status.message}")


async def _watch(app: SteamSyncerApp) -> None:
    await app.start()
    try:
        await asyncio.Event().wait()
    finally:
        await app.stop()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='steam-syncer',
        description="Sync games on disk into Steam's non-Steam shortcuts",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--settings', default=SETTINGS_PATH, help='Settings file path')
    sub = parser.add_subparsers(dest='command')
    sub.add_parser('sync', help='Run one sync and exit')
    sub.add_parser('watch', help='Sync now, then again whenever Steam starts')
    sub.add_parser('status', help='Show the detected Steam install and settings')

    args = parser.parse_args(argv)
    command = args.command or 'sync'

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    app = SteamSyncerApp(settings_path=args.settings, on_status=_print_status)

    if command == 'status':
        print(json.dumps(app.describe(), indent=2))
        return 0

    if command == 'watch':
        try:
            asyncio.run(_watch(app))
        except KeyboardInterrupt:
            logger.info("Interrupted, exiting")
        return 0

    status = asyncio.run(app.trigger_sync())
    return 0 if status.state == 'synced' else 1


if __name__ == "__main__":
    sys.exit(main())
