"""
SyncService - Orchestrates one shortcuts sync.

Phases, strictly sequential:
1. scan library folders and apply launch overrides
2. close Steam if it is running (remembering normal vs Big Picture mode)
3. load shortcuts.vdf, dedupe, repair stale AppIDs, add new games
4. fetch missing artwork, one game at a time
5. write shortcuts.vdf
6. relaunch Steam in the mode it was running in

shortcuts.vdf is only written in phase 5, so a failure anywhere earlier
leaves the previous file untouched.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from steam_syncer.controllers.shortcuts_manager import ShortcutsManager
from steam_syncer.controllers.steam_process import SteamProcessController
from steam_syncer.controllers.sync_progress import StatusCallback, SyncStatus, utc_timestamp
from steam_syncer.errors import SteamNotFoundError, SteamUserNotFoundError, SyncError
from steam_syncer.services.artwork_service import ArtworkService, rename_artwork_files
from steam_syncer.steamgriddb_client import SteamGridDBClient
from steam_syncer.stores.base import GameCandidate, LaunchOverride
from steam_syncer.stores.scanner import scan_folders
from steam_syncer.utils.appid import compute_shortcut_app_id, get_shortcut_app_id, to_signed
from steam_syncer.utils.paths import PlatformPaths, get_grid_path, get_shortcuts_path
from steam_syncer.utils.settings import Settings, save_settings
from steam_syncer.utils.steam_user import get_logged_in_steam_user

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    status: SyncStatus
    added_app_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status.to_dict(), 'addedAppIds': list(self.added_app_ids)}


@dataclass
class ArtworkTarget:
    game: GameCandidate
    entry: Optional[Dict[str, Any]]
    app_id: int


def apply_launch_overrides(
    games: Iterable[GameCandidate],
    overrides: Optional[Mapping[str, LaunchOverride]],
) -> List[GameCandidate]:
    """Replace scanned games by their user override, matched by shortcut key."""
    if not overrides:
        return list(games)
    return [overrides[g.key].apply(g) if g.key in overrides else g for g in games]


def _default_artwork_service(api_key: str) -> ArtworkService:
    return ArtworkService(SteamGridDBClient(api_key))


class SyncService:
    """Service for orchestrating shortcut synchronization."""

    def __init__(
        self,
        platform_paths: Optional[PlatformPaths] = None,
        steam_process: Optional[SteamProcessController] = None,
        settings_saver: Callable[[Settings], Any] = save_settings,
        artwork_factory: Callable[[str], ArtworkService] = _default_artwork_service,
        scanner: Callable[..., List[GameCandidate]] = scan_folders,
    ):
        """
        Args:
            platform_paths: Locates the Steam install and known store folders
            steam_process: Detects, closes and relaunches Steam
            settings_saver: Persists settings (used for the one-time repair flag)
            artwork_factory: Builds an ArtworkService for a SteamGridDB API key
            scanner: Library folder scanner
        """
        self.platform_paths = platform_paths or PlatformPaths()
        self.steam_process = steam_process or SteamProcessController()
        self.settings_saver = settings_saver
        self.artwork_factory = artwork_factory
        self.scanner = scanner

        self._is_syncing = False
        self.last_status = SyncStatus()

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    def _emit(self, on_status: Optional[StatusCallback], status: SyncStatus) -> None:
        self.last_status = status.copy()
        if on_status is None:
            return
        try:
            on_status(status.copy())
        except Exception as e:
            logger.error(f"[Sync] Status callback failed: {e}")

    async def run_sync(self, settings: Settings, on_status: Optional[StatusCallback] = None) -> SyncResult:
        """Run one full sync.

        A call made while another sync is running does nothing and returns
        the latest status.
        """
        if self._is_syncing:
            logger.warning("[Sync] Sync already in progress, ignoring request")
            return SyncResult(self.last_status.copy())

        self._is_syncing = True
        try:
            return await self._run(settings, on_status)
        except SyncError as e:
            logger.error(f"[Sync] {e}")
            status = SyncStatus(state='error', message=str(e))
        except Exception as e:
            logger.error(f"[Sync] Sync failed: {e}", exc_info=True)
            status = SyncStatus(state='error', message=f"Sync failed: {e}")
        finally:
            self._is_syncing = False

        self._emit(on_status, status)
        return SyncResult(status)

    def _scan_roots(self, settings: Settings) -> List[Any]:
        roots: List[Any] = list(settings.scan_folders)
        if settings.include_known_stores:
            roots.extend(self.platform_paths.get_known_store_folders())
        return roots

    async def _run(self, settings: Settings, on_status: Optional[StatusCallback]) -> SyncResult:
        status = SyncStatus(state='scanning', message='Scanning folders...')
        self._emit(on_status, status)
        logger.info(f"[Sync] Sync started: folders={settings.scan_folders}, "
                    f"known_stores={settings.include_known_stores}")

        # === PHASE 1: STEAM ===
        steam_path = self.platform_paths.get_steam_path()
        if not steam_path:
            raise SteamNotFoundError()
        logger.info(f"[Sync] Steam path resolved: {steam_path}")

        steam_was_running = await self.steam_process.is_running()
        launch_mode = await self.steam_process.detect_mode() if steam_was_running else 'normal'
        if steam_was_running:
            status.message = 'Closing Steam for sync...'
            self._emit(on_status, status)
            logger.info(f"[Sync] Closing Steam for sync (mode={launch_mode})")
            await self.steam_process.close()

        # === PHASE 2: SCAN ===
        loop = asyncio.get_running_loop()
        games = await loop.run_in_executor(None, self.scanner, self._scan_roots(settings))
        effective_games = apply_launch_overrides(games, settings.launch_overrides)

        status.state = 'syncing'
        status.message = f"Syncing {len(effective_games)} detected games..."
        status.found = len(effective_games)
        self._emit(on_status, status)
        logger.info(f"[Sync] Scan complete: {len(effective_games)} games found")

        user_id = get_logged_in_steam_user(steam_path)
        if not user_id:
            raise SteamUserNotFoundError()
        logger.info(f"[Sync] Steam user resolved: {user_id}")

        # === PHASE 3: SHORTCUTS ===
        grid_path = get_grid_path(steam_path, user_id)
        manager = ShortcutsManager(
            get_shortcuts_path(steam_path, user_id),
            rename_artwork=partial(rename_artwork_files, grid_path),
        )
        shortcuts = manager.read_shortcuts()
        manager.dedupe_shortcuts(shortcuts)

        run_repair = not settings.artwork_repair_done
        repaired = manager.repair_shortcuts(shortcuts, settings.launch_overrides, run_repair=run_repair)
        # An override can turn an old entry into a copy of an existing one
        manager.dedupe_shortcuts(shortcuts)

        add_result = manager.add_games(shortcuts, effective_games)
        targets = self._artwork_targets(manager, shortcuts, effective_games, grid_path)

        pending = len(targets) if settings.steamgriddb_api_key else len(add_result.added_ids)
        status.message = f"Added {add_result.added} new games. Fetching artwork..."
        status.added = add_result.added
        status.pending_artwork = pending
        self._emit(on_status, status)

        # === PHASE 4: ARTWORK ===
        if settings.steamgriddb_api_key:
            pending = await self._fetch_artwork(settings.steamgriddb_api_key, targets, grid_path, status, on_status)

        # === PHASE 5: WRITE ===
        if not manager.write_shortcuts(shortcuts):
            raise SyncError("Could not write shortcuts.vdf.")
        logger.info(f"[Sync] Shortcuts updated: {add_result.added} added")

        if run_repair and repaired:
            settings.artwork_repair_done = True
            self.settings_saver(settings)

        done = SyncStatus(
            state='synced',
            message='Sync complete.',
            last_sync_at=utc_timestamp(),
            found=len(effective_games),
            added=add_result.added,
            pending_artwork=pending,
        )
        self._emit(on_status, done)

        # === PHASE 6: RELAUNCH ===
        if steam_was_running:
            self._emit(on_status, done.copy(message='Sync complete. Relaunching Steam...'))
            await self.steam_process.relaunch(steam_path, launch_mode)
            logger.info(f"[Sync] Steam relaunched (mode={launch_mode})")
            self._emit(on_status, done.copy(message='Sync complete. Steam relaunched.'))

        return SyncResult(done, add_result.added_ids)

    def _artwork_targets(
        self,
        manager: ShortcutsManager,
        shortcuts: Dict[str, Any],
        games: List[GameCandidate],
        grid_path: str,
    ) -> List[ArtworkTarget]:
        """Pair each detected game with its shortcut entry and current AppID.

        Entries of detected games whose stored AppID is stale are corrected
        here (artwork moved along) so artwork is fetched under the right id.
        """
        index = manager.index_by_key(shortcuts)
        targets: List[ArtworkTarget] = []
        seen = set()

        for game in games:
            entry = index.get(game.key)
            if entry is None:
                app_id = game.app_id
            else:
                app_id = compute_shortcut_app_id(entry)
                stored = get_shortcut_app_id(entry)
                if stored != app_id:
                    if stored is not None:
                        rename_artwork_files(grid_path, stored, app_id)
                    entry['appid'] = to_signed(app_id)
                    logger.info(f"[Sync] Updated appid of '{game.name}' to {app_id}")

            if app_id in seen:
                continue
            seen.add(app_id)
            targets.append(ArtworkTarget(game, entry, app_id))

        return targets

    async def _fetch_artwork(
        self,
        api_key: str,
        targets: List[ArtworkTarget],
        grid_path: str,
        status: SyncStatus,
        on_status: Optional[StatusCallback],
    ) -> int:
        """Fetch artwork for each target in turn. Returns the number still pending."""
        artwork = self.artwork_factory(api_key)
        remaining = len(targets)
        try:
            for target in targets:
                art = await artwork.fetch_artwork_set(target.game.name, grid_path, target.app_id)
                if art.downloaded > 0 or art.attempted == 0:
                    remaining -= 1
                if target.entry is not None and art.files.get('icon'):
                    target.entry['icon'] = art.files['icon']

                status.pending_artwork = remaining
                status.message = f"Artwork remaining: {remaining}"
                self._emit(on_status, status)
                logger.info(f"[Sync] Artwork {target.game.name} ({target.app_id}): "
                            f"{art.downloaded}/{art.attempted} downloaded")
        finally:
            await artwork.close()

        return remaining
