"""Steam shortcuts manager for non-Steam games.

Owns the read-modify-write cycle of shortcuts.vdf: load, dedupe, repair
stale AppIDs, add newly discovered games and save. All steps work on one
in-memory root; nothing touches disk until ``write_shortcuts``.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from steam_syncer.errors import ShortcutsReadError
from steam_syncer.stores.base import GameCandidate, LaunchOverride
from steam_syncer.utils.appid import (
    build_entry_key,
    compute_shortcut_app_id,
    get_shortcut_app_id,
    get_shortcut_name,
    quote_path,
    to_signed,
)
from steam_syncer.utils.vdf import ShortcutsFileError, empty_shortcuts, load_shortcuts_vdf, save_shortcuts_vdf

logger = logging.getLogger(__name__)

# Called as rename_artwork(old_app_id, new_app_id) when a shortcut's id changes
ArtworkRenamer = Callable[[int, int], Any]


@dataclass
class AddResult:
    added: int = 0
    added_ids: List[int] = field(default_factory=list)
    added_games: List[GameCandidate] = field(default_factory=list)


def new_shortcut_entry(game: GameCandidate) -> Dict[str, Any]:
    """Build a shortcuts.vdf record with Steam's default field values."""
    entry = {
        'appid': 0,
        'appname': game.name,
        'exe': quote_path(game.exe_path),
        'StartDir': quote_path(game.start_dir),
        'icon': '',
        'ShortcutPath': '',
        'LaunchOptions': game.launch_options or '',
        'IsHidden': 0,
        'AllowDesktopConfig': 1,
        'AllowOverlay': 1,
        'OpenVR': 0,
        'Devkit': 0,
        'DevkitGameID': '',
        'DevkitOverrideAppID': 0,
        'LastPlayTime': 0,
        'tags': {'0': game.source},
    }
    entry['appid'] = to_signed(compute_shortcut_app_id(entry))
    return entry


class ShortcutsManager:
    """Manages Steam's shortcuts.vdf file for non-Steam games"""

    def __init__(self, shortcuts_path: str, rename_artwork: Optional[ArtworkRenamer] = None):
        """
        Args:
            shortcuts_path: Path to userdata/<user>/config/shortcuts.vdf
            rename_artwork: Callback moving artwork files from an old AppID to
                a new one; called whenever repair changes a stored id
        """
        self.shortcuts_path = shortcuts_path
        self.rename_artwork = rename_artwork
        logger.info(f"[ShortcutsManager] Shortcuts path: {self.shortcuts_path}")

    def read_shortcuts(self) -> Dict[str, Any]:
        """Read shortcuts.vdf; a missing file yields an empty root.

        Raises:
            ShortcutsReadError: the file exists but is corrupt or unreadable
        """
        if not os.path.exists(self.shortcuts_path):
            logger.info("[ShortcutsManager] shortcuts.vdf not found, starting empty")
            return empty_shortcuts()

        try:
            data = load_shortcuts_vdf(self.shortcuts_path)
        except ShortcutsFileError as e:
            logger.error(f"[ShortcutsManager] Refusing to sync over unreadable shortcuts.vdf: {e}")
            raise ShortcutsReadError() from e
        logger.debug(f"[ShortcutsManager] Loaded {len(data['shortcuts'])} shortcuts from disk")
        return data

    def write_shortcuts(self, shortcuts: Dict[str, Any]) -> bool:
        """Serialize the root back to shortcuts.vdf, overwriting the file."""
        shortcuts.setdefault('shortcuts', {})
        success = save_shortcuts_vdf(self.shortcuts_path, shortcuts)
        if success:
            logger.info(f"[ShortcutsManager] Wrote {len(shortcuts['shortcuts'])} shortcuts to file")
        return success

    def dedupe_shortcuts(self, shortcuts: Dict[str, Any]) -> int:
        """Drop entries whose (appname, exe) key was already seen.

        The first entry in key order wins. Returns the number removed.
        """
        entries = shortcuts.setdefault('shortcuts', {})
        seen = set()
        removed = 0

        for idx in list(entries.keys()):
            entry = entries[idx]
            if not isinstance(entry, dict):
                continue
            key = build_entry_key(entry)
            if key in seen:
                logger.info(f"[ShortcutsManager] Removing duplicate shortcut [{idx}] {get_shortcut_name(entry)}")
                del entries[idx]
                removed += 1
            else:
                seen.add(key)

        if removed:
            logger.info(f"[ShortcutsManager] Removed {removed} duplicate shortcuts")
        return removed

    def repair_shortcuts(
        self,
        shortcuts: Dict[str, Any],
        overrides: Optional[Mapping[str, LaunchOverride]] = None,
        run_repair: bool = False,
    ) -> int:
        """Apply launch overrides and fix stored AppIDs that no longer match.

        Args:
            shortcuts: Root loaded by read_shortcuts (modified in place)
            overrides: Launch overrides by shortcut key
            run_repair: Also fix ids of entries without an override (the
                one-time repair of entries written by older versions)

        Returns:
            Number of entries whose AppID was changed. Backfilling a missing
            appid is not counted.
        """
        overrides = overrides or {}
        repaired = 0

        for entry in shortcuts.get('shortcuts', {}).values():
            if not isinstance(entry, dict):
                continue

            override = overrides.get(build_entry_key(entry))
            stored = get_shortcut_app_id(entry)
            old_app_id = stored if stored is not None else compute_shortcut_app_id(entry)

            if override:
                self._apply_override(entry, override)

            expected = compute_shortcut_app_id(entry)
            if (run_repair or override) and old_app_id != expected:
                entry['appid'] = to_signed(expected)
                if self.rename_artwork:
                    self.rename_artwork(old_app_id, expected)
                logger.info(
                    f"[ShortcutsManager] Repaired appid for '{get_shortcut_name(entry)}': "
                    f"{old_app_id} -> {expected}"
                )
                repaired += 1
            elif stored is None:
                entry['appid'] = to_signed(expected)

        if repaired:
            logger.info(f"[ShortcutsManager] Repaired {repaired} shortcut appids")
        return repaired

    def add_games(self, shortcuts: Dict[str, Any], games: Iterable[GameCandidate]) -> AddResult:
        """Append shortcuts for games not already present (by shortcut key)."""
        entries = shortcuts.setdefault('shortcuts', {})
        existing = {build_entry_key(e) for e in entries.values() if isinstance(e, dict)}

        existing_indices = [int(k) for k in entries.keys() if str(k).isdigit()]
        next_index = max(existing_indices, default=-1) + 1

        result = AddResult()
        for game in games:
            if game.key in existing:
                continue

            entry = new_shortcut_entry(game)
            entries[str(next_index)] = entry
            existing.add(game.key)
            next_index += 1

            result.added += 1
            result.added_ids.append(get_shortcut_app_id(entry))
            result.added_games.append(game)
            logger.debug(f"[ShortcutsManager] Added [{next_index - 1}] {game.name} ({result.added_ids[-1]})")

        logger.info(f"[ShortcutsManager] Added {result.added} new shortcuts")
        return result

    def index_by_key(self, shortcuts: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        return {
            build_entry_key(entry): entry
            for entry in shortcuts.get('shortcuts', {}).values()
            if isinstance(entry, dict)
        }

    @staticmethod
    def _apply_override(entry: Dict[str, Any], override: LaunchOverride) -> None:
        name_field = 'appname' if 'appname' in entry or 'AppName' not in entry else 'AppName'
        entry[name_field] = override.display_name or get_shortcut_name(entry)
        entry['exe'] = quote_path(override.exe_path)
        entry['StartDir'] = quote_path(override.start_dir)
        entry['LaunchOptions'] = override.launch_options or ''
