"""User settings stored as JSON in the Steam Syncer data directory.

The file uses camelCase keys so settings written by earlier releases of the
app keep loading.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from steam_syncer.stores.base import LaunchOverride
from steam_syncer.utils.paths import SETTINGS_PATH

logger = logging.getLogger(__name__)

DEFAULT_SCAN_FOLDERS = ["C:\\Games", "D:\\Installed"] if os.name == "nt" else ["~/Games"]


@dataclass
class Settings:
    scan_folders: List[str] = field(default_factory=lambda: list(DEFAULT_SCAN_FOLDERS))
    include_known_stores: bool = True
    steamgriddb_api_key: Optional[str] = None
    artwork_repair_done: bool = False
    launch_overrides: Dict[str, LaunchOverride] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        settings = cls()
        if isinstance(data.get('scanFolders'), list):
            settings.scan_folders = [str(f) for f in data['scanFolders']]
        if 'includeKnownStores' in data:
            settings.include_known_stores = bool(data['includeKnownStores'])
        settings.steamgriddb_api_key = data.get('steamGridDbApiKey') or None
        settings.artwork_repair_done = data.get('artworkRepairDone') is True

        overrides = data.get('launchOverrides') or {}
        if isinstance(overrides, dict):
            for key, value in overrides.items():
                if not isinstance(value, dict):
                    continue
                override = LaunchOverride.from_dict(value)
                # The map key is authoritative
                override.key = key
                settings.launch_overrides[key] = override
        return settings

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'scanFolders': list(self.scan_folders),
            'includeKnownStores': self.include_known_stores,
            'artworkRepairDone': self.artwork_repair_done,
            'launchOverrides': {k: o.to_dict() for k, o in self.launch_overrides.items()},
        }
        if self.steamgriddb_api_key:
            data['steamGridDbApiKey'] = self.steamgriddb_api_key
        return data


def load_settings(path: str = SETTINGS_PATH) -> Settings:
    """Load settings, falling back to defaults for a missing or corrupt file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        return Settings()
    except (OSError, ValueError) as e:
        logger.error(f"[Settings] Error loading {path}: {e}")
        return Settings()

    if not isinstance(data, dict):
        logger.warning(f"[Settings] Ignoring malformed settings file {path}")
        return Settings()
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: str = SETTINGS_PATH) -> bool:
    try:
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(settings.to_dict(), f, indent=2)
        return True
    except OSError as e:
        logger.error(f"[Settings] Error saving {path}: {e}")
        return False
