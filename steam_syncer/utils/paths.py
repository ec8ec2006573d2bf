"""Steam Syncer file path constants and platform path lookup."""

import os
import sys
import logging
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


def _default_data_dir() -> str:
    override = os.environ.get("STEAM_SYNCER_DATA_DIR")
    if override:
        return os.path.expanduser(override)
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
        return os.path.join(base, "steam-syncer")
    return os.path.expanduser("~/.local/share/steam-syncer")


# Steam Syncer data directory
STEAM_SYNCER_DATA_DIR = _default_data_dir()

SETTINGS_PATH = os.path.join(STEAM_SYNCER_DATA_DIR, "settings.json")
LOG_DIR = os.path.join(STEAM_SYNCER_DATA_DIR, "logs")
LOG_PATH = os.path.join(LOG_DIR, "steam-syncer.log")

# Default Steam install locations
WINDOWS_STEAM_DEFAULTS = [
    "C:\\Program Files (x86)\\Steam",
    "C:\\Program Files\\Steam",
]
LINUX_STEAM_DEFAULTS = [
    "~/.steam/steam",
    "~/.local/share/Steam",
    "~/.var/app/com.valvesoftware.Steam/.local/share/Steam",
]

# Default third-party store install roots: (path, source)
WINDOWS_STORE_FOLDERS = [
    ("C:\\Program Files\\Epic Games", "epic"),
    ("C:\\Program Files (x86)\\GOG Galaxy\\Games", "gog"),
]
LINUX_STORE_FOLDERS = [
    ("~/Games/Heroic", "epic"),
    ("~/GOG Games", "gog"),
]


def get_userdata_path(steam_path: str) -> str:
    return os.path.join(steam_path, "userdata")


def get_user_config_path(steam_path: str, user_id: str) -> str:
    return os.path.join(get_userdata_path(steam_path), user_id, "config")


def get_shortcuts_path(steam_path: str, user_id: str) -> str:
    return os.path.join(get_user_config_path(steam_path, user_id), "shortcuts.vdf")


def get_grid_path(steam_path: str, user_id: str) -> str:
    return os.path.join(get_user_config_path(steam_path, user_id), "grid")


def normalize_registry_steam_path(value: Optional[str]) -> Optional[str]:
    """Normalize a SteamPath value read from the Windows registry.

    Steam writes forward slashes (``c:/program files (x86)/steam``) and some
    installs leave a truncated value without a drive letter.
    """
    if not value:
        return None
    cleaned = value.replace("/", "\\").strip().strip('"')
    if ":" in cleaned:
        return cleaned
    lowered = cleaned.lower()
    if lowered == "(x86)\\steam" or lowered.endswith("\\steam"):
        return WINDOWS_STEAM_DEFAULTS[0]
    return None


class PlatformPaths:
    """Looks up host locations (Steam install, store install roots).

    Injected into the sync service so tests can substitute a stub that points
    at a temporary directory.
    """

    def __init__(self, platform: Optional[str] = None):
        self.platform = platform or sys.platform

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    def get_steam_path(self) -> Optional[str]:
        """Find the Steam installation directory, or None."""
        if self.is_windows:
            for hive, key, value in (
                ("HKEY_CURRENT_USER", "Software\\Valve\\Steam", "SteamPath"),
                ("HKEY_LOCAL_MACHINE", "Software\\Valve\\Steam", "InstallPath"),
            ):
                path = normalize_registry_steam_path(self._read_registry(hive, key, value))
                if path:
                    logger.debug(f"[Paths] Steam path from {hive}\\{key}: {path}")
                    return path
            candidates = WINDOWS_STEAM_DEFAULTS
        else:
            candidates = [os.path.expanduser(p) for p in LINUX_STEAM_DEFAULTS]

        for path in candidates:
            if os.path.isdir(path):
                return path

        return None

    def get_known_store_folders(self) -> List[Tuple[str, str]]:
        """Well-known third-party install roots as (path, source) pairs."""
        folders = WINDOWS_STORE_FOLDERS if self.is_windows else LINUX_STORE_FOLDERS
        return [(os.path.expanduser(path), source) for path, source in folders]

    def _read_registry(self, hive: str, key: str, value: str) -> Optional[str]:
        try:
            import winreg
        except ImportError:
            return None

        try:
            with winreg.OpenKey(getattr(winreg, hive), key) as handle:
                data, _ = winreg.QueryValueEx(handle, value)
                return str(data)
        except OSError:
            return None


def get_steam_executable(steam_path: str, platform: Optional[str] = None) -> Path:
    platform = platform or sys.platform
    name = "steam.exe" if platform == "win32" else "steam.sh"
    return Path(steam_path) / name
