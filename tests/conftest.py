from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


class StubPlatformPaths:
    """PlatformPaths pointing at a temporary Steam install."""

    def __init__(self, steam_path=None, store_folders=None):
        self.steam_path = steam_path
        self.store_folders = store_folders or []

    def get_steam_path(self):
        return self.steam_path

    def get_known_store_folders(self):
        return list(self.store_folders)


@pytest.fixture
def steam_dir(tmp_path: Path) -> Path:
    """A fake Steam install with a single user folder."""
    steam = tmp_path / "Steam"
    (steam / "userdata" / "12345" / "config").mkdir(parents=True)
    return steam


def write_exe(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    return path
