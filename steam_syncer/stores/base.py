"""
Data types shared by the scanner, the shortcuts manager and the sync service.
"""
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional

from steam_syncer.utils.appid import build_shortcut_key, compute_app_id, quote_path

GAME_SOURCES = ('custom', 'epic', 'gog', 'other')


@dataclass
class GameCandidate:
    """A game installation discovered on disk"""
    name: str
    exe_path: str  # unquoted
    start_dir: str  # unquoted
    launch_options: Optional[str] = None
    source: str = 'custom'  # 'custom', 'epic', 'gog', 'other'

    @property
    def key(self) -> str:
        return build_shortcut_key(self.name, self.exe_path)

    @property
    def app_id(self) -> int:
        return compute_app_id(self.name, quote_path(self.exe_path))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LaunchOverride:
    """User-owned replacement for how a discovered game is launched.

    ``key`` is the shortcut key of the game as scanned
    (``lower(name)::lower(exe)``), so the override keeps matching after the
    display name or executable it sets has changed.
    """
    key: str
    display_name: str
    exe_path: str
    start_dir: str
    launch_options: Optional[str] = None

    def apply(self, game: GameCandidate) -> GameCandidate:
        return replace(
            game,
            name=self.display_name or game.name,
            exe_path=self.exe_path,
            start_dir=self.start_dir,
            launch_options=self.launch_options,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LaunchOverride':
        return cls(
            key=data.get('key', ''),
            display_name=data.get('displayName', ''),
            exe_path=data.get('exePath', ''),
            start_dir=data.get('startDir', ''),
            launch_options=data.get('launchOptions'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'key': self.key,
            'displayName': self.display_name,
            'exePath': self.exe_path,
            'startDir': self.start_dir,
        }
        if self.launch_options is not None:
            data['launchOptions'] = self.launch_options
        return data
