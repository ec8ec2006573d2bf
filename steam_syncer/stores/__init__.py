# Game discovery on disk
from .base import GameCandidate, LaunchOverride, GAME_SOURCES
from .scanner import scan_folders, get_known_store_folders

__all__ = [
    'GameCandidate',
    'LaunchOverride',
    'GAME_SOURCES',
    'scan_folders',
    'get_known_store_folders',
]
