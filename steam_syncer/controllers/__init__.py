# Controllers package
from .sync_progress import SyncStatus
from .shortcuts_manager import ShortcutsManager, AddResult
from .steam_process import SteamProcessController
from .background_sync_service import BackgroundSyncService

__all__ = [
    'SyncStatus',
    'ShortcutsManager',
    'AddResult',
    'SteamProcessController',
    'BackgroundSyncService',
]
