# Services package
from .artwork_service import ArtworkService, ArtworkResult
from .sync_service import SyncService, SyncResult, SyncError

__all__ = [
    'ArtworkService',
    'ArtworkResult',
    'SyncService',
    'SyncResult',
    'SyncError',
]
