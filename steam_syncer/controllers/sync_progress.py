"""Sync status reported to the UI after every phase transition."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

@dataclass
class SyncStatus:
    """Snapshot of sync progress. Each emission supersedes the previous one."""
    state: str = 'idle'  # idle, scanning, syncing, synced, error
    message: str = 'Ready.'
    last_sync_at: Optional[str] = None
    found: Optional[int] = None
    added: Optional[int] = None
    pending_artwork: Optional[int] = None

    def copy(self, **changes) -> 'SyncStatus':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'state': self.state, 'message': self.message}
        if self.last_sync_at is not None:
            data['lastSyncAt'] = self.last_sync_at
        if self.found is not None:
            data['found'] = self.found
        if self.added is not None:
            data['added'] = self.added
        if self.pending_artwork is not None:
            data['pendingArtwork'] = self.pending_artwork
        return data


StatusCallback = Callable[[SyncStatus], Any]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
