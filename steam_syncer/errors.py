"""Exceptions that end a sync with an error status."""


class SyncError(Exception):
    """A failure that ends the sync with an error status."""


class SteamNotFoundError(SyncError):
    def __init__(self):
        super().__init__("Steam not found.")


class SteamUserNotFoundError(SyncError):
    def __init__(self):
        super().__init__("Steam user not found.")


class ShortcutsReadError(SyncError):
    """shortcuts.vdf exists but could not be read; it must not be overwritten."""

    def __init__(self):
        super().__init__("Could not read shortcuts.vdf.")
