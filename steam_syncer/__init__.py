# Steam Syncer
# Keeps Steam's non-Steam shortcuts in sync with games installed on disk.

__version__ = "0.1.0"
