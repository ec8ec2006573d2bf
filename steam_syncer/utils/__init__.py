# Utils package
from .appid import (
    compute_app_id,
    compute_shortcut_app_id,
    get_shortcut_app_id,
    build_shortcut_key,
    build_entry_key,
    to_signed,
    to_unsigned,
)
from .paths import (
    PlatformPaths,
    STEAM_SYNCER_DATA_DIR,
    SETTINGS_PATH,
    LOG_PATH,
    get_shortcuts_path,
    get_grid_path,
)

__all__ = [
    'compute_app_id',
    'compute_shortcut_app_id',
    'get_shortcut_app_id',
    'build_shortcut_key',
    'build_entry_key',
    'to_signed',
    'to_unsigned',
    'PlatformPaths',
    'STEAM_SYNCER_DATA_DIR',
    'SETTINGS_PATH',
    'LOG_PATH',
    'get_shortcuts_path',
    'get_grid_path',
]
