"""Non-Steam shortcut AppID helpers.

Steam identifies a non-Steam shortcut by a 32-bit id derived from the quoted
executable path and the display name. Artwork in ``config/grid`` and launch
metadata are keyed by that id, so the value computed here must match Steam's
own legacy algorithm exactly:

    crc32(lower(quoted_exe + name)) | 0x80000000
"""

import binascii
import struct
from typing import Any, Dict, Optional

# Steam sets the high bit on every shortcut id
SHORTCUT_APPID_FLAG = 0x80000000


def quote_path(path: str) -> str:
    """Wrap a path in double quotes the way shortcuts.vdf stores it."""
    return f'"{unquote_path(path)}"'


def unquote_path(path: str) -> str:
    """Strip surrounding double quotes (and whitespace) from a path."""
    if not path:
        return ""
    return path.strip().strip('"')


def compute_app_id(name: str, exe_path: str) -> int:
    """Compute the shortcut AppID for a display name and quoted exe path.

    Args:
        name: Shortcut display name (``appname``)
        exe_path: Executable path exactly as stored in ``exe`` (quoted)

    Returns:
        Unsigned 32-bit AppID
    """
    key = f"{exe_path}{name}".lower()
    crc = binascii.crc32(key.encode('utf-8')) & 0xFFFFFFFF
    return (crc | SHORTCUT_APPID_FLAG) & 0xFFFFFFFF


def to_unsigned(app_id: int) -> int:
    """Convert a signed int32 (as the vdf library returns it) to unsigned."""
    return app_id if app_id >= 0 else app_id + 2**32


def to_signed(app_id: int) -> int:
    """Convert an unsigned AppID to the signed int32 shortcuts.vdf stores."""
    return struct.unpack('i', struct.pack('I', app_id & 0xFFFFFFFF))[0]


def get_shortcut_name(entry: Dict[str, Any]) -> str:
    # Older writers used "AppName"
    return str(entry.get('appname', entry.get('AppName', '')) or '')


def compute_shortcut_app_id(entry: Dict[str, Any]) -> int:
    """Compute the AppID an existing shortcut entry *should* have."""
    return compute_app_id(get_shortcut_name(entry), str(entry.get('exe', '') or ''))


def get_shortcut_app_id(entry: Dict[str, Any]) -> Optional[int]:
    """Read the stored AppID of a shortcut entry without recomputing it."""
    app_id = entry.get('appid')
    if app_id is None:
        return None
    try:
        return to_unsigned(int(app_id))
    except (TypeError, ValueError):
        return None


def build_shortcut_key(name: str, exe_path: str) -> str:
    """Identity key of a shortcut: ``lower(name)::lower(unquoted exe)``."""
    return f"{name.lower()}::{unquote_path(exe_path).lower()}"


def build_entry_key(entry: Dict[str, Any]) -> str:
    return build_shortcut_key(get_shortcut_name(entry), str(entry.get('exe', '') or ''))
