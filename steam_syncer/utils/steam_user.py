"""
Steam User Detection Utilities

Picks the userdata profile whose shortcuts.vdf and grid folder we maintain.
Steam's own loginusers.vdf is the primary source; directory timestamps are
only used when it is missing or has no MostRecent user.
"""

import os
import logging
from typing import List, Optional

import vdf

from steam_syncer.utils.paths import get_userdata_path

logger = logging.getLogger(__name__)

# Steam64 ids carry the account id in their lower 32 bits
ACCOUNT_ID_MASK = 0xFFFFFFFF


def get_logged_in_steam_user(steam_path: str) -> Optional[str]:
    """
    Get the active Steam user's account ID (userdata folder name).

    Order of preference:
    1. the MostRecent user in config/loginusers.vdf (if its folder exists)
    2. the user whose config/shortcuts.vdf was modified most recently
    3. the first user folder

    Args:
        steam_path: Path to Steam installation

    Returns:
        Account ID string or None when there is no userdata folder at all
    """
    userdata_path = get_userdata_path(steam_path)
    if not os.path.isdir(userdata_path):
        logger.warning(f"[SteamUser] userdata folder not found: {userdata_path}")
        return None

    loginusers_path = os.path.join(steam_path, "config", "loginusers.vdf")
    user_id = _get_user_from_loginusers(loginusers_path, userdata_path)
    if user_id:
        logger.info(f"[SteamUser] Using MostRecent user from loginusers.vdf: {user_id}")
        return user_id

    user_dirs = _list_user_dirs(userdata_path)

    user_id = _get_user_from_shortcuts_mtime(userdata_path, user_dirs)
    if user_id:
        logger.info(f"[SteamUser] Fallback: user with newest shortcuts.vdf: {user_id}")
        return user_id

    if user_dirs:
        logger.warning(f"[SteamUser] Falling back to first Steam user directory: {user_dirs[0]}")
        return user_dirs[0]

    logger.error("[SteamUser] Could not detect a Steam user")
    return None


def parse_most_recent_user_id(raw: str) -> Optional[str]:
    """Return the Steam64 id marked ``"MostRecent" "1"`` in loginusers.vdf text."""
    try:
        data = vdf.loads(raw)
    except Exception as e:
        logger.warning(f"[SteamUser] Could not parse loginusers.vdf: {e}")
        return None

    users = data.get('users', {})
    if not isinstance(users, dict):
        return None

    for steam64_id, user_info in users.items():
        if isinstance(user_info, dict) and str(user_info.get('MostRecent', '0')) == '1':
            return steam64_id

    return None


def steam64_to_account_id(steam64_id: str) -> Optional[str]:
    try:
        return str(int(steam64_id) & ACCOUNT_ID_MASK)
    except ValueError:
        logger.warning(f"[SteamUser] Invalid Steam64ID: {steam64_id}")
        return None


def _get_user_from_loginusers(loginusers_path: str, userdata_path: str) -> Optional[str]:
    if not os.path.exists(loginusers_path):
        logger.debug(f"[SteamUser] loginusers.vdf not found at {loginusers_path}")
        return None

    try:
        with open(loginusers_path, 'r', encoding='utf-8', errors='ignore') as f:
            raw = f.read()
    except OSError as e:
        logger.warning(f"[SteamUser] Error reading loginusers.vdf: {e}")
        return None

    steam64_id = parse_most_recent_user_id(raw)
    if not steam64_id:
        logger.warning(f"[SteamUser] No MostRecent user found in {loginusers_path}")
        return None

    # userdata folders are named by account id; accept a raw id folder too
    for candidate in (steam64_to_account_id(steam64_id), steam64_id):
        if candidate and os.path.isdir(os.path.join(userdata_path, candidate)):
            return candidate

    logger.warning(f"[SteamUser] MostRecent user {steam64_id} has no userdata folder")
    return None


def _list_user_dirs(userdata_path: str) -> List[str]:
    """User folders in listing order, with the user 0 meta-directory last."""
    try:
        names = sorted(os.listdir(userdata_path))
    except OSError:
        return []

    dirs = [d for d in names if os.path.isdir(os.path.join(userdata_path, d))]
    return [d for d in dirs if d != '0'] + [d for d in dirs if d == '0']


def _get_user_from_shortcuts_mtime(userdata_path: str, user_dirs: List[str]) -> Optional[str]:
    best = None
    best_mtime = 0.0
    for user_id in user_dirs:
        shortcuts = os.path.join(userdata_path, user_id, "config", "shortcuts.vdf")
        try:
            mtime = os.path.getmtime(shortcuts)
        except OSError:
            continue
        if best is None or mtime > best_mtime:
            best, best_mtime = user_id, mtime
    return best
