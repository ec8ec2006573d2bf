"""Binary shortcuts.vdf I/O on top of the ValvePython vdf library.

Reading distinguishes a missing file (a fresh Steam user, empty root) from
a file that exists but does not parse (``ShortcutsFileError``). Callers must
never write over the latter, or every existing shortcut is lost.

Writes go to a temporary sibling that replaces the real file only once it is
fully on disk; the previous file is kept as ``<path>.backup``.
"""

import os
import shutil
import struct
import logging
from typing import Any, Dict

import vdf

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = '.backup'
TMP_SUFFIX = '.tmp'


class ShortcutsFileError(Exception):
    """shortcuts.vdf exists but cannot be read or parsed."""


def empty_shortcuts() -> Dict[str, Any]:
    return {"shortcuts": {}}


def parse_shortcuts(raw: bytes) -> Dict[str, Any]:
    """Parse binary VDF bytes into a root that always has a ``shortcuts`` dict.

    Raises:
        ShortcutsFileError: the bytes are not a complete binary VDF document
    """
    if not raw:
        # Steam leaves a zero-length file behind when the last shortcut is removed
        return empty_shortcuts()

    try:
        data = vdf.binary_loads(raw)
    except Exception as e:
        raise ShortcutsFileError(f"Malformed binary VDF: {e}") from e

    if not isinstance(data.get('shortcuts'), dict):
        data['shortcuts'] = {}
    return data


def load_shortcuts_vdf(path: str) -> Dict[str, Any]:
    """Load shortcuts.vdf. A missing file yields an empty root.

    Raises:
        ShortcutsFileError: the file exists but is unreadable or corrupt
    """
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except FileNotFoundError:
        return empty_shortcuts()
    except OSError as e:
        raise ShortcutsFileError(f"Cannot read {path}: {e}") from e

    try:
        return parse_shortcuts(raw)
    except ShortcutsFileError as e:
        logger.error(f"[VDF] {path}: {e}")
        raise


def _persisted_count(path: str) -> int:
    try:
        return len(load_shortcuts_vdf(path)['shortcuts'])
    except ShortcutsFileError:
        return -1


def _replace_with(path: str, payload: bytes) -> None:
    tmp_path = path + TMP_SUFFIX
    with open(tmp_path, 'wb') as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


def save_shortcuts_vdf(path: str, data: Dict[str, Any]) -> bool:
    """Serialize ``data`` and replace ``path`` with it.

    The written file is re-read and its shortcut count compared with
    ``data``; on mismatch the backup is put back and False returned.
    """
    backup_path = path + BACKUP_SUFFIX
    expected = len(data.get('shortcuts', {}))

    try:
        payload = vdf.binary_dumps(data)
    except (TypeError, ValueError, struct.error) as e:
        logger.error(f"[VDF] Cannot serialize shortcuts: {e}")
        return False

    try:
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        has_backup = os.path.exists(path)
        if has_backup:
            shutil.copyfile(path, backup_path)
        _replace_with(path, payload)
    except OSError as e:
        logger.error(f"[VDF] Error saving {path}: {e}")
        return False

    persisted = _persisted_count(path)
    if persisted != expected:
        logger.error(f"[VDF] {path} holds {persisted} shortcuts after write, expected {expected}")
        if has_backup:
            try:
                shutil.copyfile(backup_path, path)
            except OSError as e:
                logger.error(f"[VDF] Could not restore {backup_path}: {e}")
        return False

    logger.debug(f"[VDF] Saved {persisted} shortcuts to {path}")
    return True
