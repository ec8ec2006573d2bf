"""Local game folder scanner.

Every immediate subfolder of a scan root is treated as one game
installation. Its "main" executable is the largest file with an executable
extension that is not an installer, redistributable, uninstaller, launcher
wrapper or anti-cheat helper.
"""

import os
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from steam_syncer.stores.base import GameCandidate
from steam_syncer.utils.paths import PlatformPaths

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 2

EXECUTABLE_EXTENSIONS = ('.exe',)

# Substrings of executable base names that are never the game itself
DEFAULT_EXE_IGNORE = (
    'unins',
    'uninstall',
    'dxsetup',
    'vc_redist',
    'dotnet',
    'setup',
    'launcher',
    'crashreporter',
    'easyanticheat',
)

# A scan root is either a path or a (path, source) pair
ScanRoot = Union[str, Tuple[str, str]]


def make_exe_filter(
    ignore: Sequence[str] = DEFAULT_EXE_IGNORE,
    extensions: Sequence[str] = EXECUTABLE_EXTENSIONS,
) -> Callable[[str], bool]:
    """Build the predicate deciding whether a file is a game executable candidate."""
    ignore = tuple(s.lower() for s in ignore)
    extensions = tuple(e.lower() for e in extensions)

    def is_candidate(filename: str) -> bool:
        base = os.path.basename(filename).lower()
        if not base.endswith(extensions):
            return False
        return not any(marker in base for marker in ignore)

    return is_candidate


def iter_files(root: str, max_depth: int) -> Iterator[os.DirEntry]:
    """Yield files under ``root`` down to ``max_depth`` directory levels below it.

    Unreadable directories are skipped.
    """
    stack = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError:
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if depth < max_depth:
                        stack.append((entry.path, depth + 1))
                elif entry.is_file():
                    yield entry
            except OSError:
                continue


def pick_main_executable(
    game_dir: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    is_candidate: Optional[Callable[[str], bool]] = None,
) -> Optional[str]:
    """Return the largest candidate executable inside ``game_dir``, if any."""
    is_candidate = is_candidate or make_exe_filter()

    best_path = None
    best_size = -1
    for entry in iter_files(game_dir, max_depth):
        if not is_candidate(entry.name):
            continue
        try:
            size = entry.stat().st_size
        except OSError:
            continue
        if size > best_size:
            best_path, best_size = entry.path, size

    return best_path


def scan_folders(
    folders: Iterable[ScanRoot],
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore: Sequence[str] = DEFAULT_EXE_IGNORE,
    extensions: Sequence[str] = EXECUTABLE_EXTENSIONS,
) -> List[GameCandidate]:
    """Scan library roots for installed games.

    Args:
        folders: Root folders, either plain paths (source ``custom``) or
            ``(path, source)`` pairs
        max_depth: How many directory levels below each game folder to search
        ignore: Lowercase substrings marking non-game executables
        extensions: Executable file extensions

    Returns:
        One GameCandidate per game folder that contains an executable
    """
    is_candidate = make_exe_filter(ignore, extensions)
    results: List[GameCandidate] = []
    seen = set()

    for folder in folders:
        root, source = (folder, 'custom') if isinstance(folder, str) else folder
        root = os.path.expanduser(root)
        if root in seen:
            continue
        seen.add(root)

        try:
            with os.scandir(root) as it:
                game_dirs = sorted(
                    (e for e in it if e.is_dir()),
                    key=lambda e: e.name.lower(),
                )
        except OSError:
            # Missing scan folders are expected (unplugged drive, store not installed)
            logger.debug(f"[Scanner] Skipping unreadable folder: {root}")
            continue

        for game_dir in game_dirs:
            exe_path = pick_main_executable(game_dir.path, max_depth, is_candidate)
            if not exe_path:
                continue
            results.append(GameCandidate(
                name=game_dir.name,
                exe_path=exe_path,
                start_dir=os.path.dirname(exe_path),
                source=source,
            ))

        logger.debug(f"[Scanner] {root}: {len(results)} games so far")

    logger.info(f"[Scanner] Found {len(results)} games in {len(seen)} folders")
    return results


def get_known_store_folders(platform_paths=None) -> List[Tuple[str, str]]:
    """Well-known Epic/GOG install roots as (path, source) pairs."""
    return (platform_paths or PlatformPaths()).get_known_store_folders()
