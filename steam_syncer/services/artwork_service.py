"""
ArtworkService - Fetches and normalizes shortcut artwork.

Responsibilities:
- Decide which of the five artwork kinds are missing (or wrong-sized) for an AppID
- Look the game up on SteamGridDB and download the preferred image per kind
- Resize/re-encode downloads to the exact size Steam displays
- Move artwork files when a shortcut's AppID changes
"""

import io
import os
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtworkKind:
    name: str
    suffix: str
    size: Optional[Tuple[int, int]]  # exact pixel size, None = any
    mode: str  # 'fill', 'fit' or 'none'


ARTWORK_KINDS: Dict[str, ArtworkKind] = {
    'grid': ArtworkKind('grid', '_p', (600, 900), 'fill'),
    'gridWide': ArtworkKind('gridWide', '', (460, 215), 'fill'),
    'hero': ArtworkKind('hero', '_hero', (3840, 1240), 'fill'),
    'logo': ArtworkKind('logo', '_logo', None, 'none'),
    'icon': ArtworkKind('icon', '_icon', (256, 256), 'fit'),
}

ACCEPTED_EXTENSIONS = ('png', 'jpg', 'jpeg')
LEGACY_EXTENSION = 'webp'


@dataclass
class ArtworkResult:
    downloaded: int = 0
    attempted: int = 0
    files: Dict[str, str] = field(default_factory=dict)

    @property
    def skipped(self) -> bool:
        return self.attempted == 0


def artwork_path(art_dir: str, app_id: int, kind: str, ext: str = 'png') -> str:
    return os.path.join(art_dir, f"{app_id}{ARTWORK_KINDS[kind].suffix}.{ext}")


def _has_expected_size(path: str, size: Optional[Tuple[int, int]]) -> bool:
    if size is None:
        return True
    try:
        with Image.open(path) as img:
            return img.size == size
    except (OSError, ValueError, Image.DecompressionBombError):
        # Unreadable images count as missing
        return False


def find_artwork_file(art_dir: str, app_id: int, kind: str) -> Optional[str]:
    """Return the first existing, correctly sized file for ``kind``, or None."""
    art = ARTWORK_KINDS[kind]
    for ext in ACCEPTED_EXTENSIONS:
        path = artwork_path(art_dir, app_id, kind, ext)
        if os.path.isfile(path) and _has_expected_size(path, art.size):
            return path
    return None


def _remove_orphaned_legacy_file(art_dir: str, app_id: int, kind: str) -> None:
    legacy = artwork_path(art_dir, app_id, kind, LEGACY_EXTENSION)
    if not os.path.isfile(legacy):
        return
    if any(os.path.exists(artwork_path(art_dir, app_id, kind, ext)) for ext in ACCEPTED_EXTENSIONS):
        return
    try:
        os.remove(legacy)
        logger.debug(f"[Artwork] Removed orphaned {legacy}")
    except OSError:
        pass


def get_missing_artwork(art_dir: str, app_id: int) -> Set[str]:
    """Check which artwork kinds are missing for this AppID.

    A kind is present when ``{app_id}{suffix}.{png,jpg,jpeg}`` exists and,
    for sized kinds, decodes to exactly the expected dimensions. Orphaned
    ``.webp`` leftovers are deleted along the way.
    """
    missing = set()
    for kind in ARTWORK_KINDS:
        _remove_orphaned_legacy_file(art_dir, app_id, kind)
        if find_artwork_file(art_dir, app_id, kind) is None:
            missing.add(kind)
    return missing


def get_artwork_paths(art_dir: str, app_id: int) -> Dict[str, Optional[str]]:
    return {kind: find_artwork_file(art_dir, app_id, kind) for kind in ARTWORK_KINDS}


def resize_by_kind(img: Image.Image, kind: str) -> Image.Image:
    """Resize an image to the size Steam expects for ``kind``.

    Cover, wide cover and hero are cropped to fill their box; icons are
    scaled to fit 256x256 and padded with transparency; logos are untouched.
    """
    art = ARTWORK_KINDS[kind]
    if img.mode != 'RGBA':
        img = img.convert('RGBA')

    if art.mode == 'fill':
        return ImageOps.fit(img, art.size, Image.Resampling.LANCZOS)

    if art.mode == 'fit':
        contained = ImageOps.contain(img, art.size, Image.Resampling.LANCZOS)
        canvas = Image.new('RGBA', art.size, (0, 0, 0, 0))
        offset = ((art.size[0] - contained.width) // 2, (art.size[1] - contained.height) // 2)
        canvas.paste(contained, offset)
        return canvas

    return img


def normalize_image(data: bytes, kind: str) -> bytes:
    """Decode downloaded bytes, resize for ``kind`` and re-encode as PNG."""
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        out = resize_by_kind(img, kind)
    buffer = io.BytesIO()
    out.save(buffer, 'PNG')
    return buffer.getvalue()


def write_artwork(art_dir: str, app_id: int, kind: str, png: bytes) -> str:
    """Write PNG bytes to ``{app_id}{suffix}.png``, replacing older files of that kind."""
    os.makedirs(art_dir, exist_ok=True)
    target = artwork_path(art_dir, app_id, kind)
    tmp = target + '.tmp'
    with open(tmp, 'wb') as f:
        f.write(png)
    os.replace(tmp, target)

    for ext in ACCEPTED_EXTENSIONS[1:]:
        stale = artwork_path(art_dir, app_id, kind, ext)
        if os.path.exists(stale):
            try:
                os.remove(stale)
            except OSError as e:
                logger.debug(f"[Artwork] Could not remove {stale}: {e}")
    return target


def rename_artwork_files(art_dir: str, old_app_id: int, new_app_id: int) -> int:
    """Move artwork from an old AppID to a new one without overwriting.

    Returns the number of files renamed.
    """
    if old_app_id == new_app_id or not os.path.isdir(art_dir):
        return 0

    renamed = 0
    for art in ARTWORK_KINDS.values():
        for ext in ACCEPTED_EXTENSIONS:
            src = os.path.join(art_dir, f"{old_app_id}{art.suffix}.{ext}")
            dst = os.path.join(art_dir, f"{new_app_id}{art.suffix}.{ext}")
            if not os.path.exists(src) or os.path.exists(dst):
                continue
            try:
                os.rename(src, dst)
                renamed += 1
            except OSError as e:
                logger.warning(f"[Artwork] Failed to rename {src} -> {dst}: {e}")

    if renamed:
        logger.info(f"[Artwork] Moved {renamed} artwork files {old_app_id} -> {new_app_id}")
    return renamed


class ArtworkService:
    """Service for fetching and managing shortcut artwork."""

    def __init__(self, steamgriddb_client):
        """
        Args:
            steamgriddb_client: SteamGridDBClient used for search, queries and downloads
        """
        self.steamgriddb = steamgriddb_client

    async def close(self):
        await self.steamgriddb.close()

    async def get_missing_artwork(self, art_dir: str, app_id: int) -> Set[str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, get_missing_artwork, art_dir, app_id)

    async def get_artwork_paths(self, art_dir: str, app_id: int) -> Dict[str, Optional[str]]:
        """Paths of the valid artwork files per kind (None where missing)."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, get_artwork_paths, art_dir, app_id)

    async def search_game(self, title: str) -> Optional[int]:
        """Search SteamGridDB for a game id; failures are logged and return None."""
        try:
            return await self.steamgriddb.search_game(title)
        except Exception as e:
            logger.warning(f"[Artwork] SteamGridDB search failed for '{title}': {e}")
            return None

    async def fetch_kind(self, sgdb_game_id: int, kind: str, art_dir: str, app_id: int) -> Optional[str]:
        """Fetch, normalize and write one artwork kind. Returns the file path or None."""
        url = await self.steamgriddb.get_image_url(sgdb_game_id, kind)
        if not url:
            logger.debug(f"[Artwork] No {kind} artwork for SteamGridDB game {sgdb_game_id}")
            return None

        data = await self.steamgriddb.download_image(url)

        loop = asyncio.get_running_loop()
        png = await loop.run_in_executor(None, normalize_image, data, kind)
        return await loop.run_in_executor(None, write_artwork, art_dir, app_id, kind, png)

    async def fetch_artwork_set(self, game_name: str, art_dir: str, app_id: int) -> ArtworkResult:
        """Download every missing artwork kind for one shortcut.

        Never raises: a failed search skips the game, a failed kind is
        counted as attempted and the remaining kinds still run.
        """
        missing = await self.get_missing_artwork(art_dir, app_id)
        result = ArtworkResult()
        paths = await self.get_artwork_paths(art_dir, app_id)
        result.files = {k: p for k, p in paths.items() if p}

        if not missing:
            logger.debug(f"[Artwork] {game_name} ({app_id}): artwork complete, skipping")
            return result

        result.attempted = len(missing)

        sgdb_game_id = await self.search_game(game_name)
        if not sgdb_game_id:
            logger.info(f"[Artwork] {game_name}: not found on SteamGridDB, skipping")
            return result

        for kind in ARTWORK_KINDS:
            if kind not in missing:
                continue
            try:
                path = await self.fetch_kind(sgdb_game_id, kind, art_dir, app_id)
            except Exception as e:
                logger.warning(f"[Artwork] {game_name}: failed to fetch {kind}: {e}")
                continue
            if path:
                result.files[kind] = path
                result.downloaded += 1

        logger.info(f"[Artwork] {game_name} ({app_id}): {result.downloaded}/{result.attempted} downloaded")
        return result
