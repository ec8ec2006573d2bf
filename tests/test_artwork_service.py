"""
Tests for ArtworkService and the artwork file helpers.
"""
from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest
from PIL import Image

from steam_syncer.services.artwork_service import (
    ARTWORK_KINDS,
    ArtworkService,
    get_artwork_paths,
    get_missing_artwork,
    normalize_image,
    rename_artwork_files,
    resize_by_kind,
)
from steam_syncer.steamgriddb_client import CatalogError

APP_ID = 3353399555


def _png_bytes(size, color=(200, 30, 30, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, "PNG")
    return buffer.getvalue()


def _write_image(path: Path, size, fmt: str = "PNG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, (10, 20, 30)).save(path, fmt)
    return path


def _write_complete_set(art_dir: Path, app_id: int) -> None:
    for kind in ARTWORK_KINDS.values():
        _write_image(art_dir / f"{app_id}{kind.suffix}.png", kind.size or (400, 150))


@pytest.fixture
def mock_steamgriddb():
    """Create mock SteamGridDB client."""
    return Mock(
        search_game=AsyncMock(return_value=4242),
        get_image_url=AsyncMock(return_value="https://cdn.example/img.png"),
        download_image=AsyncMock(return_value=_png_bytes((1200, 1200))),
        close=AsyncMock(),
    )


@pytest.fixture
def artwork_service(mock_steamgriddb):
    return ArtworkService(mock_steamgriddb)


def test_missing_artwork_empty_dir(tmp_path: Path) -> None:
    assert get_missing_artwork(str(tmp_path), APP_ID) == set(ARTWORK_KINDS)


def test_correctly_sized_grid_is_present(tmp_path: Path) -> None:
    _write_image(tmp_path / f"{APP_ID}_p.png", (600, 900))

    missing = get_missing_artwork(str(tmp_path), APP_ID)

    assert "grid" not in missing
    assert missing == set(ARTWORK_KINDS) - {"grid"}


def test_wrong_size_and_corrupt_files_count_as_missing(tmp_path: Path) -> None:
    _write_image(tmp_path / f"{APP_ID}_p.png", (300, 450))
    (tmp_path / f"{APP_ID}_hero.png").write_bytes(b"not an image")
    _write_image(tmp_path / f"{APP_ID}_icon.jpg", (256, 256), "JPEG")
    _write_image(tmp_path / f"{APP_ID}_logo.png", (123, 45))

    missing = get_missing_artwork(str(tmp_path), APP_ID)

    assert missing == {"grid", "gridWide", "hero"}


def test_orphaned_webp_is_deleted(tmp_path: Path) -> None:
    orphan = tmp_path / f"{APP_ID}_p.webp"
    orphan.write_bytes(b"old")
    kept = tmp_path / f"{APP_ID}_hero.webp"
    kept.write_bytes(b"old")
    _write_image(tmp_path / f"{APP_ID}_hero.jpg", (3840, 1240), "JPEG")

    get_missing_artwork(str(tmp_path), APP_ID)

    assert not orphan.exists()
    assert kept.exists()


def test_resize_fill_kinds() -> None:
    img = Image.new("RGB", (1200, 1200))
    assert resize_by_kind(img, "grid").size == (600, 900)
    assert resize_by_kind(img, "gridWide").size == (460, 215)
    assert resize_by_kind(img, "hero").size == (3840, 1240)


def test_resize_icon_pads_with_transparency() -> None:
    icon = resize_by_kind(Image.new("RGB", (512, 256), (255, 0, 0)), "icon")

    assert icon.size == (256, 256)
    assert icon.mode == "RGBA"
    assert icon.getpixel((128, 0))[3] == 0
    assert icon.getpixel((128, 128)) == (255, 0, 0, 255)


def test_resize_logo_unchanged() -> None:
    assert resize_by_kind(Image.new("RGBA", (800, 310)), "logo").size == (800, 310)


def test_normalize_image_returns_png() -> None:
    out = normalize_image(_png_bytes((1000, 1000)), "gridWide")
    with Image.open(io.BytesIO(out)) as img:
        assert img.format == "PNG"
        assert img.size == (460, 215)


def test_rename_never_overwrites(tmp_path: Path) -> None:
    (tmp_path / "100_p.png").write_bytes(b"old grid")
    (tmp_path / "200_p.png").write_bytes(b"new grid")
    (tmp_path / "100_hero.jpg").write_bytes(b"old hero")

    assert rename_artwork_files(str(tmp_path), 100, 200) == 1

    assert (tmp_path / "200_p.png").read_bytes() == b"new grid"
    assert (tmp_path / "100_p.png").exists()
    assert (tmp_path / "200_hero.jpg").read_bytes() == b"old hero"
    assert not (tmp_path / "100_hero.jpg").exists()


def test_rename_missing_dir(tmp_path: Path) -> None:
    assert rename_artwork_files(str(tmp_path / "nope"), 1, 2) == 0


@pytest.mark.asyncio
async def test_fetch_artwork_set_downloads_all_missing(artwork_service, mock_steamgriddb, tmp_path: Path):
    result = await artwork_service.fetch_artwork_set("Celeste", str(tmp_path), APP_ID)

    assert result.attempted == 5
    assert result.downloaded == 5
    assert set(result.files) == set(ARTWORK_KINDS)
    mock_steamgriddb.search_game.assert_awaited_once_with("Celeste")
    assert get_missing_artwork(str(tmp_path), APP_ID) == set()
    with Image.open(tmp_path / f"{APP_ID}_icon.png") as icon:
        assert icon.size == (256, 256)


@pytest.mark.asyncio
async def test_fetch_artwork_set_skips_complete_set(artwork_service, mock_steamgriddb, tmp_path: Path):
    _write_complete_set(tmp_path, APP_ID)

    result = await artwork_service.fetch_artwork_set("Celeste", str(tmp_path), APP_ID)

    assert result.skipped
    assert result.attempted == 0
    assert result.files["icon"].endswith(f"{APP_ID}_icon.png")
    mock_steamgriddb.search_game.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_artwork_set_search_not_found(artwork_service, mock_steamgriddb, tmp_path: Path):
    mock_steamgriddb.search_game.return_value = None

    result = await artwork_service.fetch_artwork_set("Unknown", str(tmp_path), APP_ID)

    assert result.attempted == 5
    assert result.downloaded == 0
    mock_steamgriddb.get_image_url.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_artwork_set_search_error(artwork_service, mock_steamgriddb, tmp_path: Path):
    mock_steamgriddb.search_game.side_effect = CatalogError("HTTP 401")

    result = await artwork_service.fetch_artwork_set("Celeste", str(tmp_path), APP_ID)

    assert result.downloaded == 0
    assert result.attempted == 5


@pytest.mark.asyncio
async def test_fetch_artwork_set_continues_after_kind_failure(artwork_service, mock_steamgriddb, tmp_path: Path):
    async def image_url(game_id, kind):
        if kind == "hero":
            raise CatalogError("HTTP 500")
        if kind == "logo":
            return None
        return "https://cdn.example/img.png"

    mock_steamgriddb.get_image_url.side_effect = image_url

    result = await artwork_service.fetch_artwork_set("Celeste", str(tmp_path), APP_ID)

    assert result.attempted == 5
    assert result.downloaded == 3
    assert "hero" not in result.files
    assert "logo" not in result.files


@pytest.mark.asyncio
async def test_close_closes_client(artwork_service, mock_steamgriddb):
    await artwork_service.close()
    mock_steamgriddb.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_artwork_paths_reports_valid_files(artwork_service, tmp_path: Path):
    grid = _write_image(tmp_path / f"{APP_ID}_p.jpg", (600, 900), "JPEG")
    _write_image(tmp_path / f"{APP_ID}_hero.png", (100, 100))

    with patch("steam_syncer.services.artwork_service.get_artwork_paths",
               wraps=get_artwork_paths) as lookup:
        paths = await artwork_service.get_artwork_paths(str(tmp_path), APP_ID)

    lookup.assert_called_once_with(str(tmp_path), APP_ID)
    assert paths["grid"] == str(grid)
    assert paths["hero"] is None
    assert paths["icon"] is None
