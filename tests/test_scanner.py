from __future__ import annotations

from pathlib import Path

from conftest import write_exe
from steam_syncer.stores.scanner import make_exe_filter, pick_main_executable, scan_folders


def test_scan_two_folders(tmp_path: Path) -> None:
    lib_a = tmp_path / "LibA"
    lib_b = tmp_path / "LibB"
    write_exe(lib_a / "Alpha" / "game.exe", 1000)
    write_exe(lib_a / "Alpha" / "Setup.exe", 5000)
    write_exe(lib_b / "Beta" / "game.exe", 1000)
    write_exe(lib_b / "Beta" / "Setup.exe", 5000)

    games = scan_folders([str(lib_a), str(lib_b)])

    assert [g.name for g in games] == ["Alpha", "Beta"]
    for game in games:
        assert Path(game.exe_path).name == "game.exe"
        assert game.start_dir == str(Path(game.exe_path).parent)
        assert game.source == "custom"


def test_scan_picks_largest_executable(tmp_path: Path) -> None:
    game_dir = tmp_path / "Lib" / "Gamma"
    write_exe(game_dir / "small.exe", 10)
    write_exe(game_dir / "bin" / "big.exe", 500)
    write_exe(game_dir / "unins000.exe", 9000)

    games = scan_folders([str(tmp_path / "Lib")])

    assert len(games) == 1
    assert Path(games[0].exe_path).name == "big.exe"
    assert games[0].start_dir == str(game_dir / "bin")


def test_scan_respects_max_depth(tmp_path: Path) -> None:
    lib = tmp_path / "Lib"
    write_exe(lib / "Deep" / "a" / "b" / "c" / "game.exe", 100)

    assert scan_folders([str(lib)], max_depth=2) == []
    assert len(scan_folders([str(lib)], max_depth=3)) == 1


def test_scan_skips_missing_folder_and_dedupes_roots(tmp_path: Path) -> None:
    lib = tmp_path / "Lib"
    write_exe(lib / "Alpha" / "game.exe", 100)

    games = scan_folders([str(tmp_path / "missing"), str(lib), (str(lib), "epic")])

    assert len(games) == 1


def test_scan_uses_root_source(tmp_path: Path) -> None:
    lib = tmp_path / "Epic"
    write_exe(lib / "Fortnite" / "game.exe", 100)

    games = scan_folders([(str(lib), "epic")])

    assert games[0].source == "epic"


def test_folder_without_executable_is_skipped(tmp_path: Path) -> None:
    lib = tmp_path / "Lib"
    (lib / "Docs").mkdir(parents=True)
    (lib / "Docs" / "readme.txt").write_text("hi")
    write_exe(lib / "Redist" / "vc_redist.x64.exe", 100)

    assert scan_folders([str(lib)]) == []


def test_exe_filter() -> None:
    is_candidate = make_exe_filter()
    assert is_candidate("Game.EXE")
    assert not is_candidate("UnityCrashReporter.exe")
    assert not is_candidate("EpicLauncher.exe")
    assert not is_candidate("EasyAntiCheat_Setup.exe")
    assert not is_candidate("game.dll")


def test_pick_main_executable_empty(tmp_path: Path) -> None:
    assert pick_main_executable(str(tmp_path)) is None
