from __future__ import annotations

from steam_syncer.utils.appid import (
    build_entry_key,
    build_shortcut_key,
    compute_app_id,
    compute_shortcut_app_id,
    get_shortcut_app_id,
    quote_path,
    to_signed,
    to_unsigned,
    unquote_path,
)


def test_compute_app_id_matches_steam() -> None:
    assert compute_app_id("Test Game", '"C:\\Games\\Test\\game.exe"') == 3024975092
    assert compute_app_id("Celeste", '"/games/Celeste/Celeste.exe"') == 3353399555


def test_compute_app_id_sets_high_bit() -> None:
    for name in ("a", "Hollow Knight", "Ünïcödé"):
        app_id = compute_app_id(name, '"/x/y.exe"')
        assert app_id & 0x80000000
        assert 0 <= app_id <= 0xFFFFFFFF


def test_compute_app_id_is_case_insensitive() -> None:
    assert compute_app_id("CELESTE", '"/GAMES/celeste/CELESTE.exe"') == 3353399555


def test_compute_shortcut_app_id_matches_compute_app_id() -> None:
    entry = {"appname": "Test Game", "exe": '"C:\\\\Games\\\\Test\\\\game.exe"'}
    assert compute_shortcut_app_id(entry) == compute_app_id(entry["appname"], entry["exe"])


def test_compute_shortcut_app_id_reads_legacy_name() -> None:
    entry = {"AppName": "Celeste", "exe": '"/games/Celeste/Celeste.exe"'}
    assert compute_shortcut_app_id(entry) == 3353399555


def test_signed_conversion() -> None:
    assert to_signed(3024975092) == 3024975092 - 2**32
    assert to_unsigned(to_signed(3024975092)) == 3024975092
    assert to_signed(5) == 5
    assert to_unsigned(5) == 5


def test_get_shortcut_app_id_normalizes_signed_value() -> None:
    assert get_shortcut_app_id({"appid": to_signed(3353399555)}) == 3353399555
    assert get_shortcut_app_id({"appid": 3353399555}) == 3353399555
    assert get_shortcut_app_id({}) is None
    assert get_shortcut_app_id({"appid": "garbage"}) is None


def test_quote_helpers() -> None:
    assert quote_path("/games/a.exe") == '"/games/a.exe"'
    assert quote_path('"/games/a.exe"') == '"/games/a.exe"'
    assert unquote_path(' "/games/a.exe" ') == "/games/a.exe"
    assert unquote_path("") == ""


def test_shortcut_key_ignores_case_and_quotes() -> None:
    assert build_shortcut_key("Celeste", '"/Games/Celeste.exe"') == "celeste::/games/celeste.exe"
    assert build_shortcut_key("Celeste", "/Games/Celeste.exe") == build_entry_key(
        {"appname": "CELESTE", "exe": '"/games/celeste.exe"'}
    )
