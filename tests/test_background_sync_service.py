"""
Tests for the Steam launch watcher.
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from steam_syncer.controllers.background_sync_service import BackgroundSyncService


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def app():
    return Mock(is_syncing=False, trigger_sync=AsyncMock())


@pytest.fixture
def steam_process():
    return Mock(is_running=AsyncMock(return_value=True))


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def watcher(app, steam_process, clock):
    return BackgroundSyncService(app, steam_process, clock=clock)


@pytest.mark.asyncio
async def test_triggers_when_steam_running(watcher, app):
    assert await watcher.check_once() is True
    app.trigger_sync.assert_awaited_once()


@pytest.mark.asyncio
async def test_cooldown_between_syncs(watcher, app, clock):
    await watcher.check_once()
    clock.now += 60
    assert await watcher.check_once() is False
    clock.now += 5 * 60
    assert await watcher.check_once() is True
    assert app.trigger_sync.await_count == 2


@pytest.mark.asyncio
async def test_no_sync_when_steam_not_running(watcher, app, steam_process):
    steam_process.is_running.return_value = False
    assert await watcher.check_once() is False
    app.trigger_sync.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_sync_while_syncing(watcher, app, steam_process):
    app.is_syncing = True
    assert await watcher.check_once() is False
    steam_process.is_running.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_and_stop(app, steam_process, clock):
    watcher = BackgroundSyncService(app, steam_process, poll_interval=0.01, clock=clock)

    await watcher.start()
    await asyncio.sleep(0.05)
    await watcher.stop()

    assert watcher.running is False
    assert watcher.task is None
    app.trigger_sync.assert_awaited_once()


@pytest.mark.asyncio
async def test_cooldown_counts_from_end_of_long_sync(watcher, app, clock):
    async def slow_sync():
        clock.now += 6 * 60

    app.trigger_sync.side_effect = slow_sync

    assert await watcher.check_once() is True
    clock.now += 15
    assert await watcher.check_once() is False
    app.trigger_sync.assert_awaited_once()


@pytest.mark.asyncio
async def test_cooldown_restarts_when_sync_fails(watcher, app, clock):
    async def failing_sync():
        clock.now += 6 * 60
        raise RuntimeError("boom")

    app.trigger_sync.side_effect = failing_sync

    with pytest.raises(RuntimeError):
        await watcher.check_once()
    assert watcher.launch_handled_at == clock.now


@pytest.mark.asyncio
async def test_mark_handled_starts_cooldown(watcher, app, clock):
    watcher.mark_handled()
    clock.now += 60
    assert await watcher.check_once() is False
    app.trigger_sync.assert_not_awaited()
