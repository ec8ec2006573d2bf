"""Steam client process detection, shutdown and relaunch."""

import asyncio
import logging
import subprocess
import sys
from typing import List, Optional

import psutil

from steam_syncer.utils.paths import get_steam_executable

logger = logging.getLogger(__name__)

STEAM_PROCESS_NAMES = ('steam', 'steam.exe')

# Command-line markers of Steam running in Big Picture / gamepad UI
BIG_PICTURE_MARKERS = ('-gamepadui', '-bigpicture', '-tenfoot', 'steam://open/bigpicture')

LAUNCH_MODES = ('normal', 'bigpicture')

# Seconds to wait for Steam to exit after terminate() before killing it
CLOSE_TIMEOUT = 15


class SteamProcessController:
    """Finds, closes and launches the Steam client."""

    def __init__(self, platform: Optional[str] = None, close_timeout: float = CLOSE_TIMEOUT):
        self.platform = platform or sys.platform
        self.close_timeout = close_timeout
        # Steam processes we started; polled so they do not linger as zombies
        self._children: List[subprocess.Popen] = []

    def _reap_children(self) -> None:
        self._children = [child for child in self._children if child.poll() is None]

    def _find_processes(self) -> List[psutil.Process]:
        self._reap_children()
        found = []
        for proc in psutil.process_iter(['pid', 'name', 'status']):
            try:
                name = (proc.info['name'] or '').lower()
                if proc.info['status'] in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                    continue
                if name in STEAM_PROCESS_NAMES:
                    found.append(proc)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        return found

    async def is_running(self) -> bool:
        loop = asyncio.get_running_loop()
        processes = await loop.run_in_executor(None, self._find_processes)
        return bool(processes)

    async def detect_mode(self) -> str:
        """Return 'bigpicture' if a running Steam was started in gamepad UI, else 'normal'."""
        loop = asyncio.get_running_loop()
        processes = await loop.run_in_executor(None, self._find_processes)
        for proc in processes:
            try:
                cmdline = ' '.join(proc.cmdline()).lower()
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            if any(marker in cmdline for marker in BIG_PICTURE_MARKERS):
                return 'bigpicture'
        return 'normal'

    def _close_sync(self) -> None:
        processes = self._find_processes()
        for proc in processes:
            try:
                proc.terminate()
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                logger.warning(f"[SteamProcess] Could not terminate pid {proc.pid}: {e}")

        _, alive = psutil.wait_procs(processes, timeout=self.close_timeout)
        for proc in alive:
            logger.warning(f"[SteamProcess] Steam pid {proc.pid} did not exit, killing")
            try:
                proc.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                logger.warning(f"[SteamProcess] Could not kill pid {proc.pid}: {e}")

    async def close(self) -> None:
        """Ask Steam to exit, killing it if it is still running after the timeout."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._close_sync)
        logger.info("[SteamProcess] Steam closed")

    def _spawn(self, steam_path: str, args: List[str]) -> bool:
        exe = get_steam_executable(steam_path, self.platform)
        if not exe.exists():
            logger.error(f"[SteamProcess] Steam executable not found: {exe}")
            return False

        kwargs = {'stdout': subprocess.DEVNULL, 'stderr': subprocess.DEVNULL}
        if self.platform == 'win32':
            kwargs['creationflags'] = getattr(subprocess, 'DETACHED_PROCESS', 0)
        else:
            kwargs['start_new_session'] = True

        self._reap_children()
        self._children.append(subprocess.Popen([str(exe), *args], **kwargs))
        return True

    async def _spawn_async(self, steam_path: str, args: List[str]) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._spawn, steam_path, args)

    async def launch(self, steam_path: str) -> bool:
        logger.info("[SteamProcess] Launching Steam")
        return await self._spawn_async(steam_path, [])

    async def launch_big_picture(self, steam_path: str) -> bool:
        logger.info("[SteamProcess] Launching Steam in Big Picture mode")
        return await self._spawn_async(steam_path, ['-gamepadui'])

    async def relaunch(self, steam_path: str, mode: str) -> bool:
        if mode not in LAUNCH_MODES:
            logger.warning(f"[SteamProcess] Unknown launch mode '{mode}', launching normally")
        if mode == 'bigpicture':
            return await self.launch_big_picture(steam_path)
        return await self.launch(steam_path)
