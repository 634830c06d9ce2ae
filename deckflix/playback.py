"""Turns a chosen stream into something an external player can open."""

import asyncio
import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from deckflix.exceptions import (
    AcquisitionCancelled,
    AcquisitionTimeout,
    DeckFlixError,
    InvalidMagnet,
)
from deckflix.player import launch_player
from deckflix.torrent import PlaybackSession, ProcessSupervisor

log = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v"})

T = TypeVar("T")


def find_largest_video(root: Path) -> Path | None:
    """Largest file with a video extension anywhere under `root`."""
    best: Path | None = None
    best_size = -1
    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.suffix.lower() not in VIDEO_EXTENSIONS:
                continue
            try:
                size = path.stat().st_size
            except OSError:
                continue
            if size > best_size:
                best, best_size = path, size
    return best


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


class PlaybackOrchestrator:
    """
    Drives one play request: start the downloader, wait for a video file,
    hand it to a player.

    Waits are a fixed interval times a fixed number of attempts. `cancel()`
    interrupts any wait immediately and stops the downloader.
    """

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        poll_interval: float = 1.0,
        dir_wait_attempts: int = 30,
        file_wait_attempts: int = 60,
        size_wait_attempts: int = 60,
        min_ready_bytes: int = 5 * 1024 * 1024,
        preferred_player: str | None = None,
        player_args: dict[str, list[str]] | None = None,
    ):
        self.supervisor = supervisor
        self.poll_interval = poll_interval
        self.dir_wait_attempts = dir_wait_attempts
        self.file_wait_attempts = file_wait_attempts
        self.size_wait_attempts = size_wait_attempts
        self.min_ready_bytes = min_ready_bytes
        self.preferred_player = preferred_player
        self.player_args = player_args or {}
        self.player_process: subprocess.Popen | None = None
        self._cancel = asyncio.Event()
        self._lock = asyncio.Lock()

    async def acquire_and_play(self, stream_url: str, title: str | None = None) -> str:
        """
        Play `stream_url` and return a status message.

        HTTP(S) URLs go straight to the player. Magnet URIs are downloaded
        first; the player gets the local file once it is large enough, or
        whatever exists when the size wait runs out.

        Raises:
            InvalidMagnet: neither an HTTP(S) URL nor a usable magnet.
            DownloaderNotFound: no torrent downloader installed.
            AcquisitionTimeout: no output directory or no video file in time.
            AcquisitionCancelled: `cancel()` was called while waiting.
            NoPlayerFound: no player could be spawned.
        """
        async with self._lock:
            self._cancel.clear()

            if stream_url.startswith(("http://", "https://")):
                player, self.player_process = launch_player(
                    stream_url, title, self.preferred_player, self.player_args
                )
                return f"Launched {player} with stream"

            if not stream_url.startswith("magnet:"):
                raise InvalidMagnet(f"Unsupported stream URL: {stream_url[:80]}")

            session = await self.supervisor.start(stream_url)
            try:
                video = await self._wait_for_video(session)
                session.media_path = video
                player, self.player_process = launch_player(
                    str(video), title, self.preferred_player, self.player_args
                )
            except (DeckFlixError, asyncio.CancelledError):
                await self.supervisor.stop()
                raise

            return f"Launched {player} with {video.name}"

    async def cancel(self) -> None:
        """Abort a pending acquisition and stop the downloader."""
        self._cancel.set()
        await self.supervisor.stop()

    async def _wait_for_video(self, session: PlaybackSession) -> Path:
        output_dir = session.output_dir

        log.info("Waiting for download directory %s", output_dir)
        if not await self._poll(output_dir.is_dir, self.dir_wait_attempts):
            raise AcquisitionTimeout(f"Download directory never appeared: {output_dir}")

        log.info("Waiting for a video file...")
        video = await self._poll(lambda: find_largest_video(output_dir), self.file_wait_attempts)
        if video is None:
            raise AcquisitionTimeout(f"No video file appeared under {output_dir}")

        def ready() -> Path | None:
            nonlocal video
            # A bigger file can show up once more metadata arrives
            video = find_largest_video(output_dir) or video
            return video if _file_size(video) >= self.min_ready_bytes else None

        if await self._poll(ready, self.size_wait_attempts) is None:
            log.warning(
                "%s is only %.1f MB after waiting, playing anyway",
                video.name, _file_size(video) / 1024 / 1024,
            )
        else:
            log.info("%s ready (%.1f MB)", video.name, _file_size(video) / 1024 / 1024)
        return video

    async def _poll(self, check: Callable[[], T], attempts: int) -> T | None:
        """Run `check` up to `attempts` times, sleeping between tries. Returns its first truthy result."""
        for attempt in range(attempts):
            result = check()
            if result:
                return result
            if attempt + 1 < attempts:
                await self._sleep()
        return None

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return
        raise AcquisitionCancelled("Playback cancelled")
