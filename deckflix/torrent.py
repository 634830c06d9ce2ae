"""Torrent downloader process supervision (peerflix)."""

import asyncio
import enum
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from deckflix.exceptions import DownloaderNotFound
from deckflix.magnet import parse_magnet

log = logging.getLogger(__name__)

DEFAULT_PORT = 8888
PROBE_TIMEOUT = 15
STOP_TIMEOUT = 5
INSTALL_HINT = "Install with: npm install -g peerflix"


def downloader_candidates() -> list[str]:
    """Executable names/paths to probe, in order."""
    if os.name == "nt":
        paths = ["peerflix.cmd", "peerflix"]
        app_data = os.environ.get("APPDATA")
        if app_data:
            paths.append(os.path.join(app_data, "npm", "peerflix.cmd"))
        return paths

    home = Path.home()
    return [
        "peerflix",
        str(home / ".npm-global" / "bin" / "peerflix"),
        str(home / ".local" / "bin" / "peerflix"),
        "/usr/local/bin/peerflix",
    ]


def probe_downloader(candidate: str) -> str | None:
    """Return the resolved executable if `candidate --help` runs, else None."""
    path = shutil.which(candidate)
    if not path and os.path.isfile(candidate):
        path = candidate
    if not path:
        return None
    try:
        subprocess.run(
            [path, "--help"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=PROBE_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("Downloader probe failed for %s: %s", candidate, e)
        return None
    return path


def find_downloader(candidates: list[str] | None = None) -> str | None:
    """Find the first working downloader executable."""
    for candidate in candidates or downloader_candidates():
        path = probe_downloader(candidate)
        if path:
            log.debug("Downloader found: %s", path)
            return path
    return None


def build_downloader_args(
    executable: str,
    magnet: str,
    output_dir: Path,
    port: int = DEFAULT_PORT,
    file_index: int | None = None,
) -> list[str]:
    """Build peerflix command arguments."""
    args = [
        executable,
        magnet,
        "--port", str(port),
        "--path", str(output_dir),
        "--not-on-top",  # sequential-friendly piece order for playback
        "--quiet",
    ]
    if file_index is not None:
        args.extend(["--index", str(file_index)])
    return args


class SupervisorState(enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class PlaybackSession:
    """The one live acquisition: which torrent, which file, which process."""
    info_hash: str
    file_index: int | None
    process: subprocess.Popen
    output_dir: Path
    media_path: Path | None = None

    @property
    def alive(self) -> bool:
        return self.process.poll() is None


class ProcessSupervisor:
    """
    Owns at most one downloader process.

    `start` always stops the previous session first, so the app never has two
    downloaders running. Use as an async context manager to guarantee the
    process is released on every exit path.
    """

    def __init__(
        self,
        download_dir: Path | str,
        port: int = DEFAULT_PORT,
        candidates: list[str] | None = None,
    ):
        self.download_dir = Path(download_dir)
        self.port = port
        self.candidates = candidates
        self.state = SupervisorState.IDLE
        self._session: PlaybackSession | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    @property
    def is_running(self) -> bool:
        return self.state is SupervisorState.RUNNING

    def output_dir_for(self, info_hash: str) -> Path:
        return self.download_dir / info_hash.lower()

    async def __aenter__(self) -> "ProcessSupervisor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self, magnet: str) -> PlaybackSession:
        """
        Start downloading `magnet`, replacing any running session.

        Raises:
            InvalidMagnet: the URI has no usable info-hash.
            DownloaderNotFound: no candidate executable answered `--help`.
        """
        info_hash, file_index = parse_magnet(magnet)

        async with self._lock:
            await self._stop_locked()
            self.state = SupervisorState.STARTING
            try:
                executable = await asyncio.to_thread(find_downloader, self.candidates)
                if not executable:
                    raise DownloaderNotFound(f"Peerflix not installed. {INSTALL_HINT}")

                output_dir = self.output_dir_for(info_hash)
                args = build_downloader_args(executable, magnet, output_dir, self.port, file_index)
                log.info("Starting downloader for %s", info_hash)
                log.debug("Command: %s", args)
                process = subprocess.Popen(
                    args,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except BaseException:
                self.state = SupervisorState.IDLE
                raise

            self._session = PlaybackSession(
                info_hash=info_hash,
                file_index=file_index,
                process=process,
                output_dir=output_dir,
            )
            self.state = SupervisorState.RUNNING
            log.info("Downloader started (PID: %s), output: %s", process.pid, output_dir)
            return self._session

    async def stop(self) -> None:
        """Terminate the running downloader. No-op when idle."""
        async with self._lock:
            await self._stop_locked()

    async def _stop_locked(self) -> None:
        session = self._session
        if session is None:
            self.state = SupervisorState.IDLE
            return

        self.state = SupervisorState.STOPPING
        process = session.process
        try:
            if process.poll() is None:
                log.info("Terminating downloader (PID: %s)", process.pid)
                process.terminate()
                try:
                    await asyncio.to_thread(process.wait, STOP_TIMEOUT)
                except subprocess.TimeoutExpired:
                    log.warning("Downloader ignored terminate, killing (PID: %s)", process.pid)
                    process.kill()
                    await asyncio.to_thread(process.wait)
            log.debug("Downloader exit status: %s", process.returncode)
        except ProcessLookupError:
            pass
        finally:
            self._session = None
            self.state = SupervisorState.IDLE


def sweep_downloaders() -> None:
    """
    Force-kill any downloader left behind, by process name.

    Runs at shutdown independently of the supervisor's own handle so a
    process leaked by an earlier run is cleaned up too.
    """
    if os.name == "nt":
        args = ["taskkill", "/F", "/IM", "peerflix.exe"]
    else:
        args = ["pkill", "-f", "peerflix"]
    try:
        subprocess.run(args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, timeout=PROBE_TIMEOUT)
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("Downloader sweep failed: %s", e)
