"""External media player discovery and launch."""

import logging
import os
import shutil
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass, field

from deckflix.exceptions import NoPlayerFound

log = logging.getLogger(__name__)

INSTALL_HINTS = "No video player found. Please install mpv or vlc (e.g. 'sudo pacman -S mpv' or 'flatpak install org.videolan.VLC')."


def build_mpv_args(
    executable: str,
    target: str,
    title: str | None = None,
    extra_args: list[str] | None = None,
) -> list[str]:
    """Build mpv command arguments."""
    args = [executable, "--force-window=yes", "--no-ytdl", "--cache=yes"]

    # mpv takes --flag=value
    if title:
        args.append(f"--title={title}")

    if extra_args:
        args.extend(extra_args)

    args.append(target)
    return args


def build_vlc_args(
    executable: str,
    target: str,
    title: str | None = None,
    extra_args: list[str] | None = None,
) -> list[str]:
    """Build VLC command arguments."""
    args = [executable, "--no-repeat", "--no-loop", "--quiet", "--network-caching=1000"]

    # VLC takes --flag value
    if title:
        args.extend(["--meta-title", title])

    if extra_args:
        args.extend(extra_args)

    args.append(target)
    return args


def build_opener_args(
    executable: str,
    target: str,
    title: str | None = None,
    extra_args: list[str] | None = None,
) -> list[str]:
    """System opener (xdg-open / open): no title support."""
    return [executable, target]


@dataclass
class PlayerSpec:
    """One entry of the launch fallback chain."""
    name: str
    paths: list[str]
    build_args: Callable[..., list[str]]
    prefix: list[str] = field(default_factory=list)


def player_chain(preferred: str | None = None) -> list[PlayerSpec]:
    """Platform-ordered players to try; `preferred` is moved to the front."""
    if os.name == "nt":
        vlc_paths = [
            "vlc",
            "vlc.exe",
            r"C:\Program Files\VideoLAN\VLC\vlc.exe",
            r"C:\Program Files (x86)\VideoLAN\VLC\vlc.exe",
        ]
        app_data = os.environ.get("APPDATA")
        if app_data:
            vlc_paths.append(os.path.join(app_data, "VLC", "vlc.exe"))
        chain = [
            PlayerSpec("mpv", ["mpv", "mpv.exe"], build_mpv_args),
            PlayerSpec("vlc", vlc_paths, build_vlc_args),
        ]
    elif sys.platform == "darwin":
        chain = [
            PlayerSpec("mpv", ["mpv", "/opt/homebrew/bin/mpv", "/usr/local/bin/mpv"], build_mpv_args),
            PlayerSpec("vlc", ["vlc", "/Applications/VLC.app/Contents/MacOS/VLC"], build_vlc_args),
            PlayerSpec("open", ["open"], build_opener_args),
        ]
    else:
        chain = [
            PlayerSpec("mpv", ["mpv"], build_mpv_args),
            PlayerSpec("vlc", ["vlc"], build_vlc_args),
            # Steam Deck ships VLC as a flatpak
            PlayerSpec("vlc-flatpak", ["flatpak"], build_vlc_args, prefix=["run", "org.videolan.VLC"]),
            PlayerSpec("xdg-open", ["xdg-open"], build_opener_args),
        ]

    if preferred:
        chain.sort(key=lambda spec: not spec.name.startswith(preferred))
    return chain


def find_player(spec: PlayerSpec) -> str | None:
    """Find player executable path."""
    for p in spec.paths:
        if shutil.which(p):
            return p
        # Also check if file exists directly
        if os.path.isfile(p):
            return p
    return None


def get_available_players(preferred: str | None = None) -> list[str]:
    """Get list of available players."""
    return [spec.name for spec in player_chain(preferred) if find_player(spec)]


def launch_player(
    target: str,
    title: str | None = None,
    preferred: str | None = None,
    extra_args: dict[str, list[str]] | None = None,
) -> tuple[str, subprocess.Popen]:
    """
    Spawn the first player in the chain that starts. The process is not waited on.

    Raises:
        NoPlayerFound: every candidate was missing or failed to spawn.
    """
    extra_args = extra_args or {}
    for spec in player_chain(preferred):
        executable = find_player(spec)
        if not executable:
            log.debug("Player %s not installed", spec.name)
            continue

        args = spec.build_args(executable, target, title, extra_args.get(spec.name.split("-")[0]))
        if spec.prefix:
            args = [args[0], *spec.prefix, *args[1:]]

        try:
            process = subprocess.Popen(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=(os.name != "nt"),
            )
        except OSError as e:
            log.warning("Failed to start %s: %s", spec.name, e)
            continue

        log.info("Launched %s (PID: %s)", spec.name, process.pid)
        return spec.name, process

    raise NoPlayerFound(INSTALL_HINTS)
