"""Configuration management for DeckFlix."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Literal

from deckflix.exceptions import ConfigurationError

log = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get config directory path."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home()))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "deckflix"


def default_download_dir() -> str:
    """Where the torrent downloader writes, one sub-directory per info-hash."""
    return str(Path(tempfile.gettempdir()) / "torrent-stream")


_NUMBER_FIELDS = (
    "request_timeout", "downloader_port", "poll_interval", "dir_wait_attempts",
    "file_wait_attempts", "size_wait_attempts", "min_ready_mb",
)


@dataclass
class Config:
    """DeckFlix configuration."""
    default_player: Literal["mpv", "vlc"] | None = None
    request_timeout: float = 10.0
    downloader_port: int = 8888
    download_dir: str = field(default_factory=default_download_dir)
    poll_interval: float = 1.0
    dir_wait_attempts: int = 30
    file_wait_attempts: int = 60
    size_wait_attempts: int = 60
    min_ready_mb: int = 5
    mpv_args: list[str] = field(default_factory=list)
    vlc_args: list[str] = field(default_factory=list)
    providers: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        for name in _NUMBER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        for name in ("mpv_args", "vlc_args", "providers"):
            if not isinstance(getattr(self, name), list):
                raise ConfigurationError(f"{name} must be a list")
        if not isinstance(self.download_dir, str):
            raise ConfigurationError("download_dir must be a path string")
        if self.default_player not in (None, "mpv", "vlc"):
            raise ConfigurationError(f"Unknown default_player: {self.default_player!r}")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.poll_interval < 0:
            raise ConfigurationError("poll_interval cannot be negative")
        for name in ("dir_wait_attempts", "file_wait_attempts", "size_wait_attempts"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")

    @property
    def min_ready_bytes(self) -> int:
        return self.min_ready_mb * 1024 * 1024


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file, falling back to defaults when it is missing or unreadable."""
    config_file = path or get_config_dir() / "config.json"

    if not config_file.exists():
        return Config()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log.warning("Failed to load config %s: %s", config_file, e)
        return Config()

    known = Config.__dataclass_fields__
    return Config(**{k: v for k, v in data.items() if k in known})


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    config_file = path or get_config_dir() / "config.json"
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2)
