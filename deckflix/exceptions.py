"""
Exceptions raised by DeckFlix so callers can tell provider hiccups apart from
whole-operation failures.
"""


class DeckFlixError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(DeckFlixError):
    """Raised when the configuration file holds values that cannot be used."""


class ProviderError(DeckFlixError):
    """A single provider request failed. Always recovered by trying the next one."""


class NetworkError(ProviderError):
    """Raised on transport failures: DNS, connection refused, timeouts."""


class UpstreamHttpError(ProviderError):
    """Raised when a provider answers with a non-2xx status."""

    def __init__(self, status: int, url: str):
        super().__init__(f"HTTP error: {status} for {url}")
        self.status = status
        self.url = url


class MalformedResponse(ProviderError):
    """Raised when a provider's JSON lacks the expected `metas`/`streams` array."""


class ItemParseError(DeckFlixError):
    """Raised for one malformed catalog or stream entry. Callers skip the entry."""


class AggregateEmptyError(DeckFlixError):
    """
    Raised when no provider produced a single usable record.

    `last_error` holds the most recent per-provider failure, if any.
    """

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


class InvalidMagnet(DeckFlixError):
    """Raised when a magnet URI carries no usable info-hash."""


class DownloaderNotFound(DeckFlixError):
    """Raised when no torrent downloader executable answers the capability probe."""


class AcquisitionTimeout(DeckFlixError):
    """Raised when the download directory or a video file never shows up."""


class AcquisitionCancelled(DeckFlixError):
    """Raised when the user backs out before a player was launched."""


class NoPlayerFound(DeckFlixError):
    """Raised when every candidate media player failed to spawn."""
