"""Data models for DeckFlix - shapes returned by the addon providers."""

from dataclasses import dataclass, field
from typing import Literal, Optional

ContentKind = Literal["movie", "series", "anime"]


@dataclass(frozen=True)
class ContentRecord:
    """Catalog entry (movie, series or anime)."""
    id: str
    name: str
    kind: ContentKind
    poster: Optional[str] = None
    background: Optional[str] = None
    description: Optional[str] = None
    year: Optional[str] = None
    rating: Optional[str] = None
    genre: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    director: tuple[str, ...] = ()
    runtime: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    # Series / anime only
    seasons: Optional[int] = None
    episodes: Optional[int] = None
    status: Optional[str] = None
    network: Optional[str] = None  # studio for anime
    secondary_rating: Optional[str] = None  # MyAnimeList rating
    sub_type: Optional[str] = None  # TV, Movie, OVA...


@dataclass
class SearchResult:
    """Slim search hit. `kind` may be promoted to anime once, before results are returned."""
    id: str
    name: str
    kind: ContentKind
    poster: Optional[str] = None
    year: Optional[str] = None
    rating: Optional[str] = None
    description: Optional[str] = None


@dataclass
class StreamCandidate:
    """Playable stream option."""
    title: str
    url: str
    source: str = "direct"  # "torrent", "direct" or the addon's own tag
    name: Optional[str] = None
    quality: Optional[str] = None  # "1080P", "WEBRIP", ...
    size: Optional[str] = None
    seeders: Optional[int] = None
    leechers: Optional[int] = None
    language: Optional[str] = None
    subtitles: list[str] = field(default_factory=list)

    @property
    def is_magnet(self) -> bool:
        return self.url.startswith("magnet:")
