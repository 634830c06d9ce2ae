"""Provider table entries - one per upstream Stremio-style addon."""

from dataclasses import dataclass, field
from urllib.parse import quote


@dataclass(frozen=True)
class Capabilities:
    """What a provider can answer."""
    catalog: bool = True
    search: bool = True
    stream: bool = False


@dataclass(frozen=True)
class Provider:
    """An upstream addon and the endpoints it exposes."""
    name: str
    base_url: str
    capabilities: Capabilities = field(default_factory=Capabilities)

    @property
    def metadata_only(self) -> bool:
        return not self.capabilities.stream

    def catalog_url(self, content_type: str, catalog_id: str) -> str:
        """`GET {base}/catalog/{type}/{catalogId}.json`"""
        return f"{self._base}/catalog/{content_type}/{catalog_id}.json"

    def search_url(self, content_type: str, catalog_id: str, query: str) -> str:
        """`GET {base}/catalog/{type}/{catalogId}/search={query}.json`"""
        return f"{self._base}/catalog/{content_type}/{catalog_id}/search={quote(query, safe='')}.json"

    def stream_url(self, content_type: str, content_id: str) -> str:
        """`GET {base}/stream/{type}/{imdbId}.json`"""
        return f"{self._base}/stream/{content_type}/{content_id}.json"

    @property
    def _base(self) -> str:
        return self.base_url.rstrip("/")
