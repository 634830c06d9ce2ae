"""Service object wiring the aggregation and playback components together."""

import asyncio
import logging

from deckflix.catalog import CatalogAggregator
from deckflix.config import Config
from deckflix.models import ContentKind, ContentRecord, SearchResult, StreamCandidate
from deckflix.playback import PlaybackOrchestrator
from deckflix.player import get_available_players
from deckflix.providers import ProviderFetcher, SourceRegistry
from deckflix.streams import StreamResolver
from deckflix.torrent import ProcessSupervisor, find_downloader, sweep_downloaders

log = logging.getLogger(__name__)


class DeckFlixService:
    """
    One instance per front end. Network operations share one client and are
    serialized on one lock; playback has its own lock through the orchestrator.
    """

    def __init__(
        self,
        config: Config,
        registry: SourceRegistry | None = None,
        fetcher: ProviderFetcher | None = None,
        supervisor: ProcessSupervisor | None = None,
    ):
        self.config = config
        self.registry = registry or SourceRegistry.from_config(config.providers)
        self.fetcher = fetcher or ProviderFetcher(timeout=config.request_timeout)
        self.catalog = CatalogAggregator(self.registry, self.fetcher)
        self.streams = StreamResolver(self.registry, self.fetcher)
        self.supervisor = supervisor or ProcessSupervisor(config.download_dir, port=config.downloader_port)
        self.playback = PlaybackOrchestrator(
            self.supervisor,
            poll_interval=config.poll_interval,
            dir_wait_attempts=config.dir_wait_attempts,
            file_wait_attempts=config.file_wait_attempts,
            size_wait_attempts=config.size_wait_attempts,
            min_ready_bytes=config.min_ready_bytes,
            preferred_player=config.default_player,
            player_args={"mpv": config.mpv_args, "vlc": config.vlc_args},
        )
        self._client_lock = asyncio.Lock()
        self._played = False

    async def __aenter__(self) -> "DeckFlixService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose(sweep=self._played)

    async def fetch_catalog(self, kind: ContentKind, catalog_name: str = "top") -> list[ContentRecord]:
        async with self._client_lock:
            return await self.catalog.fetch_catalog(kind, catalog_name)

    async def search(self, query: str) -> list[SearchResult]:
        async with self._client_lock:
            return await self.catalog.search(query)

    async def resolve_streams(self, content_id: str) -> list[StreamCandidate]:
        async with self._client_lock:
            return await self.streams.resolve_streams(content_id)

    async def play(self, stream_url: str, title: str | None = None) -> str:
        self._played = True
        return await self.playback.acquire_and_play(stream_url, title)

    async def cancel_playback(self) -> None:
        await self.playback.cancel()

    async def status(self) -> str:
        """Short readiness summary for the front end."""
        downloader = await asyncio.to_thread(find_downloader, self.supervisor.candidates)
        players = get_available_players(self.config.default_player)
        parts = [
            f"{len(self.registry)} providers",
            "downloader ready" if downloader else "downloader missing",
            f"players: {', '.join(players) or 'none'}",
        ]
        session = self.supervisor.session
        if session is not None:
            parts.append(f"streaming {session.info_hash}")
        return " | ".join(parts)

    async def aclose(self, sweep: bool = True) -> None:
        """Stop playback, close the HTTP client, and kill stray downloaders."""
        await self.supervisor.stop()
        await self.fetcher.aclose()
        if sweep:
            await asyncio.to_thread(sweep_downloaders)
