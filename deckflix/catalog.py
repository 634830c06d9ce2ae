"""Catalog and search aggregation across the registered providers."""

import logging
import time
from collections.abc import Iterable
from itertools import groupby
from typing import Protocol, TypeVar

from deckflix.anime import classify, is_anime_movie
from deckflix.exceptions import AggregateEmptyError, ProviderError
from deckflix.models import ContentKind, ContentRecord, SearchResult
from deckflix.parser import parse_metas, parse_search_results
from deckflix.providers import ProviderFetcher, SourceRegistry
from deckflix.providers.base import Provider

log = logging.getLogger(__name__)

CATALOG_LIMITS: dict[str, int] = {
    "movie": 50,
    "series": 100,
    "anime": 100,
}
SEARCH_LIMIT = 100
MIN_QUERY_LENGTH = 2


class _HasId(Protocol):
    id: str


T = TypeVar("T", bound=_HasId)


def dedupe_by_id(records: Iterable[T]) -> list[T]:
    """Stable sort by id, then keep the first record of every run of equal ids."""
    ordered = sorted(records, key=lambda r: r.id)
    return [next(group) for _, group in groupby(ordered, key=lambda r: r.id)]


class CatalogAggregator:
    """Runs catalog and search requests over every provider, one provider at a time."""

    def __init__(self, registry: SourceRegistry, fetcher: ProviderFetcher):
        self.registry = registry
        self.fetcher = fetcher

    async def fetch_catalog(self, kind: ContentKind, catalog_name: str = "top") -> list[ContentRecord]:
        """
        Fetch a catalog of `kind` ("movie", "series" or "anime").

        Providers are tried in priority order. Once the primary provider has
        returned at least one record the remaining providers are not asked.

        Raises:
            AggregateEmptyError: no provider produced a single record.
        """
        if kind not in CATALOG_LIMITS:
            raise ValueError(f"Unknown catalog kind: {kind}")

        providers = self.registry.catalog_providers()
        records: list[ContentRecord] = []
        last_error: Exception | None = None

        for index, provider in enumerate(providers):
            start = time.monotonic()
            try:
                batch = await self._fetch_from(provider, kind, catalog_name)
            except ProviderError as e:
                last_error = e
                log.warning("Failed to fetch %s catalog from %s: %s", kind, provider.name, e)
                continue

            log.info(
                "Fetched %d %s records from %s in %.2fs",
                len(batch), kind, provider.name, time.monotonic() - start,
            )
            records.extend(batch)

            if index == 0 and records:
                log.debug("Primary provider %s answered, skipping the rest", provider.name)
                break

        if not records:
            reason = last_error or "no provider returned any entries"
            raise AggregateEmptyError(
                f"No {kind} found from any provider. Last error: {reason}",
                last_error,
            )

        unique = dedupe_by_id(records)
        log.debug("%s catalog: %d fetched, %d after dedup", kind, len(records), len(unique))
        return unique[:CATALOG_LIMITS[kind]]

    async def _fetch_from(self, provider: Provider, kind: ContentKind, catalog_name: str) -> list[ContentRecord]:
        if kind != "anime":
            payload = await self.fetcher.get_json(provider.catalog_url(kind, catalog_name))
            return parse_metas(payload, kind)

        # Anime: the series catalog as-is plus anime-looking films from the movie catalog.
        anime: list[ContentRecord] = []
        error: ProviderError | None = None
        try:
            payload = await self.fetcher.get_json(provider.catalog_url("series", catalog_name))
            anime.extend(parse_metas(payload, "anime"))
        except ProviderError as e:
            log.debug("Anime series catalog failed on %s: %s", provider.name, e)
            error = e
        try:
            payload = await self.fetcher.get_json(provider.catalog_url("movie", catalog_name))
            anime.extend(r for r in parse_metas(payload, "anime") if is_anime_movie(r.name, r.description))
        except ProviderError as e:
            log.debug("Anime movie catalog failed on %s: %s", provider.name, e)
            if error is not None:
                raise
        return anime

    async def search(self, query: str) -> list[SearchResult]:
        """
        Search movies and series on every provider and merge the hits.

        Queries shorter than two characters return nothing without touching
        the network.

        Raises:
            AggregateEmptyError: every provider request failed.
        """
        if len(query) < MIN_QUERY_LENGTH:
            log.debug("Query %r too short, returning empty results", query)
            return []

        results: list[SearchResult] = []
        attempts = 0
        failures = 0
        last_error: Exception | None = None

        for provider in self.registry.search_providers():
            for content_type in ("movie", "series"):
                attempts += 1
                url = provider.search_url(content_type, "top", query)
                try:
                    payload = await self.fetcher.get_json(url)
                    hits = parse_search_results(payload, content_type)
                except ProviderError as e:
                    failures += 1
                    last_error = e
                    log.warning("Failed to search %s on %s: %s", content_type, provider.name, e)
                    continue
                log.debug("Found %d %s results on %s", len(hits), content_type, provider.name)
                results.extend(hits)

        if attempts and failures == attempts:
            raise AggregateEmptyError(
                f"Search failed on every provider. Last error: {last_error}",
                last_error,
            )

        unique = dedupe_by_id(classify(results))
        log.info("Search %r: %d results after dedup (from %d)", query, len(unique), len(results))
        return unique[:SEARCH_LIMIT]
