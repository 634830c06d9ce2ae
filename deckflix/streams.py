"""Stream resolution across the torrent-capable providers."""

import logging
import re
from collections import defaultdict
from typing import Any

from deckflix.exceptions import AggregateEmptyError, ItemParseError, ProviderError
from deckflix.magnet import build_magnet
from deckflix.models import StreamCandidate
from deckflix.parser import extract_array
from deckflix.providers import ProviderFetcher, SourceRegistry
from deckflix.scoring import extract_quality, rank

log = logging.getLogger(__name__)

# Torrentio-style titles: "Movie.2020.1080p.WEB\n👤 45 💾 2.1 GB ⚙️ YTS"
_SIZE_TAGGED_RE = re.compile(r"💾\s*([0-9]+(?:\.[0-9]+)?\s*[KMGT]?i?B)", re.IGNORECASE)
_SIZE_BARE_RE = re.compile(r"(?<![\w.])([0-9]+(?:\.[0-9]+)?\s*[KMGT]i?B)\b", re.IGNORECASE)
_SEEDERS_RE = re.compile(r"👤\s*([0-9]+)")
_LEECHERS_RE = re.compile(r"(?:⬇️|⬇|🔽)\s*([0-9]+)")


def extract_size(title: str) -> str | None:
    """Pull "5.09 GB" out of a title; the 💾 marker wins over a bare size."""
    match = _SIZE_TAGGED_RE.search(title) or _SIZE_BARE_RE.search(title)
    return match.group(1).strip() if match else None


def extract_seeders(title: str) -> int | None:
    match = _SEEDERS_RE.search(title)
    return int(match.group(1)) if match else None


def extract_leechers(title: str) -> int | None:
    match = _LEECHERS_RE.search(title)
    return int(match.group(1)) if match else None


def _file_idx(entry: Any) -> int | None:
    value = entry.get("fileIdx")
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _count(entry: dict, key: str) -> int | None:
    value = entry.get(key)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def filter_multi_file(entries: list[Any]) -> list[Any]:
    """
    Drop `fileIdx == 0` entries of multi-file torrents.

    A torrent counts as multi-file when more than one distinct file index was
    seen for its info-hash in this response. Index 0 on such a torrent points
    at an arbitrary first file (often a sample or episode 1 of a pack).
    """
    indices: dict[str, set[int]] = defaultdict(set)
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        info_hash = entry.get("infoHash")
        idx = _file_idx(entry)
        if isinstance(info_hash, str) and idx is not None:
            indices[info_hash].add(idx)

    kept = []
    for entry in entries:
        if isinstance(entry, dict):
            info_hash = entry.get("infoHash")
            if (
                isinstance(info_hash, str)
                and _file_idx(entry) == 0
                and len(indices.get(info_hash, ())) > 1
            ):
                log.debug("Skipping fileIdx 0 of multi-file torrent %s", info_hash)
                continue
        kept.append(entry)
    return kept


def parse_stream(entry: Any) -> StreamCandidate:
    """Turn one `streams[]` entry into a candidate. Raises ItemParseError if it has no URL or hash."""
    if not isinstance(entry, dict):
        raise ItemParseError(f"Stream entry is not an object: {type(entry).__name__}")

    info_hash = entry.get("infoHash")
    direct_url = entry.get("url")
    if isinstance(direct_url, str) and direct_url:
        url = direct_url
    elif isinstance(info_hash, str) and info_hash:
        url = build_magnet(info_hash, _file_idx(entry))
    else:
        raise ItemParseError("Missing stream url or infoHash")

    title = entry.get("title") if isinstance(entry.get("title"), str) else "Unknown Stream"
    name = entry.get("name") if isinstance(entry.get("name"), str) else None

    size = entry.get("size")
    if isinstance(size, (int, float)) and not isinstance(size, bool):
        size = str(int(size))
    elif not isinstance(size, str):
        size = extract_size(title)

    seeders = _count(entry, "seeders")
    if seeders is None:
        seeders = extract_seeders(title)
    leechers = _count(entry, "leechers")
    if leechers is None:
        leechers = extract_leechers(title)

    if isinstance(info_hash, str) and info_hash:
        source = "torrent"
    else:
        source = entry.get("source") if isinstance(entry.get("source"), str) else "direct"

    subtitles = entry.get("subtitles")
    if isinstance(subtitles, list):
        subtitles = [s for s in subtitles if isinstance(s, str)]
    else:
        subtitles = []

    return StreamCandidate(
        title=title,
        url=url,
        source=source,
        name=name,
        quality=extract_quality(title) or (extract_quality(name) if name else None),
        size=size,
        seeders=seeders,
        leechers=leechers,
        language=entry.get("language") if isinstance(entry.get("language"), str) else None,
        subtitles=subtitles,
    )


def parse_streams(payload: Any) -> list[StreamCandidate]:
    """Parse a stream response after the multi-file filter, skipping broken entries."""
    candidates = []
    for entry in filter_multi_file(extract_array(payload, "streams")):
        try:
            candidates.append(parse_stream(entry))
        except ItemParseError as e:
            log.debug("Skipping stream entry: %s", e)
    return candidates


class StreamResolver:
    """Collects streams for one title from every stream-capable provider and ranks them."""

    def __init__(self, registry: SourceRegistry, fetcher: ProviderFetcher):
        self.registry = registry
        self.fetcher = fetcher

    async def resolve_streams(self, content_id: str, content_type: str | None = None) -> list[StreamCandidate]:
        """
        Return ranked candidates for `content_id` (an IMDb id such as "tt0111161").

        Series episodes use "tt0903747:1:2" ids and the `series` endpoint.

        Raises:
            AggregateEmptyError: every provider errored, or none had streams.
        """
        if content_type is None:
            content_type = "series" if ":" in content_id else "movie"

        providers = self.registry.stream_providers()
        candidates: list[StreamCandidate] = []
        failed: list[str] = []
        last_error: Exception | None = None

        for provider in providers:
            url = provider.stream_url(content_type, content_id)
            try:
                payload = await self.fetcher.get_json(url)
                streams = parse_streams(payload)
            except ProviderError as e:
                log.warning("Failed to fetch streams from %s: %s", provider.name, e)
                failed.append(provider.name)
                last_error = e
                continue
            log.info("Found %d streams on %s", len(streams), provider.name)
            candidates.extend(streams)

        if not candidates:
            if providers and len(failed) == len(providers):
                raise AggregateEmptyError(
                    f"No streaming sources available. All torrent addons failed: {failed}",
                    last_error,
                )
            raise AggregateEmptyError("No streams found for this content from any torrent source")

        return rank(candidates)
