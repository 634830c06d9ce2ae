"""Convert raw addon JSON into typed records."""

import logging
from typing import Any

from deckflix.exceptions import ItemParseError, MalformedResponse
from deckflix.models import ContentKind, ContentRecord, SearchResult

log = logging.getLogger(__name__)


def _str(meta: dict, key: str) -> str | None:
    value = meta.get(key)
    if isinstance(value, str):
        return value
    # Some addons send years and ratings as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _int(meta: dict, key: str) -> int | None:
    value = meta.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _str_list(meta: dict, key: str) -> tuple[str, ...]:
    value = meta.get(key)
    if not isinstance(value, list):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def _required(meta: Any, key: str) -> str:
    if not isinstance(meta, dict):
        raise ItemParseError(f"Entry is not an object: {type(meta).__name__}")
    value = meta.get(key)
    if not isinstance(value, str) or not value:
        raise ItemParseError(f"Missing '{key}'")
    return value


def extract_array(payload: Any, key: str) -> list:
    """Return `payload[key]` as a list or raise MalformedResponse."""
    if not isinstance(payload, dict) or key not in payload:
        raise MalformedResponse(f"Missing '{key}' field")
    items = payload[key]
    if not isinstance(items, list):
        raise MalformedResponse(f"'{key}' is not an array")
    return items


def parse_content(meta: Any, kind: ContentKind) -> ContentRecord:
    """Parse one `metas[]` entry. Raises ItemParseError when id or name is missing."""
    content_id = _required(meta, "id")
    name = _required(meta, "name")

    fields: dict[str, Any] = dict(
        id=content_id,
        name=name,
        kind=kind,
        poster=_str(meta, "poster"),
        background=_str(meta, "background"),
        description=_str(meta, "description"),
        year=_str(meta, "year"),
        rating=_str(meta, "imdbRating"),
        genre=_str_list(meta, "genre"),
        cast=_str_list(meta, "cast"),
        director=_str_list(meta, "director"),
        runtime=_str(meta, "runtime"),
        country=_str(meta, "country"),
        language=_str(meta, "language"),
    )

    if kind != "movie":
        fields.update(
            seasons=_int(meta, "seasons"),
            episodes=_int(meta, "episodes"),
            status=_str(meta, "status"),
        )
    if kind == "series":
        fields["network"] = _str(meta, "network")
    elif kind == "anime":
        fields.update(
            network=_str(meta, "studio") or _str(meta, "network"),
            secondary_rating=_str(meta, "malRating"),
            sub_type=_str(meta, "animeType"),
        )

    return ContentRecord(**fields)


def parse_metas(payload: Any, kind: ContentKind) -> list[ContentRecord]:
    """Parse a catalog response, skipping malformed entries one by one."""
    records = []
    for meta in extract_array(payload, "metas"):
        try:
            records.append(parse_content(meta, kind))
        except ItemParseError as e:
            log.debug("Skipping catalog entry: %s", e)
    return records


def parse_search_result(meta: Any, default_kind: ContentKind = "movie") -> SearchResult:
    """Parse one search hit; `type` falls back to the endpoint's kind."""
    content_id = _required(meta, "id")
    name = _required(meta, "name")

    kind = meta.get("type")
    if kind not in ("movie", "series", "anime"):
        kind = default_kind

    return SearchResult(
        id=content_id,
        name=name,
        kind=kind,
        poster=_str(meta, "poster"),
        year=_str(meta, "year"),
        rating=_str(meta, "imdbRating"),
        description=_str(meta, "description"),
    )


def parse_search_results(payload: Any, default_kind: ContentKind = "movie") -> list[SearchResult]:
    results = []
    for meta in extract_array(payload, "metas"):
        try:
            results.append(parse_search_result(meta, default_kind))
        except ItemParseError as e:
            log.debug("Skipping search entry: %s", e)
    return results
