"""
Quality tags and stream ranking.

`QUALITY_TIERS` is the single precedence table: `extract_quality` walks it top
to bottom and returns the first tag whose pattern matches the upper-cased
title, and `score` looks the same tag up for its base points. Patterns are
anchored on non-alphanumeric boundaries so "TS" does not fire inside words.
"""

import re
from collections.abc import Iterable

from deckflix.models import StreamCandidate


def _token(pattern: str) -> re.Pattern:
    return re.compile(rf"(?<![A-Z0-9])(?:{pattern})(?![A-Z0-9])")


# (tag, pattern, base score), most specific first.
QUALITY_TIERS: tuple[tuple[str, re.Pattern, float], ...] = (
    ("2160P", _token("2160P"), 60.0),
    ("4K", _token("4K"), 60.0),
    ("UHD", _token("UHD"), 60.0),
    ("1080P BLURAY", _token(r"1080P[ ._-]?BLU-?RAY"), 55.0),
    ("1080P REMUX", _token(r"1080P[ ._-]?REMUX"), 55.0),
    ("1080P", _token("1080P"), 45.0),
    ("720P BLURAY", _token(r"720P[ ._-]?BLU-?RAY"), 40.0),
    ("720P", _token("720P"), 35.0),
    ("BLURAY", _token("BLU-?RAY"), 32.0),
    ("WEBDL", _token("WEB-?DL"), 30.0),
    ("WEBRIP", _token("WEB-?RIP"), 25.0),
    ("HDRIP", _token("HDRIP"), 25.0),
    ("BRRIP", _token("BRRIP"), 25.0),
    ("480P", _token("480P"), 15.0),
    ("DVDRIP", _token("DVDRIP"), 15.0),
    ("CAM", _token("(?:HD)?CAM(?:RIP)?"), 5.0),
    ("HDTS", _token("HDTS"), 5.0),
    ("TS", _token("TS"), 5.0),
    ("SCREENER", _token("(?:SCREENER|SCR)"), 5.0),
)

# Only consulted when nothing in QUALITY_TIERS matched.
ENCODING_TIERS: tuple[tuple[str, re.Pattern, float], ...] = (
    ("H265", _token(r"X265|H\.?265|HEVC"), 35.0),
    ("H264", _token(r"X264|H\.?264|AVC"), 30.0),
)

UNKNOWN_TAG_SCORE = 20.0
RATIO_CAP = 10.0

_BASE_SCORES = {tag: points for tag, _, points in QUALITY_TIERS + ENCODING_TIERS}
_BASE_SCORES.update({"X265": 35.0, "HEVC": 35.0, "X264": 30.0})

_SIZE_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]+)?)\s*([KMGT]I?B|B)?\s*$", re.IGNORECASE)
_SIZE_FACTORS_GB = {
    None: 1 / 1024 ** 3,
    "B": 1 / 1024 ** 3,
    "KB": 1 / 1024 ** 2,
    "MB": 1 / 1024,
    "GB": 1.0,
    "TB": 1024.0,
}


def extract_quality(title: str) -> str | None:
    """Return the first matching quality tag for `title`, or None."""
    upper = title.upper()
    for tag, pattern, _ in QUALITY_TIERS:
        if pattern.search(upper):
            return tag
    for tag, pattern, _ in ENCODING_TIERS:
        if pattern.search(upper):
            return tag
    return None


def parse_size_to_gb(size: str | int | float | None) -> float | None:
    """
    Convert "4.5 GB", "700MB", "1.2 TiB" or a raw byte count to gigabytes.

    Returns None for anything unparseable.
    """
    if size is None:
        return None
    if isinstance(size, (int, float)):
        return size / 1024 ** 3

    match = _SIZE_RE.match(size)
    if not match:
        return None
    value = float(match.group(1))
    unit = match.group(2)
    if unit:
        unit = unit.upper().replace("IB", "B")
    return value * _SIZE_FACTORS_GB[unit]


def _size_term(size_gb: float | None) -> float:
    if size_gb is None:
        return 0.0
    if 1.0 <= size_gb <= 8.0:
        return 5.0
    if 8.0 < size_gb <= 15.0:
        return 2.0
    if size_gb < 0.5:
        return -5.0
    return 0.0


def _peer_term(seeders: int | None, leechers: int | None) -> float:
    if seeders is None or leechers is None:
        return 0.0
    if leechers > 0:
        return min(seeders / leechers, RATIO_CAP)
    if seeders > 0:
        return RATIO_CAP
    return 0.0


def score(candidate: StreamCandidate) -> float:
    """Higher is better: quality tier + peer health + size preference."""
    total = 0.0
    if candidate.quality:
        total += _BASE_SCORES.get(candidate.quality.upper(), UNKNOWN_TAG_SCORE)
    total += _peer_term(candidate.seeders, candidate.leechers)
    total += _size_term(parse_size_to_gb(candidate.size))
    return total


def rank(candidates: Iterable[StreamCandidate]) -> list[StreamCandidate]:
    """Sort best first; equal scores keep their input order."""
    return sorted(candidates, key=score, reverse=True)
