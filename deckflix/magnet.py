"""Magnet URI helpers."""

from urllib.parse import parse_qs, urlsplit

from deckflix.exceptions import InvalidMagnet

# Public trackers embedded in every synthesized magnet.
TRACKERS = (
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.demonii.com:1337/announce",
)

_TRACKER_QUERY = "".join(
    "&tr=" + t.replace(":", "%3A").replace("/", "%2F") for t in TRACKERS
)


def build_magnet(info_hash: str, file_idx: int | None = None) -> str:
    """
    Build a magnet URI for `info_hash`.

    Addons number files from 1; `so=` is zero-based, so a positive
    `file_idx` becomes `so={file_idx - 1}`.
    """
    uri = f"magnet:?xt=urn:btih:{info_hash}{_TRACKER_QUERY}"
    if file_idx and file_idx > 0:
        uri += f"&so={file_idx - 1}"
    return uri


def parse_magnet(uri: str) -> tuple[str, int | None]:
    """
    Extract `(info_hash, file_index)` from a magnet URI.

    The hash is whatever follows `btih:` up to the next `&`; it must be 32
    (base32) or 40 (hex) characters. `file_index` comes from `so=` (first
    value, zero-based) and is None when absent or not a number.
    """
    marker = uri.lower().find("btih:")
    if marker < 0:
        raise InvalidMagnet(f"No info-hash in magnet: {uri[:80]}")

    info_hash = uri[marker + len("btih:"):].split("&", 1)[0]
    if len(info_hash) not in (32, 40):
        raise InvalidMagnet(f"Invalid info-hash length {len(info_hash)}: {info_hash!r}")

    params = parse_qs(urlsplit(uri).query)
    file_index = None
    for key in ("so", "select-only"):
        values = params.get(key)
        if not values:
            continue
        first = values[0].split(",", 1)[0].split("-", 1)[0]
        if first.isdigit():
            file_index = int(first)
            break

    return info_hash, file_index
