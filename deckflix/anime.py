"""Keyword heuristics for spotting anime among generic movie/series results."""

import logging
from collections.abc import Iterable

from deckflix.models import SearchResult

log = logging.getLogger(__name__)

ANIME_KEYWORDS = (
    "anime", "manga", "japanese", "japan", "studio ghibli", "toei", "madhouse",
    "pierrot", "bones", "wit studio", "mappa", "sunrise", "a-1 pictures",
    "production i.g", "shaft", "gainax", "trigger", "kyoto animation",
)

POPULAR_ANIME = (
    "one piece", "naruto", "bleach", "dragon ball", "pokemon", "detective conan",
    "attack on titan", "demon slayer", "death note", "fullmetal alchemist",
    "spirited away", "my neighbor totoro", "princess mononoke", "howl's moving castle",
    "sword art online", "tokyo ghoul", "jujutsu kaisen", "my hero academia",
    "hunter x hunter", "fairy tail", "black clover", "violet evergarden",
    "cowboy bebop", "neon genesis evangelion", "akira", "ghost in the shell",
)

# Narrower list used to pull anime films out of a generic movie catalog.
ANIME_MOVIE_KEYWORDS = (
    "anime", "manga", "japanese animation", "studio ghibli", "miyazaki",
    "pokemon", "naruto", "dragon ball", "one piece", "spirited away",
)


def is_anime(name: str, description: str | None = None) -> bool:
    """Decide whether a title looks like anime from its name and description."""
    name_lower = name.lower()
    description_lower = (description or "").lower()

    if any(k in name_lower or k in description_lower for k in ANIME_KEYWORDS):
        return True

    if any(title in name_lower for title in POPULAR_ANIME):
        return True

    animated = any(
        word in name_lower or word in description_lower
        for word in ("animation", "animated")
    )
    return "japan" in description_lower and animated


def is_anime_movie(name: str, description: str | None = None) -> bool:
    """Stricter check for movie catalogs, where "japan" alone is too broad."""
    name_lower = name.lower()
    description_lower = (description or "").lower()
    return any(k in name_lower or k in description_lower for k in ANIME_MOVIE_KEYWORDS)


def classify(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Promote matching results to anime in place and return them as a list."""
    results = list(results)
    for result in results:
        if result.kind != "anime" and is_anime(result.name, result.description):
            result.kind = "anime"
            log.debug("Detected anime content: %s", result.name)
    return results
