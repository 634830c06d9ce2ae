import pytest

from deckflix.exceptions import ItemParseError, MalformedResponse
from deckflix.parser import parse_content, parse_metas, parse_search_result, parse_search_results


def test_parse_movie_with_optional_fields():
    record = parse_content({
        "id": "tt0111161",
        "name": "The Shawshank Redemption",
        "year": 1994,
        "imdbRating": "9.3",
        "genre": ["Drama", 5, None],
        "director": ["Frank Darabont"],
        "cast": ["Tim Robbins", "Morgan Freeman"],
        "runtime": "142 min",
        "seasons": 3,
    }, "movie")

    assert record.year == "1994"
    assert record.rating == "9.3"
    assert record.genre == ("Drama",)
    assert record.director == ("Frank Darabont",)
    assert record.poster is None
    # Series-only fields are ignored for movies
    assert record.seasons is None


def test_parse_series_fields():
    record = parse_content({
        "id": "tt0903747", "name": "Breaking Bad",
        "seasons": 5, "episodes": "62", "status": "Ended", "network": "AMC",
    }, "series")

    assert (record.seasons, record.episodes, record.status, record.network) == (5, 62, "Ended", "AMC")


def test_parse_anime_fields():
    record = parse_content({
        "id": "kitsu:1", "name": "Cowboy Bebop",
        "studio": "Sunrise", "malRating": "8.75", "animeType": "TV", "episodes": 26,
    }, "anime")

    assert record.network == "Sunrise"
    assert record.secondary_rating == "8.75"
    assert record.sub_type == "TV"
    assert record.episodes == 26


@pytest.mark.parametrize("entry", [
    {"name": "No id"},
    {"id": "tt1"},
    {"id": "", "name": "Empty id"},
    {"id": 42, "name": "Numeric id"},
    ["not", "a", "dict"],
])
def test_parse_content_rejects_bad_entries(entry):
    with pytest.raises(ItemParseError):
        parse_content(entry, "movie")


def test_parse_metas_skips_bad_entries():
    records = parse_metas({"metas": [{"id": "tt1", "name": "A"}, {"id": "tt2"}, None]}, "movie")

    assert [r.id for r in records] == ["tt1"]


@pytest.mark.parametrize("payload", [None, [], {}, {"metas": {"id": "tt1"}}])
def test_parse_metas_rejects_bad_shape(payload):
    with pytest.raises(MalformedResponse):
        parse_metas(payload, "movie")


def test_search_result_kind_defaults_to_endpoint():
    assert parse_search_result({"id": "tt1", "name": "A"}, "series").kind == "series"
    assert parse_search_result({"id": "tt1", "name": "A", "type": "movie"}, "series").kind == "movie"
    assert parse_search_result({"id": "tt1", "name": "A", "type": "channel"}, "movie").kind == "movie"


def test_parse_search_results():
    results = parse_search_results({"metas": [
        {"id": "tt1", "name": "A", "description": "desc", "poster": "https://img/a.jpg"},
        {"name": "missing id"},
    ]})

    assert len(results) == 1
    assert results[0].description == "desc"
    assert results[0].poster == "https://img/a.jpg"
