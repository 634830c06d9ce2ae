import httpx
import pytest

from deckflix.catalog import CatalogAggregator, dedupe_by_id
from deckflix.exceptions import AggregateEmptyError
from deckflix.models import SearchResult

from tests.conftest import meta


@pytest.fixture
def aggregator(registry, fetcher) -> CatalogAggregator:
    return CatalogAggregator(registry, fetcher)


class TestFetchCatalog:
    async def test_primary_success_skips_other_providers(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [meta("tt3"), meta("tt1"), meta("tt2")]})
        upstream.json("torrentio.test", {"metas": [meta(f"tt{i}") for i in range(1, 6)]})

        records = await aggregator.fetch_catalog("movie", "top")

        assert [r.id for r in records] == ["tt1", "tt2", "tt3"]
        assert upstream.called_hosts() == ["cinemeta.test"]
        assert upstream.calls[0].url.path == "/catalog/movie/top.json"

    async def test_falls_through_when_primary_fails(self, aggregator, upstream):
        upstream.json("cinemeta.test", {}, status=503)
        upstream.json("torrentio.test", {"metas": [meta("tt1"), meta("tt2")]})
        upstream.json("tpb.test", {"metas": [meta("tt2"), meta("tt9")]})

        records = await aggregator.fetch_catalog("movie")

        assert [r.id for r in records] == ["tt1", "tt2", "tt9"]
        assert upstream.called_hosts() == ["cinemeta.test", "torrentio.test", "tpb.test"]

    async def test_all_providers_500(self, aggregator, upstream):
        for host in ("cinemeta.test", "torrentio.test", "tpb.test"):
            upstream.json(host, {}, status=500)

        with pytest.raises(AggregateEmptyError) as excinfo:
            await aggregator.fetch_catalog("movie")

        assert "500" in str(excinfo.value)
        assert "tpb.test" in str(excinfo.value)
        assert excinfo.value.last_error is not None

    async def test_network_errors_are_skipped(self, aggregator, upstream):
        upstream.fail("cinemeta.test", httpx.ConnectError("refused"))
        upstream.fail("torrentio.test", httpx.ReadTimeout("slow"))
        upstream.json("tpb.test", {"metas": [meta("tt7")]})

        records = await aggregator.fetch_catalog("series")

        assert [r.id for r in records] == ["tt7"]
        assert records[0].kind == "series"

    async def test_missing_metas_counts_as_provider_failure(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"streams": []})
        upstream.json("torrentio.test", {"metas": "nope"})
        upstream.json("tpb.test", {"metas": []})

        with pytest.raises(AggregateEmptyError) as excinfo:
            await aggregator.fetch_catalog("movie")
        assert "not an array" in str(excinfo.value)

    async def test_malformed_items_dropped_individually(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [meta("tt1"), {"id": "tt2"}, "junk", meta("tt3")]})

        records = await aggregator.fetch_catalog("movie")

        assert [r.id for r in records] == ["tt1", "tt3"]

    async def test_movie_catalog_capped_at_50(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [meta(f"tt{i:04d}") for i in range(80)]})

        records = await aggregator.fetch_catalog("movie")

        assert len(records) == 50

    async def test_series_catalog_capped_at_100(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [meta(f"tt{i:04d}") for i in range(150)]})

        records = await aggregator.fetch_catalog("series")

        assert len(records) == 100

    async def test_anime_merges_series_and_filtered_movies(self, aggregator, upstream):
        def cinemeta(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/catalog/series/top.json":
                return httpx.Response(200, json={"metas": [meta("tt1", "Cowboy Bebop", studio="Sunrise")]})
            return httpx.Response(200, json={"metas": [
                meta("tt2", "Spirited Away"),
                meta("tt3", "Heat", description="A crime thriller"),
            ]})

        upstream.route("cinemeta.test", cinemeta)

        records = await aggregator.fetch_catalog("anime")

        assert [r.id for r in records] == ["tt1", "tt2"]
        assert all(r.kind == "anime" for r in records)
        assert records[0].network == "Sunrise"

    async def test_unknown_kind(self, aggregator):
        with pytest.raises(ValueError):
            await aggregator.fetch_catalog("podcast")


class TestSearch:
    async def test_short_query_makes_no_calls(self, aggregator, upstream):
        assert await aggregator.search("a") == []
        assert await aggregator.search("") == []
        assert upstream.calls == []

    async def test_queries_every_provider_for_movies_and_series(self, aggregator, upstream):
        def handler(request: httpx.Request) -> httpx.Response:
            if "/catalog/movie/" in request.url.path:
                return httpx.Response(200, json={"metas": [meta("tt1", "Iron Man")]})
            return httpx.Response(200, json={"metas": [meta("tt5", "Iron Fist")]})

        for host in ("cinemeta.test", "torrentio.test", "tpb.test"):
            upstream.route(host, handler)

        results = await aggregator.search("iron man")

        assert len(upstream.calls) == 6
        assert [(r.id, r.kind) for r in results] == [("tt1", "movie"), ("tt5", "series")]
        assert upstream.calls[0].url.raw_path == b"/catalog/movie/top/search=iron%20man.json"

    async def test_anime_reclassified(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [
            meta("tt1", "Naruto Shippuden", type="series"),
            meta("tt2", "The Office", type="series"),
        ]})

        results = await aggregator.search("show")

        kinds = {r.id: r.kind for r in results}
        assert kinds == {"tt1": "anime", "tt2": "series"}

    async def test_partial_failure_still_returns_results(self, aggregator, upstream):
        upstream.json("cinemeta.test", {"metas": [meta("tt1")]})
        upstream.json("torrentio.test", {}, status=500)
        upstream.fail("tpb.test", httpx.ConnectError("down"))

        results = await aggregator.search("title")

        assert [r.id for r in results] == ["tt1"]

    async def test_every_provider_failing_raises(self, aggregator, upstream):
        for host in ("cinemeta.test", "torrentio.test", "tpb.test"):
            upstream.json(host, {}, status=502)

        with pytest.raises(AggregateEmptyError):
            await aggregator.search("title")


class TestDedupe:
    def test_keeps_first_of_each_id(self):
        first = SearchResult(id="tt2", name="first", kind="movie")
        second = SearchResult(id="tt2", name="second", kind="series")
        other = SearchResult(id="tt1", name="other", kind="movie")

        unique = dedupe_by_id([first, other, second])

        assert [(r.id, r.name) for r in unique] == [("tt1", "other"), ("tt2", "first")]

    def test_idempotent(self):
        items = [SearchResult(id=f"tt{i % 4}", name=str(i), kind="movie") for i in range(12)]

        once = dedupe_by_id(items)

        assert len({r.id for r in once}) == len(once) == 4
        assert dedupe_by_id(once) == once
