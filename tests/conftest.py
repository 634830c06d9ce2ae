from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from deckflix.providers import Capabilities, Provider, ProviderFetcher, SourceRegistry

CINEMETA = Provider("cinemeta", "https://cinemeta.test", Capabilities(catalog=True, search=True, stream=False))
TORRENTIO = Provider("torrentio", "https://torrentio.test", Capabilities(catalog=True, search=True, stream=True))
TPB = Provider("tpb", "https://tpb.test", Capabilities(catalog=True, search=True, stream=True))

MOVIE_HASH = "a" * 40


def meta(content_id: str, name: str | None = None, **extra) -> dict:
    return {"id": content_id, "name": name or f"Title {content_id}", **extra}


class FakeUpstream:
    """Routes requests by host to canned responses and records every call."""

    def __init__(self):
        self.hosts: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[httpx.Request] = []

    def json(self, host: str, payload, status: int = 200) -> None:
        self.hosts[host] = lambda request: httpx.Response(status, json=payload)

    def route(self, host: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.hosts[host] = handler

    def fail(self, host: str, exc: Exception) -> None:
        def handler(request):
            raise exc
        self.hosts[host] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.hosts.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        return handler(request)

    def called_hosts(self) -> list[str]:
        return [r.url.host for r in self.calls]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def fetcher(upstream):
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handle))
    yield ProviderFetcher(timeout=10.0, client=client)
    await client.aclose()


@pytest.fixture
def registry() -> SourceRegistry:
    return SourceRegistry([CINEMETA, TORRENTIO, TPB])


@pytest.fixture
def fake_process():
    """A Popen stand-in that is alive until terminated."""
    process = MagicMock()
    process.pid = 4242
    process.returncode = None
    process.poll.return_value = None

    def terminate():
        process.poll.return_value = 0
        process.returncode = 0

    process.terminate.side_effect = terminate
    process.kill.side_effect = terminate
    process.wait.return_value = 0
    return process
