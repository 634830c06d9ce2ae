"""Providers package."""

from collections.abc import Iterable, Iterator
from typing import Any

from deckflix.exceptions import ConfigurationError
from deckflix.providers.base import Capabilities, Provider
from deckflix.providers.fetcher import ProviderFetcher

__all__ = [
    "Capabilities",
    "DEFAULT_PROVIDERS",
    "Provider",
    "ProviderFetcher",
    "SourceRegistry",
]

# Priority order: the first catalog provider is the "primary" one.
DEFAULT_PROVIDERS: tuple[Provider, ...] = (
    Provider(
        "cinemeta",
        "https://v3-cinemeta.strem.io",
        Capabilities(catalog=True, search=True, stream=False),
    ),
    Provider(
        "torrentio",
        "https://torrentio.strem.fun",
        Capabilities(catalog=True, search=True, stream=True),
    ),
    Provider(
        "thepiratebay-plus",
        "https://thepiratebay-plus.strem.fun",
        Capabilities(catalog=True, search=True, stream=True),
    ),
)


class SourceRegistry:
    """Ordered table of upstream providers."""

    def __init__(self, providers: Iterable[Provider] = DEFAULT_PROVIDERS):
        self._providers: list[Provider] = list(providers)
        names = [p.name for p in self._providers]
        if len(names) != len(set(names)):
            raise ConfigurationError(f"Duplicate provider names: {names}")

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, name: str) -> Provider | None:
        """Get a provider by name."""
        for provider in self._providers:
            if provider.name == name.lower():
                return provider
        return None

    def catalog_providers(self) -> list[Provider]:
        return [p for p in self._providers if p.capabilities.catalog]

    def search_providers(self) -> list[Provider]:
        return [p for p in self._providers if p.capabilities.search]

    def stream_providers(self) -> list[Provider]:
        """Providers able to resolve streams; metadata-only ones are left out."""
        return [p for p in self._providers if p.capabilities.stream]

    @classmethod
    def from_config(cls, entries: list[dict[str, Any]] | None) -> "SourceRegistry":
        """Build a registry from the `providers` config list, or the defaults when empty."""
        if not entries:
            return cls()

        providers = []
        for entry in entries:
            try:
                providers.append(Provider(
                    name=str(entry["name"]).lower(),
                    base_url=str(entry["base_url"]),
                    capabilities=Capabilities(
                        catalog=bool(entry.get("catalog", True)),
                        search=bool(entry.get("search", True)),
                        stream=bool(entry.get("stream", False)),
                    ),
                ))
            except (KeyError, TypeError) as e:
                raise ConfigurationError(f"Invalid provider entry {entry!r}: {e}") from e
        return cls(providers)
