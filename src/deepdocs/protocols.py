"""Protocol interfaces for swappable components.

The orchestrator, coordinator and tool handlers reference these protocols,
not the concrete implementations. This allows:
- Tests to use lightweight in-memory fetchers that count network calls
- Other cache backends to be swapped in without changing the retrieval code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from deepdocs.models.cache import CacheEntry, CacheStats
    from deepdocs.models.page import FetchedPage, PageFields


class CacheProtocol(Protocol):
    """Interface for the durable documentation cache."""

    def get(self, framework: str, identifier: str) -> CacheEntry | None: ...

    def put(self, entry: CacheEntry) -> None: ...

    def search(self, term: str, framework: str | None = None) -> list[CacheEntry]: ...

    def evict_if_over_capacity(self, capacity: int) -> int: ...

    def stats(self) -> CacheStats: ...

    def clear(self) -> None: ...


class FetcherProtocol(Protocol):
    """Interface for the documentation page fetcher.

    Both methods raise ``FetchError`` on failure. One call is one logical
    page fetch as far as fan-out bounds are concerned.
    """

    async def search(self, identifier: str, framework: str | None = None) -> FetchedPage: ...

    async def fetch(self, url: str) -> FetchedPage: ...


class ParserProtocol(Protocol):
    """Interface for turning raw page bytes into structured fields."""

    def __call__(self, content: bytes, url: str = "") -> PageFields: ...
