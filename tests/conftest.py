"""Shared test fixtures for the deepdocs test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from deepdocs.cache import CacheStore
from deepdocs.errors import ErrorCode, FetchError
from deepdocs.models.page import FetchedPage

if TYPE_CHECKING:
    from pathlib import Path

BASE_URL = "https://developer.apple.com"


def doc_url(framework: str, slug: str) -> str:
    return f"{BASE_URL}/documentation/{framework.lower()}/{slug.lower()}"


def make_page(
    title: str,
    *,
    badge: str = "UIKit",
    kind: str = "Class",
    description: str = "",
    availability: str = "iOS 15.0+",
    related: Iterable[str] = (),
    deprecated: str | None = None,
    examples: Iterable[str] = (),
    properties: Iterable[tuple[str, str]] = (),
    methods: Iterable[tuple[str, list[str], str]] = (),
) -> str:
    """Render a minimal documentation page using the selectors the parser understands."""
    parts = ["<html><body>"]
    if badge:
        parts.append(f'<span class="badge">{badge}</span>')
    parts.append(f'<h1 class="title">{title}</h1>')
    if kind:
        parts.append(f'<span class="declaration-type">{kind}</span>')
    if description:
        parts.append(f'<div class="abstract">{description}</div>')
    if availability:
        parts.append(f'<div class="availability">{availability}</div>')
    if deprecated is not None:
        parts.append(f'<div class="deprecation-warning">{deprecated}</div>')
    for code in examples:
        parts.append(f"<pre><code>{code}</code></pre>")
    if properties:
        parts.append('<ul class="property-list">')
        for name, type_ in properties:
            parts.append(
                f'<li class="property"><span class="property-name">{name}</span>'
                f'<span class="property-type">{type_}</span></li>'
            )
        parts.append("</ul>")
    if methods:
        parts.append('<ul class="method-list">')
        for name, params, return_type in methods:
            params_html = "".join(f'<span class="parameter-name">{p}</span>' for p in params)
            parts.append(
                f'<li class="method"><span class="method-name">{name}</span>'
                f"{params_html}"
                f'<span class="return-type">{return_type}</span></li>'
            )
        parts.append("</ul>")
    links = "".join(f'<a href="{href}">{href.rsplit("/", 1)[-1]}</a>' for href in related)
    parts.append(f'<div class="see-also">{links}</div>')
    parts.append("</body></html>")
    return "\n".join(parts)


class FakeFetcher:
    """In-memory FetcherProtocol implementation that records every call."""

    def __init__(self) -> None:
        self.pages: dict[str, str] = {}
        self.search_index: dict[str, str] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add_page(
        self, framework: str, slug: str, html: str, *, searchable: str | None = None
    ) -> str:
        url = doc_url(framework, slug)
        self.pages[url] = html
        if searchable is not None:
            self.search_index[searchable.lower()] = url
        return url

    @property
    def fetch_count(self) -> int:
        return len(self.calls)

    async def search(self, identifier: str, framework: str | None = None) -> FetchedPage:
        self.calls.append(("search", identifier))
        url = self.search_index.get(identifier.lower())
        if url is None or identifier.lower() in self.failing:
            raise FetchError(
                code=ErrorCode.PAGE_NOT_FOUND,
                message=f"No documentation page found for {identifier!r}",
                suggestion="",
            )
        return await self._serve(url)

    async def fetch(self, url: str) -> FetchedPage:
        self.calls.append(("fetch", url))
        return await self._serve(url)

    async def _serve(self, url: str) -> FetchedPage:
        if url in self.failing or url not in self.pages:
            raise FetchError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"HTTP 500 fetching {url}",
                suggestion="",
                recoverable=True,
            )
        return FetchedPage(url=url, content=self.pages[url].encode("utf-8"))


class FakeClock:
    """Deterministic clock: every call returns a time one second later."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def page() -> Callable[..., str]:
    """Factory rendering documentation page HTML."""
    return make_page


@pytest.fixture(name="doc_url")
def doc_url_fixture() -> Callable[[str, str], str]:
    """Factory building absolute documentation URLs."""
    return doc_url


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "api-cache"


@pytest.fixture()
def cache(cache_dir: Path, clock: FakeClock) -> CacheStore:
    store = CacheStore(cache_dir, clock=clock)
    store.ensure_storage()
    return store
