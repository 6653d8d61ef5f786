"""Unit tests for the multi-seed coordinator.

asyncio.sleep is patched so the politeness pause costs nothing and its
calls can be counted.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from deepdocs.cache import CacheStore
from deepdocs.config import CrawlSettings
from deepdocs.coordinator import MultiSeedCoordinator
from deepdocs.models.cache import CacheEntry
from deepdocs.orchestrator import RetrievalOrchestrator


@pytest.fixture()
def orchestrator(cache: CacheStore, fake_fetcher: Any) -> RetrievalOrchestrator:
    return RetrievalOrchestrator(cache, fake_fetcher)


@pytest.fixture()
def site(fake_fetcher: Any, page: Callable[..., str], doc_url: Callable[..., str]) -> Any:
    fake_fetcher.add_page(
        "uikit",
        "UIAlertController",
        page("UIAlertController", related=[doc_url("uikit", "UIAlertAction")]),
        searchable="UIAlertController",
    )
    fake_fetcher.add_page("uikit", "UIAlertAction", page("UIAlertAction"))
    fake_fetcher.add_page("uikit", "UIButton", page("UIButton"), searchable="UIButton")
    fake_fetcher.add_page("uikit", "UIView", page("UIView"), searchable="UIView")
    return fake_fetcher


class _StubOrchestrator:
    """Returns canned results per seed; raises for seeds mapped to an exception."""

    def __init__(self, outcomes: dict[str, list[CacheEntry] | Exception]) -> None:
        self.outcomes = outcomes
        self.seen: list[tuple[str, str | None]] = []

    async def resolve(self, identifier: str, framework: str | None = None) -> list[CacheEntry]:
        self.seen.append((identifier, framework))
        outcome = self.outcomes.get(identifier, [])
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestResolveAll:
    async def test_counts_cache_and_web_records(
        self, orchestrator: RetrievalOrchestrator, site: Any
    ) -> None:
        await orchestrator.resolve("UIAlertController", "UIKit")
        coordinator = MultiSeedCoordinator(orchestrator, politeness_delay=0)

        result = await coordinator.resolve_all(["UIAlertController", "UIButton"], "UIKit")

        assert result.seeds == ["UIAlertController", "UIButton"]
        assert result.from_cache == 2
        assert result.from_web == 1
        assert result.total == 3
        assert result.failed_seeds == []

    async def test_pauses_between_seeds(
        self, orchestrator: RetrievalOrchestrator, site: Any
    ) -> None:
        coordinator = MultiSeedCoordinator(orchestrator, politeness_delay=0.2)

        with patch("deepdocs.coordinator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await coordinator.resolve_all(["UIAlertController", "UIButton", "UIView"], "UIKit")

        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.2)

    async def test_single_seed_does_not_pause(
        self, orchestrator: RetrievalOrchestrator, site: Any
    ) -> None:
        coordinator = MultiSeedCoordinator(orchestrator)

        with patch("deepdocs.coordinator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await coordinator.resolve_all(["UIButton"], "UIKit")

        mock_sleep.assert_not_awaited()

    async def test_seeds_deduplicated_and_blank_dropped(self) -> None:
        stub = _StubOrchestrator({})
        coordinator = MultiSeedCoordinator(stub, politeness_delay=0)  # type: ignore[arg-type]

        result = await coordinator.resolve_all(["UIView", "uiview", "  UIView ", "", "UIButton"])

        assert result.seeds == ["UIView", "UIButton"]
        assert [seed for seed, _ in stub.seen] == ["UIView", "UIButton"]

    async def test_truncated_to_max_seeds(self) -> None:
        stub = _StubOrchestrator({})
        coordinator = MultiSeedCoordinator(  # type: ignore[arg-type]
            stub, max_seeds=8, politeness_delay=0
        )

        result = await coordinator.resolve_all([f"Seed{i}" for i in range(12)])

        assert len(result.seeds) == 8
        assert len(stub.seen) == 8
        assert result.seeds[-1] == "Seed7"

    async def test_framework_passed_through(self) -> None:
        stub = _StubOrchestrator({})
        coordinator = MultiSeedCoordinator(stub, politeness_delay=0)  # type: ignore[arg-type]

        await coordinator.resolve_all(["UIView"], "UIKit")

        assert stub.seen == [("UIView", "UIKit")]

    async def test_failures_do_not_abort_batch(self) -> None:
        entry = CacheEntry(identifier="UIButton", framework="UIKit")
        stub = _StubOrchestrator(
            {"Broken": RuntimeError("boom"), "Missing": [], "UIButton": [entry]}
        )
        coordinator = MultiSeedCoordinator(stub, politeness_delay=0)  # type: ignore[arg-type]

        result = await coordinator.resolve_all(["Broken", "Missing", "UIButton"])

        assert result.failed_seeds == ["Broken", "Missing"]
        assert [e.identifier for e in result.entries] == ["UIButton"]
        assert result.from_web == 1

    async def test_empty_batch(self) -> None:
        coordinator = MultiSeedCoordinator(_StubOrchestrator({}))  # type: ignore[arg-type]
        result = await coordinator.resolve_all([])
        assert result.total == 0
        assert result.seeds == []


class TestFromSettings:
    async def test_uses_crawl_settings(self) -> None:
        stub = _StubOrchestrator({})
        settings = CrawlSettings(max_seeds=2, politeness_delay_seconds=0)
        coordinator = MultiSeedCoordinator.from_settings(stub, settings)  # type: ignore[arg-type]

        result = await coordinator.resolve_all(["A", "B", "C"])

        assert result.seeds == ["A", "B"]
