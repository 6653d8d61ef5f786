"""Sequential multi-seed resolution with a politeness pause between seeds."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from deepdocs.models.batch import BatchResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deepdocs.config import CrawlSettings
    from deepdocs.models.cache import CacheEntry
    from deepdocs.orchestrator import RetrievalOrchestrator

log = structlog.get_logger()


class MultiSeedCoordinator:
    """Drives the orchestrator over a batch of seed identifiers."""

    def __init__(
        self,
        orchestrator: RetrievalOrchestrator,
        *,
        max_seeds: int = 8,
        politeness_delay: float = 0.2,
    ) -> None:
        self._orchestrator = orchestrator
        self._max_seeds = max_seeds
        self._politeness_delay = politeness_delay

    @classmethod
    def from_settings(
        cls, orchestrator: RetrievalOrchestrator, settings: CrawlSettings
    ) -> MultiSeedCoordinator:
        return cls(
            orchestrator,
            max_seeds=settings.max_seeds,
            politeness_delay=settings.politeness_delay_seconds,
        )

    async def resolve_all(self, seeds: Iterable[str], framework: str | None = None) -> BatchResult:
        """Resolve up to ``max_seeds`` distinct seeds one after another.

        A seed that fails or resolves to nothing is logged and recorded in
        ``failed_seeds``; the batch always completes.
        """
        seen: set[str] = set()
        unique: list[str] = []
        for seed in seeds:
            seed = seed.strip()
            if seed and seed.lower() not in seen:
                seen.add(seed.lower())
                unique.append(seed)
        batch = unique[: self._max_seeds]
        if len(unique) > len(batch):
            log.info("seeds_truncated", requested=len(unique), limit=self._max_seeds)

        entries: list[CacheEntry] = []
        failed: list[str] = []

        for index, seed in enumerate(batch):
            if index > 0:
                await asyncio.sleep(self._politeness_delay)

            try:
                resolved = await self._orchestrator.resolve(seed, framework)
            except Exception:
                log.error("seed_resolution_failed", seed=seed, exc_info=True)
                failed.append(seed)
                continue

            if not resolved:
                log.warning("seed_unresolved", seed=seed)
                failed.append(seed)
                continue

            entries.extend(resolved)

        from_cache = sum(1 for entry in entries if entry.from_cache)
        result = BatchResult(
            seeds=batch,
            entries=entries,
            from_cache=from_cache,
            from_web=len(entries) - from_cache,
            failed_seeds=failed,
        )
        log.info(
            "batch_complete",
            seeds=len(batch),
            records=result.total,
            from_cache=result.from_cache,
            from_web=result.from_web,
            failed=len(failed),
        )
        return result
