"""Operator-facing cache lifecycle calls.

Thin wrappers over CacheStore used at startup and by the maintenance tools.
None of them raise on storage failure; CacheStore logs and degrades.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from deepdocs.cache import CacheStore
    from deepdocs.models.cache import CacheStats
    from deepdocs.orchestrator import RetrievalOrchestrator

log = structlog.get_logger()


def initialize_cache(cache: CacheStore) -> CacheStats:
    """Ensure the storage directory exists and log a summary."""
    cache.ensure_storage()
    stats = cache.stats()
    log.info(
        "cache_initialized",
        path=str(cache.cache_dir),
        total_apis=stats.total_apis,
        disk_usage=stats.disk_usage,
        max_cache_size=stats.max_cache_size,
    )
    if stats.total_apis > 0:
        log.info("cache_frameworks", frameworks=stats.frameworks)
    return stats


def get_cache_stats(cache: CacheStore) -> CacheStats:
    return cache.stats()


def cleanup_cache(cache: CacheStore, capacity: int | None = None) -> int:
    """Evict least-used entries down to ``capacity`` (default: the store's max)."""
    limit = cache.max_entries if capacity is None else capacity
    removed = cache.evict_if_over_capacity(limit)
    log.info("cache_cleanup_complete", removed=removed, capacity=limit)
    return removed


def clear_cache(cache: CacheStore, orchestrator: RetrievalOrchestrator | None = None) -> None:
    """Delete all durable entries and, when given, the orchestrator's transient layer."""
    cache.clear()
    if orchestrator is not None:
        orchestrator.clear_transient()


def reset_all_cache_data(
    cache: CacheStore, orchestrator: RetrievalOrchestrator | None = None
) -> None:
    clear_cache(cache, orchestrator)
    log.info("cache_reset")
