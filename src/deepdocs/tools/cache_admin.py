"""Tool handlers for cache maintenance: cache_stats, cleanup_cache, clear_cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deepdocs.lifecycle import clear_cache, cleanup_cache, get_cache_stats
from deepdocs.models.tools import CacheMaintenanceOutput, CacheStatsOutput

if TYPE_CHECKING:
    from deepdocs.state import AppState


async def handle_stats(state: AppState) -> dict:
    stats = get_cache_stats(state.cache)
    return CacheStatsOutput(stats=stats, disk_usage=stats.disk_usage).model_dump(mode="json")


async def handle_cleanup(state: AppState) -> dict:
    removed = cleanup_cache(state.cache, state.settings.cache.max_entries)
    return CacheMaintenanceOutput(action="cleanup", removed=removed).model_dump(mode="json")


async def handle_clear(state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="clear_cache")
    before = state.cache.count()
    clear_cache(state.cache, state.orchestrator)
    log.info("handler_complete", removed=before)
    return CacheMaintenanceOutput(action="clear", removed=before).model_dump(mode="json")
