from __future__ import annotations

from deepdocs.models.batch import BatchResult
from deepdocs.models.cache import CacheEntry, CacheMetadata, CacheStats, DeprecationInfo
from deepdocs.models.page import FetchedPage, MethodInfo, PageFields, PropertyInfo
from deepdocs.models.tools import (
    CacheMaintenanceOutput,
    CacheStatsOutput,
    ResolveApiInput,
    ResolveApiOutput,
    ResolveApisInput,
    ResolveApisOutput,
    SearchCacheInput,
    SearchCacheOutput,
)

__all__ = [
    # cache
    "CacheEntry",
    "CacheMetadata",
    "CacheStats",
    "DeprecationInfo",
    # pages
    "FetchedPage",
    "PageFields",
    "PropertyInfo",
    "MethodInfo",
    # batch
    "BatchResult",
    # tools
    "ResolveApiInput",
    "ResolveApiOutput",
    "ResolveApisInput",
    "ResolveApisOutput",
    "SearchCacheInput",
    "SearchCacheOutput",
    "CacheStatsOutput",
    "CacheMaintenanceOutput",
]
