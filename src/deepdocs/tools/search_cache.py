"""Tool handler for search_cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deepdocs.errors import DeepDocsError, ErrorCode
from deepdocs.models.tools import SearchCacheInput, SearchCacheOutput

if TYPE_CHECKING:
    from deepdocs.state import AppState


async def handle(term: str, framework: str | None, state: AppState) -> dict:
    """Handle a search_cache tool call. Reads the durable cache only."""
    log = structlog.get_logger().bind(tool="search_cache", term=term)
    log.info("handler_called", framework=framework)

    try:
        validated = SearchCacheInput(term=term, framework=framework)
    except ValueError as exc:
        raise DeepDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty search term.",
            recoverable=False,
        ) from exc

    matches = state.cache.search(validated.term, validated.framework)
    return SearchCacheOutput(matches=matches).model_dump(mode="json")
