"""deepdocs MCP server.

Sets up structlog, builds AppState (cache store, fetcher, orchestrator,
coordinator) in the FastMCP lifespan, registers the resolve, search and
cache maintenance tools, and serves them over stdio.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import deepdocs.tools.cache_admin as t_cache_admin
import deepdocs.tools.resolve_api as t_resolve
import deepdocs.tools.search_cache as t_search
from deepdocs import __version__
from deepdocs.cache import CacheStore
from deepdocs.config import Settings
from deepdocs.coordinator import MultiSeedCoordinator
from deepdocs.errors import DeepDocsError
from deepdocs.fetcher import Fetcher, build_http_client
from deepdocs.lifecycle import initialize_cache
from deepdocs.orchestrator import RetrievalOrchestrator
from deepdocs.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable

    import httpx

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog from the logging settings. Runs once in the lifespan."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire cache, fetcher, orchestrator and coordinator from settings."""
    cache = CacheStore(
        settings.cache.dir,
        max_entries=settings.cache.max_entries,
        ttl_days=settings.cache.ttl_days,
    )
    fetcher = Fetcher.from_settings(http_client, settings.fetcher)
    orchestrator = RetrievalOrchestrator.from_settings(cache, fetcher, settings.crawl)
    coordinator = MultiSeedCoordinator.from_settings(orchestrator, settings.crawl)
    return AppState(
        settings=settings,
        cache=cache,
        fetcher=fetcher,
        orchestrator=orchestrator,
        coordinator=coordinator,
        http_client=http_client,
    )


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Build AppState on startup and close the HTTP client on shutdown."""
    settings = Settings()
    _setup_logging(settings)

    log.info("server_starting", version=__version__, cache_dir=settings.cache.dir)

    http_client = build_http_client(settings.fetcher)
    state = build_state(settings, http_client)
    initialize_cache(state.cache)

    log.info("server_started", version=__version__)

    try:
        yield state
    finally:
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("deepdocs", lifespan=lifespan)
# FastMCP has no version kwarg; set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: DeepDocsError) -> CallToolResult:
    """Convert a DeepDocsError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


async def _run_tool(tool: str, call: Awaitable[dict]) -> object:
    try:
        return await call
    except DeepDocsError as exc:
        log.warning(
            "tool_error",
            tool=tool,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        raise


@mcp.tool()
async def resolve_api(identifier: str, ctx: Context, framework: str | None = None) -> object:
    """Resolve an API identifier to documentation, plus up to 10 related APIs.

    Served from the local cache when possible. Pass a framework (e.g. "UIKit")
    to enable cache lookups and narrow the search.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("resolve_api", t_resolve.handle(identifier, framework, state))


@mcp.tool()
async def resolve_apis(identifiers: list[str], ctx: Context) -> object:
    """Resolve up to 8 API identifiers in sequence and report cache vs web counts."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("resolve_apis", t_resolve.handle_batch(identifiers, state))


@mcp.tool()
async def search_cache(term: str, ctx: Context, framework: str | None = None) -> object:
    """Search cached documentation by name, description, methods and properties."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("search_cache", t_search.handle(term, framework, state))


@mcp.tool()
async def cache_stats(ctx: Context) -> object:
    """Report cache size, frameworks, age range and the most accessed entry."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("cache_stats", t_cache_admin.handle_stats(state))


@mcp.tool()
async def cleanup_cache(ctx: Context) -> object:
    """Evict least-used entries when the cache exceeds its configured capacity."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("cleanup_cache", t_cache_admin.handle_cleanup(state))


@mcp.tool()
async def clear_cache(ctx: Context) -> object:
    """Delete all cached documentation."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("clear_cache", t_cache_admin.handle_clear(state))


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
