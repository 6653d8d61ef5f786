"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from deepdocs.cache import CacheStore
    from deepdocs.config import Settings
    from deepdocs.coordinator import MultiSeedCoordinator
    from deepdocs.orchestrator import RetrievalOrchestrator
    from deepdocs.protocols import FetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    cache: CacheStore
    fetcher: FetcherProtocol
    orchestrator: RetrievalOrchestrator
    coordinator: MultiSeedCoordinator
    http_client: httpx.AsyncClient | None = None
