"""Integration test fixtures.

Provides a fully wired AppState over a temporary cache directory and a real
httpx client whose traffic the tests intercept with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from deepdocs.config import Settings
from deepdocs.server import build_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from deepdocs.state import AppState


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Points the cache at an isolated tmp directory and aims the fetcher at an
    unroutable address so nothing leaves the machine.
    """
    env = os.environ.copy()
    env["DEEPDOCS__CACHE__DIR"] = str(tmp_path / "api-cache")
    env["DEEPDOCS__FETCHER__BASE_URL"] = "http://127.0.0.1:1"
    env["DEEPDOCS__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cache={"dir": str(tmp_path / "api-cache"), "max_entries": 50},
        crawl={"politeness_delay_seconds": 0},
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Full AppState as the server lifespan would build it."""
    async with httpx.AsyncClient(follow_redirects=False) as client:
        state = build_state(settings, client)
        state.cache.ensure_storage()
        yield state
