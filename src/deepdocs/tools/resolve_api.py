"""Tool handlers for resolve_api and resolve_apis.

Receive AppState, delegate to the orchestrator / coordinator, and return
structured dicts. No MCP or FastMCP imports; server.py handles the MCP
wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deepdocs.errors import DeepDocsError, ErrorCode
from deepdocs.models.tools import (
    ResolveApiInput,
    ResolveApiOutput,
    ResolveApisInput,
    ResolveApisOutput,
)

if TYPE_CHECKING:
    from deepdocs.state import AppState


async def handle(identifier: str, framework: str | None, state: AppState) -> dict:
    """Handle a resolve_api tool call."""
    log = structlog.get_logger().bind(tool="resolve_api", identifier=identifier)
    log.info("handler_called", framework=framework)

    try:
        validated = ResolveApiInput(identifier=identifier, framework=framework)
    except ValueError as exc:
        raise DeepDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty API identifier such as 'UIAlertController'.",
            recoverable=False,
        ) from exc

    entries = await state.orchestrator.resolve(validated.identifier, validated.framework)
    log.info("resolve_complete", records=len(entries))

    output = ResolveApiOutput(
        identifier=validated.identifier,
        framework=validated.framework,
        entries=entries,
    )
    return output.model_dump(mode="json")


async def handle_batch(identifiers: list[str], state: AppState) -> dict:
    """Handle a resolve_apis tool call."""
    log = structlog.get_logger().bind(tool="resolve_apis")
    log.info("handler_called", seeds=len(identifiers))

    try:
        validated = ResolveApisInput(identifiers=identifiers)
    except ValueError as exc:
        raise DeepDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a list of non-empty API identifiers.",
            recoverable=False,
        ) from exc

    batch = await state.coordinator.resolve_all(validated.identifiers)

    output = ResolveApisOutput(
        entries=batch.entries,
        from_cache=batch.from_cache,
        from_web=batch.from_web,
        total=batch.total,
        failed_seeds=batch.failed_seeds,
    )
    return output.model_dump(mode="json")
