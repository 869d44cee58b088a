"""Route optimization orchestration."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ...models.domain import Box, Canvas, RouteResult
from ...persistence.filesystem import FileStorage
from ...schemas.canvas import ConnectionModel
from ...schemas.routing import OptimizeRequest, OptimizeResponse
from ..outputs.route_formatter import route_result_to_csv, route_result_to_json
from .bridge import AIBridgeClient, BridgeError
from .fallback import fallback_route
from .optimizer import RouteValidationError, request_optimized_route
from .travel_time import apply_durations, pending_connections, resolve_connection_durations

logger = logging.getLogger(__name__)


class RouteRequestError(ValueError):
    """The caller's optimization input breaks the request contract."""


def validate_route_request(boxes: Sequence[Box], start_id: str | None, end_id: str | None) -> None:
    if not boxes or not start_id or not end_id:
        raise RouteRequestError("Missing required fields: boxes, startBoxId, endBoxId")
    if len(boxes) < 2:
        raise RouteRequestError("At least two locations are required to plan a route.")
    box_ids = [box.id for box in boxes]
    if len(set(box_ids)) != len(box_ids):
        raise RouteRequestError("Box ids must be unique.")
    if start_id not in box_ids or end_id not in box_ids:
        raise RouteRequestError("Start or end box not found")
    if start_id == end_id:
        raise RouteRequestError("Start and end locations must be different.")


async def plan_route(
    bridge: AIBridgeClient | None,
    boxes: Sequence[Box],
    start_id: str,
    end_id: str,
    timeout: float | None = None,
) -> RouteResult:
    """Validated AI order, or the fallback order on any bridge-side failure."""
    validate_route_request(boxes, start_id, end_id)
    if bridge is None:
        return fallback_route(boxes, start_id, end_id, reason="AI bridge not configured")
    try:
        return await request_optimized_route(bridge, boxes, start_id, end_id, timeout=timeout)
    except asyncio.TimeoutError:
        reason = "AI optimization timed out"
    except (BridgeError, RouteValidationError) as exc:
        reason = f"{type(exc).__name__}: {exc}"
    logger.warning(f"Error getting optimized route, using fallback order: {reason}")
    return fallback_route(boxes, start_id, end_id, reason=reason)


async def fill_pending_durations(bridge: AIBridgeClient | None, boxes: Sequence[Box], result: RouteResult) -> int:
    pending = pending_connections(result.connections)
    if not pending:
        return 0
    canvas = Canvas(boxes=list(boxes), connections=result.connections)
    resolved = await resolve_connection_durations(bridge, canvas, pending)
    return apply_durations(canvas, resolved)


def build_response(result: RouteResult) -> OptimizeResponse:
    metadata: dict = {"stops": len(result.path)}
    if result.fallback_reason:
        metadata["fallback_reason"] = result.fallback_reason
    return OptimizeResponse(
        success=True,
        path=result.path,
        connections=[ConnectionModel.from_domain(connection) for connection in result.connections],
        source=result.source,
        message=f"Optimized route found with {len(result.path)} stops",
        metadata=metadata,
    )


async def optimize_route(payload: OptimizeRequest, bridge: AIBridgeClient | None) -> OptimizeResponse:
    boxes = [box.to_domain() for box in payload.boxes]
    result = await plan_route(bridge, boxes, payload.start_box_id, payload.end_box_id)

    if payload.resolve_durations:
        applied = await fill_pending_durations(bridge, boxes, result)
        logger.info(f"Resolved {applied} leg durations for optimized route")

    response = build_response(result)

    if payload.persist:
        try:
            storage = FileStorage()
            run_dir = storage.make_run_directory(
                prefix="route", source=result.source, stops=len(result.path)
            )
            storage.write_json(run_dir / "summary.json", route_result_to_json(result, boxes))
            storage.write_csv(run_dir / "path.csv", route_result_to_csv(result, boxes))
            response.metadata["output_dir"] = str(run_dir)
        except OSError as exc:
            # Log error but don't fail the request
            logger.warning(f"Failed to persist route outputs: {exc}")

    return response
