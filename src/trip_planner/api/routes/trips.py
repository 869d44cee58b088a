"""Endpoints that read and update a stored trip's canvas."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from ..deps import get_bridge
from ...persistence.trips import (
    PersistenceUnavailableError,
    TripNotFoundError,
    canvas_fingerprint,
    load_trip,
    load_trip_canvas,
    save_trip_canvas,
)
from ...schemas.canvas import CanvasModel
from ...schemas.routing import ExportResponse, TripOptimizeRequest, TripOptimizeResponse
from ...services.canvas.editor import replace_connections
from ...services.export.route_export import ExportRejected, export_route
from ...services.routing.bridge import AIBridgeClient
from ...services.routing.service import (
    RouteRequestError,
    build_response,
    fill_pending_durations,
    plan_route,
)

router = APIRouter(prefix="/trips", tags=["trips"])

logger = logging.getLogger(__name__)


def _persistence_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, TripNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/{trip_id}/canvas", response_model=CanvasModel, status_code=status.HTTP_200_OK)
def get_canvas(trip_id: str) -> CanvasModel:
    try:
        return CanvasModel.from_domain(load_trip_canvas(trip_id))
    except (TripNotFoundError, PersistenceUnavailableError) as exc:
        raise _persistence_http_error(exc) from exc


@router.post("/{trip_id}/optimize", response_model=TripOptimizeResponse, status_code=status.HTTP_200_OK)
async def optimize_trip(
    trip_id: str,
    payload: TripOptimizeRequest,
    bridge: AIBridgeClient | None = Depends(get_bridge),
) -> TripOptimizeResponse:
    """Optimize the stored canvas and replace its connections with the new route.

    The result is dropped, not saved, if the trip's boxes changed while the
    optimization was in flight.
    """
    try:
        canvas = await run_in_threadpool(load_trip_canvas, trip_id)
        fingerprint = canvas_fingerprint(canvas)

        result = await plan_route(bridge, canvas.boxes, payload.start_box_id, payload.end_box_id)
        if payload.resolve_durations:
            await fill_pending_durations(bridge, canvas.boxes, result)

        trip_data, current = await run_in_threadpool(load_trip, trip_id)
        response = TripOptimizeResponse(**build_response(result).model_dump())
        if canvas_fingerprint(current) != fingerprint:
            logger.warning(f"Trip {trip_id} changed during optimization; discarding result")
            response.applied = False
            response.message = "Trip changed while optimizing; result was not applied"
            return response

        replace_connections(current, result.connections)
        await run_in_threadpool(save_trip_canvas, trip_id, current, trip_data)
        return response
    except RouteRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (TripNotFoundError, PersistenceUnavailableError) as exc:
        raise _persistence_http_error(exc) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing trip {trip_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize trip: {str(exc)}",
        ) from exc


@router.get("/{trip_id}/export", response_model=ExportResponse, status_code=status.HTTP_200_OK)
def export_trip(trip_id: str) -> ExportResponse:
    try:
        canvas = load_trip_canvas(trip_id)
    except (TripNotFoundError, PersistenceUnavailableError) as exc:
        raise _persistence_http_error(exc) from exc
    try:
        exported = export_route(canvas.boxes, canvas.connections)
    except ExportRejected as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.reason) from exc
    return ExportResponse(path=exported.path, addresses=exported.addresses, maps_url=exported.maps_url)
