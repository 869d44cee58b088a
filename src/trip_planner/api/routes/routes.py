"""Route planning endpoints: optimize, travel time, export."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_bridge
from ...schemas.canvas import CanvasModel
from ...schemas.routing import (
    ExportResponse,
    OptimizeRequest,
    OptimizeResponse,
    TravelTimeRequest,
    TravelTimeResponse,
)
from ...services.export.route_export import ExportRejected, export_route
from ...services.routing.bridge import AIBridgeClient
from ...services.routing.service import RouteRequestError, optimize_route
from ...services.routing.travel_time import resolve_travel_time

router = APIRouter(tags=["routes"])


@router.post("/optimize", response_model=OptimizeResponse, status_code=status.HTTP_200_OK)
async def optimize(
    payload: OptimizeRequest,
    bridge: AIBridgeClient | None = Depends(get_bridge),
) -> OptimizeResponse:
    try:
        return await optimize_route(payload, bridge)
    except RouteRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Optimize API error: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc


@router.post("/travel-time", response_model=TravelTimeResponse, status_code=status.HTTP_200_OK)
async def travel_time(
    payload: TravelTimeRequest,
    bridge: AIBridgeClient | None = Depends(get_bridge),
) -> TravelTimeResponse:
    """Driving time between two addresses; ``Unknown`` when it cannot be resolved."""
    duration = await resolve_travel_time(bridge, payload.from_address, payload.to_address)
    return TravelTimeResponse(duration=duration)


@router.post("/export/route", response_model=ExportResponse, status_code=status.HTTP_200_OK)
def export_canvas_route(payload: CanvasModel) -> ExportResponse:
    canvas = payload.to_domain()
    try:
        exported = export_route(canvas.boxes, canvas.connections)
    except ExportRejected as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.reason) from exc
    return ExportResponse(path=exported.path, addresses=exported.addresses, maps_url=exported.maps_url)
