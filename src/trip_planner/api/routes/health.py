"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..deps import get_bridge
from ...services.routing.bridge import AIBridgeClient

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/bridge", status_code=status.HTTP_200_OK)
async def health_bridge(bridge: AIBridgeClient | None = Depends(get_bridge)) -> dict:
    """Check that the AI bridge answers prompts."""
    if bridge is None:
        return {"service": "ai_bridge", "configured": False, "healthy": False}
    return {"service": "ai_bridge", "configured": True, "healthy": await bridge.check_health()}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and trips table access."""
    from ...config import settings
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set TRIP_SUPABASE_URL and TRIP_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(settings.trips_table).select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "message": f"Database connected. Table '{settings.trips_table}' is reachable.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
