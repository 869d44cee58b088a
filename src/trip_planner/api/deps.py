"""Request-scoped dependencies."""

from __future__ import annotations

from fastapi import Request

from ..services.routing.bridge import AIBridgeClient


def get_bridge(request: Request) -> AIBridgeClient | None:
    """The process-wide AI bridge client, or ``None`` when not configured."""
    return getattr(request.app.state, "bridge", None)
