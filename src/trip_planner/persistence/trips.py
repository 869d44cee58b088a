"""Trip document persistence in Supabase.

A trip row carries an opaque ``trip_data`` JSONB document; only the canvas
key inside it is read or written here; every other key is passed through
untouched.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Canvas
from ..schemas.canvas import canvas_from_json, canvas_to_json

logger = logging.getLogger(__name__)


class PersistenceUnavailableError(RuntimeError):
    """Supabase is not configured for this deployment."""


class TripNotFoundError(LookupError):
    """No trip row matches the requested id."""


def _require_client():
    supabase = get_supabase_client()
    if not supabase:
        raise PersistenceUnavailableError(
            "Supabase not configured. Set TRIP_SUPABASE_URL and TRIP_SUPABASE_KEY environment variables."
        )
    return supabase


def load_trip_document(trip_id: str) -> dict[str, Any]:
    supabase = _require_client()
    response = (
        supabase.table(settings.trips_table)
        .select("id, trip_data")
        .eq("id", trip_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        raise TripNotFoundError(f"Trip '{trip_id}' not found")
    trip_data = rows[0].get("trip_data")
    return trip_data if isinstance(trip_data, dict) else {}


def load_trip_canvas(trip_id: str) -> Canvas:
    return canvas_from_json(load_trip_document(trip_id).get(settings.canvas_key))


def load_trip(trip_id: str) -> tuple[dict[str, Any], Canvas]:
    """The stored ``trip_data`` document together with its parsed canvas."""
    trip_data = load_trip_document(trip_id)
    return trip_data, canvas_from_json(trip_data.get(settings.canvas_key))


def save_trip_canvas(trip_id: str, canvas: Canvas, trip_data: dict[str, Any] | None = None) -> None:
    """Write the canvas back, keeping the rest of ``trip_data`` as stored.

    Pass the document the canvas was loaded from to write it back without
    reading the row again.
    """
    supabase = _require_client()
    document = dict(trip_data) if trip_data is not None else load_trip_document(trip_id)
    document[settings.canvas_key] = canvas_to_json(canvas)
    supabase.table(settings.trips_table).update({"trip_data": document}).eq("id", trip_id).execute()
    logger.info(
        f"Saved canvas for trip {trip_id}: {len(canvas.boxes)} boxes, {len(canvas.connections)} connections"
    )


def canvas_fingerprint(canvas: Canvas) -> str:
    """Hash of what an optimization depends on: box ids, titles and addresses.

    Layout moves and leg edits do not change it.
    """
    material = [(box.id, box.title, box.address) for box in canvas.boxes]
    return hashlib.sha256(json.dumps(material, ensure_ascii=False).encode("utf-8")).hexdigest()
