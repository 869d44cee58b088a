"""In-place canvas edits that keep connections and durations consistent."""

from __future__ import annotations

from typing import Iterable, Optional

from ...models.domain import PENDING_DURATION, UNKNOWN_DURATION, AttachmentSide, Box, Canvas, Connection


class CanvasError(ValueError):
    """Raised when an edit would leave the canvas in an invalid state."""


def add_box(canvas: Canvas, box: Box) -> Box:
    if box.id in canvas.box_index():
        raise CanvasError(f"Box '{box.id}' already exists.")
    canvas.boxes.append(box)
    return box


def remove_box(canvas: Canvas, box_id: str) -> None:
    """Delete a box together with every leg touching it."""
    canvas.boxes = [box for box in canvas.boxes if box.id != box_id]
    canvas.connections = [
        connection
        for connection in canvas.connections
        if connection.from_id != box_id and connection.to_id != box_id
    ]


def initial_duration(canvas: Canvas, from_id: str, to_id: str) -> str:
    """Pending when both ends have an address to look up, Unknown otherwise."""
    boxes = canvas.box_index()
    from_box, to_box = boxes.get(from_id), boxes.get(to_id)
    if from_box and to_box and from_box.address.strip() and to_box.address.strip():
        return PENDING_DURATION
    return UNKNOWN_DURATION


def add_connection(
    canvas: Canvas,
    from_id: str,
    to_id: str,
    from_side: AttachmentSide = "bottom",
    to_side: AttachmentSide = "top",
) -> Connection:
    if from_id == to_id:
        raise CanvasError(f"Cannot connect box '{from_id}' to itself.")
    boxes = canvas.box_index()
    missing = [box_id for box_id in (from_id, to_id) if box_id not in boxes]
    if missing:
        raise CanvasError(f"Unknown box id(s): {', '.join(missing)}")
    for existing in canvas.connections:
        if existing.key == (from_id, to_id) and existing.from_side == from_side and existing.to_side == to_side:
            return existing
    connection = Connection(
        from_id=from_id,
        to_id=to_id,
        from_side=from_side,
        to_side=to_side,
        duration=initial_duration(canvas, from_id, to_id),
    )
    canvas.connections.append(connection)
    return connection


def clear_connections(canvas: Canvas) -> None:
    canvas.connections = []


def replace_connections(canvas: Canvas, connections: Iterable[Connection]) -> None:
    """Install a new leg set wholesale, as an optimization result does."""
    canvas.connections = list(connections)


def update_box(
    canvas: Canvas,
    box_id: str,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    address: Optional[str] = None,
) -> list[Connection]:
    """Edit a box in place.

    Returns the legs whose duration was reset because the address changed, so
    the caller can schedule fresh travel-time lookups for them.
    """
    box = canvas.box_index().get(box_id)
    if box is None:
        raise CanvasError(f"Unknown box id: {box_id}")
    if title is not None:
        box.title = title
    if description is not None:
        box.description = description
    if address is None or address == box.address:
        return []

    box.address = address
    touched: list[Connection] = []
    for connection in canvas.connections:
        if box_id in connection.key:
            connection.duration = initial_duration(canvas, connection.from_id, connection.to_id)
            touched.append(connection)
    return touched
