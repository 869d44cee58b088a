"""Serializers for optimization outputs."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ...models.domain import Box, RouteResult


def route_result_to_json(result: RouteResult, boxes: Sequence[Box]) -> dict:
    by_id = {box.id: box for box in boxes}
    return {
        "source": result.source,
        "fallback_reason": result.fallback_reason,
        "path": result.path,
        "stops": [
            {
                "sequence": sequence,
                "box_id": box_id,
                "title": by_id[box_id].title if box_id in by_id else "",
                "address": by_id[box_id].lookup_address if box_id in by_id else "",
            }
            for sequence, box_id in enumerate(result.path, start=1)
        ],
        "connections": [
            {
                "from": connection.from_id,
                "fromSide": connection.from_side,
                "to": connection.to_id,
                "toSide": connection.to_side,
                "duration": connection.duration,
            }
            for connection in result.connections
        ],
    }


def route_result_to_csv(result: RouteResult, boxes: Sequence[Box]) -> str:
    by_id = {box.id: box for box in boxes}
    incoming = {connection.to_id: connection.duration for connection in result.connections}
    buffer = io.StringIO()
    fieldnames = ["sequence", "box_id", "title", "address", "duration_from_prev", "source"]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for sequence, box_id in enumerate(result.path, start=1):
        box = by_id.get(box_id)
        writer.writerow(
            {
                "sequence": sequence,
                "box_id": box_id,
                "title": box.title if box else "",
                "address": box.lookup_address if box else "",
                "duration_from_prev": incoming.get(box_id) or "",
                "source": result.source,
            }
        )
    return buffer.getvalue()
