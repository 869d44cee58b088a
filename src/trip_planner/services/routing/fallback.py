"""Deterministic visiting order used whenever the AI plan is unavailable."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import PENDING_DURATION, Box, Connection, RouteResult


def fallback_path(boxes: Sequence[Box], start_id: str, end_id: str) -> list[str]:
    """Start, then every other box in input order, then end."""
    middle = [box.id for box in boxes if box.id not in (start_id, end_id)]
    return [start_id, *middle, end_id]


def chain_connections(
    path: Sequence[str],
    durations: Optional[dict[tuple[str, str], str]] = None,
    default_duration: str = PENDING_DURATION,
) -> list[Connection]:
    """One leg per consecutive pair, leaving from the bottom and entering at the top."""
    durations = durations or {}
    return [
        Connection(
            from_id=from_id,
            to_id=to_id,
            from_side="bottom",
            to_side="top",
            duration=durations.get((from_id, to_id), default_duration),
        )
        for from_id, to_id in zip(path, path[1:])
    ]


def fallback_route(
    boxes: Sequence[Box],
    start_id: str,
    end_id: str,
    reason: str | None = None,
) -> RouteResult:
    path = fallback_path(boxes, start_id, end_id)
    return RouteResult(
        path=path,
        connections=chain_connections(path),
        source="fallback",
        fallback_reason=reason,
    )
