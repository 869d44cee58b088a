"""Connectivity queries over a canvas snapshot.

Connections are treated as undirected edges. Self-loops and legs pointing at
boxes that are not on the canvas carry no connectivity and are skipped.
"""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Box, Connection


def build_adjacency(boxes: Sequence[Box], connections: Sequence[Connection]) -> dict[str, list[str]]:
    """Undirected adjacency lists in box order, neighbours in connection order."""
    adjacency: dict[str, list[str]] = {box.id: [] for box in boxes}
    for connection in connections:
        if connection.is_self_loop:
            continue
        if connection.from_id not in adjacency or connection.to_id not in adjacency:
            continue
        if connection.to_id not in adjacency[connection.from_id]:
            adjacency[connection.from_id].append(connection.to_id)
        if connection.from_id not in adjacency[connection.to_id]:
            adjacency[connection.to_id].append(connection.from_id)
    return adjacency


def reachable_from(adjacency: dict[str, list[str]], start_id: str) -> set[str]:
    seen = {start_id}
    stack = [start_id]
    while stack:
        current = stack.pop()
        for neighbour in adjacency.get(current, []):
            if neighbour not in seen:
                seen.add(neighbour)
                stack.append(neighbour)
    return seen


def is_fully_connected(boxes: Sequence[Box], connections: Sequence[Connection]) -> bool:
    """True when every box can reach every other box."""
    if not boxes:
        return False
    adjacency = build_adjacency(boxes, connections)
    return len(reachable_from(adjacency, boxes[0].id)) == len(adjacency)


def is_single_connected_path(boxes: Sequence[Box], connections: Sequence[Connection]) -> bool:
    """True when the canvas forms exactly one simple path through every box."""
    if not boxes:
        return False
    adjacency = build_adjacency(boxes, connections)
    if len(adjacency) == 1:
        return True
    if any(len(neighbours) > 2 for neighbours in adjacency.values()):
        return False
    edge_count = sum(len(neighbours) for neighbours in adjacency.values()) // 2
    if edge_count != len(adjacency) - 1:
        return False
    return len(reachable_from(adjacency, boxes[0].id)) == len(adjacency)


def path_endpoints(adjacency: dict[str, list[str]]) -> list[str]:
    """Boxes with exactly one neighbour, in box order."""
    return [box_id for box_id, neighbours in adjacency.items() if len(neighbours) == 1]
