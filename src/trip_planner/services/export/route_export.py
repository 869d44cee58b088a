"""Collapse the user-edited canvas graph into one ordered route for export."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from urllib.parse import quote

from ...config import settings
from ...models.domain import Box, Connection
from ..canvas.graph import build_adjacency, is_single_connected_path, path_endpoints

NOT_CONNECTED_REASON = (
    "not fully connected: link every location into a single path before exporting the route"
)


class ExportRejected(ValueError):
    """The canvas does not form one connected path, so no route can be exported."""

    def __init__(self, reason: str = NOT_CONNECTED_REASON) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(slots=True)
class ExportedRoute:
    path: list[str]
    addresses: list[str]
    maps_url: str


def linearize(boxes: Sequence[Box], connections: Sequence[Connection]) -> list[str]:
    """Walk the canvas as an undirected graph and return the visiting order.

    Starts at the first degree-1 box (or the first box when there is none)
    and always steps to the first unvisited neighbour. On branching or
    disconnected graphs the walk dead-ends early and the result is a strict
    prefix; callers compare its length with the box count.
    """
    if not boxes:
        return []
    adjacency = build_adjacency(boxes, connections)
    endpoints = path_endpoints(adjacency)
    current = endpoints[0] if endpoints else boxes[0].id

    order = [current]
    visited = {current}
    while len(order) < len(adjacency):
        next_id = next((neighbour for neighbour in adjacency[current] if neighbour not in visited), None)
        if next_id is None:
            break
        order.append(next_id)
        visited.add(next_id)
        current = next_id
    return order


def build_maps_url(addresses: Sequence[str], base_url: str | None = None) -> str:
    """Google Maps directions deep-link through the given stops in order."""
    base = (base_url or settings.maps_directions_base_url).rstrip("/")
    return base + "/" + "/".join(quote(address, safe="") for address in addresses)


def export_route(boxes: Sequence[Box], connections: Sequence[Connection]) -> ExportedRoute:
    """Ordered ids and addresses for a canvas that forms exactly one path."""
    if not boxes or not is_single_connected_path(boxes, connections):
        raise ExportRejected()
    path = linearize(boxes, connections)
    if len(path) != len(boxes):
        raise ExportRejected()
    by_id = {box.id: box for box in boxes}
    addresses = [by_id[box_id].lookup_address for box_id in path]
    return ExportedRoute(path=path, addresses=addresses, maps_url=build_maps_url(addresses))


def boxes_from_addresses(addresses: Sequence[str]) -> list[Box]:
    """Re-import an exported address sequence as fresh boxes in the same order."""
    return [
        Box(id=f"stop-{index}", title=address, address=address, x=0.0, y=float(index) * 150.0)
        for index, address in enumerate(addresses, start=1)
    ]
