"""Canvas graph helpers."""

from .editor import (
    CanvasError,
    add_box,
    add_connection,
    clear_connections,
    remove_box,
    replace_connections,
    update_box,
)
from .graph import build_adjacency, is_fully_connected, is_single_connected_path

__all__ = [
    "CanvasError",
    "add_box",
    "add_connection",
    "clear_connections",
    "remove_box",
    "replace_connections",
    "update_box",
    "build_adjacency",
    "is_fully_connected",
    "is_single_connected_path",
]
