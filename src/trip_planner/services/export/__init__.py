"""Export services."""

from .route_export import (
    ExportRejected,
    ExportedRoute,
    boxes_from_addresses,
    build_maps_url,
    export_route,
    linearize,
)

__all__ = [
    "ExportRejected",
    "ExportedRoute",
    "linearize",
    "export_route",
    "build_maps_url",
    "boxes_from_addresses",
]
