"""Domain models for canvas boxes, connections and planned routes."""

from dataclasses import dataclass, field
from typing import Literal, Optional

AttachmentSide = Literal["top", "bottom"]

PENDING_DURATION = "Calculating..."
UNKNOWN_DURATION = "Unknown"


@dataclass(slots=True)
class Box:
    """A planned location on the trip canvas."""

    id: str
    title: str = ""
    description: str = ""
    address: str = ""
    x: float = 0.0
    y: float = 0.0

    @property
    def lookup_address(self) -> str:
        """Address used for map queries, falling back to the title."""
        return self.address.strip() or self.title.strip()


@dataclass(slots=True)
class Connection:
    """A directed travel leg between two boxes."""

    from_id: str
    to_id: str
    from_side: AttachmentSide = "bottom"
    to_side: AttachmentSide = "top"
    duration: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.from_id, self.to_id)

    @property
    def is_self_loop(self) -> bool:
        return self.from_id == self.to_id


@dataclass(slots=True)
class Canvas:
    """The planning payload stored under a trip document's canvas key."""

    boxes: list[Box] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)

    def box_index(self) -> dict[str, Box]:
        return {box.id: box for box in self.boxes}


@dataclass(slots=True)
class RouteResult:
    """An accepted visiting order plus the chain of legs over it."""

    path: list[str]
    connections: list[Connection]
    source: Literal["ai", "fallback"]
    fallback_reason: Optional[str] = None
