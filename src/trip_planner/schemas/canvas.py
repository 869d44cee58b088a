"""Canvas request/response schemas.

Field aliases follow the JSON the canvas UI persists (``fromSide``,
``startBoxId`` ...), while Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import Box, Canvas, Connection


class BoxModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    x: float = 0.0
    y: float = 0.0
    title: str = ""
    description: str = ""
    address: str = ""

    def to_domain(self) -> Box:
        return Box(
            id=self.id,
            title=self.title,
            description=self.description,
            address=self.address,
            x=self.x,
            y=self.y,
        )

    @classmethod
    def from_domain(cls, box: Box) -> "BoxModel":
        return cls(
            id=box.id,
            x=box.x,
            y=box.y,
            title=box.title,
            description=box.description,
            address=box.address,
        )


class ConnectionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(..., alias="from")
    from_side: Literal["top", "bottom"] = Field(default="bottom", alias="fromSide")
    to_id: str = Field(..., alias="to")
    to_side: Literal["top", "bottom"] = Field(default="top", alias="toSide")
    duration: Optional[str] = None

    def to_domain(self) -> Connection:
        return Connection(
            from_id=self.from_id,
            to_id=self.to_id,
            from_side=self.from_side,
            to_side=self.to_side,
            duration=self.duration,
        )

    @classmethod
    def from_domain(cls, connection: Connection) -> "ConnectionModel":
        return cls(
            from_id=connection.from_id,
            from_side=connection.from_side,
            to_id=connection.to_id,
            to_side=connection.to_side,
            duration=connection.duration,
        )


class CanvasModel(BaseModel):
    boxes: List[BoxModel] = Field(default_factory=list)
    connections: List[ConnectionModel] = Field(default_factory=list)

    def to_domain(self) -> Canvas:
        return Canvas(
            boxes=[box.to_domain() for box in self.boxes],
            connections=[connection.to_domain() for connection in self.connections],
        )

    @classmethod
    def from_domain(cls, canvas: Canvas) -> "CanvasModel":
        return cls(
            boxes=[BoxModel.from_domain(box) for box in canvas.boxes],
            connections=[ConnectionModel.from_domain(connection) for connection in canvas.connections],
        )


def canvas_to_json(canvas: Canvas) -> dict:
    """Serialize a canvas with the UI's field names."""
    return CanvasModel.from_domain(canvas).model_dump(by_alias=True)


def canvas_from_json(payload: dict | None) -> Canvas:
    """Parse a stored canvas document; missing keys yield an empty canvas."""
    return CanvasModel.model_validate(payload or {}).to_domain()
