"""Route optimization, travel-time and export schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .canvas import BoxModel, ConnectionModel


class OptimizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    boxes: List[BoxModel] = Field(default_factory=list)
    start_box_id: Optional[str] = Field(default=None, alias="startBoxId")
    end_box_id: Optional[str] = Field(default=None, alias="endBoxId")
    resolve_durations: bool = Field(
        default=False,
        alias="resolveDurations",
        description="Fill pending leg durations through the travel-time resolver before returning.",
    )
    persist: bool = Field(default=False, description="Write the run summary to the data directory.")


class OptimizeResponse(BaseModel):
    success: bool = True
    path: List[str]
    connections: List[ConnectionModel]
    source: Literal["ai", "fallback"]
    message: str
    metadata: dict = Field(default_factory=dict)


class TravelTimeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(default="", alias="fromAddress")
    to_address: str = Field(default="", alias="toAddress")


class TravelTimeResponse(BaseModel):
    duration: str


class ExportResponse(BaseModel):
    path: List[str]
    addresses: List[str]
    maps_url: str


class TripOptimizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_box_id: Optional[str] = Field(default=None, alias="startBoxId")
    end_box_id: Optional[str] = Field(default=None, alias="endBoxId")
    resolve_durations: bool = Field(default=False, alias="resolveDurations")


class TripOptimizeResponse(OptimizeResponse):
    applied: bool = Field(
        default=True,
        description="False when the stored canvas changed while the optimization was in flight.",
    )
