"""Payload models for the events the selection pipeline understands."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, field_validator, model_validator

CategoryValue = str | int | float | bool


class BrushCoords(BaseModel):
    """Screen-space rectangle, northwest and southeast corners."""

    model_config = {"extra": "forbid"}

    northwest_x: float
    northwest_y: float
    southeast_x: float
    southeast_y: float

    @model_validator(mode="after")
    def _corners_ordered(self) -> BrushCoords:
        corners = (self.northwest_x, self.northwest_y, self.southeast_x, self.southeast_y)
        if not all(math.isfinite(c) for c in corners):
            raise ValueError("brush corners must be finite")
        if self.northwest_x > self.southeast_x or self.northwest_y > self.southeast_y:
            raise ValueError("northwest corner must not lie beyond the southeast corner")
        return self


class SpatialBrushPayload(BaseModel):
    """spatial-brush-change"""

    model_config = {"extra": "forbid"}

    brush: BrushCoords


class EmptyPayload(BaseModel):
    """spatial-brush-clear"""

    model_config = {"extra": "forbid"}


class ConstraintSpec(BaseModel):
    """One 1-D brush. The comparison semantic comes from the dimension definition."""

    model_config = {"extra": "forbid"}

    dimension: str = Field(min_length=1)
    extent: tuple[float, float]

    @field_validator("extent")
    @classmethod
    def _finite(cls, v: tuple[float, float]) -> tuple[float, float]:
        if not all(math.isfinite(x) for x in v):
            raise ValueError("extent bounds must be finite")
        return v


class ContinuousBrushPayload(BaseModel):
    """continuous-brush-change: the full list of active brushes (empty = none)."""

    model_config = {"extra": "forbid"}

    constraints: list[ConstraintSpec] = Field(default_factory=list)


class CategoricalTogglePayload(BaseModel):
    """categorical-select / categorical-deselect / categorical-only-this"""

    model_config = {"extra": "forbid"}

    field: str = Field(min_length=1)
    value: CategoryValue


class RecordSpec(BaseModel):
    model_config = {"extra": "forbid"}

    key: str | int
    categorical: dict[str, CategoryValue] = Field(default_factory=dict)
    continuous: dict[str, float | None] = Field(default_factory=dict)
    coords: tuple[float, float] | None = None


class DatasetLoadedPayload(BaseModel):
    """dataset-loaded: records already in memory, plus optional dimension types."""

    model_config = {"extra": "forbid"}

    records: list[RecordSpec]
    dimensions: dict[str, str] = Field(default_factory=dict)


PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "spatial-brush-change": SpatialBrushPayload,
    "spatial-brush-clear": EmptyPayload,
    "continuous-brush-change": ContinuousBrushPayload,
    "categorical-select": CategoricalTogglePayload,
    "categorical-deselect": CategoricalTogglePayload,
    "categorical-only-this": CategoricalTogglePayload,
    "dataset-loaded": DatasetLoadedPayload,
    "dataset-reset": EmptyPayload,
}
