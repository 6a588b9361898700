"""
Pydantic models for cellfilter.

Inbound event payload shapes. No imports from the kernel.
"""

from cellfilter.models.events import (
    PAYLOAD_MODELS,
    BrushCoords,
    CategoricalTogglePayload,
    ConstraintSpec,
    ContinuousBrushPayload,
    DatasetLoadedPayload,
    EmptyPayload,
    RecordSpec,
    SpatialBrushPayload,
)

__all__ = [
    "PAYLOAD_MODELS",
    "BrushCoords",
    "CategoricalTogglePayload",
    "ConstraintSpec",
    "ContinuousBrushPayload",
    "DatasetLoadedPayload",
    "EmptyPayload",
    "RecordSpec",
    "SpatialBrushPayload",
]
