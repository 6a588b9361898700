"""
cellfilter Kernel - Shared Types

Data classes used across predicates, recompute, middleware, and controls.
These are the contracts that bind the kernel together.

Three orthogonal filter axes:
- categorical: field -> {value: is_active}
- continuous: brush constraints, one closed interval per dimension
- spatial: optional screen-space rectangle over the embedding
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Callable, Protocol

# ---------------------------------------------------------------------------
# Event type registry
# ---------------------------------------------------------------------------

SPATIAL_BRUSH_CHANGE = "spatial-brush-change"
SPATIAL_BRUSH_CLEAR = "spatial-brush-clear"
CONTINUOUS_BRUSH_CHANGE = "continuous-brush-change"
CATEGORICAL_SELECT = "categorical-select"
CATEGORICAL_DESELECT = "categorical-deselect"
CATEGORICAL_ONLY_THIS = "categorical-only-this"

DATASET_LOADED = "dataset-loaded"
DATASET_RESET = "dataset-reset"

FILTER_EVENT_TYPES: set[str] = {
    SPATIAL_BRUSH_CHANGE,
    SPATIAL_BRUSH_CLEAR,
    CONTINUOUS_BRUSH_CHANGE,
    CATEGORICAL_SELECT,
    CATEGORICAL_DESELECT,
    CATEGORICAL_ONLY_THIS,
}

SPATIAL_EVENT_TYPES: set[str] = {SPATIAL_BRUSH_CHANGE, SPATIAL_BRUSH_CLEAR}

CATEGORICAL_EVENT_TYPES: set[str] = {
    CATEGORICAL_SELECT,
    CATEGORICAL_DESELECT,
    CATEGORICAL_ONLY_THIS,
}

# Every type the controls reducer understands
CONTROL_EVENT_TYPES: set[str] = FILTER_EVENT_TYPES | {DATASET_LOADED, DATASET_RESET}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FilterConfigError(Exception):
    """A filter or dataset definition is inconsistent with the Record Store."""


class UnknownFieldError(FilterConfigError):
    """A toggle or constraint names a field (or value) the Record Store lacks."""

    def __init__(self, field_name: str, value: Any = None, *, kind: str = "categorical"):
        self.field_name = field_name
        self.value = value
        self.kind = kind
        if value is None:
            msg = f"Unknown {kind} field: {field_name!r}"
        else:
            msg = f"Unknown value {value!r} for {kind} field {field_name!r}"
        super().__init__(msg)


class DuplicateRecordKey(FilterConfigError):
    """Two records share an identity key."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


Scale = Callable[[float], float]


class ContinuousType(Protocol):
    """Comparison semantic for one continuous dimension."""

    name: str

    def within(self, value: Any, extent: tuple[float, float], dimension: ContinuousDimension) -> bool: ...


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Record:
    """
    One filterable cell.

    Immutable once loaded. The per-pass `selected` flag is never stored
    here; it lives in the SelectionResult of each recomputation.
    """

    key: str | int
    categorical: dict[str, Any] = field(default_factory=dict)
    continuous: dict[str, float] = field(default_factory=dict)
    coords: tuple[float, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "key": self.key,
            "categorical": dict(self.categorical),
            "continuous": dict(self.continuous),
        }
        if self.coords is not None:
            d["coords"] = list(self.coords)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Record:
        coords = d.get("coords")
        return cls(
            key=d["key"],
            categorical=dict(d.get("categorical", {})),
            continuous=dict(d.get("continuous", {})),
            coords=(float(coords[0]), float(coords[1])) if coords is not None else None,
        )


@dataclass(frozen=True)
class ContinuousDimension:
    """A continuous field plus the comparison used to test brush extents."""

    key: str
    type: ContinuousType

    def within(self, value: Any, extent: tuple[float, float]) -> bool:
        return self.type.within(value, extent, self)


@dataclass(frozen=True)
class BrushConstraint:
    """One active 1-D brush: closed interval over a continuous dimension."""

    dimension: ContinuousDimension
    extent: tuple[float, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimension": self.dimension.key,
            "type": self.dimension.type.name,
            "extent": list(self.extent),
        }


@dataclass(frozen=True)
class SpatialBrush:
    """Rectangle in screen coordinates, northwest and southeast corners."""

    northwest_x: float
    northwest_y: float
    southeast_x: float
    southeast_y: float

    def contains(self, x: float, y: float) -> bool:
        return (
            self.northwest_x <= x <= self.southeast_x
            and self.northwest_y <= y <= self.southeast_y
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "northwest_x": self.northwest_x,
            "northwest_y": self.northwest_y,
            "southeast_x": self.southeast_x,
            "southeast_y": self.southeast_y,
        }


@dataclass(frozen=True)
class CoordinateTransform:
    """Embedding-space -> screen-space mapping, one scale per axis."""

    x_scale: Scale
    y_scale: Scale

    def __call__(self, coords: tuple[float, float]) -> tuple[float, float]:
        return self.x_scale(coords[0]), self.y_scale(coords[1])


CategoricalMap = dict[str, dict[str, bool]]


@dataclass(frozen=True)
class FilterState:
    """
    The three filter axes, versioned.

    Never mutated. Every transition returns a new FilterState with
    version + 1, so consumers can compare versions cheaply.
    """

    version: int = 0
    categorical: CategoricalMap = field(default_factory=dict)
    continuous: tuple[BrushConstraint, ...] = ()
    spatial: SpatialBrush | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "categorical": {f: dict(values) for f, values in self.categorical.items()},
            "continuous": [c.to_dict() for c in self.continuous],
            "spatial": self.spatial.to_dict() if self.spatial is not None else None,
        }


@dataclass(frozen=True)
class SelectionEntry:
    key: str | int
    selected: bool


@dataclass(frozen=True)
class SelectionResult:
    """
    Output of one recomputation.

    entries mirror Record Store order. Replaced wholesale on every
    qualifying event, never updated in place.
    """

    entries: tuple[SelectionEntry, ...]
    categorical_filter_state: CategoricalMap

    @property
    def count(self) -> int:
        return sum(1 for e in self.entries if e.selected)

    def selected_keys(self) -> list[str | int]:
        return [e.key for e in self.entries if e.selected]

    def as_dict(self) -> dict[str | int, bool]:
        return {e.key: e.selected for e in self.entries}

    def to_dict(self) -> dict[str, Any]:
        return {
            "selection": [{"key": e.key, "selected": e.selected} for e in self.entries],
            "categorical_filter_state": {
                f: dict(values) for f, values in self.categorical_filter_state.items()
            },
        }


@dataclass(frozen=True)
class RecomputeResult:
    """Result of one pass of the Recomputation Engine."""

    filters: FilterState
    selection: SelectionResult


@dataclass
class Event:
    """
    A dispatched action.

    The interceptor reads `type` and `payload`; when it recomputes it
    returns a copy with `selection` and `filter_state` attached.
    """

    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    id: str = ""
    timestamp: str = ""
    source: str = "ui"
    selection: SelectionResult | None = None
    filter_state: FilterState | None = None

    @property
    def augmented(self) -> bool:
        return self.selection is not None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "source": self.source,
            "type": self.type,
            "payload": self.payload,
        }
        if self.selection is not None:
            d.update(self.selection.to_dict())
        if self.filter_state is not None:
            d["filter_state"] = self.filter_state.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Event:
        # Augmentation is never deserialized; it is recomputed on dispatch.
        return cls(
            type=d["type"],
            payload=d.get("payload", {}),
            sequence=d.get("sequence", 0),
            id=d.get("id", ""),
            timestamp=d.get("timestamp", ""),
            source=d.get("source", "ui"),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def category_key(value: Any) -> str:
    """
    String form used to compare categorical values.

    Numbers and strings compare as strings, so 3, 3.0 and "3" are the
    same category. Booleans render lowercase.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def is_missing(value: Any) -> bool:
    """True for None and NaN."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
