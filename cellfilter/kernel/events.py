"""
cellfilter Kernel - Event Construction

Factory functions for creating well-formed events.
Used by the rendering layer to dispatch filter changes, and by tests to
build events concisely.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from typing import Any

from cellfilter.kernel.types import (
    CATEGORICAL_DESELECT,
    CATEGORICAL_ONLY_THIS,
    CATEGORICAL_SELECT,
    CONTINUOUS_BRUSH_CHANGE,
    DATASET_LOADED,
    DATASET_RESET,
    SPATIAL_BRUSH_CHANGE,
    SPATIAL_BRUSH_CLEAR,
    Event,
    Record,
    now_iso,
)

_sequence = itertools.count(1)


def next_sequence() -> int:
    """Process-wide monotonically increasing sequence number."""
    return next(_sequence)


def make_event(
    type: str,
    payload: dict[str, Any] | None = None,
    *,
    seq: int | None = None,
    source: str = "ui",
    timestamp: str | None = None,
    event_id: str | None = None,
) -> Event:
    """
    Build a complete Event from minimal inputs.

    seq defaults to the next process-wide sequence number; it also
    determines the event ID.
    """
    seq = seq if seq is not None else next_sequence()
    ts = timestamp or now_iso()
    eid = event_id or f"evt_{ts[:10].replace('-', '')}_{seq:03d}"
    return Event(
        type=type,
        payload=payload if payload is not None else {},
        sequence=seq,
        id=eid,
        timestamp=ts,
        source=source,
    )


# ---------------------------------------------------------------------------
# Filter events
# ---------------------------------------------------------------------------


def spatial_brush_change(
    northwest_x: float,
    northwest_y: float,
    southeast_x: float,
    southeast_y: float,
    **kwargs: Any,
) -> Event:
    return make_event(
        SPATIAL_BRUSH_CHANGE,
        {
            "brush": {
                "northwest_x": northwest_x,
                "northwest_y": northwest_y,
                "southeast_x": southeast_x,
                "southeast_y": southeast_y,
            }
        },
        **kwargs,
    )


def spatial_brush_clear(**kwargs: Any) -> Event:
    return make_event(SPATIAL_BRUSH_CLEAR, {}, **kwargs)


def continuous_brush_change(
    constraints: Iterable[tuple[str, tuple[float, float]]] | dict[str, tuple[float, float]],
    **kwargs: Any,
) -> Event:
    """
    constraints: {dimension: (lo, hi)} or [(dimension, (lo, hi)), ...].
    An empty collection clears every continuous brush.
    """
    items = constraints.items() if isinstance(constraints, dict) else constraints
    return make_event(
        CONTINUOUS_BRUSH_CHANGE,
        {"constraints": [{"dimension": dim, "extent": list(extent)} for dim, extent in items]},
        **kwargs,
    )


def categorical_select(field: str, value: Any, **kwargs: Any) -> Event:
    return make_event(CATEGORICAL_SELECT, {"field": field, "value": value}, **kwargs)


def categorical_deselect(field: str, value: Any, **kwargs: Any) -> Event:
    return make_event(CATEGORICAL_DESELECT, {"field": field, "value": value}, **kwargs)


def categorical_only_this(field: str, value: Any, **kwargs: Any) -> Event:
    return make_event(CATEGORICAL_ONLY_THIS, {"field": field, "value": value}, **kwargs)


# ---------------------------------------------------------------------------
# Dataset events
# ---------------------------------------------------------------------------


def dataset_loaded(
    records: Iterable[Record | dict[str, Any]],
    dimensions: dict[str, str] | None = None,
    **kwargs: Any,
) -> Event:
    payload: dict[str, Any] = {
        "records": [r.to_dict() if isinstance(r, Record) else r for r in records],
    }
    if dimensions:
        payload["dimensions"] = dict(dimensions)
    return make_event(DATASET_LOADED, payload, **kwargs)


def dataset_reset(**kwargs: Any) -> Event:
    return make_event(DATASET_RESET, {}, **kwargs)
