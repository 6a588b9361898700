"""
cellfilter Kernel - Predicates and Filter Transitions

Pure functions, one evaluator per filter axis:
  spatial_ok      record coordinate inside the screen-space brush
  continuous_ok   record value inside every active 1-D brush
  categorical_ok  record value matches no inactive (field, value) pair

Plus the categorical state machine (select / deselect / only-this) and
apply_event, which folds one filter event into the prior FilterState.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from cellfilter.config import settings
from cellfilter.kernel.dimensions import make_dimension
from cellfilter.kernel.primitives import parse_payload
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import (
    CATEGORICAL_DESELECT,
    CATEGORICAL_ONLY_THIS,
    CATEGORICAL_SELECT,
    CONTINUOUS_BRUSH_CHANGE,
    SPATIAL_BRUSH_CHANGE,
    SPATIAL_BRUSH_CLEAR,
    BrushConstraint,
    CategoricalMap,
    CoordinateTransform,
    Event,
    FilterState,
    Record,
    SpatialBrush,
    UnknownFieldError,
    category_key,
)

logger = logging.getLogger(__name__)

InactivePair = tuple[str, str]

# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


def spatial_ok(record: Record, brush: SpatialBrush | None, transform: CoordinateTransform) -> bool:
    """Closed rectangle test in screen space. Unmapped records are outside."""
    if brush is None:
        return True
    if record.coords is None:
        return False
    x, y = transform(record.coords)
    return brush.contains(x, y)


def continuous_ok(record: Record, constraints: Sequence[BrushConstraint]) -> bool:
    return all(
        c.dimension.within(record.continuous.get(c.dimension.key), c.extent)
        for c in constraints
    )


def inactive_pairs(cmap: CategoricalMap) -> list[InactivePair]:
    return [
        (field_name, value)
        for field_name, options in cmap.items()
        for value, is_active in options.items()
        if not is_active
    ]


def categorical_ok(record: Record, pairs: Iterable[InactivePair]) -> bool:
    for field_name, value in pairs:
        rv = record.categorical.get(field_name)
        if rv is not None and category_key(rv) == value:
            return False
    return True


# ---------------------------------------------------------------------------
# Categorical transitions
# ---------------------------------------------------------------------------


def _field_base(cmap: CategoricalMap, field_name: str, known_values: Iterable[str]) -> dict[str, bool]:
    base = {v: True for v in known_values}
    base.update(cmap.get(field_name, {}))
    return base


def select_value(
    cmap: CategoricalMap, field_name: str, value: Any, known_values: Iterable[str] = ()
) -> CategoricalMap:
    options = _field_base(cmap, field_name, known_values)
    options[category_key(value)] = True
    return {**cmap, field_name: options}


def deselect_value(
    cmap: CategoricalMap, field_name: str, value: Any, known_values: Iterable[str] = ()
) -> CategoricalMap:
    options = _field_base(cmap, field_name, known_values)
    options[category_key(value)] = False
    return {**cmap, field_name: options}


def select_only_value(
    cmap: CategoricalMap, field_name: str, value: Any, known_values: Iterable[str] = ()
) -> CategoricalMap:
    options = {v: False for v in _field_base(cmap, field_name, known_values)}
    options[category_key(value)] = True
    return {**cmap, field_name: options}


_TRANSITIONS = {
    CATEGORICAL_SELECT: select_value,
    CATEGORICAL_DESELECT: deselect_value,
    CATEGORICAL_ONLY_THIS: select_only_value,
}


# ---------------------------------------------------------------------------
# Event -> FilterState
# ---------------------------------------------------------------------------


def apply_event(
    filters: FilterState,
    event: Event,
    store: RecordStore | None,
    *,
    strict: bool | None = None,
) -> FilterState:
    """
    Fold one filter event into the prior FilterState.

    Returns a new FilterState with version + 1. Field references are
    checked against the store when one is given; with strict on, an
    unknown reference raises UnknownFieldError.
    """
    if strict is None:
        strict = settings.STRICT_FIELD_REFERENCES
    payload = parse_payload(event.type, event.payload)
    version = filters.version + 1

    if event.type == SPATIAL_BRUSH_CHANGE:
        brush = SpatialBrush(**payload.brush.model_dump())
        return replace(filters, version=version, spatial=brush)

    if event.type == SPATIAL_BRUSH_CLEAR:
        return replace(filters, version=version, spatial=None)

    if event.type == CONTINUOUS_BRUSH_CHANGE:
        constraints = tuple(
            BrushConstraint(
                dimension=_resolve_dimension(spec.dimension, store, strict),
                extent=spec.extent,
            )
            for spec in payload.constraints
        )
        return replace(filters, version=version, continuous=constraints)

    transition = _TRANSITIONS.get(event.type)
    if transition is None:
        raise ValueError(f"Not a filter event: {event.type}")

    known: list[str] = []
    if store is not None:
        _check_category(store, payload.field, payload.value, strict)
        known = store.categorical_values(payload.field)
    cmap = transition(filters.categorical, payload.field, payload.value, known)
    return replace(filters, version=version, categorical=cmap)


def _resolve_dimension(key: str, store: RecordStore | None, strict: bool):
    dim = store.dimension(key) if store is not None else None
    if dim is not None:
        return dim
    if store is not None:
        if strict:
            raise UnknownFieldError(key, kind="continuous")
        logger.warning("continuous brush on unknown dimension %r; records lack it and will be excluded", key)
    return make_dimension(key)


def _check_category(store: RecordStore, field_name: str, value: Any, strict: bool) -> None:
    if not store.has_categorical_field(field_name):
        if strict:
            raise UnknownFieldError(field_name)
        logger.warning("categorical toggle on unknown field %r", field_name)
    elif not store.has_category(field_name, value):
        if strict:
            raise UnknownFieldError(field_name, value)
        logger.warning("categorical toggle on unknown value %r of field %r", value, field_name)
