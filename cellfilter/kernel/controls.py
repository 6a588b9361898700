"""
cellfilter Kernel - Controls Reducer

Pure function: (controls, event) -> ControlsResult
Durable state downstream of the interceptor. It never recomputes a
selection itself: filter events arrive with `selection` and
`filter_state` already attached, and the reducer adopts them.

Filter events before any dataset is loaded are rejected as NOT_LOADED;
loading a dataset starts from fresh filters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from cellfilter.kernel.primitives import parse_payload, validate_event
from cellfilter.kernel.recompute import select_all
from cellfilter.kernel.records import RecordStore, build_store
from cellfilter.kernel.types import (
    DATASET_LOADED,
    DATASET_RESET,
    FILTER_EVENT_TYPES,
    DuplicateRecordKey,
    Event,
    FilterState,
    SelectionResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlsState:
    """Everything the rendering layer reads."""

    store: RecordStore | None = None
    filters: FilterState = field(default_factory=FilterState)
    selection: SelectionResult | None = None

    @property
    def loaded(self) -> bool:
        return self.store is not None


@dataclass
class ControlsResult:
    """
    Result of applying one event to the controls.
    The reducer never throws; it always returns one of these.
    """

    state: ControlsState
    applied: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def empty_controls() -> ControlsState:
    """Nothing loaded, no filters."""
    return ControlsState()


def reduce_controls(state: ControlsState, event: Event) -> ControlsResult:
    """
    Apply one event to the controls.
    The input state is never modified.
    """
    if event.type in FILTER_EVENT_TYPES:
        return _filter_changed(state, event)
    handler = _HANDLERS.get(event.type)
    if handler is None:
        return _reject(state, "UNKNOWN_EVENT", event.type)
    return handler(state, event)


def replay(events: list[Event]) -> ControlsState:
    """
    Rebuild controls from scratch by reducing over all events.
    Only meaningful for events that already carry their augmentation.
    """
    state = empty_controls()
    for event in events:
        result = reduce_controls(state, event)
        if result.applied:
            state = result.state
    return state


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(state: ControlsState, code: str, msg: str) -> ControlsResult:
    return ControlsResult(state=state, applied=False, error=f"{code}: {msg}")


def _ok(state: ControlsState) -> ControlsResult:
    return ControlsResult(state=state, applied=True)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _dataset_loaded(state: ControlsState, event: Event) -> ControlsResult:
    errors = validate_event(event.type, event.payload)
    if errors:
        return _reject(state, "INVALID_PAYLOAD", "; ".join(errors))

    payload = parse_payload(event.type, event.payload)
    try:
        store = build_store(
            (r.model_dump() for r in payload.records),
            dimensions=payload.dimensions,
        )
    except DuplicateRecordKey as exc:
        return _reject(state, "DUPLICATE_KEY", str(exc))
    except ValueError as exc:
        return _reject(state, "UNKNOWN_DIMENSION_TYPE", str(exc))

    filters = FilterState(
        version=state.filters.version + 1,
        categorical=store.initial_categorical_map(),
    )
    logger.info(
        "dataset loaded: %d records, %d categorical fields, %d continuous dimensions",
        len(store),
        len(store.categorical_fields),
        len(store.dimensions),
    )
    return _ok(ControlsState(store=store, filters=filters, selection=select_all(store, filters)))


def _dataset_reset(state: ControlsState, event: Event) -> ControlsResult:
    return _ok(empty_controls())


def _filter_changed(state: ControlsState, event: Event) -> ControlsResult:
    if state.store is None:
        return _reject(state, "NOT_LOADED", f"{event.type} before any dataset was loaded")
    if event.filter_state is not None and event.selection is not None:
        return _ok(ControlsState(store=state.store, filters=event.filter_state, selection=event.selection))

    # The interceptor recomputes every valid filter event once loaded
    return _reject(state, "UNAUGMENTED", f"{event.type} reached the controls without a selection")


_HANDLERS: dict[str, Any] = {
    DATASET_LOADED: _dataset_loaded,
    DATASET_RESET: _dataset_reset,
}
