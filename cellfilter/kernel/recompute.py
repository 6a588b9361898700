"""
cellfilter Kernel - Selection Recomputation Engine

Pure function: (event, filters, store) -> RecomputeResult
No side effects. No IO. Deterministic.

Every record starts selected. Each active axis can only clear the flag,
never set it, so the axes are independent AND-combinations and their
order does not affect the outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cellfilter.kernel.predicates import (
    apply_event,
    categorical_ok,
    continuous_ok,
    inactive_pairs,
    spatial_ok,
)
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import (
    CoordinateTransform,
    Event,
    FilterState,
    RecomputeResult,
    SelectionEntry,
    SelectionResult,
)

if TYPE_CHECKING:
    from cellfilter.kernel.index import SelectionIndex

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def recompute(
    event: Event,
    filters: FilterState,
    store: RecordStore,
    transform: CoordinateTransform,
    *,
    index: SelectionIndex | None = None,
    strict: bool | None = None,
) -> RecomputeResult:
    """
    Merge the event's filter delta into the prior filters and re-evaluate
    every record.

    The input filters and store are never modified.
    """
    new_filters = apply_event(filters, event, store, strict=strict)
    if index is not None:
        selection = index.select(new_filters)
    else:
        selection = evaluate(new_filters, store, transform)
    logger.debug(
        "recompute %s: %d/%d selected (filters v%d)",
        event.type,
        selection.count,
        len(store),
        new_filters.version,
    )
    return RecomputeResult(filters=new_filters, selection=selection)


def evaluate(filters: FilterState, store: RecordStore, transform: CoordinateTransform) -> SelectionResult:
    """Full scan over the store with an already-merged FilterState."""
    selected = [True] * len(store)

    if filters.spatial is not None:
        for i, rec in enumerate(store):
            if not spatial_ok(rec, filters.spatial, transform):
                selected[i] = False

    if filters.continuous:
        for i, rec in enumerate(store):
            if not continuous_ok(rec, filters.continuous):
                selected[i] = False

    pairs = inactive_pairs(filters.categorical)
    if pairs:
        for i, rec in enumerate(store):
            if not categorical_ok(rec, pairs):
                selected[i] = False

    return SelectionResult(
        entries=tuple(SelectionEntry(key=rec.key, selected=sel) for rec, sel in zip(store, selected)),
        categorical_filter_state=filters.categorical,
    )


def select_all(store: RecordStore, filters: FilterState) -> SelectionResult:
    """Selection for a freshly loaded dataset: every record selected."""
    return SelectionResult(
        entries=tuple(SelectionEntry(key=rec.key, selected=True) for rec in store),
        categorical_filter_state=filters.categorical,
    )
