"""
cellfilter Kernel - the selection engine.

Components:
  predicates  - one pure evaluator per filter axis + categorical transitions
  recompute   - (event, filters, store) -> RecomputeResult  (pure, deterministic)
  middleware  - interceptor that attaches the recomputed selection to events
  controls    - (controls, event) -> controls  (durable state reducer)
  store       - dispatch pipeline wiring middleware + controls
  index       - incremental per-axis index for large datasets
"""

from cellfilter.kernel.controls import ControlsState, empty_controls, reduce_controls, replay
from cellfilter.kernel.index import SelectionIndex
from cellfilter.kernel.middleware import apply_middleware, compose, intercept, selection_middleware
from cellfilter.kernel.primitives import validate_event
from cellfilter.kernel.recompute import evaluate, recompute
from cellfilter.kernel.records import RecordStore, build_store
from cellfilter.kernel.store import SelectionStore

__all__ = [
    "ControlsState",
    "RecordStore",
    "SelectionIndex",
    "SelectionStore",
    "apply_middleware",
    "build_store",
    "compose",
    "empty_controls",
    "evaluate",
    "intercept",
    "recompute",
    "reduce_controls",
    "replay",
    "selection_middleware",
    "validate_event",
]
