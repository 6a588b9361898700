"""
cellfilter Kernel - Event Interceptor

Sits between dispatch and the controls reducer. For every filter event
it reads the current controls state, recomputes the selection, and
forwards a copy of the event with `selection` and `filter_state`
attached. Anything else is forwarded as the same object, untouched.

Middleware signature (function composition, applied right to left):

    middleware(get_state) -> (next) -> (event) -> result
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from functools import reduce
from typing import Any

from cellfilter.config import settings
from cellfilter.kernel.controls import ControlsState
from cellfilter.kernel.index import SelectionIndex
from cellfilter.kernel.primitives import validate_event
from cellfilter.kernel.recompute import recompute
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import FILTER_EVENT_TYPES, CoordinateTransform, Event

logger = logging.getLogger(__name__)

Dispatch = Callable[[Event], Any]
GetState = Callable[[], ControlsState]
Middleware = Callable[[GetState], Callable[[Dispatch], Dispatch]]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_filter_event(event: Event) -> bool:
    return event.type in FILTER_EVENT_TYPES


def intercept(
    event: Event,
    state: ControlsState,
    transform: CoordinateTransform,
    *,
    index: SelectionIndex | None = None,
    strict: bool | None = None,
) -> Event:
    """
    Return the event augmented with a fresh selection, or the event itself.

    Pass-through cases: not a filter event, dataset not loaded yet,
    payload fails validation. UnknownFieldError propagates.
    """
    if not is_filter_event(event) or state.store is None:
        return event

    errors = validate_event(event.type, event.payload)
    if errors:
        logger.warning("malformed %s event passed through: %s", event.type, "; ".join(errors))
        return event

    result = recompute(event, state.filters, state.store, transform, index=index, strict=strict)
    return replace(event, selection=result.selection, filter_state=result.filters)


def selection_middleware(
    transform: CoordinateTransform,
    *,
    use_index: bool | None = None,
    strict: bool | None = None,
) -> Middleware:
    """
    Interceptor as a pipeline stage.

    use_index=None defers to settings.should_index(len(store)). The index
    is rebuilt whenever the store object changes.
    """

    def middleware(get_state: GetState) -> Callable[[Dispatch], Dispatch]:
        indexed_store: RecordStore | None = None
        index: SelectionIndex | None = None

        def current_index(store: RecordStore | None) -> SelectionIndex | None:
            nonlocal indexed_store, index
            if store is None:
                indexed_store, index = None, None
                return None
            wanted = use_index if use_index is not None else settings.should_index(len(store))
            if not wanted:
                return None
            if store is not indexed_store:
                index = SelectionIndex(store, transform)
                indexed_store = store
            return index

        def wrap(next_: Dispatch) -> Dispatch:
            def handle(event: Event) -> Any:
                state = get_state()
                if is_filter_event(event):
                    idx = current_index(state.store)
                    event = intercept(event, state, transform, index=idx, strict=strict)
                return next_(event)

            return handle

        return wrap

    return middleware


def logging_middleware(level: int = logging.DEBUG) -> Middleware:
    """Log every event on its way through, with the selection count when attached."""

    def middleware(get_state: GetState) -> Callable[[Dispatch], Dispatch]:
        def wrap(next_: Dispatch) -> Dispatch:
            def handle(event: Event) -> Any:
                if event.selection is not None:
                    logger.log(
                        level,
                        "event %s #%d: %d selected",
                        event.type,
                        event.sequence,
                        event.selection.count,
                    )
                else:
                    logger.log(level, "event %s #%d", event.type, event.sequence)
                return next_(event)

            return handle

        return wrap

    return middleware


def compose(*funcs: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """compose(f, g, h)(x) == f(g(h(x))). No functions: identity."""
    if not funcs:
        return lambda x: x
    return reduce(lambda f, g: lambda x: f(g(x)), funcs)


def apply_middleware(get_state: GetState, dispatch: Dispatch, *middlewares: Middleware) -> Dispatch:
    """
    Chain middlewares in front of dispatch.

    The first middleware sees each event first; the last hands it to
    dispatch.
    """
    chain = [m(get_state) for m in middlewares]
    return compose(*chain)(dispatch)
