"""
cellfilter Kernel - Selection Store

Wires the pipeline together: dispatch -> middlewares (interceptor first)
-> controls reducer -> subscribers.

Single-threaded and synchronous. Each event is fully processed before
the next one starts; a dispatch issued from inside a subscriber is
queued and runs after the current event finishes.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Sequence

from cellfilter.kernel.controls import ControlsResult, ControlsState, empty_controls, reduce_controls
from cellfilter.kernel.middleware import Middleware, apply_middleware, selection_middleware
from cellfilter.kernel.types import CoordinateTransform, Event

logger = logging.getLogger(__name__)

Listener = Callable[[ControlsState, Event], None]


class SelectionStore:
    """Holds the controls state and runs every event through the pipeline."""

    def __init__(
        self,
        transform: CoordinateTransform,
        *,
        middlewares: Sequence[Middleware] | None = None,
        state: ControlsState | None = None,
    ):
        self._state = state or empty_controls()
        self._listeners: list[Listener] = []
        self._queue: deque[Event] = deque()
        self._dispatching = False
        self.last_result: ControlsResult | None = None
        self._last_event: Event | None = None
        if middlewares is None:
            middlewares = [selection_middleware(transform)]
        self._dispatch = apply_middleware(self.get_state, self._reduce, *middlewares)

    def get_state(self) -> ControlsState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: Event) -> ControlsResult | None:
        """
        Process an event synchronously.

        The event object reaches the middlewares as given; the store does
        not stamp or copy it. Returns the reducer result, or None when the
        event was queued behind one already in progress. If any event in
        the drain raises, events still queued behind it are dropped.
        """
        if self._dispatching:
            self._queue.append(event)
            return None

        self._dispatching = True
        try:
            result = self._run(event)
            while self._queue:
                self._run(self._queue.popleft())
        finally:
            if self._queue:
                logger.warning("dispatch failed, dropping %d queued events", len(self._queue))
                self._queue.clear()
            self._dispatching = False
        return result

    # -- internal ------------------------------------------------------------

    def _run(self, event: Event) -> ControlsResult | None:
        self.last_result = None
        self._last_event = None
        self._dispatch(event)
        result = self.last_result
        if result is not None and result.applied:
            for listener in list(self._listeners):
                listener(self._state, self._last_event)
        return result

    def _reduce(self, event: Event) -> ControlsResult:
        result = reduce_controls(self._state, event)
        if result.applied:
            self._state = result.state
        else:
            logger.warning("event %s #%d rejected: %s", event.type, event.sequence, result.error)
        self.last_result = result
        self._last_event = event
        return result
