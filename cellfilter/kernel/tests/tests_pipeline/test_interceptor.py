"""
Interceptor -- recognition, pass-through, augmentation

Covers:
  - unrecognized event: same object back, nothing attached
  - dataset not loaded: same object back
  - malformed payload: same object back, warning logged
  - filter event: new event with selection + filter_state; input untouched
  - selection_middleware forwards the augmented event to next
  - compose / apply_middleware ordering
  - the index path gives the same selection as the scan
"""

import copy
import logging

from cellfilter.kernel.controls import ControlsState
from cellfilter.kernel.events import (
    categorical_deselect,
    make_event,
    spatial_brush_change,
)
from cellfilter.kernel.middleware import (
    apply_middleware,
    compose,
    intercept,
    logging_middleware,
    selection_middleware,
)
from cellfilter.kernel.types import Event


def loaded(store, filters):
    return ControlsState(store=store, filters=filters)


class TestPassThrough:
    def test_unrecognized_event_is_same_object(self, store, filters, transform):
        ev = make_event("rename-field", {"from": "tissue", "to": "organ"})
        before = copy.deepcopy(ev.to_dict())
        out = intercept(ev, loaded(store, filters), transform)
        assert out is ev
        assert out.selection is None
        assert out.filter_state is None
        assert out.to_dict() == before

    def test_dataset_not_loaded(self, transform):
        ev = spatial_brush_change(0, 0, 6, 6)
        out = intercept(ev, ControlsState(), transform)
        assert out is ev
        assert not out.augmented

    def test_malformed_payload(self, store, filters, transform, caplog):
        ev = make_event("categorical-select", {"value": "liver"})
        with caplog.at_level(logging.WARNING, logger="cellfilter.kernel.middleware"):
            out = intercept(ev, loaded(store, filters), transform)
        assert out is ev
        assert "malformed categorical-select" in caplog.text


class TestAugmentation:
    def test_filter_event_gets_selection(self, store, filters, transform):
        ev = spatial_brush_change(0, 0, 6, 6)
        out = intercept(ev, loaded(store, filters), transform)
        assert out is not ev
        assert out.type == ev.type
        assert out.payload == ev.payload
        assert out.sequence == ev.sequence
        assert out.selection.as_dict() == {"A": True, "B": True, "C": False}
        assert out.filter_state.spatial is not None

    def test_input_event_not_mutated(self, store, filters, transform):
        ev = categorical_deselect("tissue", "liver")
        intercept(ev, loaded(store, filters), transform)
        assert ev.selection is None
        assert ev.filter_state is None

    def test_to_dict_carries_augmentation(self, store, filters, transform):
        out = intercept(categorical_deselect("tissue", "liver"), loaded(store, filters), transform)
        d = out.to_dict()
        assert d["selection"][1] == {"key": "B", "selected": False}
        assert d["categorical_filter_state"]["tissue"] == {"brain": True, "liver": False}
        assert d["filter_state"]["version"] == filters.version + 1

    def test_from_dict_drops_augmentation(self, store, filters, transform):
        ev = categorical_deselect("tissue", "liver")
        out = intercept(ev, loaded(store, filters), transform)
        restored = Event.from_dict(out.to_dict())
        assert restored == ev
        assert not restored.augmented


class TestMiddlewareChain:
    def test_selection_middleware_forwards_augmented(self, store, filters, transform):
        seen = []
        state = loaded(store, filters)
        dispatch = apply_middleware(lambda: state, seen.append, selection_middleware(transform))
        dispatch(categorical_deselect("tissue", "liver"))
        dispatch(make_event("rename-field", {}))
        assert seen[0].augmented
        assert seen[0].selection.selected_keys() == ["A", "C"]
        assert not seen[1].augmented

    def test_index_and_scan_agree(self, store, filters, transform):
        state = loaded(store, filters)
        scanned, indexed = [], []
        apply_middleware(lambda: state, scanned.append, selection_middleware(transform, use_index=False))(
            spatial_brush_change(0, 0, 6, 6)
        )
        apply_middleware(lambda: state, indexed.append, selection_middleware(transform, use_index=True))(
            spatial_brush_change(0, 0, 6, 6)
        )
        assert scanned[0].selection == indexed[0].selection

    def test_first_middleware_sees_event_first(self):
        order = []

        def tag(name):
            def middleware(get_state):
                def wrap(next_):
                    def handle(event):
                        order.append(name)
                        return next_(event)

                    return handle

                return wrap

            return middleware

        dispatch = apply_middleware(lambda: None, lambda e: order.append("reduce"), tag("a"), tag("b"))
        dispatch(make_event("noop"))
        assert order == ["a", "b", "reduce"]

    def test_logging_middleware(self, store, filters, transform, caplog):
        state = loaded(store, filters)
        dispatch = apply_middleware(
            lambda: state,
            lambda e: None,
            selection_middleware(transform),
            logging_middleware(logging.INFO),
        )
        with caplog.at_level(logging.INFO, logger="cellfilter.kernel.middleware"):
            dispatch(categorical_deselect("tissue", "liver", seq=4))
        assert "event categorical-deselect #4: 2 selected" in caplog.text


class TestCompose:
    def test_right_to_left(self):
        f = compose(lambda x: x + 1, lambda x: x * 10)
        assert f(2) == 21

    def test_empty_is_identity(self):
        assert compose()(5) == 5
