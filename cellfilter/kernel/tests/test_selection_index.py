"""
Selection Index -- equivalence with the full scan, and per-axis caching

The index must give exactly the selection evaluate() gives, for every
filter state, including brushes on grid bucket edges, unmapped records,
and brushes outside the data bounds.
"""

import random

import pytest

from cellfilter.kernel.dimensions import IDENTITY_TRANSFORM, linear_transform, make_dimension
from cellfilter.kernel.index import SelectionIndex
from cellfilter.kernel.predicates import deselect_value, select_only_value
from cellfilter.kernel.recompute import evaluate
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import BrushConstraint, FilterState, Record, SpatialBrush


def grid_store():
    # Points on an integer lattice so brush edges land exactly on them
    records = []
    for x in range(11):
        for y in range(11):
            records.append(
                Record(
                    key=f"p_{x}_{y}",
                    categorical={"row": y, "parity": "even" if (x + y) % 2 == 0 else "odd"},
                    continuous={"sum": float(x + y)},
                    coords=(float(x), float(y)),
                )
            )
    records.append(Record(key="unmapped", categorical={"row": 0, "parity": "even"}, continuous={"sum": 0.0}))
    return RecordStore(records)


def random_filter_states(store, n=60, seed=11):
    rng = random.Random(seed)
    base = store.initial_categorical_map()
    dim = store.dimension("sum")
    for _ in range(n):
        x0, x1 = sorted(rng.randint(-2, 12) for _ in range(2))
        y0, y1 = sorted(rng.randint(-2, 12) for _ in range(2))
        spatial = SpatialBrush(x0, y0, x1, y1) if rng.random() < 0.7 else None
        continuous = ()
        if rng.random() < 0.5:
            lo, hi = sorted(rng.randint(0, 20) for _ in range(2))
            continuous = (BrushConstraint(dimension=dim, extent=(lo, hi)),)
        cmap = base
        if rng.random() < 0.5:
            cmap = deselect_value(cmap, "parity", rng.choice(["even", "odd"]))
        if rng.random() < 0.3:
            cmap = select_only_value(cmap, "row", rng.randint(0, 10))
        yield FilterState(categorical=cmap, continuous=continuous, spatial=spatial)


@pytest.fixture
def lattice():
    return grid_store()


class TestEquivalence:
    @pytest.mark.parametrize("grid_size", [1, 3, 8, 32])
    def test_matches_scan(self, lattice, grid_size):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM, grid_size=grid_size)
        for filters in random_filter_states(lattice):
            assert index.select(filters) == evaluate(filters, lattice, IDENTITY_TRANSFORM)

    def test_matches_scan_with_inverted_screen_axis(self, lattice):
        transform = linear_transform(x_domain=(0, 10), y_domain=(0, 10), width=500, height=300)
        index = SelectionIndex(lattice, transform, grid_size=7)
        for brush in [
            SpatialBrush(0, 0, 500, 300),
            SpatialBrush(100, 60, 250, 150),
            SpatialBrush(-50, -50, 0, 0),
            SpatialBrush(499, 299, 600, 400),
        ]:
            filters = FilterState(categorical=lattice.initial_categorical_map(), spatial=brush)
            assert index.select(filters) == evaluate(filters, lattice, transform)

    def test_brush_edges_inclusive(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM, grid_size=4)
        filters = FilterState(spatial=SpatialBrush(2, 2, 5, 5))
        assert index.select(filters).count == 16

    def test_brush_outside_data(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        filters = FilterState(spatial=SpatialBrush(20, 20, 30, 30))
        assert index.select(filters).count == 0

    def test_unmapped_excluded_under_brush(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        selected = index.select(FilterState(spatial=SpatialBrush(-100, -100, 100, 100))).as_dict()
        assert selected["unmapped"] is False
        assert index.select(FilterState()).as_dict()["unmapped"] is True

    def test_store_without_coordinates(self):
        store = RecordStore([Record(key=i, categorical={"k": "v"}) for i in range(5)])
        index = SelectionIndex(store, IDENTITY_TRANSFORM)
        assert index.select(FilterState(spatial=SpatialBrush(0, 0, 1, 1))).count == 0
        assert index.select(FilterState()).count == 5


class TestCaching:
    def test_spatial_axis_reused(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        brush = SpatialBrush(0, 0, 4, 4)
        first = index.spatial_excluded(brush)
        assert index.spatial_excluded(SpatialBrush(0, 0, 4, 4)) is first

    def test_categorical_axis_reused(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        cmap = deselect_value(lattice.initial_categorical_map(), "parity", "odd")
        first = index.categorical_excluded(cmap)
        assert index.categorical_excluded(dict(cmap)) is first

    def test_constraint_reused(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        c = BrushConstraint(dimension=make_dimension("sum"), extent=(3.0, 7.0))
        first = index.continuous_excluded([c])
        again = index.continuous_excluded([BrushConstraint(dimension=make_dimension("sum"), extent=(3.0, 7.0))])
        assert again == first
        assert len(index._constraint_cache) == 1

    def test_changing_one_axis_keeps_other_caches(self, lattice):
        index = SelectionIndex(lattice, IDENTITY_TRANSFORM)
        brush = SpatialBrush(1, 1, 6, 6)
        cmap = deselect_value(lattice.initial_categorical_map(), "parity", "odd")
        index.select(FilterState(categorical=cmap, spatial=brush))
        spatial_before = index._spatial_cache
        index.select(FilterState(categorical=select_only_value(cmap, "row", 3), spatial=brush))
        assert index._spatial_cache is spatial_before
