"""
cellfilter Kernel - Selection Index

Incremental alternative to the full scan in recompute.evaluate, for
large datasets.

- categorical: inverted index (field -> value -> positions)
- spatial: screen coordinates projected once, bucketed in a uniform grid
- continuous: per-constraint excluded sets, cached by (dimension, type, extent)

Each axis caches its last excluded set keyed by that axis's state, so an
event touching one axis only rescans that axis. Results are identical to
the scan.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from cellfilter.config import settings
from cellfilter.kernel.predicates import inactive_pairs
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import (
    BrushConstraint,
    CategoricalMap,
    CoordinateTransform,
    FilterState,
    SelectionEntry,
    SelectionResult,
    SpatialBrush,
    category_key,
)

logger = logging.getLogger(__name__)

_EMPTY: frozenset[int] = frozenset()
_MAX_CONSTRAINT_CACHE = 64


def _finite(p: tuple[float, float] | None) -> bool:
    return p is not None and math.isfinite(p[0]) and math.isfinite(p[1])


class SelectionIndex:
    """Per-axis indices over one RecordStore and one coordinate transform."""

    def __init__(self, store: RecordStore, transform: CoordinateTransform, grid_size: int | None = None):
        self.store = store
        self.grid_size = grid_size or settings.GRID_SIZE
        self._all = frozenset(range(len(store)))

        # Inverted categorical index
        inverted: dict[str, dict[str, set[int]]] = {}
        for i, rec in enumerate(store):
            for name, value in rec.categorical.items():
                if value is None:
                    continue
                inverted.setdefault(name, {}).setdefault(category_key(value), set()).add(i)
        self._inverted = {
            name: {value: frozenset(ps) for value, ps in values.items()}
            for name, values in inverted.items()
        }

        # Screen-space grid
        self._screen: list[tuple[float, float] | None] = [
            transform(rec.coords) if rec.coords is not None else None for rec in store
        ]
        mapped = [p for p in self._screen if _finite(p)]
        if mapped:
            self._x0 = min(p[0] for p in mapped)
            self._y0 = min(p[1] for p in mapped)
            self._x1 = max(p[0] for p in mapped)
            self._y1 = max(p[1] for p in mapped)
        else:
            self._x0 = self._y0 = self._x1 = self._y1 = 0.0
        self._cw = (self._x1 - self._x0) / self.grid_size or 1.0
        self._ch = (self._y1 - self._y0) / self.grid_size or 1.0
        self._buckets: dict[tuple[int, int], list[int]] = {}
        for i, p in enumerate(self._screen):
            if _finite(p):
                self._buckets.setdefault(self._bucket(*p), []).append(i)

        # Axis caches: (state key, excluded positions)
        self._spatial_cache: tuple[SpatialBrush | None, frozenset[int]] | None = None
        self._categorical_cache: tuple[tuple, frozenset[int]] | None = None
        self._constraint_cache: dict[tuple, frozenset[int]] = {}

        logger.info(
            "selection index built: %d records, %d categorical fields, %d grid buckets",
            len(store),
            len(self._inverted),
            len(self._buckets),
        )

    # -- public --------------------------------------------------------------

    def select(self, filters: FilterState) -> SelectionResult:
        excluded = (
            self.spatial_excluded(filters.spatial)
            | self.continuous_excluded(filters.continuous)
            | self.categorical_excluded(filters.categorical)
        )
        return SelectionResult(
            entries=tuple(
                SelectionEntry(key=rec.key, selected=i not in excluded)
                for i, rec in enumerate(self.store)
            ),
            categorical_filter_state=filters.categorical,
        )

    def spatial_excluded(self, brush: SpatialBrush | None) -> frozenset[int]:
        if brush is None:
            return _EMPTY
        if self._spatial_cache is not None and self._spatial_cache[0] == brush:
            return self._spatial_cache[1]
        inside: set[int] = set()
        for i in self._candidates(brush):
            x, y = self._screen[i]
            if brush.contains(x, y):
                inside.add(i)
        excluded = self._all - inside
        self._spatial_cache = (brush, excluded)
        return excluded

    def continuous_excluded(self, constraints: Sequence[BrushConstraint]) -> frozenset[int]:
        excluded: frozenset[int] = _EMPTY
        for c in constraints:
            excluded = excluded | self._constraint_excluded(c)
        return excluded

    def categorical_excluded(self, cmap: CategoricalMap) -> frozenset[int]:
        pairs = inactive_pairs(cmap)
        if not pairs:
            return _EMPTY
        key = tuple(sorted(pairs))
        if self._categorical_cache is not None and self._categorical_cache[0] == key:
            return self._categorical_cache[1]
        excluded: set[int] = set()
        for field_name, value in pairs:
            excluded |= self._inverted.get(field_name, {}).get(value, _EMPTY)
        result = frozenset(excluded)
        self._categorical_cache = (key, result)
        return result

    # -- internal ------------------------------------------------------------

    def _constraint_excluded(self, c: BrushConstraint) -> frozenset[int]:
        key = (c.dimension.key, c.dimension.type.name, c.extent)
        cached = self._constraint_cache.get(key)
        if cached is not None:
            return cached
        excluded = frozenset(
            i
            for i, rec in enumerate(self.store)
            if not c.dimension.within(rec.continuous.get(c.dimension.key), c.extent)
        )
        if len(self._constraint_cache) >= _MAX_CONSTRAINT_CACHE:
            self._constraint_cache.clear()
        self._constraint_cache[key] = excluded
        return excluded

    def _bucket(self, x: float, y: float) -> tuple[int, int]:
        g = self.grid_size - 1
        cx = min(max(math.floor((x - self._x0) / self._cw), 0), g)
        cy = min(max(math.floor((y - self._y0) / self._ch), 0), g)
        return cx, cy

    def _candidates(self, brush: SpatialBrush):
        if not self._buckets:
            return
        if (
            brush.southeast_x < self._x0
            or brush.northwest_x > self._x1
            or brush.southeast_y < self._y0
            or brush.northwest_y > self._y1
        ):
            return
        cx_lo, cy_lo = self._bucket(brush.northwest_x, brush.northwest_y)
        cx_hi, cy_hi = self._bucket(brush.southeast_x, brush.southeast_y)
        for cx in range(cx_lo, cx_hi + 1):
            for cy in range(cy_lo, cy_hi + 1):
                yield from self._buckets.get((cx, cy), ())
