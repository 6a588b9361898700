"""
cellfilter Kernel - Record Store

An ordered, read-only sequence of records plus the lookups the
predicates need: key -> position, known categorical values per field,
and the continuous dimension registry.

Built once when the dataset loads and shared read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from cellfilter.kernel.dimensions import make_dimension
from cellfilter.kernel.types import (
    CategoricalMap,
    ContinuousDimension,
    ContinuousType,
    DuplicateRecordKey,
    Record,
    category_key,
)


class RecordStore:
    """Immutable-per-recomputation record sequence."""

    def __init__(
        self,
        records: Iterable[Record],
        dimensions: Mapping[str, str | ContinuousType] | None = None,
    ):
        self._records: tuple[Record, ...] = tuple(records)
        self._positions: dict[str | int, int] = {}
        self._categories: dict[str, dict[str, None]] = {}
        continuous_fields: dict[str, None] = {}

        for i, rec in enumerate(self._records):
            if rec.key in self._positions:
                raise DuplicateRecordKey(f"Duplicate record key: {rec.key!r}")
            self._positions[rec.key] = i
            for name, value in rec.categorical.items():
                self._categories.setdefault(name, {})[category_key(value)] = None
            for name in rec.continuous:
                continuous_fields[name] = None

        declared = dict(dimensions or {})
        self._dimensions: dict[str, ContinuousDimension] = {}
        for name in list(continuous_fields) + [n for n in declared if n not in continuous_fields]:
            self._dimensions[name] = make_dimension(name, declared.get(name, "linear"))

    # -- sequence protocol ---------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, i: int) -> Record:
        return self._records[i]

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    # -- lookups -------------------------------------------------------------

    def position(self, key: str | int) -> int:
        return self._positions[key]

    def get(self, key: str | int) -> Record | None:
        i = self._positions.get(key)
        return self._records[i] if i is not None else None

    @property
    def categorical_fields(self) -> list[str]:
        return list(self._categories)

    def has_categorical_field(self, name: str) -> bool:
        return name in self._categories

    def categorical_values(self, name: str) -> list[str]:
        """Known values of a field as category keys, first-seen order."""
        return list(self._categories.get(name, {}))

    def has_category(self, name: str, value: Any) -> bool:
        return category_key(value) in self._categories.get(name, {})

    @property
    def dimensions(self) -> dict[str, ContinuousDimension]:
        return dict(self._dimensions)

    def dimension(self, key: str) -> ContinuousDimension | None:
        return self._dimensions.get(key)

    def initial_categorical_map(self) -> CategoricalMap:
        """Every known value of every categorical field active."""
        return {
            name: {value: True for value in values}
            for name, values in self._categories.items()
        }


def build_store(records: Iterable[dict[str, Any] | Record], dimensions: Mapping[str, str] | None = None) -> RecordStore:
    """Build a RecordStore from records or their dict form."""
    return RecordStore(
        (r if isinstance(r, Record) else Record.from_dict(r) for r in records),
        dimensions=dimensions,
    )
