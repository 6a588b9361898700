"""
cellfilter Kernel - Continuous Dimensions and Scales

Comparison semantics for continuous brushes, plus the linear scale the
rendering layer hands in as a coordinate transform.

Each continuous field carries a ContinuousType. The continuous predicate
never compares numbers itself; it asks the dimension.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from cellfilter.kernel.types import (
    ContinuousDimension,
    ContinuousType,
    CoordinateTransform,
    is_missing,
)

# ---------------------------------------------------------------------------
# Comparison types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinearType:
    """Closed interval on the raw value. Extent order does not matter."""

    name: str = "linear"

    def within(self, value: Any, extent: tuple[float, float], dimension: ContinuousDimension) -> bool:
        if is_missing(value):
            return False
        lo, hi = sorted(extent)
        return lo <= value <= hi


@dataclass(frozen=True)
class LogType:
    """
    Closed interval on log10(value).

    Used for axes drawn on a log scale, where the brush extent is
    captured in log units. Non-positive values are never inside.
    """

    name: str = "log"

    def within(self, value: Any, extent: tuple[float, float], dimension: ContinuousDimension) -> bool:
        if is_missing(value) or value <= 0:
            return False
        lo, hi = sorted(extent)
        return lo <= math.log10(value) <= hi


LINEAR = LinearType()
LOG = LogType()

_CONTINUOUS_TYPES: dict[str, ContinuousType] = {
    LINEAR.name: LINEAR,
    LOG.name: LOG,
}


def register_continuous_type(name: str, ctype: ContinuousType) -> None:
    """Make a custom comparison available by name to dimension definitions."""
    _CONTINUOUS_TYPES[name] = ctype


def get_continuous_type(name: str) -> ContinuousType:
    try:
        return _CONTINUOUS_TYPES[name]
    except KeyError:
        raise ValueError(f"Unknown continuous type: {name}") from None


def make_dimension(key: str, type: str | ContinuousType = "linear") -> ContinuousDimension:
    ctype = get_continuous_type(type) if isinstance(type, str) else type
    return ContinuousDimension(key=key, type=ctype)


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinearScale:
    """
    Linear map from a domain interval onto a range interval.

    Inverted ranges are allowed (screen y usually grows downward).
    A degenerate domain maps everything to the range midpoint.
    """

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        t = (value - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)


def identity(value: float) -> float:
    return value


IDENTITY_TRANSFORM = CoordinateTransform(x_scale=identity, y_scale=identity)


def linear_transform(
    x_domain: tuple[float, float],
    y_domain: tuple[float, float],
    width: float,
    height: float,
) -> CoordinateTransform:
    """Transform for a width x height plot with y drawn top-down."""
    return CoordinateTransform(
        x_scale=LinearScale(domain=x_domain, range=(0.0, width)),
        y_scale=LinearScale(domain=y_domain, range=(height, 0.0)),
    )
