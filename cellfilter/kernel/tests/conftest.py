"""
Kernel test configuration.

Shared fixtures: the three-cell tissue dataset and an identity transform,
so brush coordinates equal embedding coordinates.
"""

import pytest

from cellfilter.kernel.dimensions import IDENTITY_TRANSFORM
from cellfilter.kernel.records import RecordStore
from cellfilter.kernel.types import FilterState, Record


def tissue_records():
    return [
        Record(key="A", categorical={"tissue": "brain", "batch": 1}, continuous={"nCount": 10.0}, coords=(1.0, 1.0)),
        Record(key="B", categorical={"tissue": "liver", "batch": 2}, continuous={"nCount": 15.0}, coords=(5.0, 5.0)),
        Record(key="C", categorical={"tissue": "brain", "batch": 2}, continuous={"nCount": 20.0}, coords=(9.0, 9.0)),
    ]


@pytest.fixture
def store():
    return RecordStore(tissue_records())


@pytest.fixture
def transform():
    return IDENTITY_TRANSFORM


@pytest.fixture
def filters(store):
    return FilterState(categorical=store.initial_categorical_map())


@pytest.fixture
def records():
    return tissue_records()
