"""
Shared pytest fixtures for querykit tests.
"""

import logging

import pytest

logging.basicConfig(level=logging.CRITICAL)


@pytest.fixture
def num_records():
    """Three records keyed a, b, c with num 1, 2, 3."""
    return {
        "a": {"num": 1},
        "b": {"num": 2},
        "c": {"num": 3},
    }


@pytest.fixture
def typed_records():
    """Four records with a type field, for multi-key sorts and paging."""
    return {
        "w": {"type": "x", "num": 4, "tags": ["odd"]},
        "x": {"type": "y", "num": 1, "tags": ["odd", "first"]},
        "y": {"type": "x", "num": 2, "tags": ["even"]},
        "z": {"type": "y", "num": 3, "tags": []},
    }


@pytest.fixture
def mixed_records():
    """Records whose `value` field holds every kind of value."""
    return {
        "n1": {"value": 10},
        "n2": {"value": 2.5},
        "s1": {"value": "b"},
        "s2": {"value": "a"},
        "t": {"value": True},
        "f": {"value": False},
        "nul": {"value": None},
        "obj": {"value": {"k": 1}},
        "miss": {"other": 1},
    }
