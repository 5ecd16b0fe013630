"""Shared fixtures for pager-relay tests"""

import pytest

from pager_relay.utils.timestamps import TimestampResolver

NOW = 1700000000


@pytest.fixture
def clock():
    """Clock frozen at NOW"""
    return lambda: float(NOW)


@pytest.fixture
def timestamps(clock):
    return TimestampResolver(clock=clock)
