"""Shared fixtures: a wired, seeded protocol on a manual clock"""
import pytest

from tranche_model.src.config.loader import load_config
from tranche_model.src.protocol import build_protocol
from tranche_model.src.utils.clock import ManualClock

OPERATOR = "operator"


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def protocol(config, clock):
    # Senior 1,000,000 / Junior 850,000 / Reserve 625,000 at LP price 1.0
    return build_protocol(config, clock=clock)


@pytest.fixture
def empty_protocol(config, clock):
    return build_protocol(config, clock=clock, seed=False)
