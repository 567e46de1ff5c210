"""Pytest configuration and shared builders for the engine tests."""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from ghostcell.cell import Owner
from ghostcell.config import EngineConfig
from ghostcell.graph import CellGraph
from ghostcell.helpers.protocol import FactoryReport, SetupReport
from ghostcell.resolver import CommandResolver
from ghostcell.state import GameState


# d(0,1)=10 is longer than the routing cutoff, so 0 and 1 only connect through 2
TRIANGLE_LINKS = [(0, 1, 10), (0, 2, 4), (1, 2, 6)]


def factories(*cells):
    """FactoryReports for (owner, units, production[, disabled]) tuples, ids in order."""
    reports = []
    for cell_id, spec in enumerate(cells):
        owner, units, production = spec[:3]
        disabled = spec[3] if len(spec) > 3 else 0
        reports.append(FactoryReport(cell_id, Owner(owner), units, production, disabled))
    return reports


@pytest.fixture
def config():
    return EngineConfig(seed=7)


@pytest.fixture
def triangle_graph():
    return CellGraph(3, TRIANGLE_LINKS)


@pytest.fixture
def make_state(config):
    """Build a GameState from links, factory tuples and optional extra round-0 reports."""
    def _make(links, cells, extra=(), cell_count=None):
        count = cell_count if cell_count is not None else len(cells)
        setup = SetupReport(cell_count=count, links=list(links))
        return GameState.from_setup(setup, factories(*cells) + list(extra), config)
    return _make


@pytest.fixture
def make_resolver():
    def _make(state):
        return CommandResolver(state, random.Random(state.config.seed))
    return _make
