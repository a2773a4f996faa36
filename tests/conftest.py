"""Shared test fixtures for the wanderer test suite."""

from __future__ import annotations

import random

import pytest

from tests.helpers import N1, N2, N3
from wanderer.config import SimulationConfig
from wanderer.persistence.positions import InMemoryPositionSink
from wanderer.simulation.engine import SimulationEngine
from wanderer.streets.graph import StreetGraph
from wanderer.streets.types import Node, Way


@pytest.fixture
def config() -> SimulationConfig:
    """Default config with a fixed seed."""
    return SimulationConfig(seed=42)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


@pytest.fixture
def line_graph() -> StreetGraph:
    """One way N1-N2-N3 along the equator, roughly 111m between nodes."""
    return StreetGraph([N1, N2, N3], [Way(10, (1, 2, 3), name="Equator Walk")])


@pytest.fixture
def branch_graph() -> StreetGraph:
    """Two ways crossing at node 2: 1-2-3 and 4-2-5."""
    nodes = [
        N1,
        N2,
        N3,
        Node(4, 0.001, 0.001),
        Node(5, -0.001, 0.001),
    ]
    ways = [Way(10, (1, 2, 3)), Way(11, (4, 2, 5))]
    return StreetGraph(nodes, ways)


@pytest.fixture
def isolated_graph() -> StreetGraph:
    """A single node that no way passes through."""
    return StreetGraph([Node(99, 1.0, 1.0)], [])


@pytest.fixture
def engine(line_graph: StreetGraph, config: SimulationConfig) -> SimulationEngine:
    """Engine over the line graph with a seeded rng."""
    return SimulationEngine(line_graph, config, rng=random.Random(42))


@pytest.fixture
def sink() -> InMemoryPositionSink:
    return InMemoryPositionSink()
