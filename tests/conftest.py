"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pylinreg.graph import InMemoryGraph
from pylinreg.regression import RegressionAccumulator

# Known points and candidate x values from the reference scenario.
KNOWN_POINTS = [(1.0, 1.345), (2.0, 2.596), (3.0, 3.259)]
CANDIDATE_XS = [4.0, 5.0]


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def known_points():
    return list(KNOWN_POINTS)


@pytest.fixture
def fitted_accumulator():
    """Accumulator holding the three reference points."""
    acc = RegressionAccumulator()
    for x, y in KNOWN_POINTS:
        acc.add_point(x, y)
    return acc


@pytest.fixture
def noisy_line(rng):
    """200 points scattered around y = 2.5x - 1."""
    x = rng.uniform(-10, 10, size=200)
    y = 2.5 * x - 1.0 + rng.standard_normal(200) * 0.3
    return x, y


@pytest.fixture
def task_graph():
    """
    Graph with 3 known and 2 candidate 'Task' nodes, plus one unrelated node.
    """
    graph = InMemoryGraph()
    for x, y in KNOWN_POINTS:
        graph.create_node('Task', time=x, progress=y)
    for x in CANDIDATE_XS:
        graph.create_node('Task', time=x)
    graph.create_node('Person', time=1.0, progress=100.0)
    return graph


@pytest.fixture
def works_for_graph():
    """Relationship chain mirroring task_graph, typed WORKS_FOR."""
    graph = InMemoryGraph()
    nodes = [graph.create_node('Node', id=i) for i in range(7)]
    for i, (x, y) in enumerate(KNOWN_POINTS):
        graph.create_relationship(
            'WORKS_FOR', nodes[i].handle, nodes[i + 1].handle, time=x, progress=y,
        )
    for i, x in enumerate(CANDIDATE_XS):
        graph.create_relationship(
            'WORKS_FOR', nodes[4 + i].handle, nodes[5 + i].handle, time=x,
        )
    return graph


class RecordingWriter:
    """WriteBack double that records writes and fails on chosen handles."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.writes = []

    def set(self, handle, attribute, value):
        if handle in self.fail_on:
            raise IOError(f"store rejected write to {handle!r}")
        self.writes.append((handle, attribute, value))


@pytest.fixture
def recording_writer():
    return RecordingWriter()


@pytest.fixture
def failing_writer_factory():
    return RecordingWriter
