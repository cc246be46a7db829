from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from junction.nodes import Node, NodeGraph  # noqa: E402
from junction.nodes.builtin import create_builtin_registry  # noqa: E402


@pytest.fixture
def registry():
    return create_builtin_registry()


@pytest.fixture
def graph(registry):
    graph = NodeGraph(registry)
    graph.add_node(Node(id="source", type="signal.source", position=(0.0, 0.0)))
    graph.add_node(Node(id="mixer", type="signal.mixer", position=(300.0, 0.0)))
    graph.add_node(Node(id="display", type="text.display", position=(300.0, 200.0)))
    graph.add_node(Node(id="meter", type="signal.meter", position=(600.0, 0.0)))
    graph.add_node(Node(id="pass", type="util.passthrough", position=(600.0, 200.0)))
    return graph
