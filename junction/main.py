from __future__ import annotations

import sys
from typing import NoReturn

from junction.nodes import Node, NodeGraph
from junction.nodes.builtin import create_builtin_registry
from junction.ui import NodeEditorView, create_application


def build_demo_graph() -> NodeGraph:
    """
    A small graph showing dynamic, segmented and default ports.
    """

    graph = NodeGraph(create_builtin_registry())
    graph.add_node(Node(id="source", type="signal.source", position=(40.0, 60.0)))
    graph.add_node(Node(id="mixer", type="signal.mixer", position=(280.0, 40.0), data={"channels": 3}))
    graph.add_node(Node(id="router", type="signal.router", position=(500.0, 40.0)))
    graph.add_node(Node(id="meter", type="signal.meter", position=(720.0, 20.0)))
    graph.add_node(Node(id="display", type="text.display", position=(720.0, 160.0)))
    graph.connect("source", "out", "mixer", "in-1")
    graph.connect("mixer", "out", "router", "in")
    graph.connect("router", "main-1", "meter", "in")
    return graph


def main() -> NoReturn:
    """
    Entry point for the Junction demo editor.
    """

    app = create_application()
    view = NodeEditorView(build_demo_graph())
    view.resize(1000, 480)
    view.setWindowTitle("Junction")
    view.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
