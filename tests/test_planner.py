import logging

from junction.nodes import Connection, Node, NodeTypeDefinition, Port, PortDefinition, PortDirection
from junction.ports.planner import (
    ConnectionPlan,
    ConnectionSwitchBehavior,
    get_connection_switch_context,
    plan_connection_change,
)

NODE_TYPES = {
    "producer": NodeTypeDefinition(
        type="producer",
        display_name="Producer",
        ports=[PortDefinition(id="out", direction=PortDirection.OUTPUT, label="Out", data_type="number")],
    ),
    "consumer": NodeTypeDefinition(
        type="consumer",
        display_name="Consumer",
        ports=[PortDefinition(id="in", direction=PortDirection.INPUT, label="In", data_type="number")],
    ),
    "text": NodeTypeDefinition(
        type="text",
        display_name="Text",
        ports=[PortDefinition(id="in", direction=PortDirection.INPUT, label="In", data_type="text")],
    ),
}

NODES = {
    "source": Node(id="source", type="producer"),
    "target": Node(id="target", type="consumer"),
    "other": Node(id="other", type="consumer"),
    "label": Node(id="label", type="text"),
}

SOURCE_OUT = Port(id="out", direction=PortDirection.OUTPUT, label="Out", node_id="source", definition_id="out")
TARGET_IN = Port(id="in", direction=PortDirection.INPUT, label="In", node_id="target", definition_id="in")
OTHER_IN = Port(id="in", direction=PortDirection.INPUT, label="In", node_id="other", definition_id="in")
LABEL_IN = Port(id="in", direction=PortDirection.INPUT, label="In", node_id="label", definition_id="in")


def get_node_type(type_name):
    return NODE_TYPES.get(type_name)


def test_port_with_capacity_appends():
    plan = plan_connection_change(SOURCE_OUT, TARGET_IN, NODES, {}, get_node_type, id_factory=lambda: "c1")

    assert plan == ConnectionPlan(
        behavior=ConnectionSwitchBehavior.APPEND,
        connection=Connection("c1", "source", "out", "target", "in"),
        connection_ids_to_replace=[],
    )


def test_full_port_ignores_the_drag(caplog):
    connections = {"c1": Connection("c1", "source", "out", "target", "in")}

    with caplog.at_level(logging.DEBUG, logger="junction.ports.planner"):
        plan = plan_connection_change(SOURCE_OUT, OTHER_IN, NODES, connections, get_node_type)

    assert plan.behavior == ConnectionSwitchBehavior.IGNORE
    assert plan.connection is None
    assert plan.connection_ids_to_replace == []
    assert "Ignoring drag" in caplog.text


def test_append_still_runs_the_validator():
    plan = plan_connection_change(SOURCE_OUT, LABEL_IN, NODES, {}, get_node_type)

    assert plan.behavior == ConnectionSwitchBehavior.APPEND
    assert plan.connection is None


def test_drag_from_input_counts_incoming_connections():
    connections = {"c1": Connection("c1", "source", "out", "target", "in")}

    context = get_connection_switch_context(TARGET_IN, NODES, connections, get_node_type)

    assert context.behavior == ConnectionSwitchBehavior.IGNORE
    assert context.existing_connections == (connections["c1"],)
    assert context.max_connections == 1


def test_drag_from_input_creates_normalized_connection():
    plan = plan_connection_change(OTHER_IN, SOURCE_OUT, NODES, {}, get_node_type, id_factory=lambda: "c2")

    assert plan.connection == Connection("c2", "source", "out", "other", "in")


def test_unknown_node_falls_back_to_port_data():
    orphan = Port(id="out", direction=PortDirection.OUTPUT, label="Out", node_id="ghost", max_connections="unlimited")

    context = get_connection_switch_context(orphan, NODES, {}, get_node_type)

    assert context.behavior == ConnectionSwitchBehavior.APPEND
    assert context.max_connections is None
