import logging
from dataclasses import replace

import pytest

from junction.nodes import (
    Node,
    NodeTypeDefinition,
    PortDefinition,
    PortDirection,
    PortOverride,
    SidePlacement,
)
from junction.ports.derivation import (
    create_port_from_definition,
    derive_node_ports,
    get_port_definition,
    get_port_instance_count,
    infer_default_port_definitions,
    is_dynamic_port_definition,
    normalize_port_definition,
    port_definition_candidates,
)


def _node(**data):
    return Node(id="n1", type="test", data=data)


def test_dynamic_instances_with_custom_ids():
    definition = PortDefinition(
        id="opt",
        direction=PortDirection.INPUT,
        label="Option",
        instances=lambda context: context.node.data.get("count", 0),
        create_port_id=lambda context: f"opt-{context.index + 1}",
    )
    node_type = NodeTypeDefinition(type="test", display_name="Test", ports=[definition])

    ports = derive_node_ports(_node(count=3), node_type)

    assert [port.id for port in ports] == ["opt-1", "opt-2", "opt-3"]
    assert all(port.definition_id == "opt" for port in ports)
    assert [port.instance_index for port in ports] == [0, 1, 2]
    assert {port.instance_total for port in ports} == {3}
    assert derive_node_ports(_node(), node_type) == []


def test_normalized_definition_always_has_callables():
    normalized = normalize_port_definition(PortDefinition(id="a", direction=PortDirection.OUTPUT, label="A"))
    assert callable(normalized.instances)
    assert callable(normalized.create_port_id)
    assert callable(normalized.create_port_label)
    assert normalized.id == "a"


def test_default_ids_and_labels_for_repeated_ports():
    definition = PortDefinition(id="in", direction=PortDirection.INPUT, label="Channel", instances=2)
    node_type = NodeTypeDefinition(type="test", display_name="Test", ports=[definition])

    ports = derive_node_ports(_node(), node_type)

    assert [(port.id, port.label) for port in ports] == [("in-1", "Channel 1"), ("in-2", "Channel 2")]
    assert not is_dynamic_port_definition(definition)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 1),
        (0, 0),
        (3, 3),
        (2.7, 2),
        (-4, 0),
        (float("nan"), 0),
        (float("inf"), 0),
    ],
)
def test_instance_count_coercion(raw, expected):
    definition = PortDefinition(id="p", direction=PortDirection.INPUT, label="P", instances=raw)
    assert get_port_instance_count(definition, _node()) == expected


def test_non_numeric_instance_count_logs_and_yields_no_ports(caplog):
    definition = PortDefinition(id="p", direction=PortDirection.INPUT, label="P", instances=lambda _context: "3")

    with caplog.at_level(logging.WARNING, logger="junction.ports.derivation"):
        assert get_port_instance_count(definition, _node()) == 0

    assert "non-numeric" in caplog.text


def test_missing_ports_infer_defaults():
    ports = derive_node_ports(_node(), NodeTypeDefinition(type="test", display_name="Test"))
    assert [(port.id, port.direction, port.position) for port in ports] == [
        ("input", PortDirection.INPUT, "left"),
        ("output", PortDirection.OUTPUT, "right"),
    ]
    assert [definition.id for definition in infer_default_port_definitions()] == ["input", "output"]
    assert len(derive_node_ports(_node(), None)) == 2


def test_empty_port_list_means_no_ports():
    assert derive_node_ports(_node(), NodeTypeDefinition(type="test", display_name="Test", ports=[])) == []


def test_overrides_by_port_id_and_definition_id():
    definition = PortDefinition(id="in", direction=PortDirection.INPUT, label="In", instances=3)
    node_type = NodeTypeDefinition(type="test", display_name="Test", ports=[definition])
    node = Node(
        id="n1",
        type="test",
        port_overrides=[
            PortOverride(port_id="in-2", disabled=True),
            PortOverride(port_id="in", max_connections=5, allowed_node_types=["source"]),
        ],
    )

    ports = derive_node_ports(node, node_type)

    assert [port.id for port in ports] == ["in-1", "in-3"]
    assert all(port.max_connections == 5 for port in ports)
    assert all(port.allowed_node_types == ("source",) for port in ports)


def test_create_port_from_definition():
    definition = PortDefinition(
        id="out",
        direction=PortDirection.OUTPUT,
        label="Out",
        position="top",
        data_type="number",
        data_types=["text", "number"],
        max_connections="unlimited",
    )

    port = create_port_from_definition(definition, "temp")

    assert port.id == "out"
    assert port.definition_id == "out"
    assert port.node_id == "temp"
    assert port.position == "top"
    assert port.placement == SidePlacement(side="top")
    assert port.data_type == ["number", "text"]
    assert port.max_connections == "unlimited"


@pytest.mark.parametrize(
    "port_id, expected",
    [
        ("input-12", ["input-12", "input"]),
        ("input-0", ["input-0", "input"]),
        ("input-007", ["input-007", "input"]),
        ("input-", ["input-"]),
        ("input-abc", ["input-abc"]),
        ("-1", ["-1"]),
        ("a-b-2", ["a-b-2", "a-b"]),
        ("input", ["input"]),
    ],
)
def test_numeric_suffix_candidates(port_id, expected):
    port = create_port_from_definition(PortDefinition(id=port_id, direction=PortDirection.INPUT, label="x"), "n")
    port = replace(port, definition_id=None)
    assert port_definition_candidates(port) == expected


def test_get_port_definition_resolution_order():
    plain = PortDefinition(id="input", direction=PortDirection.INPUT, label="In")
    exact = PortDefinition(id="input-12", direction=PortDirection.INPUT, label="Exact")
    declared = PortDefinition(id="declared", direction=PortDirection.INPUT, label="Declared")
    node_type = NodeTypeDefinition(type="test", display_name="Test", ports=[plain, exact, declared])

    def port(port_id, definition_id=None):
        base = create_port_from_definition(PortDefinition(id=port_id, direction=PortDirection.INPUT, label="x"), "n")
        return replace(base, definition_id=definition_id)

    assert get_port_definition(port("input-12", "declared"), node_type) is declared
    assert get_port_definition(port("input-12"), node_type) is exact
    assert get_port_definition(port("input-7"), node_type) is plain
    assert get_port_definition(port("other-3"), node_type) is None
    assert get_port_definition(port("input"), None) is None
