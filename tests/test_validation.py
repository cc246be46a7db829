import logging

import pytest

from junction.nodes import Connection, Node, NodeTypeDefinition, Port, PortDefinition, PortDirection
from junction.ports.validation import (
    can_connect_ports,
    connection_exists,
    create_validated_connection,
    explain_connection,
    normalize_connection_ports,
)


def output(node_id, port_id="out", **kwargs):
    return Port(id=port_id, direction=PortDirection.OUTPUT, label=port_id, node_id=node_id, **kwargs)


def input_(node_id, port_id="in", **kwargs):
    return Port(id=port_id, direction=PortDirection.INPUT, label=port_id, node_id=node_id, position="left", **kwargs)


def link(connection_id, source, target):
    return Connection(connection_id, source.node_id, source.id, target.node_id, target.id)


def test_normalize_connection_ports():
    out, inp = output("a"), input_("b")
    assert normalize_connection_ports(out, inp) == (out, inp)
    assert normalize_connection_ports(inp, out) == (out, inp)
    assert normalize_connection_ports(out, output("b")) is None
    assert normalize_connection_ports(out, input_("a")) is None


def test_direction_and_same_node_rules():
    assert can_connect_ports(output("a"), input_("b"))
    assert explain_connection(output("a"), output("b")).reason == "Ports must pair an output with an input."
    assert explain_connection(output("a"), input_("a")).reason == "Cannot connect a node to itself."


def test_example_scenario_capacity():
    a_out, b_in, b2_in = output("A"), input_("B"), input_("B2")
    assert can_connect_ports(a_out, b_in, connections={})

    connections = {"c1": link("c1", a_out, b_in)}
    assert not can_connect_ports(a_out, b2_in, connections=connections)

    unlimited = output("A", max_connections="unlimited")
    assert can_connect_ports(unlimited, b2_in, connections=connections)


def test_duplicates_rejected_in_both_orders():
    a_out = output("A", max_connections="unlimited")
    b_in = input_("B", max_connections="unlimited")
    connections = [link("c1", a_out, b_in)]

    assert connection_exists(a_out, b_in, connections)
    assert connection_exists(b_in, a_out, connections)
    assert explain_connection(a_out, b_in, connections=connections).reason == "Connection already exists."
    assert not can_connect_ports(b_in, a_out, connections=connections)


@pytest.mark.parametrize("limit", [1, 2, 5])
def test_capacity_boundary(limit):
    target = input_("T", max_connections=limit)
    sources = [output(f"S{index}") for index in range(limit + 1)]

    below = {f"c{index}": link(f"c{index}", sources[index], target) for index in range(limit - 1)}
    at = {f"c{index}": link(f"c{index}", sources[index], target) for index in range(limit)}

    assert can_connect_ports(sources[limit], target, connections=below)
    verdict = explain_connection(sources[limit], target, connections=at)
    assert not verdict
    assert verdict.reason == "Input port 'in' already has its maximum connections."


def test_unlimited_never_rejects_on_count():
    target = input_("T", max_connections="unlimited")
    connections = {f"c{index}": link(f"c{index}", output(f"S{index}"), target) for index in range(50)}
    assert can_connect_ports(output("new"), target, connections=connections)


def test_input_capacity_reported_before_output_capacity():
    source, target = output("A"), input_("B")
    connections = {
        "c1": link("c1", source, input_("X")),
        "c2": link("c2", output("Y"), target),
    }
    assert explain_connection(source, target, connections=connections).reason.startswith("Input port")


def test_definition_capacity_applies_when_port_is_silent():
    node_type = NodeTypeDefinition(
        type="fan",
        display_name="Fan",
        ports=[PortDefinition(id="out", direction=PortDirection.OUTPUT, label="Out", max_connections=2)],
    )
    source = output("A", definition_id="out")
    connections = {"c1": link("c1", source, input_("X"))}

    assert can_connect_ports(source, input_("B"), node_type, None, connections)
    connections["c2"] = link("c2", source, input_("Y"))
    assert not can_connect_ports(source, input_("B"), node_type, None, connections)


def test_capacity_skipped_without_connections():
    assert can_connect_ports(output("A", max_connections=0), input_("B"))


def test_port_and_definition_data_types_merge():
    node_type = NodeTypeDefinition(
        type="typed",
        display_name="Typed",
        ports=[PortDefinition(id="out", direction=PortDirection.OUTPUT, label="Out", data_type="number")],
    )
    inherited = output("A", definition_id="out")
    text_instance = output("A", definition_id="out", data_type="text")

    assert not can_connect_ports(inherited, input_("B", data_type="text"), node_type)
    assert can_connect_ports(text_instance, input_("B", data_type="text"), node_type)
    assert can_connect_ports(text_instance, input_("B", data_type="number"), node_type)
    assert explain_connection(inherited, input_("B", data_type="text"), node_type).reason == (
        "Incompatible port data types."
    )


def test_untyped_side_accepts_anything():
    assert can_connect_ports(output("A", data_type="number"), input_("B"))


def test_node_validator_sees_normalized_ports():
    seen = []

    def validate(from_port, to_port):
        seen.append((from_port.direction, to_port.direction))
        return to_port.node_id != "blocked"

    node_type = NodeTypeDefinition(type="guarded", display_name="Guarded", validate_connection=validate)

    assert can_connect_ports(input_("B"), output("A"), node_type, None)
    assert not can_connect_ports(input_("blocked"), output("A"), node_type, None)
    assert set(seen) == {(PortDirection.OUTPUT, PortDirection.INPUT)}


def test_definitions_swap_with_ports():
    only_source = NodeTypeDefinition(
        type="src",
        display_name="Source",
        validate_connection=lambda from_port, to_port: from_port.node_id == "A",
    )
    assert can_connect_ports(input_("B"), output("A"), None, only_source)


def test_port_predicate_receives_context():
    captured = {}

    def predicate(context):
        captured["context"] = context
        return context.to_node is not None and context.to_node.type == "sink"

    node_type = NodeTypeDefinition(
        type="src",
        display_name="Source",
        ports=[PortDefinition(id="out", direction=PortDirection.OUTPUT, label="Out", can_connect=predicate)],
    )
    nodes = {"A": Node(id="A", type="src"), "B": Node(id="B", type="sink"), "C": Node(id="C", type="other")}
    source = output("A", definition_id="out")

    assert can_connect_ports(input_("B"), source, None, node_type, {}, nodes=nodes)
    context = captured["context"]
    assert context.from_port is source
    assert context.from_node is nodes["A"]
    assert context.from_definition is node_type
    assert context.data_type_compatible is True
    assert context.all_connections == {}

    verdict = explain_connection(source, input_("C"), node_type, None, nodes=nodes)
    assert verdict.reason == "Rejected by port 'out'."


def test_suffix_fallback_inherits_definition_rules():
    node_type = NodeTypeDefinition(
        type="sink",
        display_name="Sink",
        ports=[PortDefinition(id="input", direction=PortDirection.INPUT, label="In", data_type="number")],
    )
    dynamic = input_("B", port_id="input-12")

    assert not can_connect_ports(output("A", data_type="text"), dynamic, None, node_type)
    assert can_connect_ports(output("A", data_type="number"), dynamic, None, node_type)


def test_predicate_exceptions_propagate():
    def explode(_from_port, _to_port):
        raise RuntimeError("boom")

    node_type = NodeTypeDefinition(type="x", display_name="X", validate_connection=explode)
    with pytest.raises(RuntimeError):
        can_connect_ports(output("A"), input_("B"), node_type)


def test_rejections_are_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="junction.ports.validation"):
        can_connect_ports(output("A"), output("B"))
    assert "Ports must pair an output with an input." in caplog.text


def test_create_validated_connection_normalizes_direction():
    nodes = {"A": Node(id="A", type="a"), "B": Node(id="B", type="b")}
    source, target = output("A"), input_("B")

    connection = create_validated_connection(target, source, nodes, {}, lambda _type: None, id_factory=lambda: "c9")

    assert connection == Connection("c9", "A", "out", "B", "in")
    existing = {"c9": connection}
    assert create_validated_connection(source, target, nodes, existing, lambda _type: None) is None
    assert existing == {"c9": connection}


SOURCE_TYPE = NodeTypeDefinition(
    type="src",
    display_name="Source",
    ports=[PortDefinition(id="out", direction=PortDirection.OUTPUT, label="Out", data_type="number", max_connections=2)],
)
SINK_TYPE = NodeTypeDefinition(
    type="dst",
    display_name="Sink",
    ports=[PortDefinition(id="in", direction=PortDirection.INPUT, label="In", data_type="number", max_connections=2)],
)
PICKY_TYPE = NodeTypeDefinition(
    type="picky",
    display_name="Picky",
    ports=[
        PortDefinition(
            id="in",
            direction=PortDirection.INPUT,
            label="In",
            can_connect=lambda context: context.from_node is not None and context.from_node.type == "src",
        ),
    ],
)
NODES = {
    "A": Node(id="A", type="src"),
    "B": Node(id="B", type="dst"),
    "P": Node(id="P", type="picky"),
    "Q": Node(id="Q", type="other"),
}
A_OUT = output("A", definition_id="out")
B_IN = input_("B", definition_id="in")


def _fan(source, targets):
    return {f"f{index}": link(f"f{index}", source, target) for index, target in enumerate(targets)}


def _merge(*groups):
    merged = {}
    for group in groups:
        merged.update(group)
    return merged


@pytest.mark.parametrize(
    "first, second, first_type, second_type, connections, expected",
    [
        (A_OUT, B_IN, SOURCE_TYPE, SINK_TYPE, {}, True),
        (A_OUT, input_("B", data_type="text"), SOURCE_TYPE, None, {}, False),
        (A_OUT, input_("P", definition_id="in"), SOURCE_TYPE, PICKY_TYPE, {}, True),
        (output("Q"), input_("P", definition_id="in"), None, PICKY_TYPE, {}, False),
        (A_OUT, B_IN, SOURCE_TYPE, SINK_TYPE, _fan(A_OUT, [input_("X1")]), True),
        (A_OUT, B_IN, SOURCE_TYPE, SINK_TYPE, _fan(A_OUT, [input_("X1"), input_("X2")]), False),
        (
            A_OUT,
            B_IN,
            SOURCE_TYPE,
            SINK_TYPE,
            {"g1": link("g1", output("Y1"), B_IN), "g2": link("g2", output("Y2"), B_IN)},
            False,
        ),
        (
            output("A", max_connections="unlimited"),
            input_("B", max_connections="unlimited"),
            SOURCE_TYPE,
            SINK_TYPE,
            _merge(
                _fan(A_OUT, [input_("X1"), input_("X2"), input_("X3")]),
                {f"g{index}": link(f"g{index}", output(f"Y{index}"), B_IN) for index in range(3)},
            ),
            True,
        ),
        (A_OUT, B_IN, SOURCE_TYPE, SINK_TYPE, {"c1": link("c1", A_OUT, B_IN)}, False),
    ],
    ids=[
        "compatible",
        "data-type-mismatch",
        "port-predicate-accepts",
        "port-predicate-rejects",
        "output-below-definition-limit",
        "output-at-definition-limit",
        "input-at-definition-limit",
        "unlimited-both-sides",
        "duplicate",
    ],
)
def test_verdict_ignores_argument_order(first, second, first_type, second_type, connections, expected):
    forward = can_connect_ports(first, second, first_type, second_type, connections, nodes=NODES)
    backward = can_connect_ports(second, first, second_type, first_type, connections, nodes=NODES)

    assert forward == backward == expected


def test_predicates_see_the_connection_set_as_given():
    captured = []
    node_type = NodeTypeDefinition(
        type="watch",
        display_name="Watch",
        ports=[
            PortDefinition(
                id="in",
                direction=PortDirection.INPUT,
                label="In",
                max_connections="unlimited",
                can_connect=lambda context: captured.append(context.all_connections) or True,
            ),
        ],
    )
    connections = [link("c1", output("Z"), input_("B", definition_id="in"))]

    assert can_connect_ports(output("A"), input_("B", definition_id="in"), None, node_type, connections)
    assert captured == [connections]
    assert captured[0] is connections


def test_required_flag_is_metadata_only():
    node_type = NodeTypeDefinition(
        type="needs-input",
        display_name="Needs input",
        ports=[PortDefinition(id="in", direction=PortDirection.INPUT, label="In", required=True)],
    )

    assert node_type.ports[0].required
    assert can_connect_ports(output("A"), input_("B", definition_id="in"), None, node_type, {})
    assert not can_connect_ports(output("A"), output("B"), None, node_type, {})
