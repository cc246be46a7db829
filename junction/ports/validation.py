"""
Connection validation between two ports.

The rule cascade short-circuits on the first failure:

1. direction pairing (one output, one input, on different nodes)
2. duplicate connection in either orientation
3. node type ``validate_connection`` hooks
4. data type compatibility
5. port definition ``can_connect`` predicates
6. connection capacity of the input port, then of the output port

Ports are normalized to output -> input before any user hook runs, so callers
may pass the two ends in either order.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Mapping, NamedTuple, Optional

from junction.nodes.base import Connection, Node, Port, PortDirection
from junction.nodes.definitions import NodeTypeDefinition, PortConnectionContext, PortDefinition

from .capacity import ConnectionSet, check_port_capacity, iter_connections
from .datatypes import are_data_types_compatible, merge_data_types
from .derivation import get_port_definition

logger = logging.getLogger(__name__)


class NormalizedPorts(NamedTuple):
    source: Port
    target: Port


@dataclass(frozen=True)
class ConnectionVerdict:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def normalize_connection_ports(first: Port, second: Port) -> Optional[NormalizedPorts]:
    """
    Order two ports as (output, input); ``None`` for an invalid pairing.
    """

    if first.direction == second.direction or first.node_id == second.node_id:
        return None
    if first.direction == PortDirection.OUTPUT and second.direction == PortDirection.INPUT:
        return NormalizedPorts(first, second)
    if first.direction == PortDirection.INPUT and second.direction == PortDirection.OUTPUT:
        return NormalizedPorts(second, first)
    return None


def connection_exists(first: Port, second: Port, connections: Optional[ConnectionSet]) -> bool:
    for connection in iter_connections(connections):
        forward = (
            connection.from_node_id == first.node_id
            and connection.from_port_id == first.id
            and connection.to_node_id == second.node_id
            and connection.to_port_id == second.id
        )
        backward = (
            connection.from_node_id == second.node_id
            and connection.from_port_id == second.id
            and connection.to_node_id == first.node_id
            and connection.to_port_id == first.id
        )
        if forward or backward:
            return True
    return False


def resolve_port_data_types(port: Port, definition: Optional[PortDefinition]) -> List[str]:
    """
    Effective tags of a port: its own value first, then the definition's.
    """

    if definition is None:
        return merge_data_types(port.data_type)
    return merge_data_types(port.data_type, merge_data_types(definition.data_type, definition.data_types))


def _reject(reason: str) -> ConnectionVerdict:
    logger.debug("Connection rejected: %s", reason)
    return ConnectionVerdict(False, reason)


def explain_connection(
    from_port: Port,
    to_port: Port,
    from_definition: Optional[NodeTypeDefinition] = None,
    to_definition: Optional[NodeTypeDefinition] = None,
    connections: Optional[ConnectionSet] = None,
    *,
    nodes: Optional[Mapping[str, Node]] = None,
) -> ConnectionVerdict:
    """
    Run the full rule cascade and report the first failing rule.

    ``from_definition``/``to_definition`` belong to the nodes of ``from_port``
    and ``to_port`` as passed; they are swapped together with the ports.
    """

    if from_port.node_id == to_port.node_id:
        return _reject("Cannot connect a node to itself.")
    normalized = normalize_connection_ports(from_port, to_port)
    if normalized is None:
        return _reject("Ports must pair an output with an input.")

    source, target = normalized
    if source is from_port:
        source_definition, target_definition = from_definition, to_definition
    else:
        source_definition, target_definition = to_definition, from_definition

    if connections is not None and connection_exists(source, target, connections):
        return _reject("Connection already exists.")

    for node_type in (source_definition, target_definition):
        if node_type is None or node_type.validate_connection is None:
            continue
        if not node_type.validate_connection(source, target):
            return _reject(f"Rejected by node type '{node_type.type}'.")

    source_port_definition = get_port_definition(source, source_definition)
    target_port_definition = get_port_definition(target, target_definition)

    compatible = are_data_types_compatible(
        resolve_port_data_types(source, source_port_definition),
        resolve_port_data_types(target, target_port_definition),
    )
    if not compatible:
        return _reject("Incompatible port data types.")

    nodes = nodes or {}
    context = PortConnectionContext(
        from_port=source,
        to_port=target,
        from_node=nodes.get(source.node_id),
        to_node=nodes.get(target.node_id),
        from_definition=source_definition,
        to_definition=target_definition,
        all_connections=connections,
        data_type_compatible=compatible,
    )
    for port_definition in (source_port_definition, target_port_definition):
        if port_definition is None or port_definition.can_connect is None:
            continue
        if not port_definition.can_connect(context):
            return _reject(f"Rejected by port '{port_definition.id}'.")

    if connections is not None:
        if check_port_capacity(target, connections, "to", target_port_definition).at_capacity:
            return _reject(f"Input port '{target.id}' already has its maximum connections.")
        if check_port_capacity(source, connections, "from", source_port_definition).at_capacity:
            return _reject(f"Output port '{source.id}' already has its maximum connections.")

    return ConnectionVerdict(True)


def can_connect_ports(
    from_port: Port,
    to_port: Port,
    from_definition: Optional[NodeTypeDefinition] = None,
    to_definition: Optional[NodeTypeDefinition] = None,
    connections: Optional[ConnectionSet] = None,
    *,
    nodes: Optional[Mapping[str, Node]] = None,
) -> bool:
    return explain_connection(
        from_port,
        to_port,
        from_definition,
        to_definition,
        connections,
        nodes=nodes,
    ).allowed


def _new_connection_id() -> str:
    return uuid.uuid4().hex


def create_validated_connection(
    from_port: Port,
    to_port: Port,
    nodes: Mapping[str, Node],
    connections: Optional[ConnectionSet],
    get_node_type: Callable[[str], Optional[NodeTypeDefinition]],
    id_factory: Callable[[], str] = _new_connection_id,
) -> Optional[Connection]:
    """
    Build the output -> input connection for a drag between two ports, or
    ``None`` when the rules reject it. The connection set is not modified.
    """

    from_node = nodes.get(from_port.node_id)
    to_node = nodes.get(to_port.node_id)
    from_definition = get_node_type(from_node.type) if from_node is not None else None
    to_definition = get_node_type(to_node.type) if to_node is not None else None

    if not can_connect_ports(from_port, to_port, from_definition, to_definition, connections, nodes=nodes):
        return None

    normalized = normalize_connection_ports(from_port, to_port)
    if normalized is None:
        return None
    source, target = normalized
    return Connection(
        id=id_factory(),
        from_node_id=source.node_id,
        from_port_id=source.id,
        to_node_id=target.node_id,
        to_port_id=target.id,
    )


__all__ = [
    "ConnectionVerdict",
    "NormalizedPorts",
    "can_connect_ports",
    "connection_exists",
    "create_validated_connection",
    "explain_connection",
    "normalize_connection_ports",
    "resolve_port_data_types",
]
