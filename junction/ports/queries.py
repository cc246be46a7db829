"""
Queries answering "where can this drag go?".

Every query calls the connection validator once per candidate and keeps no
state between calls, so they are safe to run on each pointer move.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from junction.nodes.base import Node, Port
from junction.nodes.definitions import NodeTypeDefinition

from .capacity import ConnectionSet
from .derivation import derive_node_ports
from .geometry import Point
from .keys import PortKey, create_port_key, parse_port_key
from .planner import ConnectionSwitchBehavior, get_connection_switch_context
from .validation import can_connect_ports

DEFAULT_SNAP_DISTANCE = 24.0

# Id of the throwaway node derived per node type; never a real node.
PREVIEW_NODE_ID = "__temp_connectable_check__"

NodeTypeLookup = Callable[[str], Optional[NodeTypeDefinition]]
NodePortsLookup = Callable[[str], Sequence[Port]]


@dataclass(frozen=True)
class ConnectableSource:
    node_id: str
    port_id: str
    direction: str
    port_index: int


@dataclass(frozen=True)
class ConnectablePortDescriptor:
    key: PortKey
    node_id: str
    port_id: str
    direction: str
    port_index: int
    source: ConnectableSource
    behavior: ConnectionSwitchBehavior


@dataclass
class ConnectablePorts:
    ids: Set[PortKey] = field(default_factory=set)
    descriptors: Dict[PortKey, ConnectablePortDescriptor] = field(default_factory=dict)
    source: Optional[ConnectableSource] = None

    def __contains__(self, key: object) -> bool:
        return key in self.ids

    def is_port_connectable(self, port: Port) -> bool:
        key = create_port_key(port.node_id, port.id)
        descriptor = self.descriptors.get(key)
        if descriptor is not None:
            return descriptor.direction != descriptor.source.direction
        return key in self.ids


def _node_type_of(port: Port, nodes: Mapping[str, Node], get_node_type: NodeTypeLookup) -> Optional[NodeTypeDefinition]:
    node = nodes.get(port.node_id)
    return get_node_type(node.type) if node is not None else None


def get_connectable_port_ids(
    from_port: Port,
    nodes: Mapping[str, Node],
    get_node_ports: NodePortsLookup,
    connections: Optional[ConnectionSet],
    get_node_type: NodeTypeLookup,
) -> Set[PortKey]:
    """
    Keys (``"node:port"``) of every resolved port that accepts a connection
    from ``from_port``.
    """

    result: Set[PortKey] = set()
    from_definition = _node_type_of(from_port, nodes, get_node_type)

    for node in nodes.values():
        to_definition = get_node_type(node.type)
        for port in get_node_ports(node.id) or ():
            if port.direction == from_port.direction:
                continue
            if port.node_id == from_port.node_id and port.id == from_port.id:
                continue
            if can_connect_ports(from_port, port, from_definition, to_definition, connections, nodes=nodes):
                result.add(create_port_key(node.id, port.id))
    return result


def _preview_node(node_type: NodeTypeDefinition, node_id: str = PREVIEW_NODE_ID) -> Node:
    return Node(
        id=node_id,
        type=node_type.type,
        data=dict(node_type.default_data),
        size=node_type.default_size,
    )


def _accepting_ports(
    from_port: Port,
    from_definition: Optional[NodeTypeDefinition],
    target_definition: NodeTypeDefinition,
    connections: Optional[ConnectionSet],
    nodes: Mapping[str, Node],
    node_id: str = PREVIEW_NODE_ID,
) -> Iterator[Port]:
    # Ports come from a derived node so dynamic instance counts apply.
    for candidate in derive_node_ports(_preview_node(target_definition, node_id), target_definition):
        if candidate.direction == from_port.direction:
            continue
        if can_connect_ports(from_port, candidate, from_definition, target_definition, connections, nodes=nodes):
            yield candidate


def get_connectable_node_types(
    from_port: Port,
    nodes: Mapping[str, Node],
    connections: Optional[ConnectionSet],
    get_node_type: NodeTypeLookup,
    get_all_node_types: Callable[[], Iterable[NodeTypeDefinition]],
) -> List[str]:
    """
    Registered node types whose default instance has at least one port that
    would accept a connection from ``from_port``; registration order is kept.
    """

    from_definition = _node_type_of(from_port, nodes, get_node_type)
    connectable: List[str] = []
    for node_type in get_all_node_types():
        if next(_accepting_ports(from_port, from_definition, node_type, connections, nodes), None) is not None:
            connectable.append(node_type.type)
    return connectable


def find_connectable_port(
    from_port: Port,
    target_definition: NodeTypeDefinition,
    target_node_id: str,
    connections: Optional[ConnectionSet],
    nodes: Mapping[str, Node],
    from_definition: Optional[NodeTypeDefinition] = None,
) -> Optional[Port]:
    """
    First port a fresh ``target_definition`` node with id ``target_node_id``
    would expose that is able to take the drag.

    Used to auto-connect a node inserted at the end of a drag.
    """

    return next(
        _accepting_ports(from_port, from_definition, target_definition, connections, nodes, node_id=target_node_id),
        None,
    )


def resolve_connectable_source_port(
    drag_port: Optional[Port] = None,
    fixed_port: Optional[Port] = None,
    fallback_port: Optional[Port] = None,
) -> Optional[Port]:
    """
    The port a connectable search starts from: the dragged port, else the
    fixed end of a connection being detached, else ``fallback_port``.
    """

    if drag_port is not None:
        return drag_port
    if fixed_port is not None:
        return fixed_port
    return fallback_port


def _port_index(port_id: str, ports: Sequence[Port]) -> int:
    for index, candidate in enumerate(ports):
        if candidate.id == port_id:
            return index
    return -1


def compute_connectable_ports(
    nodes: Mapping[str, Node],
    connections: Optional[ConnectionSet],
    get_node_ports: NodePortsLookup,
    get_node_type: NodeTypeLookup,
    *,
    drag_port: Optional[Port] = None,
    fixed_port: Optional[Port] = None,
    fallback_port: Optional[Port] = None,
) -> ConnectablePorts:
    source_port = resolve_connectable_source_port(drag_port, fixed_port, fallback_port)
    result = ConnectablePorts()
    if source_port is None:
        return result

    source = ConnectableSource(
        node_id=source_port.node_id,
        port_id=source_port.id,
        direction=source_port.direction.value,
        port_index=_port_index(source_port.id, get_node_ports(source_port.node_id) or ()),
    )
    behavior = get_connection_switch_context(source_port, nodes, connections, get_node_type).behavior

    for key in sorted(get_connectable_port_ids(source_port, nodes, get_node_ports, connections, get_node_type)):
        parsed = parse_port_key(key)
        if parsed is None:
            continue
        node_id, port_id = parsed
        ports = get_node_ports(node_id) or ()
        index = _port_index(port_id, ports)
        if index < 0:
            continue
        result.ids.add(key)
        result.descriptors[key] = ConnectablePortDescriptor(
            key=key,
            node_id=node_id,
            port_id=port_id,
            direction=ports[index].direction.value,
            port_index=index,
            source=source,
            behavior=behavior,
        )

    result.source = source
    return result


def _candidate_tuples(connectable: ConnectablePorts) -> List[Tuple[str, str]]:
    if connectable.descriptors:
        return [(descriptor.node_id, descriptor.port_id) for descriptor in connectable.descriptors.values()]
    parsed = (parse_port_key(key) for key in sorted(connectable.ids))
    return [pair for pair in parsed if pair is not None]


def find_nearest_connectable_port(
    pointer: Point,
    connectable: ConnectablePorts,
    nodes: Mapping[str, Node],
    get_node_ports: NodePortsLookup,
    get_connection_point: Callable[[str, str], Optional[Point]],
    exclude_port: Optional[Tuple[str, str]] = None,
    snap_distance: float = DEFAULT_SNAP_DISTANCE,
) -> Optional[Port]:
    """
    Connectable port whose connection point lies closest to ``pointer``
    within ``snap_distance``. On equal distance the first candidate wins.
    """

    if not connectable.ids:
        return None

    best: Optional[Port] = None
    best_distance = math.inf
    for node_id, port_id in _candidate_tuples(connectable):
        if node_id not in nodes:
            continue
        if exclude_port is not None and exclude_port == (node_id, port_id):
            continue
        point = get_connection_point(node_id, port_id)
        if point is None:
            continue
        distance = math.hypot(point.x - pointer.x, point.y - pointer.y)
        if distance > snap_distance or distance >= best_distance:
            continue
        port = next((candidate for candidate in get_node_ports(node_id) or () if candidate.id == port_id), None)
        if port is None:
            continue
        best, best_distance = port, distance
    return best


__all__ = [
    "ConnectablePortDescriptor",
    "ConnectablePorts",
    "ConnectableSource",
    "DEFAULT_SNAP_DISTANCE",
    "PREVIEW_NODE_ID",
    "compute_connectable_ports",
    "find_connectable_port",
    "find_nearest_connectable_port",
    "get_connectable_node_types",
    "get_connectable_port_ids",
    "resolve_connectable_source_port",
]
