from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from junction.nodes.base import UNLIMITED, Connection, ConnectionSet, MaxConnections, Port
from junction.nodes.definitions import PortDefinition

DEFAULT_MAX_CONNECTIONS = 1


@dataclass(frozen=True)
class PortCapacity:
    at_capacity: bool
    existing_connections: Tuple[Connection, ...]
    max_connections: Optional[int]


def iter_connections(connections: Optional[ConnectionSet]) -> List[Connection]:
    if connections is None:
        return []
    if isinstance(connections, Mapping):
        return list(connections.values())
    return list(connections)


def get_port_connections(port: Port, connections: Optional[ConnectionSet]) -> List[Connection]:
    return [
        connection
        for connection in iter_connections(connections)
        if (connection.from_node_id == port.node_id and connection.from_port_id == port.id)
        or (connection.to_node_id == port.node_id and connection.to_port_id == port.id)
    ]


def get_port_connections_by_direction(
    port: Port,
    connections: Optional[ConnectionSet],
    direction: str,
) -> List[Connection]:
    """
    Connections leaving (``"from"``) or entering (``"to"``) ``port``.
    """

    if direction == "from":
        return [
            connection
            for connection in iter_connections(connections)
            if connection.from_node_id == port.node_id and connection.from_port_id == port.id
        ]
    return [
        connection
        for connection in iter_connections(connections)
        if connection.to_node_id == port.node_id and connection.to_port_id == port.id
    ]


def has_port_connections(port: Port, connections: Optional[ConnectionSet]) -> bool:
    return bool(get_port_connections(port, connections))


def count_port_connections(port: Port, connections: Optional[ConnectionSet]) -> int:
    return len(get_port_connections(port, connections))


def normalize_max_connections(value: Optional[MaxConnections], default: int = DEFAULT_MAX_CONNECTIONS) -> Optional[int]:
    """
    ``"unlimited"`` maps to ``None`` (no limit); a missing value to ``default``.
    """

    if value == UNLIMITED:
        return None
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default


def get_effective_max_connections(port: Port, definition: Optional[PortDefinition] = None) -> Optional[int]:
    configured = port.max_connections
    if configured is None and definition is not None:
        configured = definition.max_connections
    return normalize_max_connections(configured)


def check_port_capacity(
    port: Port,
    connections: Optional[ConnectionSet],
    direction: str,
    definition: Optional[PortDefinition] = None,
) -> PortCapacity:
    maximum = get_effective_max_connections(port, definition)
    existing = tuple(get_port_connections_by_direction(port, connections, direction))
    if maximum is None:
        return PortCapacity(at_capacity=False, existing_connections=existing, max_connections=None)
    return PortCapacity(
        at_capacity=len(existing) >= maximum,
        existing_connections=existing,
        max_connections=maximum,
    )


__all__ = [
    "DEFAULT_MAX_CONNECTIONS",
    "PortCapacity",
    "check_port_capacity",
    "count_port_connections",
    "get_effective_max_connections",
    "get_port_connections",
    "get_port_connections_by_direction",
    "has_port_connections",
    "iter_connections",
    "normalize_max_connections",
]
