from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Mapping, Optional, Tuple

from junction.nodes.base import Connection, Node, Port, PortDirection
from junction.nodes.definitions import NodeTypeDefinition

from .capacity import ConnectionSet, check_port_capacity
from .derivation import get_port_definition
from .validation import create_validated_connection

logger = logging.getLogger(__name__)


class ConnectionSwitchBehavior(Enum):
    """
    What a finished drag does when it starts from a port.
    """

    APPEND = "append"
    IGNORE = "ignore"


@dataclass(frozen=True)
class BehaviorContext:
    behavior: ConnectionSwitchBehavior
    existing_connections: Tuple[Connection, ...] = ()
    max_connections: Optional[int] = None


@dataclass(frozen=True)
class ConnectionPlan:
    behavior: ConnectionSwitchBehavior
    connection: Optional[Connection] = None
    # Replacement is not supported; kept so callers can treat plans uniformly.
    connection_ids_to_replace: List[str] = field(default_factory=list)


def get_connection_switch_context(
    port: Port,
    nodes: Mapping[str, Node],
    connections: Optional[ConnectionSet],
    get_node_type: Callable[[str], Optional[NodeTypeDefinition]],
) -> BehaviorContext:
    node = nodes.get(port.node_id)
    node_type = get_node_type(node.type) if node is not None else None
    port_definition = get_port_definition(port, node_type)
    direction = "from" if port.direction == PortDirection.OUTPUT else "to"

    capacity = check_port_capacity(port, connections, direction, port_definition)
    behavior = ConnectionSwitchBehavior.IGNORE if capacity.at_capacity else ConnectionSwitchBehavior.APPEND
    return BehaviorContext(
        behavior=behavior,
        existing_connections=capacity.existing_connections,
        max_connections=capacity.max_connections,
    )


def plan_connection_change(
    from_port: Port,
    to_port: Port,
    nodes: Mapping[str, Node],
    connections: Optional[ConnectionSet],
    get_node_type: Callable[[str], Optional[NodeTypeDefinition]],
    id_factory: Optional[Callable[[], str]] = None,
) -> ConnectionPlan:
    """
    Decide what a completed drag from ``from_port`` onto ``to_port`` does.

    A drag starting at a full port is ignored outright. Otherwise the pair is
    run through the full validator and the plan carries the new connection,
    or ``None`` when validation rejects it.
    """

    context = get_connection_switch_context(from_port, nodes, connections, get_node_type)
    if context.behavior == ConnectionSwitchBehavior.IGNORE:
        logger.debug(
            "Ignoring drag from %s:%s; port already has %d connection(s)",
            from_port.node_id,
            from_port.id,
            len(context.existing_connections),
        )
        return ConnectionPlan(ConnectionSwitchBehavior.IGNORE)

    kwargs = {"id_factory": id_factory} if id_factory is not None else {}
    connection = create_validated_connection(from_port, to_port, nodes, connections, get_node_type, **kwargs)
    return ConnectionPlan(ConnectionSwitchBehavior.APPEND, connection)


__all__ = [
    "BehaviorContext",
    "ConnectionPlan",
    "ConnectionSwitchBehavior",
    "get_connection_switch_context",
    "plan_connection_change",
]
