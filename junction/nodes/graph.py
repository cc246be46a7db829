from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from .base import Connection, Node, Port
from .definitions import NodeTypeDefinition, NodeTypeRegistry

logger = logging.getLogger(__name__)


class NodeGraph:
    """
    In-memory graph snapshot: the nodes, their stored connections and the
    resolved ports of every node.

    Resolved ports are memoized per node; call ``refresh_ports`` after
    changing a node's data or overrides.
    """

    def __init__(self, registry: Optional[NodeTypeRegistry] = None) -> None:
        self.registry = registry if registry is not None else NodeTypeRegistry()
        self._nodes: Dict[str, Node] = {}
        self._connections: Dict[str, Connection] = {}
        self._ports: Dict[str, List[Port]] = {}

    def node_type(self, type_name: str) -> Optional[NodeTypeDefinition]:
        return self.registry.get(type_name)

    def add_node(self, node: Node) -> None:
        if node.size is None:
            definition = self.registry.get(node.type)
            if definition is not None and definition.default_size is not None:
                node.size = definition.default_size
        self._nodes[node.id] = node
        self._ports.pop(node.id, None)

    def remove_node(self, node_id: str) -> None:
        self._nodes.pop(node_id, None)
        self._ports.pop(node_id, None)
        self._connections = {
            connection_id: connection
            for connection_id, connection in self._connections.items()
            if connection.from_node_id != node_id and connection.to_node_id != node_id
        }

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def nodes(self) -> Dict[str, Node]:
        return dict(self._nodes)

    def connections(self) -> Dict[str, Connection]:
        return dict(self._connections)

    def resolved_ports(self, node_id: str) -> List[Port]:
        node = self._nodes.get(node_id)
        if node is None:
            return []
        cached = self._ports.get(node_id)
        if cached is None:
            from junction.ports.derivation import derive_node_ports

            cached = derive_node_ports(node, self.registry.get(node.type))
            self._ports[node_id] = cached
        return list(cached)

    def refresh_ports(self, node_id: str) -> List[Port]:
        self._ports.pop(node_id, None)
        return self.resolved_ports(node_id)

    def get_port(self, node_id: str, port_id: str) -> Optional[Port]:
        for port in self.resolved_ports(node_id):
            if port.id == port_id:
                return port
        return None

    def can_connect(
        self,
        source_node: str,
        source_port: str,
        target_node: str,
        target_port: str,
    ) -> Tuple[bool, Optional[str]]:
        if source_node == target_node:
            return False, "Cannot connect a node to itself."

        source = self.get_port(source_node, source_port)
        target = self.get_port(target_node, target_port)
        if source is None or target is None:
            return False, "One of the ports does not exist."

        from junction.ports.validation import explain_connection

        try:
            verdict = explain_connection(
                source,
                target,
                self.node_type(self._nodes[source_node].type),
                self.node_type(self._nodes[target_node].type),
                self._connections,
                nodes=self._nodes,
            )
        except Exception:
            logger.exception(
                "Connection rule raised for %s:%s -> %s:%s",
                source_node,
                source_port,
                target_node,
                target_port,
            )
            raise
        return verdict.allowed, verdict.reason

    def connect(
        self,
        source_node: str,
        source_port: str,
        target_node: str,
        target_port: str,
    ) -> Optional[Connection]:
        """
        Store a validated connection and return it; ``None`` when rejected.

        The ports may be given in either order; the stored connection always
        runs from the output to the input.
        """

        ok, reason = self.can_connect(source_node, source_port, target_node, target_port)
        if not ok:
            logger.debug(
                "Refused connection %s:%s -> %s:%s: %s",
                source_node,
                source_port,
                target_node,
                target_port,
                reason,
            )
            return None

        from junction.ports.validation import normalize_connection_ports

        normalized = normalize_connection_ports(
            self.get_port(source_node, source_port),
            self.get_port(target_node, target_port),
        )
        if normalized is None:
            return None
        connection = Connection(
            id=uuid.uuid4().hex,
            from_node_id=normalized.source.node_id,
            from_port_id=normalized.source.id,
            to_node_id=normalized.target.node_id,
            to_port_id=normalized.target.id,
        )
        self._connections[connection.id] = connection
        return connection

    def add_connection(self, connection: Connection) -> None:
        """
        Store ``connection`` as-is, without validation.
        """

        self._connections[connection.id] = connection

    def disconnect(self, connection_id: str) -> Optional[Connection]:
        return self._connections.pop(connection_id, None)

    def outgoing(self, node_id: str) -> Tuple[Connection, ...]:
        return tuple(
            connection
            for connection in self._connections.values()
            if connection.from_node_id == node_id
        )

    def incoming(self, node_id: str) -> Tuple[Connection, ...]:
        return tuple(
            connection
            for connection in self._connections.values()
            if connection.to_node_id == node_id
        )

    def set_node_position(self, node_id: str, x: float, y: float) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.position = (float(x), float(y))

    def node_position(self, node_id: str) -> Optional[Tuple[float, float]]:
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return node.position

    def is_empty(self) -> bool:
        return not self._nodes

    def clear(self) -> None:
        self._nodes.clear()
        self._connections.clear()
        self._ports.clear()
