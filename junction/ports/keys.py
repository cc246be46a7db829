from __future__ import annotations

from typing import Optional, Tuple

from junction.nodes.base import Port

PortKey = str


def create_port_key(node_id: str, port_id: str) -> PortKey:
    return f"{node_id}:{port_id}"


def get_port_key(port: Port) -> PortKey:
    return create_port_key(port.node_id, port.id)


def parse_port_key(key: str) -> Optional[Tuple[str, str]]:
    """
    Split ``"node:port"`` on the first colon; ``None`` when either half is empty.
    """

    node_id, separator, port_id = key.partition(":")
    if not separator or not node_id or not port_id:
        return None
    return node_id, port_id


__all__ = ["PortKey", "create_port_key", "get_port_key", "parse_port_key"]
