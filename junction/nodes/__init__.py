""
"Node, port and connection records plus the node type registry."
""

from .base import (
    AbsolutePlacement,
    Connection,
    Node,
    Port,
    PortDirection,
    PortOverride,
    SidePlacement,
)
from .definitions import NodeTypeDefinition, NodeTypeRegistry, PortConnectionContext, PortDefinition
from .graph import NodeGraph

__all__ = [
    "AbsolutePlacement",
    "Connection",
    "Node",
    "NodeGraph",
    "NodeTypeDefinition",
    "NodeTypeRegistry",
    "Port",
    "PortConnectionContext",
    "PortDefinition",
    "PortDirection",
    "PortOverride",
    "SidePlacement",
]
