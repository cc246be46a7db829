from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from junction.errors import UnknownNodeTypeError

from .base import ConnectionSet, MaxConnections, Node, Placement, Port, PortDirection


@dataclass(frozen=True)
class PortInstanceContext:
    node: Node


@dataclass(frozen=True)
class PortInstanceFactoryContext:
    node: Node
    definition: "PortDefinition"
    index: int
    total: int


@dataclass(frozen=True)
class PortConnectionContext:
    """
    Context handed to a port definition's ``can_connect`` predicate.

    Ports are always normalized so ``from_port`` is the output side.
    """

    from_port: Port
    to_port: Port
    from_node: Optional[Node] = None
    to_node: Optional[Node] = None
    from_definition: Optional["NodeTypeDefinition"] = None
    to_definition: Optional["NodeTypeDefinition"] = None
    all_connections: Optional[ConnectionSet] = None
    data_type_compatible: bool = True


InstanceCount = Union[int, Callable[[PortInstanceContext], Any]]
PortPositionSpec = Union[str, Placement, None]


@dataclass(frozen=True)
class PortDefinition:
    """
    Declarative description of one port (or one family of repeated ports) on a
    node type.
    """

    id: str
    direction: PortDirection
    label: str
    position: PortPositionSpec = None
    data_type: Optional[str] = None
    data_types: Optional[Sequence[str]] = None
    max_connections: Optional[MaxConnections] = None
    instances: Optional[InstanceCount] = None
    create_port_id: Optional[Callable[[PortInstanceFactoryContext], str]] = None
    create_port_label: Optional[Callable[[PortInstanceFactoryContext], str]] = None
    can_connect: Optional[Callable[[PortConnectionContext], bool]] = None
    allowed_node_types: Optional[Sequence[str]] = None
    allowed_port_types: Optional[Sequence[str]] = None
    # Carried for editors; connection rules never read it.
    required: bool = False


@dataclass(frozen=True)
class NodeTypeDefinition:
    """
    Describes a kind of node: its declared ports and optional connection rules.

    ``ports=None`` means the type declares nothing and receives the inferred
    default input/output pair.
    """

    type: str
    display_name: str
    category: str = ""
    description: str = ""
    ports: Optional[Sequence[PortDefinition]] = None
    validate_connection: Optional[Callable[[Port, Port], bool]] = None
    default_data: Dict[str, Any] = field(default_factory=dict)
    default_size: Optional[Tuple[float, float]] = None


class NodeTypeRegistry:
    """
    Lookup table of node type definitions keyed by their type string.
    """

    def __init__(self, definitions: Iterable[NodeTypeDefinition] = ()) -> None:
        self._definitions: Dict[str, NodeTypeDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: NodeTypeDefinition) -> None:
        self._definitions[definition.type] = definition

    def unregister(self, node_type: str) -> None:
        self._definitions.pop(node_type, None)

    def get(self, node_type: str) -> Optional[NodeTypeDefinition]:
        return self._definitions.get(node_type)

    def require(self, node_type: str) -> NodeTypeDefinition:
        """
        Look up a node type, raising ``UnknownNodeTypeError`` when missing.
        """

        try:
            return self._definitions[node_type]
        except KeyError:
            raise UnknownNodeTypeError(node_type) from None

    def all(self) -> Tuple[NodeTypeDefinition, ...]:
        return tuple(self._definitions.values())

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._definitions

    def __iter__(self) -> Iterator[NodeTypeDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
