from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

PORT_SIDES: Tuple[str, ...] = ("left", "right", "top", "bottom")
ABSOLUTE_MODE = "absolute"

UNLIMITED = "unlimited"
MaxConnections = Union[int, str]
DataTypeValue = Union[str, Sequence[str], None]


class PortDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class SidePlacement:
    """
    Places a port along one edge of its node.

    Ports sharing a ``segment`` are clustered together inside that slice of the
    edge; ``align`` is a preferred 0-1 offset within the segment.
    """

    side: str = "right"
    segment: Optional[str] = None
    segment_order: Optional[float] = None
    segment_span: Optional[float] = None
    align: Optional[float] = None
    inset: Optional[bool] = None


@dataclass(frozen=True)
class AbsolutePlacement:
    """
    Places a port at a fixed coordinate relative to the node's top-left corner.

    ``unit`` is ``"px"`` or ``"percent"`` (0-100 of the node size).
    """

    x: float
    y: float
    unit: str = "px"
    mode: str = field(default=ABSOLUTE_MODE, init=False)


Placement = Union[SidePlacement, AbsolutePlacement]


@dataclass(frozen=True)
class Port:
    """
    A concrete, connectable attachment point on a node instance.
    """

    id: str
    direction: PortDirection
    label: str
    node_id: str
    position: str = "right"
    definition_id: Optional[str] = None
    placement: Optional[Placement] = None
    data_type: DataTypeValue = None
    max_connections: Optional[MaxConnections] = None
    allowed_node_types: Optional[Tuple[str, ...]] = None
    allowed_port_types: Optional[Tuple[str, ...]] = None
    instance_index: Optional[int] = None
    instance_total: Optional[int] = None

    @property
    def is_input(self) -> bool:
        return self.direction == PortDirection.INPUT

    @property
    def is_output(self) -> bool:
        return self.direction == PortDirection.OUTPUT


@dataclass(frozen=True)
class PortOverride:
    """
    Node-specific adjustment of a declared port, matched by generated port id
    or by definition id.
    """

    port_id: str
    max_connections: Optional[MaxConnections] = None
    allowed_node_types: Optional[Sequence[str]] = None
    allowed_port_types: Optional[Sequence[str]] = None
    disabled: bool = False


@dataclass
class Node:
    """
    Node instance placed on the canvas.
    """

    id: str
    type: str
    position: Tuple[float, float] = (0.0, 0.0)
    size: Optional[Tuple[float, float]] = None
    data: Dict[str, Any] = field(default_factory=dict)
    port_overrides: List[PortOverride] = field(default_factory=list)


@dataclass(frozen=True)
class Connection:
    """
    Stored connection, always oriented output port -> input port.
    """

    id: str
    from_node_id: str
    from_port_id: str
    to_node_id: str
    to_port_id: str


# Connections keyed by id, or any iterable of them.
ConnectionSet = Union[Mapping[str, Connection], Iterable[Connection]]
