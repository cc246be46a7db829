"""
Expanding declarative port definitions into concrete port instances.

Every definition is first normalized so its instance count and its id/label
generators are always callables, then expanded per node with the node's
port overrides applied.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence

from junction.nodes.base import Node, Placement, Port, PortDirection, PortOverride
from junction.nodes.definitions import (
    NodeTypeDefinition,
    PortDefinition,
    PortInstanceContext,
    PortInstanceFactoryContext,
)

from .datatypes import merge_data_types, to_data_type_value
from .placement import get_placement_side, normalize_placement

logger = logging.getLogger(__name__)

_NUMERIC_SUFFIX = re.compile(r"^(.*?)-\d+$")


@dataclass(frozen=True)
class NormalizedPortDefinition:
    """
    A port definition whose dynamic parts are always resolvable callables.
    """

    definition: PortDefinition
    instances: Callable[[PortInstanceContext], Any]
    create_port_id: Callable[[PortInstanceFactoryContext], str]
    create_port_label: Callable[[PortInstanceFactoryContext], str]

    @property
    def id(self) -> str:
        return self.definition.id


def default_create_port_id(context: PortInstanceFactoryContext) -> str:
    if context.total > 1:
        return f"{context.definition.id}-{context.index + 1}"
    return context.definition.id


def default_create_port_label(context: PortInstanceFactoryContext) -> str:
    if context.total > 1:
        return f"{context.definition.label} {context.index + 1}"
    return context.definition.label


def _constant_instances(count: Any) -> Callable[[PortInstanceContext], Any]:
    def resolve(_context: PortInstanceContext) -> Any:
        return count

    return resolve


def normalize_port_definition(definition: PortDefinition) -> NormalizedPortDefinition:
    instances = definition.instances
    if not callable(instances):
        instances = _constant_instances(1 if instances is None else instances)
    return NormalizedPortDefinition(
        definition=definition,
        instances=instances,
        create_port_id=definition.create_port_id or default_create_port_id,
        create_port_label=definition.create_port_label or default_create_port_label,
    )


def is_dynamic_port_definition(definition: PortDefinition) -> bool:
    return callable(definition.instances)


def _coerce_instance_count(raw: Any, definition_id: str) -> int:
    if not isinstance(raw, numbers.Real):
        logger.warning(
            "Port definition '%s' resolved a non-numeric instance count %r; treating as 0.",
            definition_id,
            raw,
        )
        return 0
    value = float(raw)
    if math.isnan(value) or math.isinf(value):
        return 0
    count = math.floor(value)
    return count if count > 0 else 0


def _resolve_instance_count(normalized: NormalizedPortDefinition, node: Node) -> int:
    raw = normalized.instances(PortInstanceContext(node=node))
    return _coerce_instance_count(raw, normalized.id)


def get_port_instance_count(definition: PortDefinition, node: Node) -> int:
    """
    Number of ports ``definition`` expands to on ``node`` (never negative).
    """

    return _resolve_instance_count(normalize_port_definition(definition), node)


def create_port_from_definition(
    definition: PortDefinition,
    node_id: str,
    placement: Optional[Placement] = None,
) -> Port:
    """
    Build a single port straight from a definition, without instance expansion.
    """

    placement = placement if placement is not None else normalize_placement(definition.position)
    merged = merge_data_types(definition.data_type, definition.data_types)
    return Port(
        id=definition.id,
        definition_id=definition.id,
        direction=definition.direction,
        label=definition.label,
        node_id=node_id,
        position=get_placement_side(placement),
        placement=placement,
        data_type=to_data_type_value(merged),
        max_connections=definition.max_connections,
        allowed_node_types=_as_tuple(definition.allowed_node_types),
        allowed_port_types=_as_tuple(definition.allowed_port_types),
    )


def _create_port_instances(definition: PortDefinition, node: Node) -> List[Port]:
    normalized = normalize_port_definition(definition)
    total = _resolve_instance_count(normalized, node)
    if total == 0:
        return []

    placement = normalize_placement(definition.position)
    data_type = to_data_type_value(merge_data_types(definition.data_type, definition.data_types))

    ports: List[Port] = []
    for index in range(total):
        context = PortInstanceFactoryContext(
            node=node,
            definition=definition,
            index=index,
            total=total,
        )
        ports.append(
            Port(
                id=normalized.create_port_id(context),
                definition_id=definition.id,
                direction=definition.direction,
                label=normalized.create_port_label(context),
                node_id=node.id,
                position=get_placement_side(placement),
                placement=placement,
                data_type=data_type,
                max_connections=definition.max_connections,
                allowed_node_types=_as_tuple(definition.allowed_node_types),
                allowed_port_types=_as_tuple(definition.allowed_port_types),
                instance_index=index,
                instance_total=total,
            )
        )
    return ports


def infer_default_port_definitions(_node: Optional[Node] = None) -> List[PortDefinition]:
    """
    Ports given to node types that declare none: an input on the left and an
    output on the right.
    """

    return [
        PortDefinition(id="input", direction=PortDirection.INPUT, label="Input", position="left"),
        PortDefinition(id="output", direction=PortDirection.OUTPUT, label="Output", position="right"),
    ]


def _find_override(port: Port, overrides: Sequence[PortOverride]) -> Optional[PortOverride]:
    for override in overrides:
        if override.port_id == port.id or override.port_id == port.definition_id:
            return override
    return None


def _apply_override(port: Port, override: PortOverride) -> Port:
    changes = {}
    if override.max_connections is not None:
        changes["max_connections"] = override.max_connections
    if override.allowed_node_types is not None:
        changes["allowed_node_types"] = tuple(override.allowed_node_types)
    if override.allowed_port_types is not None:
        changes["allowed_port_types"] = tuple(override.allowed_port_types)
    return replace(port, **changes) if changes else port


def derive_node_ports(node: Node, node_type: Optional[NodeTypeDefinition]) -> List[Port]:
    """
    Resolve the concrete ports of ``node``.

    Output order is definition order, then instance index. Disabled overrides
    drop the matching instances.
    """

    definitions = node_type.ports if node_type is not None else None
    if definitions is None:
        definitions = infer_default_port_definitions(node)

    resolved: List[Port] = []
    for definition in definitions:
        for port in _create_port_instances(definition, node):
            override = _find_override(port, node.port_overrides)
            if override is None:
                resolved.append(port)
                continue
            if override.disabled:
                continue
            resolved.append(_apply_override(port, override))
    return resolved


def port_definition_candidates(port: Port) -> List[str]:
    """
    Definition ids a port may resolve to, in lookup order.

    ``definition_id`` comes first, then the port id itself, then the port id
    with a trailing ``-<digits>`` removed (``"input-12"`` -> ``"input"``).
    """

    candidates: List[str] = []
    if port.definition_id:
        candidates.append(port.definition_id)
    if port.id not in candidates:
        candidates.append(port.id)
    match = _NUMERIC_SUFFIX.match(port.id)
    if match and match.group(1) and match.group(1) not in candidates:
        candidates.append(match.group(1))
    return candidates


def get_port_definition(port: Port, node_type: Optional[NodeTypeDefinition]) -> Optional[PortDefinition]:
    if node_type is None or not node_type.ports:
        return None
    for candidate in port_definition_candidates(port):
        for definition in node_type.ports:
            if definition.id == candidate:
                return definition
    return None


def _as_tuple(values: Optional[Sequence[str]]) -> Optional[tuple]:
    return tuple(values) if values is not None else None


__all__ = [
    "NormalizedPortDefinition",
    "create_port_from_definition",
    "default_create_port_id",
    "default_create_port_label",
    "derive_node_ports",
    "get_port_definition",
    "get_port_instance_count",
    "infer_default_port_definitions",
    "is_dynamic_port_definition",
    "normalize_port_definition",
    "port_definition_candidates",
]
