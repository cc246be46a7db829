"""
Port placement geometry.

Side-based ports are grouped per side into ordered segments laid end-to-end
along a normalized 0-1 axis; ports inside a segment are spread evenly or at
their requested ``align`` offset and then pushed apart so crowded sides never
stack two ports on top of each other. Absolute ports are positioned directly.

Every result carries a render anchor (relative to the node's top-left corner,
with a hint telling which axis the renderer centers on) and a connection
point: the visual center of the port glyph in canvas coordinates.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from junction.nodes.base import AbsolutePlacement, Node, Placement, Port, SidePlacement

from .placement import (
    get_placement_align,
    get_placement_inset,
    get_port_side,
    is_absolute_placement,
)

DEFAULT_NODE_SIZE: Tuple[float, float] = (150.0, 50.0)
DEFAULT_SEGMENT_KEY = "default"

TRANSLATE_X = "translate_x"
TRANSLATE_Y = "translate_y"


@dataclass(frozen=True)
class PortLayoutConfig:
    visual_size: float = 12.0
    relative_padding: float = 0.25
    min_bound: float = 0.05
    max_bound: float = 0.95
    max_gap: float = 0.14
    gap_budget: float = 0.4

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PortLayoutConfig":
        """
        Build a config honouring ``JUNCTION_PORT_SIZE`` and
        ``JUNCTION_PORT_PADDING`` overrides; unparsable values are ignored.
        """

        environ = os.environ if environ is None else environ
        config = cls()
        visual_size = _float_or_none(environ.get("JUNCTION_PORT_SIZE"))
        padding = _float_or_none(environ.get("JUNCTION_PORT_PADDING"))
        if visual_size is not None and visual_size > 0:
            config = replace(config, visual_size=visual_size)
        if padding is not None and 0 <= padding < 0.5:
            config = replace(config, relative_padding=padding)
        return config


DEFAULT_PORT_LAYOUT_CONFIG = PortLayoutConfig()


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class RenderAnchor:
    x: float
    y: float
    transform: Optional[str] = None


@dataclass(frozen=True)
class PortGeometry:
    port_id: str
    render_position: RenderAnchor
    connection_point: Point


@dataclass
class _SegmentGroup:
    key: str
    order: float = 0
    span: float = 1
    ports: List[Port] = field(default_factory=list)


def _float_or_none(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))


def get_node_size(node: Node) -> Tuple[float, float]:
    if node.size is None:
        return DEFAULT_NODE_SIZE
    width, height = node.size
    return float(width), float(height)


def _placement_for_port(port: Port) -> Placement:
    if port.placement is not None:
        return port.placement
    return SidePlacement(side=port.position or "right")


def _group_ports_by_side(ports: Iterable[Port]) -> Dict[str, List[_SegmentGroup]]:
    grouped: Dict[str, Dict[str, _SegmentGroup]] = {}
    for port in ports:
        placement = _placement_for_port(port)
        if is_absolute_placement(placement):
            continue
        side = placement.side or "right"
        key = placement.segment if placement.segment is not None else DEFAULT_SEGMENT_KEY
        segments = grouped.setdefault(side, {})
        segment = segments.get(key)
        if segment is None:
            segment = _SegmentGroup(key=key)
            segments[key] = segment
        # Any port of the segment may carry the ordering and span hints.
        if placement.segment_order is not None:
            segment.order = placement.segment_order
        if placement.segment_span is not None:
            segment.span = placement.segment_span
        segment.ports.append(port)

    return {
        side: sorted(segments.values(), key=lambda segment: (segment.order, segment.key))
        for side, segments in grouped.items()
    }


def default_relative_offset(index: int, total: int, config: PortLayoutConfig = DEFAULT_PORT_LAYOUT_CONFIG) -> float:
    """
    Even spacing used when a port requests no ``align`` offset.
    """

    if total == 1:
        return 0.5
    if total == 2:
        return (0.3333, 0.6667)[index] if index in (0, 1) else 0.5
    available = 1 - config.relative_padding * 2
    step = available / (total - 1)
    return _clamp(config.relative_padding + step * index, 0.1, 0.9)


def minimum_gap(total: int, config: PortLayoutConfig = DEFAULT_PORT_LAYOUT_CONFIG) -> float:
    return min(config.max_gap, config.gap_budget / max(1, total - 1))


def compute_segment_offsets(ports: Sequence[Port], config: PortLayoutConfig = DEFAULT_PORT_LAYOUT_CONFIG) -> List[float]:
    """
    Resolve the 0-1 offset of every port within one segment.

    Desired offsets are visited in ascending order and pushed forward to keep
    at least ``minimum_gap`` from the previous port; when the last one spills
    past ``max_bound`` all offsets are pulled back with a taper by port index.
    """

    total = len(ports)
    if total == 0:
        return []
    if total == 1:
        align = get_placement_align(ports[0].placement)
        return [_clamp(align, 0, 1) if align is not None else 0.5]

    desired: List[float] = []
    for index, port in enumerate(ports):
        align = get_placement_align(port.placement)
        if align is not None:
            desired.append(_clamp(align, 0, 1))
        else:
            desired.append(default_relative_offset(index, total, config))

    ordered = sorted(range(total), key=lambda index: (desired[index], index))
    gap = minimum_gap(total, config)
    adjusted = [0.0] * total

    current = config.min_bound
    for index in ordered:
        offset = max(_clamp(desired[index], config.min_bound, config.max_bound), current)
        adjusted[index] = offset
        current = offset + gap

    last = max(adjusted)
    if last > config.max_bound:
        overflow = last - config.max_bound
        denominator = total - 1 if total > 1 else 1
        adjusted = [
            _clamp(offset - overflow * (index / denominator), config.min_bound, config.max_bound)
            for index, offset in enumerate(adjusted)
        ]

    return adjusted


def _side_render_anchor(
    port: Port,
    relative_offset: float,
    size: Tuple[float, float],
    config: PortLayoutConfig,
) -> RenderAnchor:
    width, height = size
    half = config.visual_size / 2
    inset = half * 2 if get_placement_inset(port.placement) else 0.0
    side = get_port_side(port)

    if side == "left":
        return RenderAnchor(-half + inset, height * relative_offset, TRANSLATE_Y)
    if side == "top":
        return RenderAnchor(width * relative_offset, -half + inset, TRANSLATE_X)
    if side == "bottom":
        return RenderAnchor(width * relative_offset, height - half - inset, TRANSLATE_X)
    if side == "right":
        return RenderAnchor(width - half - inset, height * relative_offset, TRANSLATE_Y)
    return RenderAnchor(width - half - inset, height * 0.5, TRANSLATE_Y)


def connection_point_for(anchor: RenderAnchor, node: Node, config: PortLayoutConfig = DEFAULT_PORT_LAYOUT_CONFIG) -> Point:
    """
    Canvas-space visual center of a port glyph drawn at ``anchor``.

    The axis carrying the centering transform is already centered; the other
    axis is shifted by half the glyph size.
    """

    left, top = node.position
    half = config.visual_size / 2
    if anchor.transform == TRANSLATE_Y:
        return Point(left + anchor.x + half, top + anchor.y)
    if anchor.transform == TRANSLATE_X:
        return Point(left + anchor.x, top + anchor.y + half)
    return Point(left + anchor.x + half, top + anchor.y + half)


def resolve_absolute_coordinates(placement: AbsolutePlacement, size: Tuple[float, float]) -> Tuple[float, float]:
    width, height = size
    if placement.unit == "percent":
        return placement.x / 100 * width, placement.y / 100 * height
    return float(placement.x), float(placement.y)


def _absolute_port_geometry(
    port: Port,
    placement: AbsolutePlacement,
    node: Node,
    size: Tuple[float, float],
    config: PortLayoutConfig,
) -> PortGeometry:
    half = config.visual_size / 2
    x, y = resolve_absolute_coordinates(placement, size)
    anchor = RenderAnchor(x - half, y - half)
    return PortGeometry(port.id, anchor, connection_point_for(anchor, node, config))


def compute_node_port_positions(
    node: Node,
    ports: Sequence[Port],
    config: Optional[PortLayoutConfig] = None,
) -> Dict[str, PortGeometry]:
    """
    Compute render anchors and connection points for ``ports`` on ``node``.

    Ports missing from ``ports`` are absent from the result.
    """

    config = config or DEFAULT_PORT_LAYOUT_CONFIG
    positions: Dict[str, PortGeometry] = {}
    if not ports:
        return positions

    size = get_node_size(node)

    for port in ports:
        placement = _placement_for_port(port)
        if is_absolute_placement(placement):
            positions[port.id] = _absolute_port_geometry(port, placement, node, size, config)

    for segments in _group_ports_by_side(ports).values():
        spans = [segment.span if segment.span and segment.span > 0 else 1 for segment in segments]
        total_span = sum(spans)
        cursor = 0.0
        for segment, span in zip(segments, spans):
            length = span / total_span if total_span > 0 else 0.0
            offsets = compute_segment_offsets(segment.ports, config)
            for port, offset in zip(segment.ports, offsets):
                relative = cursor + length * offset
                anchor = _side_render_anchor(port, relative, size, config)
                positions[port.id] = PortGeometry(port.id, anchor, connection_point_for(anchor, node, config))
            cursor += length

    return positions


def compute_all_port_positions(
    nodes: Iterable[Node],
    get_node_ports: Callable[[str], Sequence[Port]],
    config: Optional[PortLayoutConfig] = None,
) -> Dict[str, Dict[str, PortGeometry]]:
    result: Dict[str, Dict[str, PortGeometry]] = {}
    for node in nodes:
        positions = compute_node_port_positions(node, get_node_ports(node.id) or [], config)
        if positions:
            result[node.id] = positions
    return result


def update_port_positions(
    current: Mapping[str, Dict[str, PortGeometry]],
    nodes: Iterable[Node],
    get_node_ports: Callable[[str], Sequence[Port]],
    config: Optional[PortLayoutConfig] = None,
) -> Dict[str, Dict[str, PortGeometry]]:
    """
    Return a copy of ``current`` with the given nodes recomputed.
    """

    updated = dict(current)
    for node in nodes:
        positions = compute_node_port_positions(node, get_node_ports(node.id) or [], config)
        if positions:
            updated[node.id] = positions
        else:
            updated.pop(node.id, None)
    return updated


__all__ = [
    "DEFAULT_NODE_SIZE",
    "DEFAULT_PORT_LAYOUT_CONFIG",
    "Point",
    "PortGeometry",
    "PortLayoutConfig",
    "RenderAnchor",
    "TRANSLATE_X",
    "TRANSLATE_Y",
    "compute_all_port_positions",
    "compute_node_port_positions",
    "compute_segment_offsets",
    "connection_point_for",
    "default_relative_offset",
    "get_node_size",
    "minimum_gap",
    "resolve_absolute_coordinates",
    "update_port_positions",
]
