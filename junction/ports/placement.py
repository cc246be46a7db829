from __future__ import annotations

from typing import Optional, Union

from junction.nodes.base import (
    ABSOLUTE_MODE,
    PORT_SIDES,
    AbsolutePlacement,
    Placement,
    Port,
    SidePlacement,
)

DEFAULT_SIDE = "right"

PlacementInput = Union[str, Placement, None]


def normalize_placement(value: PlacementInput = None) -> Placement:
    """
    Resolve a side keyword or placement record into a placement record.

    A record passes through untouched; a bare keyword becomes a
    ``SidePlacement`` for that side and missing input falls back to the right
    edge.
    """

    if value is None:
        return SidePlacement(side=DEFAULT_SIDE)
    if isinstance(value, str):
        side = value if value in PORT_SIDES else DEFAULT_SIDE
        return SidePlacement(side=side)
    return value


def is_absolute_placement(placement: Optional[Placement]) -> bool:
    return placement is not None and getattr(placement, "mode", None) == ABSOLUTE_MODE


def get_placement_side(placement: Optional[Placement], fallback: str = DEFAULT_SIDE) -> str:
    if placement is None or is_absolute_placement(placement):
        return fallback
    return placement.side or fallback


def get_port_side(port: Port) -> str:
    placement = port.placement
    if placement is None or is_absolute_placement(placement):
        return port.position
    return placement.side or port.position


def get_placement_align(placement: Optional[Placement]) -> Optional[float]:
    if placement is None or is_absolute_placement(placement):
        return None
    return placement.align


def get_placement_inset(placement: Optional[Placement]) -> bool:
    if placement is None or is_absolute_placement(placement):
        return False
    return placement.inset is True


def get_placement_segment(placement: Optional[Placement]) -> Optional[str]:
    if placement is None or is_absolute_placement(placement):
        return None
    return placement.segment


def get_absolute_unit(placement: AbsolutePlacement) -> str:
    return placement.unit or "px"


def is_percent_placement(placement: AbsolutePlacement) -> bool:
    return placement.unit == "percent"


def absolute_px(x: float, y: float) -> AbsolutePlacement:
    return AbsolutePlacement(x=x, y=y, unit="px")


def absolute_percent(x: float, y: float) -> AbsolutePlacement:
    return AbsolutePlacement(x=x, y=y, unit="percent")


__all__ = [
    "DEFAULT_SIDE",
    "absolute_percent",
    "absolute_px",
    "get_absolute_unit",
    "get_placement_align",
    "get_placement_inset",
    "get_placement_segment",
    "get_placement_side",
    "get_port_side",
    "is_absolute_placement",
    "is_percent_placement",
    "normalize_placement",
]
