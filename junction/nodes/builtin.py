from __future__ import annotations

from typing import Iterable, List

from .base import SidePlacement, PortDirection
from .definitions import NodeTypeDefinition, NodeTypeRegistry, PortDefinition, PortInstanceContext


def _mixer_channel_count(context: PortInstanceContext) -> object:
    return context.node.data.get("channels", 2)


_NODE_TYPES: List[NodeTypeDefinition] = [
    NodeTypeDefinition(
        type="signal.source",
        display_name="Signal Source",
        category="Input",
        description="Emits a numeric signal.",
        ports=[
            PortDefinition(
                id="out",
                direction=PortDirection.OUTPUT,
                label="Out",
                position="right",
                data_type="number",
                max_connections="unlimited",
            ),
        ],
    ),
    NodeTypeDefinition(
        type="signal.mixer",
        display_name="Mixer",
        category="Processing",
        description="Sums a configurable number of channels.",
        ports=[
            PortDefinition(
                id="in",
                direction=PortDirection.INPUT,
                label="Channel",
                position="left",
                data_type="number",
                instances=_mixer_channel_count,
            ),
            PortDefinition(
                id="out",
                direction=PortDirection.OUTPUT,
                label="Mix",
                position="right",
                data_type="number",
                max_connections="unlimited",
            ),
        ],
        default_data={"channels": 2},
        default_size=(150.0, 90.0),
    ),
    NodeTypeDefinition(
        type="signal.router",
        display_name="Router",
        category="Processing",
        description="Routes a signal to a main pair and an optional side output.",
        ports=[
            PortDefinition(id="in", direction=PortDirection.INPUT, label="In", position="left", data_type="number"),
            PortDefinition(
                id="main",
                direction=PortDirection.OUTPUT,
                label="Main",
                position=SidePlacement(side="right", segment="main", segment_order=0, segment_span=2),
                data_type="number",
                instances=2,
            ),
            PortDefinition(
                id="side",
                direction=PortDirection.OUTPUT,
                label="Side",
                position=SidePlacement(side="right", segment="optional", segment_order=1),
                data_types=["number", "text"],
            ),
        ],
        default_size=(100.0, 90.0),
    ),
    NodeTypeDefinition(
        type="text.display",
        display_name="Text Display",
        category="Output",
        description="Shows incoming text.",
        ports=[
            PortDefinition(id="in", direction=PortDirection.INPUT, label="Text", position="left", data_type="text"),
        ],
    ),
    NodeTypeDefinition(
        type="signal.meter",
        display_name="Meter",
        category="Output",
        description="Displays the level of any incoming value.",
        ports=[
            PortDefinition(
                id="in",
                direction=PortDirection.INPUT,
                label="In",
                position="left",
                max_connections=4,
            ),
        ],
    ),
    NodeTypeDefinition(
        type="util.passthrough",
        display_name="Passthrough",
        category="Utility",
        description="Forwards anything; uses the default input and output.",
    ),
]


def get_builtin_node_types() -> Iterable[NodeTypeDefinition]:
    """
    Return the node types shipped with the demo editor.
    """

    return tuple(_NODE_TYPES)


def create_builtin_registry() -> NodeTypeRegistry:
    return NodeTypeRegistry(_NODE_TYPES)


__all__ = ["create_builtin_registry", "get_builtin_node_types"]
