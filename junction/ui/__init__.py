"""
PySide6 widgets drawing node graphs laid out by the port engine.
"""

from .application import create_application
from .connection_graphics import ConnectionGraphicsItem
from .node_editor import NodeEditorScene, NodeEditorView
from .node_graphics import NodeGraphicsItem, PortHandleItem, PortVisualState

__all__ = [
    "ConnectionGraphicsItem",
    "NodeEditorScene",
    "NodeEditorView",
    "NodeGraphicsItem",
    "PortHandleItem",
    "PortVisualState",
    "create_application",
]
