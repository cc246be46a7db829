from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Sequence

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsObject

from junction.nodes import Node, Port
from junction.ports.geometry import (
    DEFAULT_PORT_LAYOUT_CONFIG,
    PortGeometry,
    PortLayoutConfig,
    compute_node_port_positions,
    get_node_size,
)
from junction.ports.placement import get_port_side
from junction.ports.queries import ConnectablePorts


class PortVisualState(Enum):
    NORMAL = "normal"
    HOVER = "hover"
    CONNECTABLE = "connectable"
    CANDIDATE = "candidate"


class PortHandleItem(QGraphicsObject):
    """
    Round port glyph; its local origin is the port's connection point.
    """

    pressed = Signal(str)  # port id
    hovered = Signal(str, bool)

    COLORS = {
        PortVisualState.NORMAL: QColor("#86c1b9"),
        PortVisualState.HOVER: QColor("#c0f0e5"),
        PortVisualState.CONNECTABLE: QColor("#9ece6a"),
        PortVisualState.CANDIDATE: QColor("#e0af68"),
    }
    OUTLINE_PEN = QPen(QColor("#1a1b26"), 1.2)

    def __init__(self, port: Port, radius: float, parent=None):
        super().__init__(parent)
        self._port = port
        self._radius = radius
        self._state = PortVisualState.NORMAL
        self.setAcceptedMouseButtons(Qt.LeftButton)
        self.setAcceptHoverEvents(True)
        self.setCursor(Qt.CrossCursor)
        self.setToolTip(port.label)

    @property
    def port(self) -> Port:
        return self._port

    @property
    def state(self) -> PortVisualState:
        return self._state

    def set_state(self, state: PortVisualState) -> None:
        if state != self._state:
            self._state = state
            self.update()

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        size = self._radius * 2 + 6
        return QRectF(-size / 2, -size / 2, size, size)

    def paint(self, painter, option, widget=None) -> None:  # type: ignore[override]
        _ = option, widget
        painter.setPen(self.OUTLINE_PEN)
        painter.setBrush(self.COLORS[self._state])
        painter.drawEllipse(QPointF(0, 0), self._radius, self._radius)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.pressed.emit(self._port.id)
            event.accept()
        else:
            super().mousePressEvent(event)

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._port.id, True)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._port.id, False)
        super().hoverLeaveEvent(event)


class NodeGraphicsItem(QGraphicsObject):
    """
    Visual representation of a node; port handles are placed from the
    geometry engine's connection points.
    """

    positionChanged = Signal(str, float, float)
    portPressed = Signal(str, str)  # node_id, port_id

    BODY_BRUSH = QColor("#2f3340")
    BORDER_PEN = QPen(QColor("#3e4455"), 1.5)
    SELECTED_BORDER_PEN = QPen(QColor("#7aa2f7"), 2.4)
    TEXT_COLOR = QColor("#f0f3ff")
    CORNER_RADIUS = 8

    def __init__(
        self,
        node: Node,
        ports: Sequence[Port],
        config: Optional[PortLayoutConfig] = None,
        title: Optional[str] = None,
        parent: Optional[QGraphicsItem] = None,
    ) -> None:
        super().__init__(parent)
        self._node = node
        self._ports = list(ports)
        self._config = config or DEFAULT_PORT_LAYOUT_CONFIG
        self._title = title or node.type
        self._geometry: Dict[str, PortGeometry] = {}
        self._handles: Dict[str, PortHandleItem] = {}
        self._marked: Dict[str, PortVisualState] = {}

        self.setFlag(QGraphicsItem.ItemIsMovable, True)
        self.setFlag(QGraphicsItem.ItemIsSelectable, True)
        self.setFlag(QGraphicsItem.ItemSendsGeometryChanges, True)
        self.setZValue(5)
        self.setPos(QPointF(*node.position))

        self._create_port_handles()

    @property
    def node(self) -> Node:
        return self._node

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        width, height = get_node_size(self._node)
        return QRectF(0, 0, width, height)

    def paint(self, painter: QPainter, option, widget=None) -> None:  # type: ignore[override, unused-argument]
        rect = self.boundingRect()

        painter.setPen(self.SELECTED_BORDER_PEN if self.isSelected() else self.BORDER_PEN)
        painter.setBrush(self.BODY_BRUSH)
        painter.drawRoundedRect(rect.adjusted(0.5, 0.5, -0.5, -0.5), self.CORNER_RADIUS, self.CORNER_RADIUS)

        painter.setPen(self.TEXT_COLOR)
        font = QFont()
        font.setPointSizeF(10.5)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(rect, Qt.AlignCenter, self._title)

    def port_geometry(self, port_id: str) -> Optional[PortGeometry]:
        return self._geometry.get(port_id)

    def port_side(self, port_id: str) -> Optional[str]:
        handle = self._handles.get(port_id)
        if handle is None:
            return None
        return get_port_side(handle.port)

    def handle(self, port_id: str) -> Optional[PortHandleItem]:
        return self._handles.get(port_id)

    def update_node(self, node: Node, ports: Sequence[Port]) -> None:
        self.prepareGeometryChange()
        self._node = node
        self._ports = list(ports)
        self._recreate_port_handles()
        self.update()

    def set_port_state(self, port_id: str, state: PortVisualState) -> None:
        if state == PortVisualState.NORMAL:
            self._marked.pop(port_id, None)
        else:
            self._marked[port_id] = state
        handle = self._handles.get(port_id)
        if handle is not None:
            handle.set_state(state)

    def apply_connectable(self, connectable: Optional[ConnectablePorts]) -> None:
        """
        Highlight the ports a drag may end on; ``None`` clears the highlight.
        """

        for port_id, handle in self._handles.items():
            if connectable is not None and connectable.is_port_connectable(handle.port):
                self.set_port_state(port_id, PortVisualState.CONNECTABLE)
            else:
                self.set_port_state(port_id, PortVisualState.NORMAL)

    def mark_candidate(self, port_id: str, connectable: Optional[ConnectablePorts]) -> None:
        """
        Flag ``port_id`` as the port a drag currently snaps to; the other
        handles fall back to their connectable highlight.
        """

        self.apply_connectable(connectable)
        if port_id in self._handles:
            self.set_port_state(port_id, PortVisualState.CANDIDATE)

    def itemChange(self, change: QGraphicsItem.GraphicsItemChange, value):  # type: ignore[override]
        if change == QGraphicsItem.ItemPositionHasChanged:
            self._node.position = (value.x(), value.y())
            self._layout_port_handles()
            self.positionChanged.emit(self._node.id, value.x(), value.y())
        return super().itemChange(change, value)

    def _create_port_handles(self) -> None:
        radius = self._config.visual_size / 2
        for port in self._ports:
            handle = PortHandleItem(port, radius, self)
            handle.pressed.connect(self._emit_port_pressed)
            handle.hovered.connect(self._set_hover_port)
            self._handles[port.id] = handle
        self._layout_port_handles()

    def _recreate_port_handles(self) -> None:
        for handle in self._handles.values():
            handle.setParentItem(None)
            if handle.scene() is not None:
                handle.scene().removeItem(handle)
            handle.deleteLater()
        self._handles.clear()
        self._create_port_handles()

    def _layout_port_handles(self) -> None:
        self._geometry = compute_node_port_positions(self._node, self._ports, self._config)
        left, top = self._node.position
        for port_id, geometry in self._geometry.items():
            handle = self._handles.get(port_id)
            if handle is not None:
                point = geometry.connection_point
                handle.setPos(QPointF(point.x - left, point.y - top))

    def _emit_port_pressed(self, port_id: str) -> None:
        self.portPressed.emit(self._node.id, port_id)

    def _set_hover_port(self, port_id: str, hovered: bool) -> None:
        handle = self._handles.get(port_id)
        if handle is None:
            return
        if hovered:
            handle.set_state(PortVisualState.HOVER)
        else:
            handle.set_state(self._marked.get(port_id, PortVisualState.NORMAL))
