from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from PySide6.QtCore import QPointF, Signal
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QMenu, QWidget

from junction.nodes import Connection, Node, NodeGraph, Port
from junction.ports.geometry import PortLayoutConfig, Point
from junction.ports.planner import ConnectionSwitchBehavior, plan_connection_change
from junction.ports.queries import (
    ConnectablePorts,
    compute_connectable_ports,
    find_connectable_port,
    find_nearest_connectable_port,
    get_connectable_node_types,
)

from .connection_graphics import ConnectionGraphicsItem
from .node_graphics import NodeGraphicsItem

logger = logging.getLogger(__name__)


class NodeEditorScene(QGraphicsScene):
    """
    Scene drawing a ``NodeGraph`` and running connection drags against the
    port engine.
    """

    GRID_SIZE = 32
    GRID_PEN = QPen(QColor(70, 76, 92, 110), 1)

    connectionCreated = Signal(object)  # Connection
    dragIgnored = Signal(str, str)  # node_id, port_id

    def __init__(
        self,
        graph: NodeGraph,
        config: Optional[PortLayoutConfig] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._graph = graph
        self._config = config or PortLayoutConfig.from_env()
        self._node_items: Dict[str, NodeGraphicsItem] = {}
        self._connection_items: Dict[str, ConnectionGraphicsItem] = {}
        self._drag_port: Optional[Port] = None
        self._drag_item: Optional[ConnectionGraphicsItem] = None
        self._connectable: Optional[ConnectablePorts] = None
        self._candidate: Optional[Port] = None

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    @property
    def drag_port(self) -> Optional[Port]:
        return self._drag_port

    @property
    def connectable(self) -> Optional[ConnectablePorts]:
        return self._connectable

    def drawBackground(self, painter, rect):  # type: ignore[override]
        super().drawBackground(painter, rect)

        start_x = int(rect.left()) - (int(rect.left()) % self.GRID_SIZE)
        start_y = int(rect.top()) - (int(rect.top()) % self.GRID_SIZE)
        painter.setPen(self.GRID_PEN)
        for x in range(start_x, int(rect.right()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(x, rect.top(), x, rect.bottom())
        for y in range(start_y, int(rect.bottom()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(rect.left(), y, rect.right(), y)

    def add_node_item(self, node: Node) -> NodeGraphicsItem:
        definition = self._graph.node_type(node.type)
        title = definition.display_name if definition is not None else node.type
        item = NodeGraphicsItem(node, self._graph.resolved_ports(node.id), self._config, title)
        self._node_items[node.id] = item
        self.addItem(item)
        item.positionChanged.connect(self._handle_node_position_changed)
        item.portPressed.connect(self.begin_drag)
        return item

    def remove_node_item(self, node_id: str) -> None:
        item = self._node_items.pop(node_id, None)
        if item is not None:
            self.removeItem(item)
        self.sync_connections()

    def node_item(self, node_id: str) -> Optional[NodeGraphicsItem]:
        return self._node_items.get(node_id)

    def refresh_node(self, node_id: str) -> None:
        item = self._node_items.get(node_id)
        node = self._graph.get_node(node_id)
        if item is not None and node is not None:
            item.update_node(node, self._graph.refresh_ports(node_id))
            self.update_connections_for_node(node_id)

    def populate(self) -> None:
        for node in self._graph.nodes().values():
            if node.id not in self._node_items:
                self.add_node_item(node)
        self.sync_connections()

    def connection_point(self, node_id: str, port_id: str) -> Optional[Point]:
        item = self._node_items.get(node_id)
        if item is None:
            return None
        geometry = item.port_geometry(port_id)
        return geometry.connection_point if geometry is not None else None

    def sync_connections(self) -> None:
        connections = self._graph.connections()
        for connection_id in set(self._connection_items) - set(connections):
            self.removeItem(self._connection_items.pop(connection_id))
        for connection_id, connection in connections.items():
            item = self._connection_items.get(connection_id)
            if item is None:
                item = ConnectionGraphicsItem(connection)
                self._connection_items[connection_id] = item
                self.addItem(item)
            self.update_connection_path(item)

    def update_connection_path(self, item: ConnectionGraphicsItem) -> None:
        endpoints = item.endpoints
        if endpoints is None:
            return
        (from_node, from_port), (to_node, to_port) = endpoints
        start = self.connection_point(from_node, from_port)
        end = self.connection_point(to_node, to_port)
        if start is None or end is None:
            return
        item.update_path(
            QPointF(start.x, start.y),
            QPointF(end.x, end.y),
            self._node_items[from_node].port_side(from_port),
            self._node_items[to_node].port_side(to_port),
        )

    def update_connections_for_node(self, node_id: str) -> None:
        for item in self._connection_items.values():
            endpoints = item.endpoints
            if endpoints is not None and node_id in (endpoints[0][0], endpoints[1][0]):
                self.update_connection_path(item)

    def begin_drag(self, node_id: str, port_id: str) -> None:
        port = self._graph.get_port(node_id, port_id)
        if port is None:
            return
        self.cancel_drag()
        self._drag_port = port
        self._connectable = compute_connectable_ports(
            self._graph.nodes(),
            self._graph.connections(),
            self._graph.resolved_ports,
            self._graph.node_type,
            drag_port=port,
        )
        for item in self._node_items.values():
            item.apply_connectable(self._connectable)

        self._drag_item = ConnectionGraphicsItem()
        self.addItem(self._drag_item)
        start = self.connection_point(node_id, port_id)
        if start is not None:
            self._drag_item.update_path(QPointF(start.x, start.y), QPointF(start.x, start.y))

    def update_drag(self, scene_pos: QPointF) -> Optional[Port]:
        """
        Move the preview cable and return the port it currently snaps to.
        """

        if self._drag_port is None or self._drag_item is None or self._connectable is None:
            return None

        previous = self._candidate
        self._candidate = find_nearest_connectable_port(
            Point(scene_pos.x(), scene_pos.y()),
            self._connectable,
            self._graph.nodes(),
            self._graph.resolved_ports,
            self.connection_point,
            exclude_port=(self._drag_port.node_id, self._drag_port.id),
        )
        if previous != self._candidate:
            self._highlight_candidate(previous, self._candidate)
        source = self._drag_port
        start = self.connection_point(source.node_id, source.id)
        if start is None:
            return self._candidate

        start_side = self._node_items[source.node_id].port_side(source.id)
        end = scene_pos
        end_side = None
        if self._candidate is not None:
            point = self.connection_point(self._candidate.node_id, self._candidate.id)
            if point is not None:
                end = QPointF(point.x, point.y)
            end_side = self._node_items[self._candidate.node_id].port_side(self._candidate.id)
        self._drag_item.update_path(QPointF(start.x, start.y), end, start_side, end_side)
        self._drag_item.set_valid(self._candidate is not None)
        return self._candidate

    def finish_drag(self, scene_pos: Optional[QPointF] = None) -> Optional[Connection]:
        """
        Complete the current drag, storing the planned connection if any.
        """

        if self._drag_port is None:
            return None
        if scene_pos is not None:
            self.update_drag(scene_pos)

        source, target = self._drag_port, self._candidate
        connection = None
        if target is not None:
            plan = plan_connection_change(
                source,
                target,
                self._graph.nodes(),
                self._graph.connections(),
                self._graph.node_type,
            )
            if plan.behavior == ConnectionSwitchBehavior.IGNORE:
                self.dragIgnored.emit(source.node_id, source.id)
            elif plan.connection is not None:
                connection = plan.connection
                self._graph.add_connection(connection)
                self.sync_connections()
                self.connectionCreated.emit(connection)
        self.cancel_drag()
        return connection

    def cancel_drag(self) -> None:
        if self._drag_item is not None:
            self.removeItem(self._drag_item)
        self._drag_item = None
        self._drag_port = None
        self._candidate = None
        self._connectable = None
        for item in self._node_items.values():
            item.apply_connectable(None)

    def connectable_node_types(self, port: Port) -> List[str]:
        return get_connectable_node_types(
            port,
            self._graph.nodes(),
            self._graph.connections(),
            self._graph.node_type,
            self._graph.registry.all,
        )

    def insert_connected_node(self, from_port: Port, node_type: str, scene_pos: QPointF) -> Optional[Node]:
        """
        Create a ``node_type`` node at ``scene_pos`` and wire it to ``from_port``
        through its first compatible port.
        """

        definition = self._graph.node_type(node_type)
        if definition is None:
            return None

        node = Node(
            id=uuid.uuid4().hex,
            type=node_type,
            position=(scene_pos.x(), scene_pos.y()),
            data=dict(definition.default_data),
        )
        source_node = self._graph.get_node(from_port.node_id)
        target_port = find_connectable_port(
            from_port,
            definition,
            node.id,
            self._graph.connections(),
            self._graph.nodes(),
            self._graph.node_type(source_node.type) if source_node is not None else None,
        )
        self._graph.add_node(node)
        self.add_node_item(node)
        if target_port is None:
            return node

        connection = self._graph.connect(from_port.node_id, from_port.id, node.id, target_port.id)
        if connection is not None:
            self.sync_connections()
            self.connectionCreated.emit(connection)
        return node

    def _highlight_candidate(self, previous: Optional[Port], current: Optional[Port]) -> None:
        if previous is not None:
            item = self._node_items.get(previous.node_id)
            if item is not None:
                item.apply_connectable(self._connectable)
        if current is not None:
            item = self._node_items.get(current.node_id)
            if item is not None:
                item.mark_candidate(current.id, self._connectable)

    def _handle_node_position_changed(self, node_id: str, x: float, y: float) -> None:
        self._graph.set_node_position(node_id, x, y)
        self.update_connections_for_node(node_id)


class NodeEditorView(QGraphicsView):
    """
    Interactive view around ``NodeEditorScene``: drags cables between ports
    and offers an insert menu when a drag ends on empty canvas.
    """

    def __init__(self, graph: Optional[NodeGraph] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._graph = graph or NodeGraph()
        self._scene = NodeEditorScene(self._graph, parent=self)
        self.setScene(self._scene)
        self.setRenderHint(QPainter.Antialiasing)
        self.setRenderHint(QPainter.TextAntialiasing)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)

        self._scene.populate()

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    @property
    def editor_scene(self) -> NodeEditorScene:
        return self._scene

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._scene.drag_port is not None:
            self._scene.update_drag(self.mapToScene(event.pos()))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        source = self._scene.drag_port
        if source is None:
            super().mouseReleaseEvent(event)
            return

        scene_pos = self.mapToScene(event.pos())
        candidate = self._scene.update_drag(scene_pos)
        if candidate is not None:
            self._scene.finish_drag()
        else:
            self._scene.cancel_drag()
            self._offer_insert_menu(source, scene_pos, event.globalPosition().toPoint())
        event.accept()

    def _offer_insert_menu(self, source: Port, scene_pos: QPointF, global_pos) -> None:
        node_types = self._scene.connectable_node_types(source)
        if not node_types:
            logger.debug("No node type accepts a connection from %s:%s", source.node_id, source.id)
            return

        menu = QMenu(self)
        for node_type in node_types:
            definition = self._graph.node_type(node_type)
            action = menu.addAction(definition.display_name if definition is not None else node_type)
            action.setData(node_type)
        chosen = menu.exec(global_pos)
        if chosen is not None:
            self._scene.insert_connected_node(source, chosen.data(), scene_pos)
