from __future__ import annotations

from typing import Optional, Tuple

from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor, QPainterPath, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsPathItem

from junction.nodes import Connection

SIDE_NORMALS = {
    "left": (-1.0, 0.0),
    "right": (1.0, 0.0),
    "top": (0.0, -1.0),
    "bottom": (0.0, 1.0),
}

MIN_CONTROL_DISTANCE = 60.0


def control_point(point: QPointF, side: Optional[str], distance: float) -> QPointF:
    """
    Point ``distance`` away from ``point`` along the outward normal of ``side``.
    """

    dx, dy = SIDE_NORMALS.get(side or "right", SIDE_NORMALS["right"])
    return QPointF(point.x() + dx * distance, point.y() + dy * distance)


def cable_path(
    start: QPointF,
    end: QPointF,
    start_side: Optional[str] = "right",
    end_side: Optional[str] = "left",
) -> QPainterPath:
    span = max(abs(end.x() - start.x()), abs(end.y() - start.y()))
    distance = max(span * 0.5, MIN_CONTROL_DISTANCE)
    path = QPainterPath(start)
    path.cubicTo(
        control_point(start, start_side, distance),
        control_point(end, end_side, distance),
        end,
    )
    return path


class ConnectionGraphicsItem(QGraphicsPathItem):
    """
    Visual cable between two node ports.
    """

    NORMAL_PEN = QPen(QColor("#7aa2f7"), 2.0)
    HOVER_PEN = QPen(QColor("#c0d7ff"), 2.6)
    SELECTED_PEN = QPen(QColor("#ffcc66"), 3.0)
    PREVIEW_PEN = QPen(QColor("#9ece6a"), 2.0)
    INVALID_PEN = QPen(QColor("#f7768e"), 2.0)

    def __init__(self, connection: Optional[Connection] = None, parent=None) -> None:
        super().__init__(parent)
        self._connection = connection

        self.setPen(self.NORMAL_PEN if connection is not None else self.PREVIEW_PEN)
        self.setFlag(QGraphicsItem.ItemIsSelectable, connection is not None)
        self.setZValue(1)
        self.setAcceptHoverEvents(True)

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def endpoints(self) -> Optional[Tuple[Tuple[str, str], Tuple[str, str]]]:
        if self._connection is None:
            return None
        return (
            (self._connection.from_node_id, self._connection.from_port_id),
            (self._connection.to_node_id, self._connection.to_port_id),
        )

    def set_valid(self, valid: bool) -> None:
        """
        Colour a preview cable by whether its current target is acceptable.
        """

        self.setPen(self.PREVIEW_PEN if valid else self.INVALID_PEN)

    def update_path(
        self,
        start: QPointF,
        end: QPointF,
        start_side: Optional[str] = "right",
        end_side: Optional[str] = "left",
    ) -> None:
        self.setPath(cable_path(start, end, start_side, end_side))

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        if self._connection is not None:
            self.setPen(self.HOVER_PEN)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        if self._connection is not None:
            self.setPen(self.SELECTED_PEN if self.isSelected() else self.NORMAL_PEN)
        super().hoverLeaveEvent(event)
