from __future__ import annotations
from typing import Any, Callable, Iterable
from PyQt6.QtCore import QPointF, QRectF
from PyQt6.QtGui import QPainter, QPen, QBrush
from settings import Defaults
from shapes import ControlPoint


class SelectionArea:
    """
    Rubber band rectangle used by the Select tool.

    press   - ``start(x, y)`` fixes the anchor corner;
    drag    - ``update(x, y)`` stretches the rectangle to the cursor in any direction;
    release - ``select_all(nodes, on_match)`` then ``clear()``.
    """

    def __init__(self):
        self._anchor = QPointF()
        self._rect = QRectF()

    def start(self, x: float, y: float):
        self._anchor = QPointF(x, y)
        self._rect = QRectF(x, y, 0, 0)

    def update(self, x: float, y: float):
        ax, ay = self._anchor.x(), self._anchor.y()
        self._rect = QRectF(min(ax, x), min(ay, y), abs(x - ax), abs(y - ay))

    # отпускание растягивает рамку так же, как перетаскивание
    end = update

    def clear(self):
        self._anchor = QPointF()
        self._rect = QRectF()

    def rect(self) -> QRectF:
        return QRectF(self._rect)

    def is_empty(self) -> bool:
        return self._rect.width() <= 0 or self._rect.height() <= 0

    def contains(self, node: Any) -> bool:
        # выбираются только контрольные точки, и только целиком внутри рамки
        if not isinstance(node, ControlPoint) or self.is_empty():
            return False
        return self._rect.contains(node.bounds())

    def select_all(self, nodes: Iterable[Any], on_match: Callable[[Any], None]) -> None:
        for node in list(nodes):
            if self.contains(node):
                on_match(node)

    def draw(self, painter: QPainter):
        if self.is_empty():
            return
        painter.save()
        painter.setOpacity(Defaults.SELECTION_OPACITY)
        painter.setPen(QPen(Defaults.SELECTION_STROKE, Defaults.SELECTION_STROKE_WIDTH))
        painter.setBrush(QBrush(Defaults.SELECTION_FILL))
        painter.drawRect(self._rect)
        painter.restore()
