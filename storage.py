from __future__ import annotations
import logging
from typing import Iterable
from PyQt6.QtCore import QObject, pyqtSignal
import factory
from shapes import ControlPoint, PolyShape, ShapeState

logger = logging.getLogger(__name__)


class MapStorage(QObject):
    """
    Live shapes of the map in drawing order plus the selected control points.

    ``canvas_updated`` asks the view to repaint, ``modified`` tells that the
    drawing itself changed (and is no longer what was saved).
    """
    canvas_updated = pyqtSignal()
    modified = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.__shapes: list[PolyShape] = []
        # упорядоченное множество выбранных точек
        self.__selected: dict[ControlPoint, None] = {}

    # --- коллекция ---
    def get_all(self) -> list[PolyShape]:
        return list(self.__shapes)

    def is_drawing(self) -> bool:
        return any(s.state is ShapeState.DRAWING for s in self.__shapes)

    def nodes(self) -> list:
        """Everything on the map in drawing order: each shape followed by its control points."""
        result = []
        for s in self.__shapes:
            result.append(s)
            result.extend(s.control_points)
        return result

    def add(self, shape: PolyShape):
        if shape in self.__shapes:
            return
        self.__shapes.append(shape)
        self.canvas_updated.emit()

    def discard(self, shape: PolyShape):
        """Drop a shape that never got finalized."""
        if shape in self.__shapes:
            self.__shapes.remove(shape)
            self.canvas_updated.emit()

    def erase(self, shape: PolyShape):
        if shape not in self.__shapes:
            return
        points = shape.control_points
        # 1) убрать фигуру из списка
        self.__shapes.remove(shape)
        # 2) разорвать привязки остальных фигур к ней и к её точкам
        for other in self.__shapes:
            other.remove_lock(shape)
            for cp in points:
                other.remove_lock(cp)
        # 3) выбранные точки удалённой фигуры больше не выбраны
        for cp in points:
            self.__selected.pop(cp, None)
        if shape.is_finalized:
            shape.erase()
        logger.info("erased %r", shape)
        self.modified.emit()
        self.canvas_updated.emit()

    def clear_all(self):
        for s in list(self.__shapes):
            self.erase(s)
        self.__shapes.clear()
        self.__selected.clear()
        self.modified.emit()
        self.canvas_updated.emit()

    # --- поиск по координатам ---
    def item_at(self, x: float, y: float):
        """Topmost control point or finalized shape under (x, y), or None."""
        for s in reversed(self.__shapes):
            if not s.is_finalized:
                continue
            for cp in reversed(s.control_points):
                if cp.hit_test(x, y):
                    return cp
            if s.hit_test(x, y):
                return s
        return None

    def shape_at(self, x: float, y: float, exclude: PolyShape | None = None) -> PolyShape | None:
        """First finalized shape in drawing order whose bounds contain (x, y)."""
        for s in self.__shapes:
            if s is exclude or not s.is_finalized:
                continue
            if s.contains(x, y):
                return s
        return None

    # --- выбор ---
    def select_point(self, cp: ControlPoint):
        cp.selected = True
        self.__selected[cp] = None
        self.canvas_updated.emit()

    def get_selected(self) -> list[ControlPoint]:
        return list(self.__selected)

    def has_selection(self) -> bool:
        return bool(self.__selected)

    def deselect_all(self):
        changed = bool(self.__selected)
        for cp in self.__selected:
            cp.selected = False
        self.__selected.clear()
        if changed:
            self.canvas_updated.emit()

    def translate_selected(self, dx: float, dy: float):
        for cp in self.get_selected():
            cp.translate(dx, dy)
        self.modified.emit()
        self.canvas_updated.emit()

    def translate(self, movable, dx: float, dy: float):
        movable.translate(dx, dy)
        self.modified.emit()
        self.canvas_updated.emit()

    # --- сериализация ---
    def convert_to_string(self) -> str:
        return factory.to_text(self.__shapes)

    def convert_from_lines(self, lines: Iterable[str]):
        # сначала разбираем весь файл, и только потом заменяем карту
        loaded = factory.from_lines(lines)
        self.clear_all()
        self.__shapes.extend(loaded)
        logger.info("loaded %d shapes", len(loaded))
        self.modified.emit()
        self.canvas_updated.emit()
