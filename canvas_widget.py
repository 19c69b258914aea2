from __future__ import annotations
import logging
from typing import Iterable
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPainter
from PyQt6.QtWidgets import QWidget
from errors import InvalidStateError, UnsupportedToolError
from movable import Movable
from selection import SelectionArea
from settings import ShapeStyle, ToolState, Tools
from shapes import Path, PolyShape
from storage import MapStorage
import factory

logger = logging.getLogger(__name__)


class MapArea(QWidget):
    """
    Drawing surface of the map.

    Every mouse gesture goes through ``press`` -> ``drag``* -> ``release`` and
    each phase branches on the current tool of the injected ``ToolState``.
    The item under the press point is the target of the whole gesture.
    """

    def __init__(self, tool_state: ToolState, storage: MapStorage | None = None,
                 style: ShapeStyle | None = None, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: white;")
        # обязательно, чтобы stylesheet фон отрисовывался
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self.tool_state = tool_state
        self.storage = storage if isinstance(storage, MapStorage) else MapStorage()
        self.shape_style = style if isinstance(style, ShapeStyle) else ShapeStyle()

        self._active_shape: PolyShape | None = None
        self._selection_area: SelectionArea | None = None
        self._target = None
        self._press_pos: tuple[float, float] = (0.0, 0.0)
        self._last_pos: tuple[float, float] = (0.0, 0.0)

        self.storage.canvas_updated.connect(self.update)

    @property
    def selection_area(self) -> SelectionArea | None:
        return self._selection_area

    @property
    def is_drawing(self) -> bool:
        return self._active_shape is not None or self.storage.is_drawing()

    def _unsupported(self, phase: str, tool) -> UnsupportedToolError:
        name = getattr(tool, "name", tool)
        return UnsupportedToolError(f'{phase} for tool "{name}" is not implemented')

    # --- фазы жеста ---
    def press(self, x: float, y: float):
        self._press_pos = (x, y)
        self._last_pos = (x, y)
        self._target = self.storage.item_at(x, y)
        tool = self.tool_state.tool
        logger.debug("press %s at (%g, %g), target=%r", getattr(tool, "name", tool), x, y, self._target)

        if tool in (Tools.DOOR, Tools.MOVE):
            pass
        elif tool is Tools.SELECT:
            # новый выбор всегда сбрасывает предыдущий
            self.storage.deselect_all()
            self._selection_area = SelectionArea()
            self._selection_area.start(x, y)
        elif tool is Tools.ERASE:
            if isinstance(self._target, PolyShape):
                self.storage.erase(self._target)
        elif tool in (Tools.ROOM, Tools.PATH):
            self._active_shape = factory.create(tool, self.tool_state.option, self.shape_style)
            self.storage.add(self._active_shape)
        else:
            raise self._unsupported("Press", tool)

    def drag(self, x: float, y: float):
        tool = self.tool_state.tool
        if tool in (Tools.DOOR, Tools.ERASE):
            pass
        elif tool is Tools.SELECT:
            if self._selection_area is not None:
                self._selection_area.update(x, y)
                self.update()
        elif tool is Tools.MOVE:
            self._move(x, y)
        elif tool in (Tools.ROOM, Tools.PATH):
            if self._active_shape is not None:
                px, py = self._press_pos
                self._active_shape.redraw(px, py, x, y, True)
                self.update()
        else:
            raise self._unsupported("Drag", tool)

    def release(self, x: float, y: float):
        tool = self.tool_state.tool
        try:
            if tool in (Tools.DOOR, Tools.MOVE, Tools.ERASE):
                pass
            elif tool is Tools.SELECT:
                self._select_points()
            elif tool is Tools.ROOM:
                self._finalize_active()
            elif tool is Tools.PATH:
                path = self._finalize_active()
                if path is not None:
                    self._connect_path(path, x, y)
            else:
                raise self._unsupported("Release", tool)
        finally:
            self._active_shape = None
            self._target = None

    # --- помощники ---
    def _move(self, x: float, y: float):
        dx = x - self._last_pos[0]
        dy = y - self._last_pos[1]
        self._last_pos = (x, y)
        if self.storage.has_selection():
            self.storage.translate_selected(dx, dy)
        elif isinstance(self._target, Movable):
            self.storage.translate(self._target, dx, dy)

    def _select_points(self):
        if self._selection_area is None:
            return
        self._selection_area.select_all(self.storage.nodes(), self.storage.select_point)
        logger.debug("selected %d control points", len(self.storage.get_selected()))
        self._selection_area.clear()
        self._selection_area = None
        self.update()

    def _finalize_active(self) -> PolyShape | None:
        shape = self._active_shape
        if shape is None:
            return None
        if not shape.has_geometry:
            # клик без перетаскивания — фигуры нет
            logger.debug("discarding %r: released without a drag", shape)
            self.storage.discard(shape)
            return None
        shape.finalize()
        logger.info("added %r", shape)
        self.storage.modified.emit()
        self.storage.canvas_updated.emit()
        return shape

    def _connect_path(self, path: Path, x: float, y: float):
        target = self._target
        if not isinstance(target, Movable):
            return
        # первая точка пути лежит в точке отпускания, вторая — в точке нажатия
        release_end, press_end = path.control_points
        found = self.storage.shape_at(x, y, exclude=path)
        # путь двигает то, что соединяет
        path.add_lock(target)
        if found is not None:
            path.add_lock(found)
        # а фигуры на концах двигают свой конец пути
        if isinstance(target, PolyShape):
            target.add_lock(press_end)
        if found is not None:
            found.add_lock(release_end)
        logger.debug("path connected: target=%r, end shape=%r", target, found)

    # --- совместимость с внешним кодом ---
    def convert_to_string(self) -> str:
        return self.storage.convert_to_string()

    def convert_from_lines(self, lines: Iterable[str]):
        self.storage.convert_from_lines(lines)

    def clear_map(self):
        self.storage.clear_all()

    # --- события Qt ---
    def _run_gesture(self, phase, event):
        pos = event.position()
        shape = self._active_shape
        try:
            phase(pos.x(), pos.y())
        except (InvalidStateError, ValueError):
            # ошибка ломает только текущий жест, остальная карта не трогается
            logger.exception("%s gesture failed", phase.__name__)
            for s in (shape, self._active_shape):
                if s is not None and not s.is_finalized:
                    self.storage.discard(s)
            self._active_shape = None

    def mousePressEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        self.setFocus(Qt.FocusReason.MouseFocusReason)
        self._run_gesture(self.press, event)
        event.accept()

    def mouseMoveEvent(self, event):
        if not (event.buttons() & Qt.MouseButton.LeftButton):
            return
        self._run_gesture(self.drag, event)
        event.accept()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        self._run_gesture(self.release, event)
        event.accept()

    def paintEvent(self, _):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        for shape in self.storage.get_all():
            shape.draw(painter)
            shape.draw_control_points(painter)
        if self._selection_area is not None:
            self._selection_area.draw(painter)
        painter.end()
