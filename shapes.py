from __future__ import annotations
import logging
import os
import re
from enum import Enum
from math import hypot, isfinite
from typing import Callable, Iterable
from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QPainter, QPen, QBrush, QColor, QPolygonF
from errors import InvalidStateError, MapFormatError
from geometry import compute_regular_polygon
from movable import Movable, Lockable
from settings import Defaults, ShapeStyle

logger = logging.getLogger(__name__)

# ключевые слова формата, в порядке записи
POINTS_COUNT = "sides"
FILL = "fill"
STROKE = "stroke"
WIDTH = "strokeWidth"
POINTS = "points"
FIELDS = (POINTS_COUNT, FILL, STROKE, WIDTH, POINTS)

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _color_to_string(c: QColor) -> str:
    return f"{c.name().upper()} {c.alphaF():f}"


def _color_from_string(hex_value: str, alpha: str) -> QColor:
    if not _HEX_COLOR.match(hex_value):
        raise ValueError(f"bad color {hex_value!r}, expected #RRGGBB")
    opacity = _to_float(alpha)
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"opacity {opacity} is outside 0..1")
    color = QColor(hex_value)
    color.setAlphaF(opacity)
    return color


def _to_float(token: str) -> float:
    value = float(token)
    if not isfinite(value):
        raise ValueError(f"{token!r} is not a finite number")
    return value


class ControlPoint(Movable):
    """
    Draggable handle of one polygon vertex.

    Moving the point calls the callbacks registered with ``bind`` with the new
    coordinate; that is the only link between the handle and the shape.
    """

    def __init__(self, x: float, y: float, radius: float = Defaults.CONTROL_RADIUS):
        self.__x = float(x)
        self.__y = float(y)
        self.radius = radius
        self._selected = False
        self._on_x: list[Callable[[float], None]] = []
        self._on_y: list[Callable[[float], None]] = []

    def __repr__(self):
        return f"ControlPoint({self.__x:g}, {self.__y:g})"

    @property
    def x(self) -> float: return self.__x
    @x.setter
    def x(self, value: float):
        self.__x = float(value)
        for callback in list(self._on_x):
            callback(self.__x)

    @property
    def y(self) -> float: return self.__y
    @y.setter
    def y(self, value: float):
        self.__y = float(value)
        for callback in list(self._on_y):
            callback(self.__y)

    @property
    def selected(self) -> bool: return self._selected
    @selected.setter
    def selected(self, v: bool): self._selected = bool(v)

    def bind(self, on_x: Callable[[float], None], on_y: Callable[[float], None]) -> None:
        self._on_x.append(on_x)
        self._on_y.append(on_y)

    def translate(self, dx: float, dy: float, visited: set[int] | None = None) -> None:
        if self._enter(visited) is None:
            return
        self.x = self.__x + dx
        self.y = self.__y + dy

    def bounds(self) -> QRectF:
        r = self.radius
        return QRectF(self.__x - r, self.__y - r, 2 * r, 2 * r)

    def hit_test(self, x: float, y: float) -> bool:
        return hypot(x - self.__x, y - self.__y) <= self.radius

    def draw(self, painter: QPainter):
        painter.save()
        color = Defaults.CONTROL_SELECTED_COLOR if self._selected else Defaults.CONTROL_COLOR
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(self.__x, self.__y), self.radius, self.radius)
        painter.restore()


class ShapeState(Enum):
    UNSTARTED = 'unstarted'
    DRAWING = 'drawing'
    FINALIZED = 'finalized'
    ERASED = 'erased'


class PolyShape(Lockable):
    """
    Regular polygon drawn by dragging, used for rooms.

    Lifecycle follows the mouse gesture that creates it:

    1. press   - ``start()``, the shape is empty;
    2. drag    - ``redraw(x1, y1, x2, y2)`` recomputes the whole vertex buffer;
    3. release - ``finalize()`` creates one ``ControlPoint`` per vertex and
       binds it to the buffer. From now on the buffer only changes through
       the control points.

    ``translate`` moves every control point and then every locked movable.
    """
    tolerance = Defaults.TOLERANCE

    def __init__(self, sides: int, style: ShapeStyle | None = None):
        super().__init__()
        self._sides = int(sides)
        base = style if isinstance(style, ShapeStyle) else ShapeStyle()
        self._style = base.copy()
        self._points: list[float] = []
        self._control_points: list[ControlPoint] = []
        self._state = ShapeState.UNSTARTED

    def __repr__(self):
        return f"{self.__class__.__name__}(sides={self._sides}, state={self._state.value})"

    # --- стиль ---
    @property
    def fill_color(self) -> QColor:
        return self._style.fill_color
    @property
    def stroke_color(self) -> QColor:
        return self._style.stroke_color
    @property
    def stroke_width(self) -> float:
        return self._style.stroke_width

    # --- состояние ---
    @property
    def sides(self) -> int:
        return self._sides

    @property
    def state(self) -> ShapeState:
        return self._state

    @property
    def is_finalized(self) -> bool:
        return self._state is ShapeState.FINALIZED

    @property
    def has_geometry(self) -> bool:
        return len(self._points) == 2 * self._sides

    @property
    def points(self) -> tuple[float, ...]:
        return tuple(self._points)

    def vertices(self) -> list[tuple[float, float]]:
        return [(self._points[i], self._points[i + 1]) for i in range(0, len(self._points), 2)]

    @property
    def control_points(self) -> tuple[ControlPoint, ...]:
        return tuple(self._control_points)

    def _require(self, state: ShapeState, operation: str):
        if self._state is not state:
            raise InvalidStateError(
                f"{self.__class__.__name__}.{operation}() is not valid in state "
                f"{self._state.value!r}, expected {state.value!r}")

    def start(self):
        self._require(ShapeState.UNSTARTED, "start")
        if self._sides < 2:
            raise ValueError(f"A shape needs at least 2 sides, got {self._sides}")
        self._points = []
        self._state = ShapeState.DRAWING

    def redraw(self, x1: float, y1: float, x2: float, y2: float, symmetrical: bool = True):
        self._require(ShapeState.DRAWING, "redraw")
        # полный пересчёт, буфер заменяется целиком
        self._points = compute_regular_polygon(x1, y1, x2, y2, self._sides, symmetrical)

    def finalize(self):
        self._require(ShapeState.DRAWING, "finalize")
        if not self.has_geometry:
            raise InvalidStateError(
                f"{self.__class__.__name__} has {len(self._points) // 2} points, "
                f"expected {self._sides}; call redraw() before finalize()")
        # сначала собираем точки, состояние меняем только после успеха
        control_points = []
        for i in range(0, len(self._points), 2):
            cp = ControlPoint(self._points[i], self._points[i + 1])
            cp.bind(lambda v, j=i: self._set_coordinate(j, v),
                    lambda v, j=i + 1: self._set_coordinate(j, v))
            control_points.append(cp)
        self._control_points = control_points
        self._state = ShapeState.FINALIZED
        logger.debug("%r finalized with %d control points", self, len(control_points))

    def _set_coordinate(self, index: int, value: float):
        self._points[index] = value

    def translate(self, dx: float, dy: float, visited: set[int] | None = None) -> None:
        self._require(ShapeState.FINALIZED, "translate")
        visited = self._enter(visited)
        if visited is None:
            return
        for cp in self._control_points:
            cp.translate(dx, dy, visited)
        self.translate_locks(dx, dy, visited)

    def erase(self):
        self._require(ShapeState.FINALIZED, "erase")
        self.clear_locks()
        self._control_points = []
        self._state = ShapeState.ERASED

    # --- геометрия ---
    def polygon(self) -> QPolygonF:
        return QPolygonF([QPointF(x, y) for x, y in self.vertices()])

    def bounds(self) -> QRectF:
        if not self._points:
            return QRectF()
        return self.polygon().boundingRect()

    def contains(self, x: float, y: float) -> bool:
        """Point inside the bounding box of the shape (edges included)."""
        if not self._points:
            return False
        b = self.bounds()
        return b.left() <= x <= b.right() and b.top() <= y <= b.bottom()

    def hit_test(self, x: float, y: float) -> bool:
        if not self.has_geometry:
            return False
        if self._sides == 2:
            return self._distance_to_segment(x, y) <= max(self.stroke_width / 2, self.tolerance)
        return self.polygon().containsPoint(QPointF(x, y), Qt.FillRule.OddEvenFill)

    def _distance_to_segment(self, x: float, y: float) -> float:
        (x1, y1), (x2, y2) = self.vertices()[:2]
        vx, vy = x2 - x1, y2 - y1
        wx, wy = x - x1, y - y1
        seg_len2 = vx * vx + vy * vy
        t = 0 if seg_len2 == 0 else max(0.0, min(1.0, (wx * vx + wy * vy) / seg_len2))
        return hypot(x - (x1 + t * vx), y - (y1 + t * vy))

    def draw(self, painter: QPainter):
        if not self._points or self._state is ShapeState.ERASED:
            return
        painter.save()
        painter.setPen(QPen(self._style.stroke_color, self._style.stroke_width))
        painter.setBrush(QBrush(self._style.fill_color))
        painter.drawPolygon(self.polygon())
        painter.restore()

    def draw_control_points(self, painter: QPainter):
        for cp in self._control_points:
            cp.draw(painter)

    # --- сериализация ---
    def convert_to_string(self) -> str:
        lines = [
            f"{POINTS_COUNT} {self._sides}",
            f"{FILL} {_color_to_string(self._style.fill_color)}",
            f"{STROKE} {_color_to_string(self._style.stroke_color)}",
            f"{WIDTH} {float(self._style.stroke_width)!r}",
            " ".join([POINTS] + [repr(float(v)) for v in self._points]),
        ]
        return os.linesep.join(lines)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> PolyShape:
        """Build a finalized shape from one 5-line block."""
        lines = list(lines)
        if len(lines) != len(FIELDS):
            raise MapFormatError(f"shape block has {len(lines)} lines, expected {len(FIELDS)}")

        values = {}
        for expected, line in zip(FIELDS, lines):
            tokens = line.split()
            if not tokens:
                raise MapFormatError(f"empty line where {expected!r} was expected")
            name = tokens[0]
            if name not in FIELDS:
                raise MapFormatError(f"{name!r} is not supported")
            if name != expected:
                raise MapFormatError(f"{name!r} found where {expected!r} was expected")
            try:
                values[name] = cls._parse_field(name, tokens[1:])
            except ValueError as e:
                raise MapFormatError(f"bad {name!r} line {line.strip()!r}: {e}") from e

        sides = values[POINTS_COUNT]
        points = values[POINTS]
        if len(points) != 2 * sides:
            raise MapFormatError(f"{len(points)} coordinates for {sides} sides, expected {2 * sides}")

        shape = cls(sides, ShapeStyle(values[FILL], values[STROKE], values[WIDTH]))
        shape.start()
        shape._points = points
        # фигура полная, поэтому сразу создаём контрольные точки
        shape.finalize()
        return shape

    @staticmethod
    def _parse_field(name: str, args: list[str]):
        if name == POINTS_COUNT:
            if len(args) != 1:
                raise ValueError(f"expected 1 value, got {len(args)}")
            sides = int(args[0])
            if sides < 2:
                raise ValueError(f"at least 2 sides required, got {sides}")
            return sides
        if name in (FILL, STROKE):
            if len(args) != 2:
                raise ValueError(f"expected color and opacity, got {len(args)} values")
            return _color_from_string(args[0], args[1])
        if name == WIDTH:
            if len(args) != 1:
                raise ValueError(f"expected 1 value, got {len(args)}")
            return _to_float(args[0])
        return [_to_float(t) for t in args]


class Path(PolyShape):
    """Two point shape that ties two movables together."""
    PATH_SIDES = 2

    def __init__(self, style: ShapeStyle | None = None):
        super().__init__(self.PATH_SIDES, style)

    def translate(self, dx: float, dy: float, visited: set[int] | None = None) -> None:
        # путь сам не двигается, только всё, что к нему привязано
        self._require(ShapeState.FINALIZED, "translate")
        visited = self._enter(visited)
        if visited is None:
            return
        self.translate_locks(dx, dy, visited)
