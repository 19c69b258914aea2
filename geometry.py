from __future__ import annotations
from math import atan2, cos, sin, hypot, pi


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return hypot(x2 - x1, y2 - y1)


def _point(operation, radius: float, shift: float, side: int, sides: int) -> float:
    # параметрическое уравнение окружности: r * cos/sin(угол)
    return radius * operation(shift + side * 2.0 * pi / sides)


def compute_regular_polygon(x1: float, y1: float, x2: float, y2: float,
                            sides: int, symmetrical: bool = True) -> list[float]:
    """
    Vertices of a regular polygon spanned by the drag vector (x1, y1) -> (x2, y2).

    The centre is the midpoint of the vector and the first vertex lies in the
    direction of the vector. With ``symmetrical`` both radii are the vector
    length, otherwise they are its x and y components.

    Returns a new flat list ``[x0, y0, x1, y1, ...]`` of ``sides`` points.
    """
    if sides < 2:
        raise ValueError(f"A polygon needs at least 2 sides, got {sides}")

    angle = atan2(y2 - y1, x2 - x1)
    if symmetrical:
        dx = dy = distance(x1, y1, x2, y2)
    else:
        dx, dy = x2 - x1, y2 - y1
    cx = x1 + (x2 - x1) / 2
    cy = y1 + (y2 - y1) / 2

    points: list[float] = []
    for side in range(sides):
        points.append(_point(cos, dx / 2, angle, side, sides) + cx)
        points.append(_point(sin, dy / 2, angle, side, sides) + cy)
    return points
