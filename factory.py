import logging
import os
from typing import Iterable
from errors import MapFormatError
from settings import ShapeStyle, Tools
import shapes

logger = logging.getLogger(__name__)

# строк в одном блоке фигуры: sides, fill, stroke, strokeWidth, points
BLOCK_SIZE = 5

# инструменты, которые рисуют фигуры
_registry = {
    Tools.ROOM: lambda option, style: shapes.PolyShape(option, style),
    Tools.PATH: lambda option, style: shapes.Path(style),
}


def create(tool: Tools, option: int = 0, style: ShapeStyle | None = None):
    """New shape for a drawing tool, already started (in the drawing state)."""
    builder = _registry.get(Tools(tool))
    if builder is None:
        raise ValueError(f"Tool {Tools(tool).name} does not draw shapes")
    shape = builder(option, style)
    shape.start()
    return shape


def to_text(shapes_list: Iterable) -> str:
    """Blocks of the finalized shapes, in order, joined by the platform line separator."""
    blocks = []
    for s in shapes_list:
        # пропускаем незаконченные фигуры
        if not getattr(s, "is_finalized", False):
            continue
        blocks.append(s.convert_to_string())
    return os.linesep.join(blocks)


def group_lines(lines: Iterable[str]) -> list[list[str]]:
    """Split raw file lines into consecutive 5-line shape blocks."""
    lines = [line.rstrip("\r\n") for line in lines]
    # пустые строки в конце файла не считаются
    while lines and not lines[-1].strip():
        lines.pop()
    if len(lines) % BLOCK_SIZE:
        raise MapFormatError(
            f"{len(lines)} lines is not a multiple of {BLOCK_SIZE}; the file is truncated or corrupt")
    return [lines[i:i + BLOCK_SIZE] for i in range(0, len(lines), BLOCK_SIZE)]


def from_lines(lines: Iterable[str]) -> list:
    """Parse a whole map. Any bad block fails the whole file."""
    result = []
    for index, block in enumerate(group_lines(lines)):
        try:
            result.append(shapes.PolyShape.from_lines(block))
        except MapFormatError as e:
            raise MapFormatError(f"shape #{index + 1} (line {index * BLOCK_SIZE + 1}): {e}") from e
    logger.debug("parsed %d shapes", len(result))
    return result
