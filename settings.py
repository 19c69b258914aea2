from dataclasses import dataclass, field
from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QColor
from enum import Enum


class Defaults:
    FILL_COLOR = "#90EE90"        # light green
    STROKE_COLOR = "#808080"      # grey
    STROKE_WIDTH = 3.0

    CONTROL_RADIUS = 5.0
    CONTROL_COLOR = QColor(128, 128, 128)
    CONTROL_SELECTED_COLOR = QColor(0, 0, 0)
    TOLERANCE = 5

    SELECTION_FILL = QColor(211, 211, 211)
    SELECTION_STROKE = QColor(128, 128, 128)
    SELECTION_STROKE_WIDTH = 2
    SELECTION_OPACITY = 0.4

    WINDOW_TITLE = "Map Maker"
    WINDOW_SIZE = (1000, 600)
    FILE_FILTER = "Maps (*.map);;All Files (*)"

    # число сторон для пунктов меню Room
    ROOMS = {
        "Line": 2,
        "Triangle": 3,
        "Rectangle": 4,
        "Pentagon": 5,
        "Hexagon": 6,
    }


@dataclass
class ShapeStyle:
    fill_color: QColor = field(default_factory=lambda: QColor(Defaults.FILL_COLOR))
    stroke_color: QColor = field(default_factory=lambda: QColor(Defaults.STROKE_COLOR))
    stroke_width: float = Defaults.STROKE_WIDTH

    def copy(self) -> "ShapeStyle":
        # без deepcopy(QColor): создаём новые QColor
        return ShapeStyle(QColor(self.fill_color), QColor(self.stroke_color), float(self.stroke_width))


class Tools(Enum):
    SELECT = 'select'
    MOVE = 'move'
    ROOM = 'room'
    PATH = 'path'
    ERASE = 'erase'
    DOOR = 'door'


class ToolState(QObject):
    """Current tool and its integer option (side count for Room)."""
    toolChanged = pyqtSignal(object)
    optionChanged = pyqtSignal(int)

    def __init__(self, tool: Tools | str = Tools.SELECT, option: int = 0):
        super().__init__()
        self.__tool = Tools(tool)
        self.__option = int(option)

    @property
    def tool(self) -> Tools: return self.__tool
    @tool.setter
    def tool(self, t: Tools | str):
        # неизвестное значение -> ValueError от Enum
        self.__tool = Tools(t)
        # смена инструмента всегда сбрасывает опцию
        self.__option = 0
        self.toolChanged.emit(self.__tool)
        self.optionChanged.emit(self.__option)

    @property
    def option(self) -> int: return self.__option
    @option.setter
    def option(self, value: int):
        value = int(value)
        if value != self.__option:
            self.__option = value
            self.optionChanged.emit(value)

    def select_room(self, sides: int):
        self.tool = Tools.ROOM
        self.option = sides

    def broadcast(self):
        self.toolChanged.emit(self.__tool)
        self.optionChanged.emit(self.__option)
