import logging
from pathlib import Path
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import (QMainWindow, QFileDialog, QMessageBox, QToolBar, QToolButton,
                             QMenu, QLabel)
from canvas_widget import MapArea
from document import Answer, Dialogs, MapDocument
from settings import Defaults, ToolState, Tools

logger = logging.getLogger(__name__)

CURSORS = {
    Tools.SELECT: Qt.CursorShape.ArrowCursor,
    Tools.MOVE: Qt.CursorShape.SizeAllCursor,
    Tools.ROOM: Qt.CursorShape.CrossCursor,
    Tools.PATH: Qt.CursorShape.ArrowCursor,
    Tools.ERASE: Qt.CursorShape.PointingHandCursor,
    Tools.DOOR: Qt.CursorShape.ArrowCursor,
}

HELP_TEXTS = {
    "Credit": "Map Maker\nRooms, paths and select/move/erase tools for floor plans.",
    "Info": "Maps are saved as plain text, one 5-line block per shape.",
    "Help": ("Room: pick a shape and drag to draw it.\n"
             "Path: drag from one room to another to connect them.\n"
             "Select: drag a rectangle around control points.\n"
             "Move: drag a shape, a point or the selected points.\n"
             "Erase: click a shape to remove it."),
}


class QtDialogs(Dialogs):
    def __init__(self, parent):
        self.parent = parent

    def choose_file(self, save: bool) -> str | None:
        if save:
            path, _ = QFileDialog.getSaveFileName(self.parent, "Сохранить", filter=Defaults.FILE_FILTER)
        else:
            path, _ = QFileDialog.getOpenFileName(self.parent, "Загрузить", filter=Defaults.FILE_FILTER)
        return path or None

    def read_lines(self, path: str) -> list[str]:
        return Path(path).read_text(encoding="utf-8").splitlines()

    def write_bytes(self, path: str, data: bytes) -> None:
        # пишем во временный файл и подменяем, чтобы не оставить полфайла
        tmp = Path(path + ".tmp")
        tmp.parent.mkdir(parents=True, exist_ok=True)
        try:
            tmp.write_bytes(data)
            tmp.replace(Path(path))
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def confirm_save(self) -> Answer:
        buttons = (QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
                   | QMessageBox.StandardButton.Cancel)
        result = QMessageBox.question(self.parent, "Save Map",
                                      "Would you like to save your current work?",
                                      buttons, QMessageBox.StandardButton.Cancel)
        if result == QMessageBox.StandardButton.Yes:
            return Answer.YES
        if result == QMessageBox.StandardButton.No:
            return Answer.NO
        return Answer.CANCEL

    def show_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self.parent, title, message)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(Defaults.WINDOW_TITLE)
        self.resize(*Defaults.WINDOW_SIZE)

        # ---- Инициализация компонентов приложения ----
        self.tool_state = ToolState()
        self.map_area = MapArea(self.tool_state, parent=self)
        self.document = MapDocument(self.map_area, QtDialogs(self))
        self.setCentralWidget(self.map_area)

        self._build_menus()
        self._build_tool_bar()

        # ==== tool state -> UI ====
        self.tool_label = QLabel()
        self.statusBar().addWidget(self.tool_label)
        self.tool_state.toolChanged.connect(self._refresh_status)
        self.tool_state.optionChanged.connect(self._refresh_status)
        self.tool_state.toolChanged.connect(
            lambda t: self.map_area.setCursor(CURSORS.get(t, Qt.CursorShape.ArrowCursor)))
        self.tool_state.broadcast()

        self.show()

    def _action(self, name: str, handler) -> QAction:
        action = QAction(name, self)
        action.setObjectName(name)
        action.triggered.connect(lambda checked=False: handler())
        return action

    def _build_menus(self):
        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction(self._action("New", self.document.new))
        file_menu.addAction(self._action("Open", self.document.open))
        file_menu.addAction(self._action("Save", self.document.save))
        file_menu.addSeparator()
        file_menu.addAction(self._action("Exit", self.close))

        help_menu = self.menuBar().addMenu("Help")
        for name in ("Credit", "Info"):
            help_menu.addAction(self._action(name, lambda n=name: self._show_help(n)))
        help_menu.addSeparator()
        help_menu.addAction(self._action("Help", lambda: self._show_help("Help")))

    def _build_tool_bar(self):
        bar = QToolBar("Tools", self)
        bar.setOrientation(Qt.Orientation.Vertical)
        self.addToolBar(Qt.ToolBarArea.LeftToolBarArea, bar)

        for tool in (Tools.SELECT, Tools.MOVE):
            bar.addAction(self._action(tool.name.title(), lambda t=tool: setattr(self.tool_state, "tool", t)))

        rooms = QMenu("Room", self)
        for name, sides in Defaults.ROOMS.items():
            rooms.addAction(self._action(name, lambda s=sides: self.tool_state.select_room(s)))
        room_button = QToolButton(self)
        room_button.setText("Room")
        room_button.setMenu(rooms)
        room_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        bar.addWidget(room_button)

        for tool in (Tools.PATH, Tools.ERASE, Tools.DOOR):
            bar.addAction(self._action(tool.name.title(), lambda t=tool: setattr(self.tool_state, "tool", t)))

    def _refresh_status(self, *_):
        self.tool_label.setText(
            f"Tool: {self.tool_state.tool.name.title()}    Options: {self.tool_state.option}")

    def _show_help(self, name: str):
        QMessageBox.information(self, name, HELP_TEXTS[name])

    def closeEvent(self, event):
        if self.document.exit():
            event.accept()
        else:
            event.ignore()
