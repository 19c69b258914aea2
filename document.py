from __future__ import annotations
import logging
from enum import Enum
from errors import MapFormatError
import factory

logger = logging.getLogger(__name__)


class Answer(Enum):
    YES = 'yes'
    NO = 'no'
    CANCEL = 'cancel'


class Dialogs:
    """Collaborator that talks to the user and the file system."""

    def choose_file(self, save: bool) -> str | None:
        raise NotImplementedError

    def read_lines(self, path: str) -> list[str]:
        raise NotImplementedError

    def write_bytes(self, path: str, data: bytes) -> None:
        raise NotImplementedError

    def confirm_save(self) -> Answer:
        raise NotImplementedError

    def show_error(self, title: str, message: str) -> None:
        raise NotImplementedError


class MapDocument:
    """
    New / Open / Save / Exit workflow around a MapArea.

    ``saved`` is True while the drawing matches what was last written or
    read; any change of the map clears it. None of the actions run while a
    shape is still being drawn.
    """

    def __init__(self, map_area, dialogs: Dialogs):
        self.map_area = map_area
        self.dialogs = dialogs
        self.saved = False
        self.map_area.storage.modified.connect(self._on_modified)

    def _on_modified(self):
        self.saved = False

    def _busy(self, action: str) -> bool:
        if self.map_area.is_drawing:
            logger.warning("%s ignored: a shape is being drawn", action)
            return True
        return False

    def save(self) -> bool:
        if self._busy("save"):
            return False
        path = self.dialogs.choose_file(save=True)
        if not path:
            self.saved = False
            return False
        data = self.map_area.convert_to_string().encode("utf-8")
        try:
            self.dialogs.write_bytes(path, data)
        except OSError as e:
            logger.error("could not save %s: %s", path, e)
            self.dialogs.show_error("Ошибка", f"Не удалось сохранить: {e}")
            return False
        self.saved = True
        logger.info("map saved to %s", path)
        return True

    def new(self) -> bool:
        """Clear the map, offering to save first. False if the user cancelled."""
        if self._busy("new"):
            return False
        answer = self.dialogs.confirm_save()
        if answer is Answer.CANCEL:
            return False
        if answer is Answer.YES and not self.save():
            return False
        self.map_area.clear_map()
        self.saved = False
        return True

    def open(self) -> bool:
        if self._busy("open"):
            return False
        path = self.dialogs.choose_file(save=False)
        if not path:
            return False
        try:
            lines = self.dialogs.read_lines(path)
            # проверяем файл до того, как что-то стирать
            factory.from_lines(lines)
        except OSError as e:
            logger.error("could not read %s: %s", path, e)
            self.dialogs.show_error("Ошибка", f"Не удалось загрузить: {e}")
            return False
        except (MapFormatError, UnicodeDecodeError) as e:
            # не UTF-8 текст тоже считается неверным форматом
            logger.error("bad map file %s: %s", path, e)
            self.dialogs.show_error("Ошибка", f"Неверный формат файла: {e}")
            return False
        if not self.saved and not self.new():
            return False
        self.map_area.convert_from_lines(lines)
        self.saved = True
        logger.info("map loaded from %s", path)
        return True

    def exit(self) -> bool:
        """True if the application may close."""
        if self.saved:
            return True
        return self.new()
