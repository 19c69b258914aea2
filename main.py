import logging
import os
import sys
from PyQt6.QtWidgets import QApplication
from main_window import MainWindow
import faulthandler
faulthandler.enable()


def main():
    logging.basicConfig(
        level=os.environ.get("MAPMAKER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    window = MainWindow()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
