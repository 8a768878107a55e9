"""Application entry point for ResidueScope."""

import logging
import os
import sys

# 3Dmol.js needs WebGL; fall back to SwiftShader where GPU compositing fails.
# Must be set before QtWebEngine is imported.
os.environ.setdefault(
    "QTWEBENGINE_CHROMIUM_FLAGS",
    "--disable-gpu-compositing --use-gl=angle --use-angle=swiftshader"
)

from PyQt6.QtWidgets import QApplication

from residuescope.config.settings import APP_NAME, APP_VERSION
from residuescope.ui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Send log records to stdout.

    Args:
        debug: Log at DEBUG level instead of WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger(__name__).debug("Debug logging enabled")


def main():
    """Run the ResidueScope application.

    Usage: ``residuescope [--debug] [structure_file]``
    """
    debug_mode = "--debug" in sys.argv
    if debug_mode:
        sys.argv.remove("--debug")
    configure_logging(debug=debug_mode)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    window = MainWindow()
    window.show()

    # Optional structure file as first positional argument
    paths = [arg for arg in sys.argv[1:] if not arg.startswith("-")]
    if paths:
        window.load_file(paths[0])

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
