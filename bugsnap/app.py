"""
BugSnap - annotate screenshots and build visual bug reports.

This is the main entry point for the application.
Run with: python -m bugsnap.app [IMAGE ...]
"""

import sys

from PySide6.QtWidgets import QApplication

from bugsnap import __version__
from bugsnap.services.config_service import ConfigService
from bugsnap.services.logging_service import get_logger, setup_logging
from bugsnap.ui.main_window import MainWindow


def main() -> int:
    """
    Main entry point for BugSnap application.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    # Initialize basic logging first to catch early errors
    setup_logging()
    logger = get_logger(__name__)

    try:
        logger.info("Starting BugSnap application...")

        app = QApplication(sys.argv)
        app.setApplicationName("BugSnap")
        app.setOrganizationName("BugSnap")
        app.setApplicationVersion(__version__)

        config = ConfigService()
        window = MainWindow(config)

        # Positional arguments are images to open as slides
        paths = app.arguments()[1:]
        if paths:
            window.open_images(paths)
        window.show()

        logger.info("BugSnap initialization complete. Entering event loop...")
        exit_code = app.exec()

        logger.info(f"BugSnap exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
