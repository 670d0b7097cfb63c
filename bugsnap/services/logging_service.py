"""
Logging service for BugSnap.

One root configuration for the whole app: a console handler, plus a dated
log file under ~/.local/share/bugsnap/logs/ by default. Qt's own diagnostics
(QPainter, image codec and PDF writer warnings raised while rendering) are
routed into the same handlers under the "bugsnap.qt" logger, and daily log
files older than the retention period are pruned on startup.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

# Default log directory following XDG Base Directory Specification
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "bugsnap" / "logs"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_PREFIX = "bugsnap_"
DEFAULT_RETAIN_DAYS = 14

_QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}

_logging_initialized = False


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
    retain_days: int = DEFAULT_RETAIN_DAYS,
) -> None:
    """
    Configure the logging system for BugSnap.

    Only the first call has an effect.

    Args:
        log_level: The logging level (e.g., logging.DEBUG, logging.INFO).
        log_to_file: Whether to also log to a dated file.
        log_dir: Directory for log files. Defaults to ~/.local/share/bugsnap/logs/
        retain_days: Dated log files older than this are deleted.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    log_dir = log_dir or DEFAULT_LOG_DIR
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d}.log"
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            console_handler.setLevel(logging.WARNING)
            root_logger.warning(f"Could not create log file: {e}. Logging to console only.")
        else:
            removed = prune_old_logs(log_dir, retain_days)
            if removed:
                root_logger.debug(f"Removed {len(removed)} log files older than {retain_days} days")

    qInstallMessageHandler(qt_message_handler)
    _logging_initialized = True


def prune_old_logs(
    log_dir: Path,
    retain_days: int,
    today: Optional[datetime] = None
) -> List[Path]:
    """
    Delete dated BugSnap log files older than `retain_days`.

    Only files named bugsnap_YYYYMMDD.log are considered; anything else in
    the directory is left alone.

    Returns:
        The paths that were removed.
    """
    cutoff = (today or datetime.now()).date() - timedelta(days=retain_days)
    removed = []
    for path in sorted(log_dir.glob(f"{LOG_FILE_PREFIX}*.log")):
        stamp = path.stem[len(LOG_FILE_PREFIX):]
        try:
            day = datetime.strptime(stamp, "%Y%m%d").date()
        except ValueError:
            continue
        if day < cutoff:
            try:
                path.unlink()
            except OSError as e:
                logging.getLogger(__name__).warning(f"Could not remove {path}: {e}")
                continue
            removed.append(path)
    return removed


def qt_message_handler(mode: QtMsgType, context, message: str) -> None:
    """Forward a Qt diagnostic to the "bugsnap.qt" logger."""
    level = _QT_LEVELS.get(mode, logging.WARNING)
    source = f" ({context.file}:{context.line})" if context is not None and context.file else ""
    logging.getLogger("bugsnap.qt").log(level, f"{message}{source}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: The name for the logger, typically __name__ of the calling module.

    Returns:
        A configured Logger instance.
    """
    return logging.getLogger(name)
