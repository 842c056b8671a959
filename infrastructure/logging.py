"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

APP_DIR_NAME = "PhotoTriage"


def get_app_data_directory() -> Path:
    """Return the per-user data directory of the application."""
    if sys.platform == "win32":
        return Path.home() / "AppData" / "Local" / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME.lower()


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(get_app_data_directory() / "logs")


def get_delete_log_directory() -> str:
    """Get the delete audit log directory path."""
    return str(get_app_data_directory() / "delete_logs")


def init_logging(log_dir: str | None = None, level: str = "INFO", console: bool = False) -> Path:
    """Initialize rotating file logging under the given directory.

    Returns the log directory in use.
    """
    log_path = Path(log_dir or get_log_directory())
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    if console:
        logger.add(sys.stderr, level=level)
    return log_path

