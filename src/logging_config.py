"""Logging configuration for Job Tracker."""
import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("aiohttp", "sqlalchemy.engine", "apscheduler", "asyncio")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName((level or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    force: bool = False,
) -> None:
    """Configure the root logger once per process.

    Console output always; a size-rotated file as well when log_file is set.
    Later calls are no-ops unless force is given, which drops the existing
    handlers first.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path for the rotating file handler
        force: Replace handlers installed by an earlier call
    """
    root = logging.getLogger()

    if root.handlers:
        if not force:
            return
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(_resolve_level(level))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_settings(settings, force: bool = False) -> None:
    """Configure logging from the application settings."""
    setup_logging(level=settings.log_level, log_file=settings.log_file, force=force)
