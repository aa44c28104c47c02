import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE_NAME = "chapel.log"


def resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    level_name: str = "INFO",
    log_dir: str | None = None,
    retention_days: int = 10,
) -> logging.Logger:
    """Set up root logging once and return the application logger.

    With ``log_dir`` set, records also go to a file rotated at midnight that
    keeps ``retention_days`` old files.
    """
    level = resolve_log_level(level_name)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        target = str(path / LOG_FILE_NAME)
        already_attached = any(
            isinstance(handler, TimedRotatingFileHandler)
            and getattr(handler, "baseFilename", None) == os.path.abspath(target)
            for handler in root.handlers
        )
        if not already_attached:
            handler = TimedRotatingFileHandler(
                target,
                when="midnight",
                backupCount=retention_days,
                encoding="utf-8",
                utc=True,
            )
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handler.setLevel(level)
            root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger("chapel")
    logger.setLevel(level)
    return logger
