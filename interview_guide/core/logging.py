"""Logging configuration for the API process and the per-session event logs."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from interview_guide.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that flood DEBUG/INFO output
NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore", "openai", "instructor")

_HANDLER_NAMES = ("interview_guide.console", "interview_guide.file")


def session_log_dir() -> Path:
    return Path(settings.LOG_DIR) / "sessions"


def setup_logging() -> None:
    """Configure application logging.

    Safe to call more than once: handlers installed by an earlier call are
    replaced rather than duplicated.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    if settings.SESSION_LOG_ENABLED:
        session_log_dir().mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(_HANDLER_NAMES[0])

    file_handler = RotatingFileHandler(
        log_dir / "interview_guide.log",
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.set_name(_HANDLER_NAMES[1])

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() in _HANDLER_NAMES:
            root_logger.removeHandler(handler)
            handler.close()

    for handler in (console_handler, file_handler):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.ENVIRONMENT == "development" else logging.WARNING
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging to {log_dir.resolve()} at {logging.getLevelName(log_level)}, "
        f"session logs {'enabled' if settings.SESSION_LOG_ENABLED else 'disabled'}"
    )
