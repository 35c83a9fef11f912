"""
Logging setup for the POS device bridge.

Several threads write to the log at once: Flask request threads, the
printer status refresh loop, the deferred auto-registration timer and the
host webhooks. Every record is stamped with the name of the thread that
emitted it, so a line can be traced back to the component behind it.

    2026-10-18 10:15:30 [INFO    ] [MainThread] pos_device_bridge.app - Running without a desktop host
    2026-10-18 10:15:32 [INFO    ] [AutoRegister] pos_device_bridge.services.auto_registrar - 2 printer(s) detected
    2026-10-18 10:15:33 [WARNING ] [PrinterStatus] pos_device_bridge.services.printer_monitor - Printer status check failed

All module loggers live under the ``pos_device_bridge`` namespace
(see get_logger), which is the only logger that owns handlers.

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.DEBUG, enable_file_logging=False)
    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional


APP_LOGGER_NAME = "pos_device_bridge"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation for both log files
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Chatty libraries capped at WARNING (requests logs every connection at DEBUG)
NOISY_LOGGERS = ("urllib3",)


class ThreadContextFilter(logging.Filter):
    """Stamps ``thread_name`` and ``thread_id`` on each record. Never drops one."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.thread_id = threading.get_ident()
        return True


def _attach(
    logger: logging.Logger,
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    context_filter: logging.Filter
) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(context_filter)
    logger.addHandler(handler)


def _rotating_file(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8"
    )


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    Configure the application logger.

    Handlers:
        - stdout, always
        - ``<log_dir>/<app_name>.log``, rotating, when file logging is enabled
        - ``<log_dir>/<app_name>_error.log``, ERROR and above only

    Calling this again replaces the handlers instead of stacking them
    (the app factory runs once per test).

    Args:
        app_name: Name of the application logger
        log_level: Minimum level for the application logger
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Whether to write log files
        quiet_loggers: Third-party loggers capped at WARNING

    Returns:
        The configured application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    context_filter = ThreadContextFilter()

    _attach(logger, logging.StreamHandler(sys.stdout), log_level, formatter, context_filter)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log = log_dir / f"{app_name}.log"
        _attach(logger, _rotating_file(app_log), log_level, formatter, context_filter)
        _attach(
            logger,
            _rotating_file(log_dir / f"{app_name}_error.log"),
            logging.ERROR,
            formatter,
            context_filter,
        )
        logger.info(f"File logging enabled: {app_log}")

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the application namespace.

    ``get_logger("services.printer_monitor")`` and
    ``get_logger("pos_device_bridge.services.printer_monitor")`` are the
    same logger.
    """
    if name != APP_LOGGER_NAME and not name.startswith(APP_LOGGER_NAME + "."):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every log line it emits."""
    threading.current_thread().name = name
