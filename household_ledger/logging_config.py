import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Optional, Dict


APP_LOGGER_NAME = "household_ledger"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [family=%(family_id)s user=%(user_id)s] %(message)s"

THIRD_PARTY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "sqlalchemy.dialects",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "faker",
]

# Family and caller the current request acts for
_request_context: ContextVar[Dict[str, str]] = ContextVar("ledger_request_context", default={})


class RequestContextFilter(logging.Filter):
    """Stamp every record with the bound family and user ids ('-' outside a request)"""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get()
        record.family_id = context.get("family_id", "-")
        record.user_id = context.get("user_id", "-")
        return True


def bind_request_context(family_id: Optional[str] = None, user_id: Optional[str] = None) -> None:
    context = dict(_request_context.get())
    if family_id:
        context["family_id"] = family_id
    if user_id:
        context["user_id"] = user_id
    _request_context.set(context)


def setup_logging(
    app_log_level: Optional[str] = None,
    third_party_log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Set up logging for the Household Ledger API.

    Ledger mutations log at INFO and rejected operations at WARNING, each
    line tagged with the family and caller bound for the current request.

    Args:
        app_log_level: Log level for application logs (default: APP_LOG_LEVEL or INFO)
        third_party_log_level: Log level for libraries (default: THIRD_PARTY_LOG_LEVEL or WARNING)
        log_file: Optional log file path (default: LOG_FILE). If unset, logs only to console
        max_file_size: Maximum size of log file before rotation (bytes)
        backup_count: Number of backup log files to keep

    Returns:
        The application logger
    """
    app_log_level = app_log_level or os.getenv("APP_LOG_LEVEL", "INFO")
    third_party_log_level = third_party_log_level or os.getenv("THIRD_PARTY_LOG_LEVEL", "WARNING")
    log_file = log_file or os.getenv("LOG_FILE")

    app_level = getattr(logging, app_log_level.upper(), logging.INFO)
    third_party_level = getattr(logging, third_party_log_level.upper(), logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level)
    app_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    context_filter = RequestContextFilter()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count
        ))

    for handler in handlers:
        handler.setLevel(app_level)
        handler.setFormatter(formatter)
        # Handler-level so records from module loggers are stamped too
        handler.addFilter(context_filter)
        app_logger.addHandler(handler)

    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(third_party_level)

    app_logger.propagate = False
    return app_logger


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """Logger nested under the application logger, e.g. household_ledger.ledger.goals"""
    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
