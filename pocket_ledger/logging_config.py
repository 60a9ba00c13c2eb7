"""
Logging for the ledger API.

Everything the service logs lives under the `pocket_ledger` logger tree:
module loggers come from `get_logger(__name__)` and the telemetry sink writes
to `pocket_ledger.telemetry`, which can be tuned separately from the rest.
"""
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import List, Optional


APP_LOGGER_NAME = "pocket_ledger"
TELEMETRY_LOGGER_NAME = f"{APP_LOGGER_NAME}.telemetry"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that are chatty at INFO: SQL echo, pool checkouts, migrations, request lines
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "uvicorn.access",
    "uvicorn.error",
)


def _level(value: Optional[str], env_var: str, default: int) -> int:
    """Explicit value, then the environment, then the default; unknown names fall back too."""
    name = value or os.getenv(env_var)
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def _handlers(log_file: Optional[str], max_file_size: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count
        ))
    return handlers


def setup_logging(
    app_log_level: Optional[str] = None,
    third_party_log_level: Optional[str] = None,
    telemetry_log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the `pocket_ledger` logger tree. Safe to call more than once
    (the API lifespan and the seed script both call it); handlers are replaced.

    Levels come from the arguments or from APP_LOG_LEVEL (INFO),
    THIRD_PARTY_LOG_LEVEL (WARNING) and TELEMETRY_LOG_LEVEL (the app level).
    LOG_FILE adds a size-rotated file next to the stdout handler.
    """
    app_level = _level(app_log_level, "APP_LOG_LEVEL", logging.INFO)
    third_party_level = _level(third_party_log_level, "THIRD_PARTY_LOG_LEVEL", logging.WARNING)
    telemetry_level = _level(telemetry_log_level, "TELEMETRY_LOG_LEVEL", app_level)
    log_file = log_file or os.getenv("LOG_FILE")

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(log_file, max_file_size, backup_count):
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    # Handlers pass everything; the loggers decide
    app_logger.setLevel(app_level)
    logging.getLogger(TELEMETRY_LOGGER_NAME).setLevel(telemetry_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    app_logger.propagate = False
    return app_logger


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """Logger inside the `pocket_ledger` tree; module names are nested under it."""
    if name == APP_LOGGER_NAME or name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
