"""
Logging setup for WeightPriceAdmin.

A price batch runs on several worker threads at once, so a log line needs
more than a logger name to be useful: every record carries the thread
that wrote it plus the price context (job id and product title) that the
thread is working on.

    2025-12-03 10:15:30 [INFO    ] [MainThread] weight_price_admin.routes.admin - [Loader] Loaded 12 collections
    2025-12-03 10:15:31 [INFO    ] [PriceUpdate_0] {job=3f2a9c1e product='Gold Chain'} weight_price_admin.services.price_update_service - Updated 3 variants

Context is per thread. The price update service copies the caller's
context into each worker task, so lines written by a job's workers still
show the job id.

Usage:
    setup_logging(log_level=logging.INFO, enable_file_logging=False)
    logger = get_logger(__name__)

    with log_context(job=job_id[:8]):
        logger.info("Price job starting")
"""

import logging
import sys
import threading
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Iterator, Optional


APP_LOGGER_NAME = "weight_price_admin"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(price_context)s%(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Fields are rendered in this order; anything else is appended sorted
CONTEXT_FIELDS = ("job", "product")

_local = threading.local()


# =============================================================================
# PRICE CONTEXT
# =============================================================================

def current_log_context() -> Dict[str, str]:
    """Copy of the calling thread's context fields."""
    return dict(getattr(_local, "fields", {}))


@contextmanager
def log_context(**fields: str) -> Iterator[None]:
    """
    Add fields to this thread's log context for the duration of the block.

    Fields set to None are removed. The previous context is restored on
    exit, so blocks nest.
    """
    previous = current_log_context()
    merged = dict(previous)
    for key, value in fields.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = str(value)
    _local.fields = merged
    try:
        yield
    finally:
        _local.fields = previous


def format_log_context(fields: Dict[str, str]) -> str:
    """Render context fields as "{job=3f2a9c1e product='Gold Chain'} " (or "")."""
    if not fields:
        return ""
    keys = [k for k in CONTEXT_FIELDS if k in fields]
    keys += sorted(k for k in fields if k not in CONTEXT_FIELDS)
    parts = []
    for key in keys:
        value = fields[key]
        parts.append(f"{key}={value!r}" if " " in value else f"{key}={value}")
    return "{" + " ".join(parts) + "} "


class PriceContextFilter(logging.Filter):
    """Stamp ``thread_name`` and ``price_context`` onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.price_context = format_log_context(getattr(_local, "fields", {}))
        return True


# =============================================================================
# SETUP
# =============================================================================

def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the application logger tree.

    Console output always; in production also ``<app_name>.log`` and an
    ERROR-only ``<app_name>_error.log``, both rotating. Calling it again
    replaces the handlers (each test app calls it).

    Returns:
        The configured ``app_name`` logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(log_level)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(log_dir / f"{app_name}.log", log_level))
        handlers.append(_rotating_handler(log_dir / f"{app_name}_error.log", logging.ERROR))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    context_filter = PriceContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        logger.addHandler(handler)

    if enable_file_logging:
        logger.info(f"File logging enabled in {log_dir}")
    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger under the application namespace, e.g. "weight_price_admin.services.catalog_service"."""
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
