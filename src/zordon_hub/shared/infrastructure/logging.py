"""
Structured Logging
==================

Every record leaves the process as one JSON object on stdout. Context goes
in ``extra`` so it stays queryable:

    logger = get_logger(__name__)
    logger.info("Ticket assigned", extra={"ticket_id": ticket.id})

Request-scoped records carry ``correlation_id``; credential-like keys are
masked before serialisation.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

_SECRET_MARKERS = ("password", "refresh_token", "api_key", "authorization")
_MASK = "***REDACTED***"

# Third-party loggers that drown out ours at INFO
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "apscheduler": logging.WARNING,
    "httpx": logging.WARNING,
    "watchdog": logging.WARNING,
}


class HubJsonFormatter(jsonlogger.JsonFormatter):
    """Adds timestamp and environment to each record and masks secrets."""

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        log_record["environment"] = self.environment
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        for key in log_record:
            if _is_secret(key):
                log_record[key] = _MASK


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Route all logging through a single JSON stdout handler.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        environment: Stamped on every record
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        HubJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            environment=environment,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any) -> Iterator[None]:
    """
    Log how long a block took, and whether it raised.

        with log_latency(logger, "deadline_sweep", window_hours=24):
            ...
    """
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception:
        outcome = "failed"
        raise
    finally:
        logger.info(
            f"{operation} finished",
            extra={
                "operation": operation,
                "outcome": outcome,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                **extra_context,
            },
        )
