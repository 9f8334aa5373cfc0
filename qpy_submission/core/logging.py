"""Structured JSON Logging Configuration"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger import jsonlogger

from qpy_submission.config import settings

# Id of the hook call being served; set by RequestIDMiddleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Fields every lifecycle log line may carry; absent ones are left out
CONTEXT_FIELDS = ("assignment_id", "submission_id", "usage_id", "backup_id", "restore_id")


class HookJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines tagged with the service and the host's request id"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = settings.APP_NAME
        log_record["environment"] = settings.ENVIRONMENT

        request_id = getattr(record, "correlation_id", None) or request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id
        log_record.pop("correlation_id", None)

        for field in CONTEXT_FIELDS:
            if log_record.get(field) is None:
                log_record.pop(field, None)


class RequestIdFilter(logging.Filter):
    """Put the request id into plain-text lines"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(HookJsonFormatter(
            fmt="%(asctime)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    else:
        handler.addFilter(RequestIdFilter())
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s [%(request_id)s] %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    return handler


def setup_logging() -> None:
    """Configure application logging once; repeated calls replace the handler."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_qpy_submission", False):
            root_logger.removeHandler(handler)

    handler = build_handler()
    handler._qpy_submission = True
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # SQL echo and engine HTTP calls only at warning level
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
