"""Logging setup shared by the API process, the scheduler and scripts."""

import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import WatchedFileHandler

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "botocore", "boto3", "apscheduler", "redis")

_PRODUCTION_FORMAT = "[%(asctime)s] [%(levelname)-5s] [%(name)s] [%(request_id)s] %(message)s"
_DEV_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-5s] [%(name)-24s] [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamps every record with the id of the request being served ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


def _install(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)


def configure_logging(*, environment: str, log_level: str) -> int:
    """
    Configure the root logger once per process and return the effective level.

    Safe to call repeatedly: handlers installed by an earlier call are reused
    rather than duplicated. Set `APP_LOG_PATH` to also write to a file that
    survives logrotate.
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(
        _PRODUCTION_FORMAT if environment == "production" else _DEV_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(level)
    installed = [h for h in root.handlers if any(isinstance(f, RequestIdFilter) for f in h.filters)]

    if not any(type(h) is logging.StreamHandler for h in installed):
        _install(root, logging.StreamHandler(sys.stdout), level, formatter)

    log_path = os.getenv("APP_LOG_PATH", "").strip()
    if log_path and not any(getattr(h, "baseFilename", None) == os.path.abspath(log_path) for h in installed):
        try:
            if os.path.dirname(log_path):
                os.makedirs(os.path.dirname(log_path), exist_ok=True)
            _install(root, WatchedFileHandler(log_path), level, formatter)
        except OSError as e:
            root.warning(f"Could not open APP_LOG_PATH={log_path}: {e}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn logs through our handlers; access lines are replaced by RequestLoggingMiddleware
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
        uv_logger.setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return level
