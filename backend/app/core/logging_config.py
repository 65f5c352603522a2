"""
Campus Connect - Logging

One application logger, ``campus_connect``, shared by every module.
Production writes one JSON object per line; elsewhere a readable line
carrying the request id. Request and user ids travel in context variables
so service code never has to pass them around.
"""

import logging
import sys
import json
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from app.core.config import settings


LOGGER_NAME = "campus_connect"

request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

# Everything a bare LogRecord carries; the rest came in through ``extra``
_RECORD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'request_id', 'user_id'}


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


class JSONFormatter(logging.Formatter):
    """Structured records for log shipping"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "level": record.levelname,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if get_request_id():
            entry["request_id"] = get_request_id()
        if get_user_id():
            entry["user_id"] = get_user_id()

        entry.update({
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith('_')
        })

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain text with ``%(request_id)s`` and ``%(user_id)s`` available"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class CampusLogger(logging.Logger):
    """Logger with one helper per kind of event the app records"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """send_otp / verify_otp / register / login / profile outcomes"""
        parts = [f"Auth {event}: {'ok' if success else 'failed'}"]
        if user_email:
            parts.append(user_email)
        if reason:
            parts.append(reason)
        self.log(
            logging.INFO if success else logging.WARNING,
            " - ".join(parts),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_issue_event(self, event: str, issue_id: str, **kwargs) -> None:
        self.info(
            f"Issue {issue_id} {event}",
            extra={"event_type": "issue", "issue_event": event, "issue_id": issue_id, **kwargs}
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        self.error(
            f"{type(error).__name__} in {context or 'unknown context'}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def setup_logging() -> CampusLogger:
    """(Re)build the application logger's handlers from settings"""
    logging.setLoggerClass(CampusLogger)
    app_logger = logging.getLogger(LOGGER_NAME)
    # getLogger may have created it before our class was registered
    app_logger.__class__ = CampusLogger
    app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    app_logger.propagate = False
    app_logger.handlers.clear()

    if settings.is_production():
        console_format: logging.Formatter = JSONFormatter()
        file_format: logging.Formatter = console_format
    else:
        console_format = ContextualFormatter("%(levelname)-8s | [%(request_id)s] | %(message)s")
        file_format = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
            "%(module)s:%(lineno)d | %(message)s"
        )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_format)
    app_logger.addHandler(console)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_path, maxBytes=10 * 1024 * 1024, backupCount=5)
        rotating.setFormatter(file_format)
        app_logger.addHandler(rotating)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "aiosmtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return app_logger


logger: CampusLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'CampusLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
