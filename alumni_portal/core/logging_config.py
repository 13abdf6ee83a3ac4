"""
Alumni Portal - Centralized Logging Configuration
Supports both development (plain text) and production (JSON structured) logging
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict
from contextvars import ContextVar

from alumni_portal.core.config import settings


# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    """Set request ID in context"""
    request_id_var.set(request_id)


def get_user_id() -> str:
    """Get current user ID from context"""
    return user_id_var.get() or ''


def set_user_id(user_id: str) -> None:
    """Set user ID in context"""
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())[:8]


LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"
FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | "
    "[%(request_id)s] [%(user_id)s] | "
    "%(funcName)s:%(lineno)d | %(message)s"
)

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'request_id', 'user_id',
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        user_id = get_user_id()
        if user_id:
            log_data["user_id"] = user_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        # Add extra fields from record
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Formatter that includes request_id and user_id, used for readable dev output
    """

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class AlumniPortalLogger(logging.Logger):
    """
    Custom logger with convenience methods for structured logging
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        """Log a completed HTTP request; 4xx as warning, 5xx as error"""
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"← {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request_complete",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: str = None,
                       reason: str = None, **kwargs) -> None:
        """Log authentication events"""
        level = logging.INFO if success else logging.WARNING
        self.log(
            level,
            f"Auth {event}: {'success' if success else 'failed'}" +
            (f" - {user_email}" if user_email else "") +
            (f" - {reason}" if reason else ""),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_admin_action(self, action: str, admin_email: str, target: str = None,
                         **kwargs) -> None:
        """Log an action taken through the admin panel"""
        self.info(
            f"Admin {action} by {admin_email}" + (f" on {target}" if target else ""),
            extra={
                "event_type": "admin_action",
                "admin_action": action,
                "admin_email": admin_email,
                "target": target,
                **kwargs
            }
        )

    def log_import_event(self, source: str, total: int, imported: int,
                         skipped: int, failed: int, **kwargs) -> None:
        """Log the outcome of an institute records import"""
        level = logging.WARNING if failed else logging.INFO
        self.log(
            level,
            f"Import from {source}: {imported}/{total} imported, "
            f"{skipped} skipped, {failed} failed",
            extra={
                "event_type": "institute_import",
                "import_source": source,
                "rows_total": total,
                "rows_imported": imported,
                "rows_skipped": skipped,
                "rows_failed": failed,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        """Log error with full context"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {str(error)}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )


def _file_handler(formatter: logging.Formatter, backup_count: int) -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> AlumniPortalLogger:
    """
    Configure the "alumni_portal" logger.

    Production writes JSON lines (stdout and the rotating LOG_FILE);
    everywhere else stdout gets a short format and the file a detailed
    one carrying the request and user ids.
    """
    logging.setLoggerClass(AlumniPortalLogger)

    logger = logging.getLogger("alumni_portal")
    logger.__class__ = AlumniPortalLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    json_logging = settings.ENVIRONMENT == "production"
    if json_logging:
        console_formatter = file_formatter = JSONFormatter()
        backup_count = 10
    else:
        console_formatter = ContextualFormatter(CONSOLE_FORMAT)
        file_formatter = ContextualFormatter(FILE_FORMAT)
        backup_count = 5

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        logger.addHandler(_file_handler(file_formatter, backup_count))

    # Suppress noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "json_logging": json_logging
        }
    )

    return logger


logger: AlumniPortalLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'AlumniPortalLogger',
]
