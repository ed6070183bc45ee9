"""
Structured logging configuration for DealerDesk.

JSON lines in production, colored single-line output in development.
Records emitted while serving a request carry the request method, path and
user id so ARB and user-management actions can be traced per caller.
"""

import os
import sys
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

# Fields set by LogContext for the current thread/request
_log_context: ContextVar[dict] = ContextVar('dealerdesk_log_context', default={})


class RequestContextFilter(logging.Filter):
    """Attach LogContext fields and method/path/user_id of the current Flask request."""

    def filter(self, record: logging.LogRecord) -> bool:
        from flask import has_request_context, request
        from flask_login import current_user

        extra = dict(getattr(record, 'extra', None) or {})
        for key, value in _log_context.get().items():
            extra.setdefault(key, value)

        if has_request_context():
            extra.setdefault('method', request.method)
            extra.setdefault('path', request.path)
            try:
                if current_user and current_user.is_authenticated:
                    extra.setdefault('user_id', current_user.id)
            except Exception:
                # login manager not initialised on this app (tests, scripts)
                pass
        if extra:
            record.extra = extra
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if getattr(record, 'extra', None):
            log_entry.update(record.extra)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        reset = self.RESET if color else ''

        timestamp = datetime.now().strftime('%H:%M:%S')
        location = f'{record.module}:{record.lineno}'

        base = f'{color}[{timestamp}] {record.levelname:8}{reset} {location:30} {record.getMessage()}'

        if getattr(record, 'extra', None):
            extras = ' | '.join(f'{k}={v}' for k, v in record.extra.items())
            base = f'{base} | {extras}'

        if record.exc_info:
            base = f'{base}\n{self.formatException(record.exc_info)}'

        return base


def setup_logging(
    level: str = 'INFO',
    json_format: bool = None,
    logger_name: str = 'dealerdesk'
) -> logging.Logger:
    """Configure and return the application logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting. If None, auto-detects based on environment.
        logger_name: Name for the logger instance.

    Returns:
        Configured logger instance.
    """
    if json_format is None:
        json_format = os.environ.get('PRODUCTION', '').lower() == 'true' or \
                      'gunicorn' in os.environ.get('SERVER_SOFTWARE', '')

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.addFilter(RequestContextFilter())

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = 'dealerdesk') -> logging.Logger:
    """Get a logger instance, e.g. 'dealerdesk.arb' or 'dealerdesk.database'."""
    return logging.getLogger(name)


class LogContext:
    """Context manager adding fields to every record logged inside it.

    Fields live in a ContextVar, so each thread or request sees only its own.
    RequestContextFilter copies them onto the record.

        with LogContext(arb_id=7, vehicle_id=42):
            logger.info('resolved')
    """

    def __init__(self, **fields):
        self.fields = fields
        self._token = None

    def __enter__(self):
        merged = {**_log_context.get(), **self.fields}
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
        return False
