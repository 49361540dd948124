"""Structured JSON logging with secret sanitization.

Every record is emitted as one JSON object on stdout, tagged with the
service name, environment and the id of the request being handled.
Upstream credentials must never reach the logs, so API keys and bearer
tokens are redacted from messages and extra fields.
"""

import logging
import re
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from .config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class SecuritySanitizer:
    """Redact credentials from log content."""

    SENSITIVE_PATTERNS = {
        'anthropic_key': re.compile(r'(sk-ant-)([a-zA-Z0-9_-]{8,})'),
        'api_key': re.compile(r'(api[_-]?key["\s:=]+["\']?)([a-zA-Z0-9_-]{20,})', re.IGNORECASE),
        'bearer_token': re.compile(r'(bearer\s+)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
    }

    SENSITIVE_KEYS = ('secret', 'token', 'key', 'auth', 'password')

    @classmethod
    def sanitize_string(cls, text: str) -> str:
        if not isinstance(text, str):
            return str(text)

        sanitized = text
        for pattern in cls.SENSITIVE_PATTERNS.values():
            sanitized = pattern.sub(r'\1***REDACTED***', sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any], max_depth: int = 3) -> Dict[str, Any]:
        """Recursively sanitize a dictionary, redacting sensitive keys outright."""
        if max_depth <= 0:
            return {"...": "max_depth_reached"}

        sanitized = {}
        for key, value in data.items():
            if any(s in key.lower() for s in cls.SENSITIVE_KEYS):
                sanitized[key] = "***REDACTED***"
            else:
                sanitized[key] = cls.sanitize_value(value, max_depth - 1)
        return sanitized

    @classmethod
    def sanitize_list(cls, data: List[Any], max_depth: int = 3) -> List[Any]:
        if max_depth <= 0:
            return ["...max_depth_reached"]
        return [cls.sanitize_value(item, max_depth - 1) for item in data]

    @classmethod
    def sanitize_value(cls, value: Any, max_depth: int = 3) -> Any:
        if isinstance(value, dict):
            return cls.sanitize_dict(value, max_depth)
        if isinstance(value, list):
            return cls.sanitize_list(value, max_depth)
        if isinstance(value, str):
            return cls.sanitize_string(value)
        return value


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service and request context."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno
        log_record['service'] = settings.service_name
        log_record['environment'] = settings.service_env

        if request_id := request_id_var.get():
            log_record['request_id'] = request_id

        if 'message' in log_record:
            log_record['message'] = SecuritySanitizer.sanitize_string(log_record['message'])

        if record.exc_info and record.exc_info[0] is not None:
            exception_info = {
                'type': record.exc_info[0].__name__,
                'message': SecuritySanitizer.sanitize_string(str(record.exc_info[1])),
            }
            if not settings.is_production:
                exception_info['traceback'] = traceback.format_exception(*record.exc_info)
            log_record['exception'] = exception_info
            log_record.pop('exc_info', None)

        # Extra fields passed through logger.*(..., extra={...})
        for key, value in list(log_record.items()):
            if key in ('timestamp', 'level', 'message', 'exception'):
                continue
            if any(s in key.lower() for s in SecuritySanitizer.SENSITIVE_KEYS):
                log_record[key] = "***REDACTED***"
            else:
                log_record[key] = SecuritySanitizer.sanitize_value(value)


def setup_logging(level: str = "INFO") -> None:
    """Install a single structured stdout handler on the root logger."""
    root = logging.getLogger()
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(
        '%(timestamp)s %(level)s %(name)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # httpx logs full request lines at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
