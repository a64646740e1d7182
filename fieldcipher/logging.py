"""Structured logging for FieldCipher.

Provides:
- JSON structured output for log aggregation
- Operation correlation IDs propagated through context variables
- Sensitive data masking (keys, secrets and plaintext never reach a handler)
- Performance timing

Usage:
    from fieldcipher.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Encrypted buffer", passes=16, length=48)

The library never installs handlers on import. Applications (or the CLI)
call setup_logging() once.
"""

import inspect
import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable

# Context variable for operation-scoped data
operation_id_var: ContextVar[str | None] = ContextVar("operation_id", default=None)

# Sensitive fields to mask in logs
SENSITIVE_FIELDS = {
    "password", "secret", "token", "key", "credential", "plaintext",
    "value", "passphrase", "secret_key",
}


def mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Mask sensitive values in a dictionary."""
    masked = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(s in key_lower for s in SENSITIVE_FIELDS):
            masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        else:
            masked[key] = value
    return masked


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if operation_id := operation_id_var.get():
            log_entry["operation_id"] = operation_id

        if hasattr(record, "extra_fields"):
            log_entry.update(mask_sensitive(record.extra_fields))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.WARNING:
            log_entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")

        prefix = ""
        if operation_id := operation_id_var.get():
            prefix = f"[op={operation_id[:8]}] "

        extra_str = ""
        if hasattr(record, "extra_fields") and record.extra_fields:
            masked = mask_sensitive(record.extra_fields)
            extra_str = " | " + " ".join(f"{k}={v}" for k, v in masked.items())

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname[:4]

        message = (
            f"{color}{timestamp} {level}{self.RESET} "
            f"[{record.name}] {prefix}{record.getMessage()}{extra_str}"
        )

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class StructuredLogger(logging.Logger):
    """Logger with structured logging support."""

    def _log_with_extra(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        **kwargs,
    ):
        """Log with extra structured fields."""
        extra = {"extra_fields": kwargs} if kwargs else {}
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.DEBUG):
            self._log_with_extra(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.INFO):
            self._log_with_extra(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.WARNING):
            self._log_with_extra(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.ERROR):
            self._log_with_extra(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.CRITICAL):
            self._log_with_extra(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module."""
    logging.setLoggerClass(StructuredLogger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)
    return logger


def setup_logging(json_output: bool = False, level: str = "WARNING"):
    """Configure logging for the fieldcipher logger tree.

    Args:
        json_output: Use JSON format
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root = logging.getLogger("fieldcipher")
    root.setLevel(getattr(logging, level.upper()))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanFormatter())

    root.addHandler(handler)
    root.propagate = False


def log_operation(operation: str):
    """Decorator to log function execution with timing.

    Each call runs under a fresh operation ID so that pass-level debug
    records can be correlated with the enclosing encrypt/decrypt call.
    """
    def decorator(func: Callable):
        logger = get_logger(func.__module__)

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            token = operation_id_var.set(uuid.uuid4().hex)
            start = time.monotonic()
            try:
                result = await func(*args, **kwargs)
                duration_ms = (time.monotonic() - start) * 1000
                logger.debug(
                    f"{operation} completed",
                    operation=operation,
                    duration_ms=round(duration_ms, 2),
                )
                return result
            except Exception as e:
                duration_ms = (time.monotonic() - start) * 1000
                logger.warning(
                    f"{operation} failed",
                    operation=operation,
                    error=type(e).__name__,
                    duration_ms=round(duration_ms, 2),
                )
                raise
            finally:
                operation_id_var.reset(token)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            token = operation_id_var.set(uuid.uuid4().hex)
            start = time.monotonic()
            try:
                result = func(*args, **kwargs)
                duration_ms = (time.monotonic() - start) * 1000
                logger.debug(
                    f"{operation} completed",
                    operation=operation,
                    duration_ms=round(duration_ms, 2),
                )
                return result
            except Exception as e:
                duration_ms = (time.monotonic() - start) * 1000
                logger.warning(
                    f"{operation} failed",
                    operation=operation,
                    error=type(e).__name__,
                    duration_ms=round(duration_ms, 2),
                )
                raise
            finally:
                operation_id_var.reset(token)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
