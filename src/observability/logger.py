"""
Structured JSON logging for payroll-recon

This module provides consistent structured logging across the application
using python-json-logger for easy parsing and analysis.

Verbosity is driven by LOG_MODE:
    INFO   informational messages only
    DEBUG  adds debug detail
    TRACE  adds full request/response payloads
Records at ERROR and above go to stderr, everything else to stdout.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

# Below DEBUG: full request/response tracing
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

APP_LOGGER_NAME = "src"

# Log mode mapping
LOG_MODES = {
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter that adds additional context fields

    Adds: timestamp, level, logger_name, and custom fields
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        """
        Add custom fields to log record

        Args:
            log_record: Log record dictionary
            record: LogRecord object
            message_dict: Message dictionary
        """
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname

        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["process_id"] = record.process
        log_record["thread_id"] = record.thread


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    # Text format for local runs
    return logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def resolve_level(mode: str | None) -> int:
    """Map a LOG_MODE value to a logging level, defaulting to INFO."""
    return LOG_MODES.get((mode or "INFO").upper(), logging.INFO)


def setup_logger(
    name: str = APP_LOGGER_NAME,
    mode: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Setup and configure a logger

    Args:
        name: Logger name
        mode: Log mode (INFO, DEBUG, TRACE); defaults to env var LOG_MODE
        format_type: "json" or "text"; defaults to env var LOG_FORMAT

    Returns:
        Configured logger instance
    """
    log_level = resolve_level(mode or os.getenv("LOG_MODE", "INFO"))
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()
    formatter = _build_formatter(format_type)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setLevel(log_level)
    out_handler.addFilter(_BelowErrorFilter())
    out_handler.setFormatter(formatter)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.ERROR)
    err_handler.setFormatter(formatter)

    logger.addHandler(out_handler)
    logger.addHandler(err_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance

    Module loggers are children of the application logger, which is set up
    on first use; setup_logger() can reconfigure it later (e.g. after the
    CLI has loaded .env).

    Args:
        name: Logger name, usually __name__

    Returns:
        Logger instance
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    if not app_logger.handlers:
        setup_logger(APP_LOGGER_NAME)
    return logging.getLogger(name)


def trace(logger: logging.Logger, message: str, **fields) -> None:
    """Log at TRACE level with extra fields."""
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, message, extra=fields)


# Context manager for logging operation duration
class log_operation:
    """
    Context manager for logging operation duration

    Usage:
        with log_operation("get-employer-info", logger=logger, keys=3):
            # do work
            pass
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        """
        Initialize operation logger

        Args:
            operation_name: Name of the operation
            logger: Logger instance (uses the application logger if None)
            **extra_fields: Additional fields to include in logs
        """
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time = None

    def __enter__(self):
        """Start operation"""
        self.start_time = time.time()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields}
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End operation"""
        duration = time.time() - self.start_time

        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name}",
                extra={
                    "operation": self.operation_name,
                    "duration_seconds": round(duration, 3),
                    "status": "success",
                    **self.extra_fields
                }
            )
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    "operation": self.operation_name,
                    "duration_seconds": round(duration, 3),
                    "status": "error",
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                    **self.extra_fields
                },
            )
        return False  # Don't suppress exceptions
