"""
Structured logging system for pokeproxy.

Provides centralized logging with console and optional file output,
JSON or human-readable rendering, and counters for monitoring the
health of upstream calls.
"""

import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created).strftime('%Y-%m-%dT%H:%M:%S'),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            for key, value in context.items():
                # Record fields are never overwritten by context keys
                payload[f"ctx_{key}" if key in payload else key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Pipe-separated text with the context appended as JSON."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line = f"{line} | Context: {json.dumps(context, default=str)}"
        return line


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics about upstream API calls.
    """

    def __init__(
        self,
        name: str = "pokeproxy",
        level: str = "info",
        fmt: str = "json",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (debug, info, warn, error, critical)
            fmt: Output format, "json" or "console"
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        log_level = LEVELS.get(level.lower(), logging.INFO)
        self.logger = logging.getLogger(name)
        self.logger.setLevel(log_level)
        self.logger.handlers.clear()  # Remove existing handlers
        self.logger.propagate = False

        self._lock = threading.Lock()
        self.metrics = {
            "upstream_calls": 0,
            "upstream_successes": 0,
            "upstream_failures": 0,
            "retries": 0,
            "errors_by_type": {},
        }

        formatter = JsonFormatter() if fmt == "json" else ConsoleFormatter()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"pokeproxy_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def exception(self, message: str, **kwargs):
        """Log at ERROR level with the active exception's traceback."""
        self.logger.error(message, exc_info=True, extra={"context": kwargs})

    def _log(self, level: int, message: str, context: dict):
        self.logger.log(level, message, extra={"context": context})

    # Metric tracking methods

    def record_upstream_call(self):
        with self._lock:
            self.metrics["upstream_calls"] += 1

    def record_upstream_success(self):
        with self._lock:
            self.metrics["upstream_successes"] += 1

    def record_retry(self):
        with self._lock:
            self.metrics["retries"] += 1

    def record_upstream_failure(self, error_type: str):
        """Record a failed upstream call, bucketed by error type."""
        with self._lock:
            self.metrics["upstream_failures"] += 1
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics with the success rate."""
        with self._lock:
            metrics_copy = dict(self.metrics)
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])

        calls = metrics_copy["upstream_calls"]
        metrics_copy["success_rate"] = (
            round(metrics_copy["upstream_successes"] / calls, 3) if calls else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        self.info("=== Upstream Metrics ===")
        self.info(
            f"Upstream calls: {metrics['upstream_successes']}/{metrics['upstream_calls']} "
            f"({metrics['success_rate'] * 100:.1f}% success), retries: {metrics['retries']}"
        )
        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "pokeproxy",
    level: str = "info",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (debug, info, warn, error, critical)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
