"""
Logging configuration for TaskFlow AI.

Provides structured JSON logging for production/CI and a human-readable
format for development.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import Config


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def __init__(self, session_id: str):
        super().__init__()
        self.session_id = session_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "session_id": self.session_id,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "metadata"):
            log_entry["metadata"] = record.metadata

        for attr in ["operation", "model_name", "duration", "status", "ai_powered"]:
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self, session_id: str):
        super().__init__()
        self.session_id = session_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        message = f"[{timestamp}] {record.levelname:8} {record.name:20} | {record.getMessage()}"
        message += f" (session: {self.session_id[:8]})"

        if hasattr(record, "metadata") and record.metadata:
            metadata_str = " | ".join(f"{k}={v}" for k, v in record.metadata.items())
            message += f" | {metadata_str}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(config: Config, session_id: str) -> logging.Logger:
    """
    Set up logging configuration based on environment and config.

    Args:
        config: Configuration object with logging settings
        session_id: Identifier attached to every record for log correlation

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = logging.getLevelName(config.log_level)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    root_logger.setLevel(log_level)

    if config.log_format == "json":
        formatter = StructuredFormatter(session_id)
    else:
        formatter = TextFormatter(session_id)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # The openai client logs every request at INFO
    if not config.debug_enabled:
        logging.getLogger("openai").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger("taskflow_ai.logging")
    logger.info(
        "Logging configured",
        extra={
            "metadata": {
                "session_id": session_id,
                "log_level": config.log_level,
                "log_format": config.log_format,
                "ci_mode": config.is_ci_mode,
                "provider_configured": config.is_provider_configured,
            }
        },
    )

    return root_logger


def get_logger(name: str, **context) -> logging.Logger:
    """
    Get a logger with optional context.

    Args:
        name: Logger name (typically module name)
        **context: Additional context to include in log records

    Returns:
        Configured logger with context
    """
    logger = logging.getLogger(name)

    if context:

        class ContextAdapter(logging.LoggerAdapter):
            def process(self, msg, kwargs):
                if "extra" not in kwargs:
                    kwargs["extra"] = {}
                kwargs["extra"].update(self.extra)
                return msg, kwargs

        return ContextAdapter(logger, context)

    return logger


def log_model_call(
    logger: logging.Logger,
    model: str,
    operation: str,
    duration: float,
    success: bool,
    error: Optional[str] = None,
    **metadata,
):
    """
    Log a single model attempt of the fallback chain.

    Args:
        logger: Logger instance
        model: Model name
        operation: Orchestrator operation (prioritize, suggest, insights, optimize)
        duration: Call duration in seconds
        success: Whether the call succeeded
        error: Error detail when the call failed
        **metadata: Additional metadata
    """
    level = logging.DEBUG if success else logging.WARNING
    status = "success" if success else "failed"

    payload = {
        "model_name": model,
        "operation": operation,
        "duration": duration,
        "success": success,
        **metadata,
    }
    if error:
        payload["error"] = error

    logger.log(
        level,
        f"Model call: {model} {operation} {status} in {duration:.2f}s",
        extra={"metadata": payload},
    )
