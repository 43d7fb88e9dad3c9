"""Core components for TaskFlow AI."""

from .config import Config
from .exceptions import (
    TaskFlowAIError,
    ProviderUnavailableError,
    ModelInvocationError,
    ParseError,
    ValidationError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "Config",
    "TaskFlowAIError",
    "ProviderUnavailableError",
    "ModelInvocationError",
    "ParseError",
    "ValidationError",
    "setup_logging",
    "get_logger",
]
