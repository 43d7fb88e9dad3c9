"""
Base exception classes for TaskFlow AI.

Provides a hierarchy of exceptions for the error conditions that can occur
while orchestrating model calls. Only ValidationError is ever surfaced to
callers of the orchestrator; the others are caught internally and degrade
to the heuristic fallback.
"""

from typing import Optional, Dict, Any


class TaskFlowAIError(Exception):
    """Base exception class for all TaskFlow AI errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
        }


class ProviderUnavailableError(TaskFlowAIError):
    """Raised when no usable provider credential is configured."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message, "PROVIDER_UNAVAILABLE")
        self.provider = provider
        self.context.update({"provider": provider})


class ModelInvocationError(TaskFlowAIError):
    """Raised when a single candidate model call fails."""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message, "MODEL_INVOCATION_FAILED")
        self.model_name = model_name
        self.operation = operation
        self.context.update(
            {
                "model_name": model_name,
                "operation": operation,
            }
        )


class ParseError(TaskFlowAIError):
    """Raised when model output cannot be turned into a structured result."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        raw_excerpt: Optional[str] = None,
    ):
        super().__init__(message, "RESPONSE_PARSE_FAILED")
        self.operation = operation
        self.raw_excerpt = raw_excerpt[:200] if raw_excerpt else raw_excerpt
        self.context.update(
            {
                "operation": operation,
                "raw_excerpt": self.raw_excerpt,
            }
        )


class ValidationError(TaskFlowAIError):
    """Raised when validation fails."""

    def __init__(
        self,
        message: str,
        validation_type: Optional[str] = None,
        violations: Optional[list] = None,
    ):
        super().__init__(message, "VALIDATION_FAILED")
        self.validation_type = validation_type
        self.violations = violations or []
        self.context.update(
            {
                "validation_type": validation_type,
                "violations": violations,
            }
        )
