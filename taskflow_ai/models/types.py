"""
Type definitions for the model integration system.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime


class OperationType(Enum):
    """Orchestrator operations that can be routed to a model."""

    PRIORITIZE = "prioritize"
    SUGGEST = "suggest"
    INSIGHTS = "insights"
    OPTIMIZE = "optimize"


class ModelProvider(Enum):
    """Available model providers."""

    OPENAI = "openai"


@dataclass
class TokenUsage:
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_provider(cls, usage: Any) -> "TokenUsage":
        """Build from an openai usage object, dict or None."""
        if usage is None:
            return cls()
        if isinstance(usage, dict):
            prompt = usage.get("prompt_tokens", 0)
            completion = usage.get("completion_tokens", 0)
        else:
            prompt = getattr(usage, "prompt_tokens", 0)
            completion = getattr(usage, "completion_tokens", 0)
        return cls(
            prompt_tokens=int(prompt or 0),
            completion_tokens=int(completion or 0),
        )


@dataclass
class ModelResponse:
    """Response from a model interaction."""

    content: str
    provider: ModelProvider
    model_name: str
    operation: OperationType
    timestamp: datetime
    usage: TokenUsage = field(default_factory=TokenUsage)
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "content_length": len(self.content),
            "provider": self.provider.value,
            "model_name": self.model_name,
            "operation": self.operation.value,
            "timestamp": self.timestamp.isoformat(),
            "prompt_tokens": self.usage.prompt_tokens,
            "completion_tokens": self.usage.completion_tokens,
            "metadata": self.metadata,
        }


@dataclass
class ModelConfig:
    """Configuration for a single candidate model."""

    model_name: str
    provider: ModelProvider = ModelProvider.OPENAI
    max_tokens: Optional[int] = None
    temperature: float = 0.1
    timeout: float = 30.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "provider": self.provider.value,
            "model_name": self.model_name,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout,
        }


@dataclass
class ModelRoutingRule:
    """Ordered candidate models for a set of operations, cheapest first."""

    operations: List[OperationType]
    candidates: List[ModelConfig]

    def matches_operation(self, operation: OperationType) -> bool:
        """Check if this rule applies to the given operation."""
        return operation in self.operations


@dataclass
class ModelAttemptRecord:
    """Bookkeeping for one candidate of the fallback chain."""

    model_name: str
    succeeded: bool
    error: Optional[str] = None
    skipped: bool = False
    duration: float = 0.0


@dataclass
class AttemptOutcome:
    """Result of a single candidate call: either a response or an error."""

    record: ModelAttemptRecord
    response: Optional[ModelResponse] = None

    @property
    def ok(self) -> bool:
        return self.response is not None


@dataclass
class ChainResult:
    """
    Outcome of running the whole fallback chain.

    ``response`` is None when every candidate failed or was skipped
    (chain exhausted); that is a normal value, not an exception.
    """

    operation: OperationType
    attempts: List[ModelAttemptRecord] = field(default_factory=list)
    response: Optional[ModelResponse] = None
    cancelled: bool = False

    @property
    def exhausted(self) -> bool:
        return self.response is None

    def summary(self) -> List[Dict[str, Any]]:
        return [
            {
                "model": a.model_name,
                "succeeded": a.succeeded,
                "skipped": a.skipped,
                "error": a.error,
            }
            for a in self.attempts
        ]
