"""
AI model integration and routing system for TaskFlow AI.

This module provides:
- A cost-ordered fallback chain over OpenAI models
- Prompt templating for each orchestrator operation
- Response parsing (JSON and labeled text)
- Cost accounting from token usage
"""

from .types import (
    OperationType,
    ModelProvider,
    ModelResponse,
    TokenUsage,
    ChainResult,
    ModelAttemptRecord,
)
from .costs import calculate_cost, build_receipt, RATE_TABLE
from .templates import PromptTemplateManager, PromptTemplate
from .parsers import ResponseParser, ParsedResponse
from .router import ModelRouter

__all__ = [
    # Core types
    "OperationType",
    "ModelProvider",
    "ModelResponse",
    "TokenUsage",
    "ChainResult",
    "ModelAttemptRecord",
    # Main components
    "ModelRouter",
    "PromptTemplateManager",
    "ResponseParser",
    # Cost accounting
    "calculate_cost",
    "build_receipt",
    "RATE_TABLE",
    # Supporting types
    "PromptTemplate",
    "ParsedResponse",
]
