"""Task data, result types and heuristic fallbacks."""

from .models import (
    Priority,
    TaskStatus,
    TaskSnapshot,
    UserContext,
    ProductivityStats,
)
from .results import (
    AIResult,
    CostReceipt,
    InsightResult,
    OptimizationResult,
    PrioritizationResult,
    ScheduleResult,
    SuggestionResult,
)
from .heuristics import FallbackHeuristicEngine

__all__ = [
    "Priority",
    "TaskStatus",
    "TaskSnapshot",
    "UserContext",
    "ProductivityStats",
    "AIResult",
    "CostReceipt",
    "InsightResult",
    "OptimizationResult",
    "PrioritizationResult",
    "ScheduleResult",
    "SuggestionResult",
    "FallbackHeuristicEngine",
]
