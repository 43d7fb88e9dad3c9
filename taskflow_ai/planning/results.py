"""
Result types returned by the orchestrator.

Both the model path and the heuristic path build exactly these
dataclasses; the AIResult envelope carries the provenance flag.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .models import Priority


@dataclass
class CostReceipt:
    """Monetary cost of one successful model invocation."""

    prompt_tokens: int
    completion_tokens: int
    model_id: str
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "modelId": self.model_id,
            "cost": self.cost,
        }


@dataclass
class OptimizationResult:
    """Rewritten task description with a definition of done."""

    optimized_title: str = ""
    optimized_description: str = ""
    definition_of_done: str = ""
    suggested_tags: List[str] = field(default_factory=list)
    estimated_hours: int = 2
    priority: Priority = Priority.MEDIUM
    estimated_complexity: str = "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "optimizedTitle": self.optimized_title,
            "optimizedDescription": self.optimized_description,
            "definitionOfDone": self.definition_of_done,
            "suggestedTags": list(self.suggested_tags),
            "estimatedComplexity": self.estimated_complexity,
            "estimatedHours": self.estimated_hours,
            "priority": self.priority.value,
        }


@dataclass
class PrioritizedTask:
    task_id: str
    title: str
    project: str
    priority: Priority
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taskId": self.task_id,
            "title": self.title,
            "project": self.project,
            "priority": self.priority.value,
            "reason": self.reason,
        }


@dataclass
class PrioritizationInsights:
    productivity: str = ""
    time_management: str = ""
    workload_analysis: str = ""
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productivity": self.productivity,
            "timeManagement": self.time_management,
            "workloadAnalysis": self.workload_analysis,
            "recommendations": list(self.recommendations),
        }


@dataclass
class Timeline:
    estimated_completion_days: int = 0
    critical_path: List[str] = field(default_factory=list)
    suggested_schedule: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimatedCompletionDays": self.estimated_completion_days,
            "criticalPath": list(self.critical_path),
            "suggestedSchedule": self.suggested_schedule,
        }


@dataclass
class RiskAssessment:
    overdue_tasks: List[str] = field(default_factory=list)
    potential_bottlenecks: List[str] = field(default_factory=list)
    urgent_actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overdueTasks": list(self.overdue_tasks),
            "potentialBottlenecks": list(self.potential_bottlenecks),
            "urgentActions": list(self.urgent_actions),
        }


@dataclass
class PrioritizationResult:
    """Ordered tasks plus workload commentary."""

    priority_order: List[PrioritizedTask] = field(default_factory=list)
    insights: PrioritizationInsights = field(default_factory=PrioritizationInsights)
    timeline: Timeline = field(default_factory=Timeline)
    risk_assessment: RiskAssessment = field(default_factory=RiskAssessment)

    @property
    def task_ids(self) -> List[str]:
        return [item.task_id for item in self.priority_order]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priorityOrder": [item.to_dict() for item in self.priority_order],
            "insights": self.insights.to_dict(),
            "timeline": self.timeline.to_dict(),
            "riskAssessment": self.risk_assessment.to_dict(),
        }


@dataclass
class TaskSuggestion:
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    estimated_hours: float = 1.0
    tags: List[str] = field(default_factory=list)
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "estimatedHours": self.estimated_hours,
            "tags": list(self.tags),
            "reasoning": self.reasoning,
        }


@dataclass
class SuggestionResult:
    suggestions: List[TaskSuggestion] = field(default_factory=list)
    rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "rationale": self.rationale,
        }


@dataclass
class Recommendation:
    category: str
    suggestion: str
    impact: str = "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "suggestion": self.suggestion,
            "impact": self.impact,
        }


@dataclass
class ProductivityPatterns:
    completion_trends: str = ""
    procrastination_indicators: str = ""
    optimal_work_times: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completionTrends": self.completion_trends,
            "procrastinationIndicators": self.procrastination_indicators,
            "optimalWorkTimes": self.optimal_work_times,
        }


@dataclass
class InsightResult:
    """Productivity analysis."""

    overall_score: float = 0.0
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    patterns: ProductivityPatterns = field(default_factory=ProductivityPatterns)
    next_steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "strengths": list(self.strengths),
            "areasForImprovement": list(self.areas_for_improvement),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "patterns": self.patterns.to_dict(),
            "nextSteps": list(self.next_steps),
        }


@dataclass
class ScheduledTask:
    task_id: str
    title: str
    start: str
    duration: float
    priority: Priority
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taskId": self.task_id,
            "title": self.title,
            "suggestedTimeSlot": {"start": self.start, "duration": self.duration},
            "priority": self.priority.value,
            "reasoning": self.reasoning,
        }


@dataclass
class ScheduleResult:
    """Back-to-back time slots for open tasks."""

    schedule: List[ScheduledTask] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    total_estimated_hours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule": [s.to_dict() for s in self.schedule],
            "recommendations": list(self.recommendations),
            "totalEstimatedHours": self.total_estimated_hours,
        }


ResultData = Union[
    PrioritizationResult, SuggestionResult, InsightResult, OptimizationResult, ScheduleResult
]


@dataclass
class AIResult:
    """
    Envelope returned by every orchestrator operation.

    ``kind`` tags which result type ``data`` holds. ``cost`` is only set
    when ``ai_powered`` is True.
    """

    kind: str
    data: ResultData
    ai_powered: bool = False
    cost: Optional[CostReceipt] = None
    model_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "kind": self.kind,
            "data": self.data.to_dict(),
            "aiPowered": self.ai_powered,
        }
        if self.cost is not None:
            payload["cost"] = self.cost.to_dict()
        if self.model_id:
            payload["model"] = self.model_id
        return payload
