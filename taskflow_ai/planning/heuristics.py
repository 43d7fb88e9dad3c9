"""
Deterministic, network-free fallbacks for every orchestrator operation.

Each method returns the same result type the model path produces, so
callers cannot tell the two apart except through the ``ai_powered`` flag.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from .models import (
    Priority,
    ProductivityStats,
    TaskSnapshot,
    TaskStatus,
)
from .results import (
    InsightResult,
    OptimizationResult,
    PrioritizationInsights,
    PrioritizationResult,
    PrioritizedTask,
    ProductivityPatterns,
    Recommendation,
    RiskAssessment,
    ScheduleResult,
    ScheduledTask,
    SuggestionResult,
    TaskSuggestion,
    Timeline,
)

logger = logging.getLogger(__name__)

HOURS_PER_WORKDAY = 8
STRONG_COMPLETION_RATE = 70
WEAK_COMPLETION_RATE = 50
SCHEDULE_SLOT_HOURS = 2
OPEN_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS)
CLOSED_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


# (keywords, description, definition of done, tags, hours, priority)
OPTIMIZATION_TEMPLATES = [
    (
        ("bug", "fix", "error"),
        "Fix the identified issue in {title}. This involves debugging the problem, "
        "implementing the necessary corrections, testing the fix, and ensuring the "
        "system works as expected.",
        "The bug is fixed, all tests pass, the fix is documented, and the solution "
        "is deployed or ready for deployment.",
        ["bug-fix", "debugging", "testing"],
        1,
        Priority.HIGH,
    ),
    (
        ("implement", "create", "build"),
        "Implement the feature: {title}. This involves designing the solution, "
        "writing the necessary code, testing functionality, and ensuring it meets "
        "the specified requirements.",
        "The feature is fully implemented, tested, documented, and ready for use. "
        "All acceptance criteria are met.",
        ["development", "feature", "implementation"],
        4,
        Priority.MEDIUM,
    ),
    (
        ("test", "review", "analyze"),
        "Perform thorough testing and analysis for: {title}. This involves executing "
        "test cases, reviewing code or documentation, identifying issues, and "
        "providing detailed feedback.",
        "All tests are executed, issues are documented, feedback is provided, and a "
        "comprehensive report is completed.",
        ["testing", "review", "analysis"],
        2,
        Priority.MEDIUM,
    ),
]

GENERIC_TEMPLATE = (
    (),
    "Complete the task: {title}. This involves understanding the specific "
    "requirements, planning the approach, executing the necessary steps, and "
    "delivering the expected outcomes.",
    "The task is completed according to specifications, quality standards are "
    "met, and all deliverables are ready for handoff or use.",
    ["task", "completion", "delivery"],
    2,
    Priority.MEDIUM,
)


def compose_description(description: str, definition_of_done: str) -> str:
    """Join a description and its definition of done into one block."""
    text = description
    if definition_of_done:
        text += "\n\n" if text else ""
        text += "Definition of Done:\n" + definition_of_done
    return text


def _priority_sort_key(task: TaskSnapshot) -> Tuple[int, int, datetime]:
    # Higher weight first; dated before undated; earlier due date first
    has_due = 0 if task.due_date is not None else 1
    due = task.due_date or datetime.max.replace(tzinfo=timezone.utc)
    return (-task.priority.weight, has_due, due)


def order_by_priority(tasks: List[TaskSnapshot]) -> List[TaskSnapshot]:
    """Stable sort by priority weight, then due date, undated last."""
    return sorted(tasks, key=_priority_sort_key)


class FallbackHeuristicEngine:
    """Closed-form substitutes for the model-backed operations."""

    def __init__(self, clock=None):
        """
        Args:
            clock: Callable returning the current aware datetime; only
                overdue detection and scheduling read it.
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._clock()

    def prioritize(self, tasks: List[TaskSnapshot]) -> PrioritizationResult:
        """Sort by priority tier and due date."""
        if not tasks:
            return PrioritizationResult(
                insights=PrioritizationInsights(
                    productivity="Create some tasks to get AI-powered prioritization",
                    recommendations=["Start by creating your first task"],
                )
            )

        ordered = order_by_priority(tasks)
        now = self.now()

        priority_order = [
            PrioritizedTask(
                task_id=task.id,
                title=task.title,
                project=task.project_name,
                priority=task.priority,
                reason=self._reason(task),
            )
            for task in ordered
        ]

        open_tasks = [t for t in ordered if t.status not in CLOSED_STATUSES]
        total_hours = sum(
            t.estimated_hours if t.estimated_hours is not None else 1 for t in open_tasks
        )
        overdue = [
            t.id for t in open_tasks if t.due_date is not None and t.due_date < now
        ]
        top_tier = [
            t for t in open_tasks if t.priority in (Priority.CRITICAL, Priority.URGENT)
        ]

        return PrioritizationResult(
            priority_order=priority_order,
            insights=PrioritizationInsights(
                productivity="Tasks sorted by priority and due date",
                time_management="Focus on high-priority items first",
                workload_analysis=f"You have {len(tasks)} tasks to complete",
                recommendations=[
                    "Complete high-priority tasks first",
                    "Set realistic deadlines",
                ],
            ),
            timeline=Timeline(
                estimated_completion_days=math.ceil(total_hours / HOURS_PER_WORKDAY),
                critical_path=[t.id for t in top_tier],
                suggested_schedule="Work through tasks in the order listed",
            ),
            risk_assessment=RiskAssessment(
                overdue_tasks=overdue,
                potential_bottlenecks=(
                    [f"{len(top_tier)} critical or urgent tasks compete for attention"]
                    if len(top_tier) > 1
                    else []
                ),
                urgent_actions=[f"Resolve overdue task: {tid}" for tid in overdue],
            ),
        )

    def _reason(self, task: TaskSnapshot) -> str:
        if task.due_date is not None:
            return (
                f"Sorted by priority and due date: {task.priority.value} priority, "
                f"due {task.due_date.date().isoformat()}"
            )
        return f"Sorted by priority and due date: {task.priority.value} priority, no due date"

    def suggest(self) -> SuggestionResult:
        """Fixed list of generic productivity tasks."""
        return SuggestionResult(
            suggestions=[
                TaskSuggestion(
                    title="Review and organize workspace",
                    description=(
                        "Spend 15 minutes organizing your physical and digital "
                        "workspace for better productivity"
                    ),
                    priority=Priority.MEDIUM,
                    estimated_hours=0.25,
                    tags=["organization", "productivity"],
                    reasoning="A clean workspace improves focus and efficiency",
                ),
                TaskSuggestion(
                    title="Plan tomorrow's priorities",
                    description="Set aside time to plan your top 3 priorities for tomorrow",
                    priority=Priority.LOW,
                    estimated_hours=0.5,
                    tags=["planning", "productivity"],
                    reasoning="Planning ahead reduces decision fatigue and improves focus",
                ),
            ],
            rationale="Basic productivity tasks to help you stay organized",
        )

    def analyze(self, stats: ProductivityStats) -> InsightResult:
        """Score = completion rate + 20, capped at 100."""
        completion_rate = stats.completion_rate

        return InsightResult(
            overall_score=min(completion_rate + 20, 100),
            strengths=(
                ["Good task completion rate"]
                if completion_rate > STRONG_COMPLETION_RATE
                else ["Actively managing tasks"]
            ),
            areas_for_improvement=(
                ["Task completion rate"]
                if completion_rate < WEAK_COMPLETION_RATE
                else ["Task organization"]
            ),
            recommendations=[
                Recommendation(
                    category="workflow",
                    suggestion="Break large tasks into smaller, manageable subtasks",
                    impact="high",
                )
            ],
            patterns=ProductivityPatterns(
                completion_trends="Based on current data",
                procrastination_indicators="Monitor pending tasks",
                optimal_work_times="Track your most productive hours",
            ),
            next_steps=[
                "Complete high-priority tasks",
                "Review task organization",
                "Set realistic deadlines",
            ],
        )

    def optimize(self, title: str, description: Optional[str] = None) -> OptimizationResult:
        """Pick a template by title keyword family."""
        title_lower = title.lower()
        template = GENERIC_TEMPLATE
        for candidate in OPTIMIZATION_TEMPLATES:
            if any(keyword in title_lower for keyword in candidate[0]):
                template = candidate
                break

        _, description_text, done_text, tags, hours, priority = template
        task_description = description_text.format(title=title)

        return OptimizationResult(
            optimized_title=title,
            optimized_description=compose_description(task_description, done_text),
            definition_of_done=done_text,
            suggested_tags=list(tags),
            estimated_hours=hours,
            priority=priority,
        )

    def schedule(self, tasks: List[TaskSnapshot]) -> ScheduleResult:
        """Lay open tasks out in two-hour slots, most important first."""
        open_tasks = order_by_priority([t for t in tasks if t.status in OPEN_STATUSES])
        if not open_tasks:
            return ScheduleResult(
                recommendations=["Create some tasks to get AI-powered scheduling suggestions"]
            )

        start = self.now()
        schedule = []
        for index, task in enumerate(open_tasks):
            slot = start + timedelta(hours=index * SCHEDULE_SLOT_HOURS)
            schedule.append(
                ScheduledTask(
                    task_id=task.id,
                    title=task.title,
                    start=slot.isoformat(),
                    duration=task.estimated_hours or 1,
                    priority=task.priority,
                    reasoning=f"Scheduled based on {task.priority.value} priority and due date",
                )
            )

        return ScheduleResult(
            schedule=schedule,
            recommendations=[
                "Start with high-priority tasks",
                "Take breaks between tasks",
                "Adjust timing based on your energy levels",
            ],
            total_estimated_hours=sum(item.duration for item in schedule),
        )
