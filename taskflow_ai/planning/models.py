"""
Pydantic models for the task data handed to the orchestrator.

These are read-only snapshots supplied by the task/project API. They are
validated once on entry so malformed input fails fast, before any model
call is attempted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core.exceptions import ValidationError


class Priority(Enum):
    """Task priority tiers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        """Ordinal used for sort comparisons (critical highest)."""
        return PRIORITY_WEIGHTS[self]

    @classmethod
    def coerce(cls, value: Any, default: "Priority" = None) -> "Priority":
        """Case-insensitive lookup, returning default for anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default if default is not None else cls.MEDIUM


PRIORITY_WEIGHTS = {
    Priority.CRITICAL: 5,
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class TaskStatus(Enum):
    """Task workflow status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    TESTING = "testing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class _Snapshot(BaseModel):
    """Shared config: immutable, camelCase aliases accepted."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class TaskSnapshot(_Snapshot):
    """Immutable view of a task as seen by the orchestrator."""

    # Task records carry bookkeeping fields (updatedAt, assignee) we do not read
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Task identifier")
    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field("", description="Task description")
    priority: Priority = Field(Priority.MEDIUM, description="Priority tier")
    status: TaskStatus = Field(TaskStatus.TODO, description="Workflow status")
    due_date: Optional[datetime] = Field(None, description="Due date")
    estimated_hours: Optional[float] = Field(
        None, ge=0, le=1000, description="Estimated effort in hours"
    )
    tags: List[str] = Field(default_factory=list, description="Ordered tags")
    project: Optional[str] = Field(None, description="Project name")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        # Storage ids (ObjectId, int) arrive as non-strings
        return str(v) if v is not None else v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Task title cannot be empty")
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return v or ""

    @field_validator("priority", "status", mode="before")
    @classmethod
    def lowercase_enum(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("due_date", "created_at")
    @classmethod
    def normalize_timezone(cls, v):
        # Naive timestamps are taken as UTC so sorting never mixes naive and aware
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def project_name(self) -> str:
        return self.project or "No Project"

    def to_summary(self) -> Dict[str, Any]:
        """JSON-safe summary embedded in prompts."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "estimatedHours": self.estimated_hours,
            "project": self.project_name,
            "tags": list(self.tags),
        }


class UserContext(_Snapshot):
    """Free-form categorical hints used to steer prompt phrasing."""

    model_config = ConfigDict(extra="allow")

    industry: str = "general"
    role: str = "professional"
    focus: str = "productivity"
    work_style: str = "balanced"
    goals: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)

    def to_prompt_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProductivityStats(_Snapshot):
    """Task counts for productivity analysis."""

    # Callers often pass the full stats payload, including derived fields
    model_config = ConfigDict(extra="ignore")

    total: int = Field(0, ge=0)
    completed: int = Field(0, ge=0)
    in_progress: int = Field(0, ge=0)
    pending: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_counts(self):
        if self.completed > self.total:
            raise ValueError("completed cannot exceed total")
        return self

    @property
    def completion_rate(self) -> float:
        """Percentage of completed tasks, 0 when there are none."""
        if self.total == 0:
            return 0.0
        return (self.completed / self.total) * 100

    @property
    def productivity(self) -> int:
        return round(self.completion_rate)

    @classmethod
    def from_tasks(cls, tasks: Iterable[TaskSnapshot]) -> "ProductivityStats":
        """Derive counts from a list of task snapshots."""
        tasks = list(tasks)
        return cls(
            total=len(tasks),
            completed=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
            pending=sum(1 for t in tasks if t.status == TaskStatus.TODO),
        )


def _violations(error: PydanticValidationError) -> List[str]:
    return [
        f"{'.'.join(str(p) for p in item['loc']) or 'value'}: {item['msg']}"
        for item in error.errors()
    ]


def _coerce(model, value: Any, validation_type: str):
    if isinstance(value, model):
        return value
    try:
        if isinstance(value, BaseModel):
            value = value.model_dump()
        return model.model_validate(value)
    except PydanticValidationError as e:
        violations = _violations(e)
        raise ValidationError(
            f"Invalid {validation_type}: " + "; ".join(violations),
            validation_type=validation_type,
            violations=violations,
        ) from e


def validate_tasks(tasks: Optional[Iterable[Any]]) -> List[TaskSnapshot]:
    """Validate task snapshots or raw dicts, raising ValidationError on bad input."""
    if tasks is None:
        return []
    if isinstance(tasks, (str, bytes, dict)):
        raise ValidationError(
            "Tasks must be a list of task snapshots", validation_type="task"
        )
    return [_coerce(TaskSnapshot, task, "task") for task in tasks]


def validate_unique_ids(tasks: List[TaskSnapshot]) -> None:
    seen = set()
    duplicates = []
    for task in tasks:
        if task.id in seen:
            duplicates.append(task.id)
        seen.add(task.id)
    if duplicates:
        raise ValidationError(
            f"Duplicate task ids: {duplicates}",
            validation_type="task",
            violations=[f"duplicate id {d}" for d in duplicates],
        )


def validate_user_context(context: Any) -> UserContext:
    if context is None:
        return UserContext()
    return _coerce(UserContext, context, "user_context")


def validate_stats(stats: Any) -> ProductivityStats:
    if stats is None:
        return ProductivityStats()
    return _coerce(ProductivityStats, stats, "stats")
