"""
Response parsing and validation utilities for model interactions.

Two modes:

* structured: the model was asked for one JSON object with a fixed key set
  (prioritize, suggest, insights). Anything else raises ParseError so the
  orchestrator can fall back.
* labeled text: the model was asked for five labeled sections (optimize).
  Each field is extracted independently and defaults on its own; this mode
  never raises.
"""

import re
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import ParseError
from ..planning.heuristics import compose_description
from ..planning.models import Priority, TaskSnapshot
from ..planning.results import (
    InsightResult,
    OptimizationResult,
    PrioritizationInsights,
    PrioritizationResult,
    PrioritizedTask,
    ProductivityPatterns,
    Recommendation,
    ResultData,
    RiskAssessment,
    SuggestionResult,
    TaskSuggestion,
    Timeline,
)
from .types import OperationType, ModelResponse

logger = logging.getLogger(__name__)


DEFAULT_HOURS = 2
DEFAULT_PRIORITY = Priority.MEDIUM

EXPECTED_KEYS = {
    OperationType.PRIORITIZE: {"priorityOrder", "insights", "timeline", "riskAssessment"},
    OperationType.SUGGEST: {"suggestions", "rationale"},
    OperationType.INSIGHTS: {
        "overallScore",
        "strengths",
        "areasForImprovement",
        "recommendations",
        "patterns",
        "nextSteps",
    },
}


@dataclass(frozen=True)
class SectionLabel:
    """A labeled section of the optimize format."""

    key: str
    pattern: str
    aliases: Tuple[str, ...] = ()


# Aliases are only consulted when the canonical label is absent, and must
# start a line so prose like "response time:" is not taken as a label.
SECTION_LABELS = (
    SectionLabel("description", r"TASK DESCRIPTION\s*:"),
    SectionLabel("definition_of_done", r"DEFINITION OF DONE\s*:"),
    SectionLabel("hours", r"Estimated Hours\s*:", (r"Hours\s*:", r"Time\s*:")),
    SectionLabel("priority", r"Priority\s*:", (r"Priority Level\s*:",)),
    SectionLabel("tags", r"Suggested Tags\s*:", (r"Tags\s*:",)),
)

_LINE_START = r"(?:^|\n)[ \t]*(?:•[ \t]*)?"


@dataclass
class ParsedResponse:
    """Structured representation of a parsed model response."""

    operation: OperationType
    result: ResultData
    validation_errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if every field was extracted rather than defaulted."""
        return not self.validation_errors


# __text__ emphasis; bare identifiers such as __init__ are left alone
_UNDERSCORE_EMPHASIS = re.compile(r"(?<!\w)__(\S(?:.*?\S)?)__(?!\w)")


def _unemphasize(match: re.Match) -> str:
    inner = match.group(1)
    return match.group(0) if re.fullmatch(r"\w+", inner) else inner


def strip_noise(text: str) -> str:
    """Remove markdown emphasis, code fences, bracket wrapping and bullet variants."""
    cleaned = text.strip()
    cleaned = re.sub(r"```[a-zA-Z]*", "", cleaned)
    cleaned = cleaned.replace("**", "")
    cleaned = _UNDERSCORE_EMPHASIS.sub(_unemphasize, cleaned)
    cleaned = re.sub(r"\[([^\]]+)\]", r"\1", cleaned)
    cleaned = re.sub(r"(?m)^([ \t]*)[*\-+][ \t]+", r"\1• ", cleaned)
    return cleaned.strip()


def find_sections(text: str) -> Dict[str, str]:
    """
    Split labeled text into sections.

    Finds the first occurrence of each known label, orders them by position,
    and slices each section up to the start of the next found label or the
    end of the text.
    """
    found: List[Tuple[int, int, str]] = []
    for label in SECTION_LABELS:
        span = _locate(text, label.pattern, anywhere=True)
        if span is None:
            for alias in label.aliases:
                span = _locate(text, alias, anywhere=False)
                if span is not None:
                    break
        if span is not None:
            found.append((span[0], span[1], label.key))

    found.sort()
    sections: Dict[str, str] = {}
    for index, (_, end, key) in enumerate(found):
        stop = found[index + 1][0] if index + 1 < len(found) else len(text)
        # Two labels can overlap only through aliases; keep the first
        if key not in sections and stop >= end:
            sections[key] = text[end:stop].strip()
    return sections


def _locate(text: str, pattern: str, anywhere: bool) -> Optional[Tuple[int, int]]:
    match = re.search(_LINE_START + "(" + pattern + ")", text, re.IGNORECASE)
    if match:
        return match.start(1), match.end(1)
    if anywhere:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.start(), match.end()
    return None


def extract_hours(section: Optional[str]) -> Optional[int]:
    if not section:
        return None
    match = re.search(r"\d+", section)
    return int(match.group(0)) if match else None


def extract_priority(section: Optional[str]) -> Optional[Priority]:
    if not section:
        return None
    names = "|".join(p.value for p in Priority)
    match = re.search(rf"\b({names})\b", section, re.IGNORECASE)
    return Priority(match.group(1).lower()) if match else None


def extract_tags(section: Optional[str]) -> List[str]:
    if not section:
        return []
    bracketed = re.search(r"\[([^\]]*)\]", section)
    if bracketed:
        body = bracketed.group(1)
    else:
        # Tags sit on one line; anything after it is trailing prose
        lines = [line for line in section.splitlines() if line.strip()]
        body = lines[0] if lines else ""
    tags = []
    for raw in body.split(","):
        tag = raw.strip().strip("•").strip().strip("\"'`#").strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _extract_json_object(text: str) -> str:
    cleaned = re.sub(r"```[a-zA-Z]*", "", text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        return cleaned
    return cleaned[start : end + 1]


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value).strip()


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [_as_str(item) for item in value if _as_str(item)]
    return [_as_str(value)]


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class ResponseParser:
    """Parses and validates model responses for each operation."""

    def __init__(self):
        """Initialize the response parser."""
        self.parsers = {
            OperationType.PRIORITIZE: self._parse_prioritization,
            OperationType.SUGGEST: self._parse_suggestions,
            OperationType.INSIGHTS: self._parse_insights,
            OperationType.OPTIMIZE: self._parse_optimization,
        }

    def parse_response(
        self,
        model_response: ModelResponse,
        tasks: Optional[List[TaskSnapshot]] = None,
    ) -> ParsedResponse:
        """
        Parse a model response based on its operation.

        Args:
            model_response: The response from the model
            tasks: Input tasks, required to check prioritize output

        Returns:
            ParsedResponse with the structured result

        Raises:
            ParseError: If structured output is malformed
        """
        return self.parse(model_response.operation, model_response.content, tasks)

    def parse(
        self,
        operation: OperationType,
        content: Optional[str],
        tasks: Optional[List[TaskSnapshot]] = None,
    ) -> ParsedResponse:
        parser = self.parsers.get(operation)
        if not parser:
            raise ParseError(f"No parser available for operation: {operation}")
        if operation == OperationType.PRIORITIZE:
            return parser(content or "", tasks or [])
        return parser(content or "")

    def parse_structured(self, operation: OperationType, content: str) -> Dict[str, Any]:
        """Decode a JSON object and check it has exactly the expected keys."""
        expected = EXPECTED_KEYS[operation]
        try:
            data = json.loads(_extract_json_object(content))
        except (json.JSONDecodeError, TypeError) as e:
            raise ParseError(
                f"Invalid JSON in {operation.value} response: {e}",
                operation=operation.value,
                raw_excerpt=content,
            ) from e

        if not isinstance(data, dict):
            raise ParseError(
                f"Expected a JSON object in {operation.value} response",
                operation=operation.value,
                raw_excerpt=content,
            )

        keys = set(data.keys())
        if keys != expected:
            missing = sorted(expected - keys)
            unexpected = sorted(keys - expected)
            raise ParseError(
                f"Key mismatch in {operation.value} response: "
                f"missing={missing} unexpected={unexpected}",
                operation=operation.value,
                raw_excerpt=content,
            )
        return data

    def _parse_prioritization(
        self, content: str, tasks: List[TaskSnapshot]
    ) -> ParsedResponse:
        """Parse a prioritize response and enforce the permutation invariant."""
        data = self.parse_structured(OperationType.PRIORITIZE, content)
        by_id = {task.id: task for task in tasks}

        raw_order = data["priorityOrder"]
        if not isinstance(raw_order, list):
            raise ParseError("priorityOrder is not a list", operation="prioritize")

        order = []
        for item in raw_order:
            item = _as_dict(item)
            task_id = _as_str(item.get("taskId"))
            task = by_id.get(task_id)
            if task is None:
                raise ParseError(
                    f"Unknown task id in priorityOrder: {task_id!r}",
                    operation="prioritize",
                    raw_excerpt=content,
                )
            order.append(
                PrioritizedTask(
                    task_id=task_id,
                    title=_as_str(item.get("title"), task.title) or task.title,
                    project=_as_str(item.get("project"), task.project_name) or task.project_name,
                    priority=Priority.coerce(item.get("priority"), task.priority),
                    reason=_as_str(item.get("reason")),
                )
            )

        ids = [p.task_id for p in order]
        if len(ids) != len(set(ids)) or set(ids) != set(by_id):
            raise ParseError(
                "priorityOrder is not a permutation of the input tasks",
                operation="prioritize",
                raw_excerpt=content,
            )

        insights = _as_dict(data["insights"])
        timeline = _as_dict(data["timeline"])
        risks = _as_dict(data["riskAssessment"])

        result = PrioritizationResult(
            priority_order=order,
            insights=PrioritizationInsights(
                productivity=_as_str(insights.get("productivity")),
                time_management=_as_str(insights.get("timeManagement")),
                workload_analysis=_as_str(insights.get("workloadAnalysis")),
                recommendations=_as_str_list(insights.get("recommendations")),
            ),
            timeline=Timeline(
                estimated_completion_days=int(
                    max(_as_float(timeline.get("estimatedCompletionDays"), 0), 0)
                ),
                critical_path=[
                    tid for tid in _as_str_list(timeline.get("criticalPath")) if tid in by_id
                ],
                suggested_schedule=_as_str(timeline.get("suggestedSchedule")),
            ),
            risk_assessment=RiskAssessment(
                overdue_tasks=[
                    tid for tid in _as_str_list(risks.get("overdueTasks")) if tid in by_id
                ],
                potential_bottlenecks=_as_str_list(risks.get("potentialBottlenecks")),
                urgent_actions=_as_str_list(risks.get("urgentActions")),
            ),
        )
        return ParsedResponse(operation=OperationType.PRIORITIZE, result=result)

    def _parse_suggestions(self, content: str) -> ParsedResponse:
        """Parse a suggest response."""
        data = self.parse_structured(OperationType.SUGGEST, content)
        raw = data["suggestions"]
        if not isinstance(raw, list):
            raise ParseError("suggestions is not a list", operation="suggest")

        validation_errors = []
        suggestions = []
        for index, item in enumerate(raw):
            item = _as_dict(item)
            title = _as_str(item.get("title"))
            if not title:
                validation_errors.append(f"Suggestion {index + 1} has no title")
                continue
            suggestions.append(
                TaskSuggestion(
                    title=title,
                    description=_as_str(item.get("description")),
                    priority=Priority.coerce(item.get("priority")),
                    estimated_hours=max(_as_float(item.get("estimatedHours"), 1.0), 0.0),
                    tags=_as_str_list(item.get("tags")),
                    reasoning=_as_str(item.get("reasoning")),
                )
            )

        if not suggestions:
            raise ParseError(
                "No usable suggestions in response",
                operation="suggest",
                raw_excerpt=content,
            )

        return ParsedResponse(
            operation=OperationType.SUGGEST,
            result=SuggestionResult(
                suggestions=suggestions,
                rationale=_as_str(data["rationale"]),
            ),
            validation_errors=validation_errors,
        )

    def _parse_insights(self, content: str) -> ParsedResponse:
        """Parse an insights response."""
        data = self.parse_structured(OperationType.INSIGHTS, content)

        score = _as_float(data["overallScore"], -1.0)
        if score < 0:
            raise ParseError(
                "overallScore is not a number",
                operation="insights",
                raw_excerpt=content,
            )

        recommendations = []
        raw_recs = data["recommendations"]
        for item in raw_recs if isinstance(raw_recs, list) else []:
            if isinstance(item, dict):
                suggestion = _as_str(item.get("suggestion"))
                if suggestion:
                    recommendations.append(
                        Recommendation(
                            category=_as_str(item.get("category"), "general") or "general",
                            suggestion=suggestion,
                            impact=_as_str(item.get("impact"), "medium").lower() or "medium",
                        )
                    )
            elif _as_str(item):
                recommendations.append(Recommendation(category="general", suggestion=_as_str(item)))

        patterns = _as_dict(data["patterns"])
        result = InsightResult(
            overall_score=min(score, 100.0),
            strengths=_as_str_list(data["strengths"]),
            areas_for_improvement=_as_str_list(data["areasForImprovement"]),
            recommendations=recommendations,
            patterns=ProductivityPatterns(
                completion_trends=_as_str(patterns.get("completionTrends")),
                procrastination_indicators=_as_str(patterns.get("procrastinationIndicators")),
                optimal_work_times=_as_str(patterns.get("optimalWorkTimes")),
            ),
            next_steps=_as_str_list(data["nextSteps"]),
        )
        return ParsedResponse(operation=OperationType.INSIGHTS, result=result)

    def _parse_optimization(self, content: str) -> ParsedResponse:
        """Parse an optimize response. Never raises."""
        validation_errors = []
        try:
            cleaned = strip_noise(content)
            sections = find_sections(cleaned)
        except Exception as e:
            logger.error(f"Failed to split optimize response: {e}")
            cleaned, sections = content or "", {}

        description = sections.get("description", "")
        definition_of_done = sections.get("definition_of_done", "")

        hours = extract_hours(sections.get("hours"))
        if hours is None:
            validation_errors.append("No estimated hours found")
            hours = DEFAULT_HOURS

        priority = extract_priority(sections.get("priority"))
        if priority is None:
            validation_errors.append("No priority found")
            priority = DEFAULT_PRIORITY

        tags = extract_tags(sections.get("tags"))
        if not tags:
            validation_errors.append("No tags found")

        if not description:
            validation_errors.append("No task description found")
        if not definition_of_done:
            validation_errors.append("No definition of done found")

        combined = compose_description(description, definition_of_done)
        if not sections and cleaned:
            # Unlabeled prose is still a usable description
            combined = cleaned

        result = OptimizationResult(
            optimized_title="",
            optimized_description=combined,
            definition_of_done=definition_of_done,
            suggested_tags=tags,
            estimated_hours=hours,
            priority=priority,
        )
        return ParsedResponse(
            operation=OperationType.OPTIMIZE,
            result=result,
            validation_errors=validation_errors,
        )

    def parse_optimization(self, content: Optional[str]) -> OptimizationResult:
        """Convenience wrapper returning only the OptimizationResult."""
        return self._parse_optimization(content or "").result
