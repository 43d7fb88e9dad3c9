"""
Prompt templates for the orchestrator operations.

Each template fixes the output format the ResponseParser relies on: a JSON
object with an exact key set for prioritize/suggest/insights, and five
literal section labels for optimize.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from enum import Enum
from dataclasses import dataclass

from .types import OperationType


class PromptRole(Enum):
    """Roles for prompt messages."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


PLAIN_TEXT_RULES = (
    "You MUST respond with clean, plain text in the exact format requested. "
    "NO markdown formatting, NO bold text, NO special characters. "
    "Use simple, readable text only."
)

# Section labels of the optimize format, in output order
TASK_DESCRIPTION_LABEL = "TASK DESCRIPTION:"
DEFINITION_OF_DONE_LABEL = "DEFINITION OF DONE:"
ESTIMATED_HOURS_LABEL = "Estimated Hours:"
PRIORITY_LABEL = "Priority:"
SUGGESTED_TAGS_LABEL = "Suggested Tags:"

OPTIMIZE_LABELS = [
    TASK_DESCRIPTION_LABEL,
    DEFINITION_OF_DONE_LABEL,
    ESTIMATED_HOURS_LABEL,
    PRIORITY_LABEL,
    SUGGESTED_TAGS_LABEL,
]

MAX_EXISTING_TASKS = 10
MAX_HISTORY_ENTRIES = 20


@dataclass
class PromptTemplate:
    """Template for generating prompts for one operation."""

    operation: OperationType
    system_prompt: str
    user_template: str
    context_keys: List[str]

    def format(self, context: Dict[str, Any]) -> List[Dict[str, str]]:
        """
        Format the template with provided context.

        Args:
            context: Dictionary containing values for template variables

        Returns:
            List of messages in OpenAI format

        Raises:
            KeyError: If required context keys are missing
        """
        missing_keys = [key for key in self.context_keys if key not in context]
        if missing_keys:
            raise KeyError(f"Missing required context keys: {missing_keys}")

        user_message = self.user_template.format(**context)

        return [
            {"role": PromptRole.SYSTEM.value, "content": self.system_prompt},
            {"role": PromptRole.USER.value, "content": user_message},
        ]


PRIORITIZE_SKELETON = """{{
  "priorityOrder": [
    {{
      "taskId": "taskId1",
      "title": "Task Title",
      "project": "Project Name",
      "priority": "low|medium|high|urgent|critical",
      "reason": "Why this task is prioritized first"
    }}
  ],
  "insights": {{
    "productivity": "...",
    "timeManagement": "...",
    "workloadAnalysis": "...",
    "recommendations": ["...", "..."]
  }},
  "timeline": {{
    "estimatedCompletionDays": number,
    "criticalPath": ["taskId1", "taskId2"],
    "suggestedSchedule": "..."
  }},
  "riskAssessment": {{
    "overdueTasks": ["taskId1"],
    "potentialBottlenecks": ["..."],
    "urgentActions": ["..."]
  }}
}}"""

SUGGEST_SKELETON = """{{
  "suggestions": [
    {{
      "title": "Task title",
      "description": "Detailed description",
      "priority": "high|medium|low",
      "estimatedHours": number,
      "tags": ["tag1", "tag2"],
      "reasoning": "Why this task is important"
    }}
  ],
  "rationale": "Overall explanation of the suggestions"
}}"""

INSIGHTS_SKELETON = """{{
  "overallScore": number (1-100),
  "strengths": ["strength1", "strength2"],
  "areasForImprovement": ["area1", "area2"],
  "recommendations": [
    {{
      "category": "time_management|focus|organization|workflow",
      "suggestion": "Specific actionable advice",
      "impact": "high|medium|low"
    }}
  ],
  "patterns": {{
    "completionTrends": "...",
    "procrastinationIndicators": "...",
    "optimalWorkTimes": "..."
  }},
  "nextSteps": ["step1", "step2", "step3"]
}}"""


class PromptTemplateManager:
    """Manages prompt templates for the orchestrator operations."""

    def __init__(self, clock=None):
        """Initialize with default templates."""
        self.templates: Dict[OperationType, PromptTemplate] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._setup_default_templates()

    def _setup_default_templates(self) -> None:
        """Set up default prompt templates for all operations."""

        self.templates[OperationType.PRIORITIZE] = PromptTemplate(
            operation=OperationType.PRIORITIZE,
            system_prompt=(
                "You are an expert AI productivity assistant specializing in task "
                "management and workflow optimization. " + PLAIN_TEXT_RULES
            ),
            user_template="""As an AI productivity assistant, analyze these tasks and provide intelligent prioritization and insights:

User Context:
- Current time: {current_time}
- Total tasks: {task_count}
- User preferences: {preferences}

Tasks to analyze:
{tasks_json}

Please provide:
1. Recommended priority order with task titles and project context
2. Productivity insights and recommendations
3. Time management suggestions
4. Potential task dependencies or conflicts
5. Estimated completion timeline

Every task id above must appear exactly once in priorityOrder. Do not invent ids.

Respond with a single JSON object with exactly these keys:
""" + PRIORITIZE_SKELETON,
            context_keys=["current_time", "task_count", "preferences", "tasks_json"],
        )

        self.templates[OperationType.SUGGEST] = PromptTemplate(
            operation=OperationType.SUGGEST,
            system_prompt=(
                "You are a productivity expert AI that suggests meaningful, actionable "
                "tasks to help users achieve their goals. " + PLAIN_TEXT_RULES
            ),
            user_template="""Based on the user's current tasks and context, suggest 3-5 new tasks that would improve their productivity and help them achieve their goals.

User Context:
{user_context}

Existing Tasks:
{existing_tasks}

Generate helpful task suggestions as a single JSON object with exactly these keys:
""" + SUGGEST_SKELETON,
            context_keys=["user_context", "existing_tasks"],
        )

        self.templates[OperationType.INSIGHTS] = PromptTemplate(
            operation=OperationType.INSIGHTS,
            system_prompt="You are a productivity analysis expert. " + PLAIN_TEXT_RULES,
            user_template="""Analyze this user's productivity data and provide actionable insights:

Current Stats:
- Total tasks: {total}
- Completed: {completed}
- In Progress: {in_progress}
- Pending: {pending}
- Productivity rate: {productivity}%

Recent Task History (last 30 days):
{history}

Provide the productivity analysis as a single JSON object with exactly these keys:
""" + INSIGHTS_SKELETON,
            context_keys=["total", "completed", "in_progress", "pending", "productivity", "history"],
        )

        self.templates[OperationType.OPTIMIZE] = PromptTemplate(
            operation=OperationType.OPTIMIZE,
            system_prompt="You are an expert project manager. " + PLAIN_TEXT_RULES,
            user_template="""You are an expert project manager. Create a comprehensive task description and definition of done for this task:

TASK TITLE: "{title}"
{current_description}
IMPORTANT: Respond in this EXACT format with NO markdown formatting (no **, no bold, no special characters):

""" + TASK_DESCRIPTION_LABEL + """
[Write a detailed, clear description of what this task involves, what needs to be accomplished, and the expected outcomes. Make it comprehensive and actionable, similar to how you would explain it to a developer. Use plain text only.]

""" + DEFINITION_OF_DONE_LABEL + """
[Write clear, measurable criteria that define when this task is considered complete. Include what deliverables are expected, quality standards, and how to verify completion. Use plain text with simple formatting like bullet points or numbered lists.]

""" + ESTIMATED_HOURS_LABEL + """ [Number between 1-8]
""" + PRIORITY_LABEL + """ [low/medium/high/urgent/critical]
""" + SUGGESTED_TAGS_LABEL + """ [tag1, tag2, tag3]

Rules:
- NO markdown formatting (no **, no bold, no special characters)
- Use plain text only
- Start with "TASK DESCRIPTION:" on its own line
- Then "DEFINITION OF DONE:" on its own line
- Keep the format clean and readable""",
            context_keys=["title", "current_description"],
        )

    def get_template(self, operation: OperationType) -> Optional[PromptTemplate]:
        """Get template for a specific operation."""
        return self.templates.get(operation)

    def format_prompt(
        self, operation: OperationType, context: Dict[str, Any]
    ) -> List[Dict[str, str]]:
        """Format the prompt for an operation from a prepared context dict."""
        template = self.get_template(operation)
        if not template:
            raise ValueError(f"No template found for operation: {operation}")
        return template.format(context)

    def build_prioritize(self, tasks, user_context) -> List[Dict[str, str]]:
        preferences = user_context.preferences if user_context is not None else {}
        return self.format_prompt(
            OperationType.PRIORITIZE,
            {
                "current_time": self._clock().isoformat(),
                "task_count": len(tasks),
                "preferences": json.dumps(preferences, default=str, sort_keys=True),
                "tasks_json": json.dumps([t.to_summary() for t in tasks], indent=2),
            },
        )

    def build_suggest(self, user_context, existing_tasks) -> List[Dict[str, str]]:
        lines = [
            f"- {t.title}: {t.description or 'No description'}"
            for t in existing_tasks[:MAX_EXISTING_TASKS]
        ]
        return self.format_prompt(
            OperationType.SUGGEST,
            {
                "user_context": json.dumps(
                    user_context.to_prompt_dict(), indent=2, default=str
                ),
                "existing_tasks": "\n".join(lines) if lines else "- None yet",
            },
        )

    def build_insights(self, stats, history) -> List[Dict[str, str]]:
        lines = []
        for t in history[:MAX_HISTORY_ENTRIES]:
            created = t.created_at.isoformat() if t.created_at else "unknown"
            lines.append(f"- {t.title} ({t.status.value}) - Created: {created}")
        return self.format_prompt(
            OperationType.INSIGHTS,
            {
                "total": stats.total,
                "completed": stats.completed,
                "in_progress": stats.in_progress,
                "pending": stats.pending,
                "productivity": stats.productivity,
                "history": "\n".join(lines) if lines else "- No recent tasks",
            },
        )

    def build_optimize(self, title: str, description: Optional[str] = None) -> List[Dict[str, str]]:
        current = f'CURRENT DESCRIPTION: "{description.strip()}"\n' if description and description.strip() else ""
        return self.format_prompt(
            OperationType.OPTIMIZE,
            {"title": title, "current_description": current},
        )

    def build(self, operation: OperationType, **data) -> List[Dict[str, str]]:
        """Dispatch to the builder for ``operation``."""
        builders = {
            OperationType.PRIORITIZE: lambda: self.build_prioritize(
                data["tasks"], data.get("user_context")
            ),
            OperationType.SUGGEST: lambda: self.build_suggest(
                data["user_context"], data.get("existing_tasks", [])
            ),
            OperationType.INSIGHTS: lambda: self.build_insights(
                data["stats"], data.get("history", [])
            ),
            OperationType.OPTIMIZE: lambda: self.build_optimize(
                data["title"], data.get("description")
            ),
        }
        return builders[operation]()
