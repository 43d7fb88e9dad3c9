"""
Tests for prompt templates and the template manager.
"""

import json

import pytest

from taskflow_ai.models.templates import (
    MAX_EXISTING_TASKS,
    OPTIMIZE_LABELS,
    PromptTemplate,
    PromptTemplateManager,
)
from taskflow_ai.models.types import OperationType
from taskflow_ai.planning.models import ProductivityStats, TaskSnapshot, UserContext

from conftest import FIXED_NOW


@pytest.fixture
def manager(fixed_clock):
    return PromptTemplateManager(clock=fixed_clock)


class TestPromptTemplate:
    def test_format_returns_system_and_user_messages(self):
        template = PromptTemplate(
            operation=OperationType.SUGGEST,
            system_prompt="sys",
            user_template="Hello {name}",
            context_keys=["name"],
        )

        messages = template.format({"name": "Ada"})

        assert messages == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "Hello Ada"},
        ]

    def test_missing_context_keys(self):
        template = PromptTemplate(
            operation=OperationType.SUGGEST,
            system_prompt="sys",
            user_template="Hello {name}",
            context_keys=["name"],
        )

        with pytest.raises(KeyError):
            template.format({})


class TestPromptTemplateManager:
    def test_every_operation_has_a_template(self, manager):
        for operation in OperationType:
            assert manager.get_template(operation) is not None

    def test_system_prompts_forbid_markdown(self, manager):
        for operation in OperationType:
            assert "NO markdown" in manager.get_template(operation).system_prompt

    def test_build_prioritize_embeds_tasks_and_time(self, manager, sample_tasks):
        messages = manager.build_prioritize(sample_tasks, UserContext(preferences={"focus": "am"}))
        user = messages[1]["content"]

        assert FIXED_NOW.isoformat() in user
        assert "Total tasks: 3" in user
        assert '"id": "t-critical"' in user
        assert '"project": "No Project"' in user
        assert '"priorityOrder"' in user
        assert '"riskAssessment"' in user
        assert '{"focus": "am"}' in user

    def test_build_suggest_caps_existing_tasks(self, manager):
        tasks = [TaskSnapshot(id=str(i), title=f"Task {i}") for i in range(15)]

        user = manager.build_suggest(UserContext(industry="retail"), tasks)[1]["content"]

        assert "- Task 0: No description" in user
        assert f"- Task {MAX_EXISTING_TASKS - 1}:" in user
        assert f"- Task {MAX_EXISTING_TASKS}:" not in user
        assert '"industry": "retail"' in user
        assert '"suggestions"' in user

    def test_build_suggest_without_tasks(self, manager):
        user = manager.build_suggest(UserContext(), [])[1]["content"]

        assert "- None yet" in user

    def test_build_insights(self, manager):
        stats = ProductivityStats(total=10, completed=7, in_progress=2, pending=1)
        history = [TaskSnapshot(id="1", title="Ship it", status="completed", created_at=FIXED_NOW)]

        user = manager.build_insights(stats, history)[1]["content"]

        assert "Productivity rate: 70%" in user
        assert "- Ship it (completed) - Created: 2024-06-03" in user
        assert '"overallScore"' in user

    def test_build_optimize_labels_in_order(self, manager):
        user = manager.build_optimize("Fix login crash", "Users see a 500")[1]["content"]

        positions = [user.index(label) for label in OPTIMIZE_LABELS]
        assert positions == sorted(positions)
        assert 'TASK TITLE: "Fix login crash"' in user
        assert 'CURRENT DESCRIPTION: "Users see a 500"' in user

    def test_build_optimize_without_description(self, manager):
        user = manager.build_optimize("Write docs")[1]["content"]

        assert "CURRENT DESCRIPTION" not in user

    def test_skeletons_are_literal_json_braces(self, manager, sample_tasks):
        user = manager.build_prioritize(sample_tasks, None)[1]["content"]

        assert "{{" not in user
        assert '"priorityOrder": [' in user
        tasks_json = user.split("Tasks to analyze:\n", 1)[1].split("\n\nPlease provide", 1)[0]
        assert [t["id"] for t in json.loads(tasks_json)] == ["t-low", "t-critical", "t-medium"]

    def test_build_dispatch(self, manager):
        messages = manager.build(OperationType.OPTIMIZE, title="Plan sprint")

        assert "Plan sprint" in messages[1]["content"]
