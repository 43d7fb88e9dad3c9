"""
Pytest configuration and shared fixtures for TaskFlow AI tests.

Provides a clean environment, a fixed clock, sample task snapshots and a
mock AsyncOpenAI client for all test modules.
"""

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskflow_ai.core.config import Config
from taskflow_ai.planning.models import TaskSnapshot


FIXED_NOW = datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)

ENV_VARS = [
    "CI",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "TASKFLOW_AI_LOG_LEVEL",
    "TASKFLOW_AI_LOG_FORMAT",
    "TASKFLOW_AI_PRIMARY_MODEL",
    "TASKFLOW_AI_FALLBACK_MODEL",
    "TASKFLOW_AI_MODEL_TIMEOUT",
    "TASKFLOW_AI_CHECK_MODELS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real credentials and CI flags from leaking into tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def configured_config():
    """Configuration with a usable key and the catalog check disabled."""
    return Config(
        openai_api_key="sk-test-key",
        check_model_catalog=False,
        model_timeout=1.0,
    )


@pytest.fixture
def unconfigured_config():
    return Config(openai_api_key="")


def make_completion(content, model="gpt-4o-mini", prompt_tokens=1000, completion_tokens=1000):
    """Build an object shaped like an openai ChatCompletion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens, completion_tokens=completion_tokens
        ),
        model=model,
    )


def make_catalog(*model_ids):
    return SimpleNamespace(data=[SimpleNamespace(id=model_id) for model_id in model_ids])


@pytest.fixture
def mock_openai_client():
    """Mock AsyncOpenAI client answering every call with a plain completion."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_completion("ok"))
    client.models.list = AsyncMock(return_value=make_catalog("gpt-4o-mini", "gpt-3.5-turbo"))
    client.close = AsyncMock()
    return client


@pytest.fixture
def sample_tasks():
    """Three open tasks with mixed priorities and due dates."""
    return [
        TaskSnapshot(
            id="t-low",
            title="Update README",
            priority="low",
            due_date=datetime(2024, 6, 10, tzinfo=timezone.utc),
            estimated_hours=1,
            project="Docs",
        ),
        TaskSnapshot(
            id="t-critical",
            title="Fix login crash",
            priority="critical",
            due_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
            estimated_hours=6,
            project="Auth",
        ),
        TaskSnapshot(
            id="t-medium",
            title="Build export page",
            priority="medium",
            estimated_hours=4,
        ),
    ]


def prioritize_payload(task_ids, **overrides):
    """JSON body a model would return for a prioritize call."""
    payload = {
        "priorityOrder": [
            {"taskId": tid, "priority": "high", "reason": f"Reason for {tid}"}
            for tid in task_ids
        ],
        "insights": {
            "productivity": "Steady",
            "timeManagement": "Batch small tasks",
            "workloadAnalysis": "Manageable",
            "recommendations": ["Start early"],
        },
        "timeline": {
            "estimatedCompletionDays": 2,
            "criticalPath": list(task_ids[:1]),
            "suggestedSchedule": "Mornings for deep work",
        },
        "riskAssessment": {
            "overdueTasks": [],
            "potentialBottlenecks": [],
            "urgentActions": [],
        },
    }
    payload.update(overrides)
    return json.dumps(payload)


OPTIMIZE_RESPONSE = """TASK DESCRIPTION:
Investigate the crash reported on the login form and patch the session handling.

DEFINITION OF DONE:
- Crash no longer reproduces
- Regression test added

Estimated Hours: 3
Priority: high
Suggested Tags: [auth, bug-fix, login]
"""


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
