"""
TaskFlow AI - task intelligence for a task tracker

Prioritizes tasks, suggests new ones, summarizes productivity and rewrites
task descriptions through OpenAI models, falling back to deterministic
heuristics whenever the provider is unavailable.
"""

__version__ = "0.1.0"
__author__ = "TaskFlow Team"

from .core.config import Config
from .core.exceptions import TaskFlowAIError, ValidationError
from .core.logging_config import setup_logging
from .orchestrator import AIOrchestrator

__all__ = [
    "Config",
    "TaskFlowAIError",
    "ValidationError",
    "setup_logging",
    "AIOrchestrator",
]
