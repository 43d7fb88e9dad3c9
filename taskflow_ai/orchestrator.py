"""
AI orchestration facade for TaskFlow AI.

The only entry point callers need. Every operation either returns a
model-backed result (``ai_powered=True`` plus a cost receipt) or the
structurally identical heuristic result (``ai_powered=False``). Provider
and parsing failures never reach the caller; only invalid input does,
and only before any network attempt.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from openai import AsyncOpenAI

from .core.config import Config
from .core.exceptions import ParseError, TaskFlowAIError, ValidationError
from .models.costs import build_receipt
from .models.parsers import ResponseParser
from .models.router import ModelRouter
from .models.templates import PromptTemplateManager
from .models.types import OperationType
from .planning.heuristics import FallbackHeuristicEngine
from .planning.models import (
    ProductivityStats,
    TaskSnapshot,
    validate_stats,
    validate_tasks,
    validate_unique_ids,
    validate_user_context,
)
from .planning.results import AIResult, ResultData

logger = logging.getLogger(__name__)

HISTORY_WINDOW_DAYS = 30
SCHEDULE_KIND = "schedule"


class AIOrchestrator:
    """
    Composes prompt building, the model fallback chain, response parsing
    and the heuristic engine behind four operations.

    State per call: Unconfigured -> Fallback, or Attempting -> Succeeded
    or Fallback. Exactly one terminal state is always reached.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[AsyncOpenAI] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            config: Configuration; read from the environment when omitted
            client: Pre-built AsyncOpenAI client, mainly for tests
            clock: Callable returning the current aware datetime

        Raises:
            ValidationError: If the configuration is invalid
        """
        self.config = config or Config.from_env()
        self.config.validate()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.router = ModelRouter(self.config, client=client)
        self.template_manager = PromptTemplateManager(clock=self._clock)
        self.response_parser = ResponseParser()
        self.heuristics = FallbackHeuristicEngine(clock=self._clock)

        logger.info(
            "AI orchestrator initialized",
            extra={"metadata": {"ai_available": self.ai_available}},
        )

    @property
    def ai_available(self) -> bool:
        """Whether the remote path can be used at all for this process."""
        return self.router.is_configured

    async def warm_up(self) -> None:
        """Fetch the model catalog ahead of the first request."""
        await self.router.ensure_model_catalog()

    async def aclose(self) -> None:
        await self.router.aclose()

    async def __aenter__(self) -> "AIOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def prioritize(
        self,
        tasks: Iterable[Any],
        user_context: Any = None,
        deadline: Optional[float] = None,
    ) -> AIResult:
        """
        Order tasks by importance.

        The returned priority order is always a permutation of the input
        task ids, whichever path produced it.

        Raises:
            ValidationError: If a task snapshot is malformed
        """
        snapshots = validate_tasks(tasks)
        validate_unique_ids(snapshots)
        context = validate_user_context(user_context)

        if not snapshots:
            return self._fallback(
                OperationType.PRIORITIZE,
                lambda: self.heuristics.prioritize([]),
                reason="no tasks",
            )

        return await self._execute(
            OperationType.PRIORITIZE,
            build_messages=lambda: self.template_manager.build_prioritize(snapshots, context),
            fallback=lambda: self.heuristics.prioritize(snapshots),
            tasks=snapshots,
            deadline=deadline,
        )

    async def suggest(
        self,
        user_context: Any = None,
        existing_tasks: Optional[Iterable[Any]] = None,
        deadline: Optional[float] = None,
    ) -> AIResult:
        """Suggest new tasks for the user."""
        context = validate_user_context(user_context)
        snapshots = validate_tasks(existing_tasks)

        return await self._execute(
            OperationType.SUGGEST,
            build_messages=lambda: self.template_manager.build_suggest(context, snapshots),
            fallback=self.heuristics.suggest,
            deadline=deadline,
        )

    async def analyze_insights(
        self,
        stats: Any = None,
        history: Optional[Iterable[Any]] = None,
        deadline: Optional[float] = None,
    ) -> AIResult:
        """
        Summarize productivity.

        Args:
            stats: Task counts; derived from ``history`` when omitted
            history: Task snapshots, only the last 30 days reach the prompt
        """
        snapshots = validate_tasks(history)
        if stats is None and snapshots:
            productivity = ProductivityStats.from_tasks(snapshots)
        else:
            productivity = validate_stats(stats)
        recent = self._recent(snapshots)

        return await self._execute(
            OperationType.INSIGHTS,
            build_messages=lambda: self.template_manager.build_insights(productivity, recent),
            fallback=lambda: self.heuristics.analyze(productivity),
            deadline=deadline,
        )

    async def optimize_description(
        self,
        title: str,
        description: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> AIResult:
        """
        Rewrite a task into description + definition of done.

        Raises:
            ValidationError: If the title is missing or blank
        """
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(
                "Task title is required",
                validation_type="input",
                violations=["title: must be a non-empty string"],
            )
        if description is not None and not isinstance(description, str):
            raise ValidationError(
                "Task description must be a string",
                validation_type="input",
                violations=["description: must be a string"],
            )
        title = title.strip()

        return await self._execute(
            OperationType.OPTIMIZE,
            build_messages=lambda: self.template_manager.build_optimize(title, description),
            fallback=lambda: self.heuristics.optimize(title, description),
            deadline=deadline,
        )

    async def smart_schedule(self, tasks: Iterable[Any]) -> AIResult:
        """Lay out open tasks in time slots. Always heuristic."""
        snapshots = validate_tasks(tasks)
        return AIResult(
            kind=SCHEDULE_KIND,
            data=self.heuristics.schedule(snapshots),
            ai_powered=False,
        )

    def _recent(self, tasks: List[TaskSnapshot]) -> List[TaskSnapshot]:
        cutoff = self._clock() - timedelta(days=HISTORY_WINDOW_DAYS)
        return [t for t in tasks if t.created_at is None or t.created_at >= cutoff]

    def _fallback(
        self,
        operation: OperationType,
        fallback: Callable[[], ResultData],
        reason: str,
    ) -> AIResult:
        logger.info(
            f"Using fallback {operation.value} ({reason})",
            extra={"metadata": {"operation": operation.value, "reason": reason}},
        )
        return AIResult(kind=operation.value, data=fallback(), ai_powered=False)

    async def _execute(
        self,
        operation: OperationType,
        build_messages: Callable[[], List[Dict[str, str]]],
        fallback: Callable[[], ResultData],
        tasks: Optional[List[TaskSnapshot]] = None,
        deadline: Optional[float] = None,
    ) -> AIResult:
        """Run prompt -> chain -> parse, degrading to the heuristic result."""
        if not self.router.is_configured:
            return self._fallback(operation, fallback, reason="OpenAI API not configured")

        start = time.monotonic()
        try:
            messages = build_messages()
            if deadline is not None:
                chain = await asyncio.wait_for(
                    self.router.route_task(operation, messages), timeout=deadline
                )
            else:
                chain = await self.router.route_task(operation, messages)

            if chain.cancelled:
                return self._fallback(operation, fallback, reason="cancelled")
            if chain.exhausted:
                return self._fallback(operation, fallback, reason="all models failed")

            response = chain.response
            parsed = self.response_parser.parse(operation, response.content, tasks)
            if parsed.validation_errors:
                logger.debug(
                    f"Parsed {operation.value} with defaults",
                    extra={"metadata": {"defaults": parsed.validation_errors}},
                )

        except ParseError as e:
            logger.warning(f"Could not parse {operation.value} response: {e}")
            return self._fallback(operation, fallback, reason="unparseable response")
        except asyncio.TimeoutError:
            logger.warning(f"{operation.value} exceeded deadline of {deadline}s")
            return self._fallback(operation, fallback, reason="deadline exceeded")
        except asyncio.CancelledError:
            return self._fallback(operation, fallback, reason="cancelled")
        except TaskFlowAIError as e:
            logger.warning(f"{operation.value} failed: {e}", extra={"metadata": e.to_dict()})
            return self._fallback(operation, fallback, reason=e.error_code or "error")
        except Exception as e:
            logger.exception(f"Unexpected failure during {operation.value}: {e}")
            return self._fallback(operation, fallback, reason="unexpected error")

        receipt = build_receipt(response.usage, response.model_name)
        logger.info(
            f"{operation.value} completed with {response.model_name} "
            f"in {time.monotonic() - start:.2f}s, cost ${receipt.cost:.6f}",
            extra={
                "metadata": {
                    "operation": operation.value,
                    "model_name": response.model_name,
                    "prompt_tokens": receipt.prompt_tokens,
                    "completion_tokens": receipt.completion_tokens,
                    "cost": receipt.cost,
                }
            },
        )
        return AIResult(
            kind=operation.value,
            data=parsed.result,
            ai_powered=True,
            cost=receipt,
            model_id=response.model_name,
        )
