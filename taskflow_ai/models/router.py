"""
Model router implementation with a cost-ordered fallback chain.

Routes each orchestrator operation to an ordered list of candidate models
(cheapest first) and walks that list until one candidate answers.
"""

import asyncio
import logging
import time
from typing import Dict, FrozenSet, List, Optional, Any
from datetime import datetime

import openai
from openai import AsyncOpenAI

from ..core.config import Config
from ..core.exceptions import (
    ModelInvocationError,
    ProviderUnavailableError,
    ValidationError,
)
from ..core.logging_config import log_model_call
from .types import (
    AttemptOutcome,
    ChainResult,
    ModelAttemptRecord,
    ModelConfig,
    ModelProvider,
    ModelResponse,
    ModelRoutingRule,
    OperationType,
    TokenUsage,
)

logger = logging.getLogger(__name__)

OPERATION_MAX_TOKENS = {
    OperationType.PRIORITIZE: 1500,
    OperationType.SUGGEST: 1000,
    OperationType.INSIGHTS: 1200,
    OperationType.OPTIMIZE: 1000,
}

CATALOG_TIMEOUT = 10.0


class ModelRouter:
    """
    Routes operations through an ordered chain of OpenAI models.

    Each candidate is awaited to completion under its own timeout before the
    next one is tried. A failed candidate is recorded, never raised. The
    model catalog is fetched at most once and only used to skip candidates
    the account is known not to have.
    """

    def __init__(self, config: Config, client: Optional[AsyncOpenAI] = None):
        """Initialize the model router with configuration."""
        self.config = config
        self.openai_client: Optional[AsyncOpenAI] = None
        self.routing_rules: List[ModelRoutingRule] = []
        self._catalog: Optional[FrozenSet[str]] = None
        self._catalog_lock = asyncio.Lock()
        self._setup_client(client)
        self._setup_routing_rules()

    def _setup_client(self, client: Optional[AsyncOpenAI]) -> None:
        """Set up the API client, or leave it unset when no key is configured."""
        if not self.config.is_provider_configured:
            logger.warning(
                "OpenAI API key not configured, AI features will use fallback methods"
            )
            return

        if client is not None:
            self.openai_client = client
        else:
            kwargs: Dict[str, Any] = {"api_key": self.config.openai_api_key, "max_retries": 0}
            if self.config.openai_base_url:
                kwargs["base_url"] = self.config.openai_base_url
            self.openai_client = AsyncOpenAI(**kwargs)
        logger.info("OpenAI client initialized successfully")

    def _setup_routing_rules(self) -> None:
        """One rule per operation, candidates in configured cost order."""
        self.routing_rules = [
            ModelRoutingRule(
                operations=[operation],
                candidates=[
                    ModelConfig(
                        model_name=model_name,
                        max_tokens=max_tokens,
                        temperature=self.config.temperature,
                        timeout=self.config.model_timeout,
                    )
                    for model_name in self.config.candidate_models
                ],
            )
            for operation, max_tokens in OPERATION_MAX_TOKENS.items()
        ]
        logger.info(
            f"Model routing configured with {len(self.routing_rules)} rules",
            extra={"metadata": {"candidates": self.config.candidate_models}},
        )

    @property
    def is_configured(self) -> bool:
        """True when a client exists and the chain may be used."""
        return self.openai_client is not None

    @property
    def model_catalog(self) -> Optional[FrozenSet[str]]:
        """Model ids known to be available, None until fetched."""
        return self._catalog

    def _find_routing_rule(self, operation: OperationType) -> Optional[ModelRoutingRule]:
        """Find the routing rule for a given operation."""
        for rule in self.routing_rules:
            if rule.matches_operation(operation):
                return rule
        return None

    def get_candidates(self, operation: OperationType) -> List[str]:
        """Ordered candidate model ids for an operation."""
        rule = self._find_routing_rule(operation)
        return [c.model_name for c in rule.candidates] if rule else []

    async def ensure_model_catalog(self) -> FrozenSet[str]:
        """
        Fetch the model catalog once.

        A failed fetch stores an empty catalog, which means "unknown" and
        lets every candidate be attempted.
        """
        if self._catalog is not None:
            return self._catalog
        if not self.is_configured or not self.config.check_model_catalog:
            return frozenset()

        async with self._catalog_lock:
            if self._catalog is None:
                try:
                    page = await asyncio.wait_for(
                        self.openai_client.models.list(), timeout=CATALOG_TIMEOUT
                    )
                    catalog = frozenset(model.id for model in page.data)
                    logger.info(
                        f"Model catalog loaded with {len(catalog)} models",
                        extra={"metadata": {"sample": sorted(catalog)[:5]}},
                    )
                except (asyncio.TimeoutError, openai.OpenAIError, AttributeError, TypeError) as e:
                    logger.warning(f"Could not check available models: {e}")
                    catalog = frozenset()
                self._catalog = catalog
        return self._catalog

    async def _call_openai_model(
        self,
        config: ModelConfig,
        messages: List[Dict[str, str]],
        operation: OperationType,
    ) -> ModelResponse:
        """Call an OpenAI chat model with the given configuration."""
        try:
            response = await self.openai_client.chat.completions.create(
                model=config.model_name,
                messages=messages,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            )
        except openai.OpenAIError as e:
            raise ModelInvocationError(
                f"OpenAI model call failed: {e}",
                model_name=config.model_name,
                operation=operation.value,
            ) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ModelInvocationError(
                f"Malformed completion from {config.model_name}: {e}",
                model_name=config.model_name,
                operation=operation.value,
            ) from e

        if not content:
            raise ModelInvocationError(
                f"Empty completion from {config.model_name}",
                model_name=config.model_name,
                operation=operation.value,
            )

        return ModelResponse(
            content=content,
            provider=config.provider,
            model_name=getattr(response, "model", None) or config.model_name,
            operation=operation,
            timestamp=datetime.now(),
            usage=TokenUsage.from_provider(getattr(response, "usage", None)),
            metadata={"requested_model": config.model_name},
        )

    async def _call_model_with_config(
        self,
        config: ModelConfig,
        messages: List[Dict[str, str]],
        operation: OperationType,
    ) -> ModelResponse:
        """Call a model with the given configuration."""
        if config.provider == ModelProvider.OPENAI:
            return await self._call_openai_model(config, messages, operation)
        raise ModelInvocationError(
            f"Unsupported model provider: {config.provider}",
            model_name=config.model_name,
            operation=operation.value,
        )

    async def _attempt(
        self,
        config: ModelConfig,
        messages: List[Dict[str, str]],
        operation: OperationType,
    ) -> AttemptOutcome:
        """Run one candidate under its timeout and report the outcome as a value."""
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._call_model_with_config(config, messages, operation),
                timeout=config.timeout,
            )
        except asyncio.TimeoutError:
            error = f"Timed out after {config.timeout}s"
        except ModelInvocationError as e:
            error = e.message
        except Exception as e:
            logger.exception(f"Unexpected error from {config.model_name}: {e}")
            error = f"{type(e).__name__}: {e}"
        else:
            return AttemptOutcome(
                record=ModelAttemptRecord(
                    model_name=config.model_name,
                    succeeded=True,
                    duration=time.monotonic() - start,
                ),
                response=response,
            )

        return AttemptOutcome(
            record=ModelAttemptRecord(
                model_name=config.model_name,
                succeeded=False,
                error=error,
                duration=time.monotonic() - start,
            )
        )

    async def route_task(
        self,
        operation: OperationType,
        messages: List[Dict[str, str]],
    ) -> ChainResult:
        """
        Walk the candidate chain for an operation.

        Args:
            operation: The operation being routed
            messages: List of messages in OpenAI format

        Returns:
            ChainResult holding the first successful response, or no
            response when every candidate failed or was skipped

        Raises:
            ProviderUnavailableError: If no credential is configured
            ValidationError: If messages are empty
        """
        if not self.is_configured:
            raise ProviderUnavailableError("OpenAI API not configured", provider="openai")
        if not messages:
            raise ValidationError("Messages cannot be empty", validation_type="input")

        rule = self._find_routing_rule(operation)
        result = ChainResult(operation=operation)
        if not rule:
            logger.error(f"No routing rule found for operation: {operation}")
            return result

        try:
            catalog = await self.ensure_model_catalog()

            for candidate in rule.candidates:
                if catalog and candidate.model_name not in catalog:
                    logger.info(f"Skipping {candidate.model_name}, not in model catalog")
                    result.attempts.append(
                        ModelAttemptRecord(
                            model_name=candidate.model_name,
                            succeeded=False,
                            skipped=True,
                            error="not in model catalog",
                        )
                    )
                    continue

                logger.debug(f"Trying model {candidate.model_name} for {operation.value}")
                outcome = await self._attempt(candidate, messages, operation)
                result.attempts.append(outcome.record)
                log_model_call(
                    logger,
                    candidate.model_name,
                    operation.value,
                    outcome.record.duration,
                    outcome.ok,
                    error=outcome.record.error,
                )

                if outcome.ok:
                    result.response = outcome.response
                    logger.info(
                        f"Completed {operation.value} with {outcome.response.model_name}"
                    )
                    return result

        except asyncio.CancelledError:
            logger.warning(f"{operation.value} cancelled, abandoning remaining candidates")
            result.cancelled = True
            return result

        logger.warning(
            f"All models failed for {operation.value}",
            extra={"metadata": {"attempts": result.summary()}},
        )
        return result

    async def aclose(self) -> None:
        """Release the underlying HTTP client."""
        if self.openai_client is not None:
            await self.openai_client.close()

    def get_routing_info(self) -> Dict[str, Any]:
        """Get information about current routing configuration."""
        return {
            "provider_configured": self.is_configured,
            "catalog_loaded": self._catalog is not None,
            "routing_rules": [
                {
                    "operations": [o.value for o in rule.operations],
                    "candidates": [c.model_name for c in rule.candidates],
                    "max_tokens": rule.candidates[0].max_tokens if rule.candidates else None,
                }
                for rule in self.routing_rules
            ],
        }
