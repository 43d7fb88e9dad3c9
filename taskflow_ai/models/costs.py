"""
Cost accounting for model invocations.

Rates are USD per 1K tokens and are kept as a static table; unknown model
ids are billed at the cheapest known rate.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..planning.results import CostReceipt
from .types import TokenUsage


@dataclass(frozen=True)
class ModelRate:
    """Input/output price per 1K tokens."""

    input: float
    output: float


RATE_TABLE: Dict[str, ModelRate] = {
    "gpt-4o-mini": ModelRate(input=0.00015, output=0.0006),
    "gpt-3.5-turbo": ModelRate(input=0.0015, output=0.002),
    "gpt-3.5-turbo-16k": ModelRate(input=0.003, output=0.004),
    "gpt-4o": ModelRate(input=0.0025, output=0.01),
    "gpt-4-turbo": ModelRate(input=0.01, output=0.03),
    "gpt-4": ModelRate(input=0.03, output=0.06),
}

CHEAPEST_MODEL = min(RATE_TABLE, key=lambda name: RATE_TABLE[name].input + RATE_TABLE[name].output)


def resolve_rate(model_id: Optional[str]) -> ModelRate:
    """
    Look up the rate for a model id.

    Providers report dated snapshot ids (``gpt-4o-mini-2024-07-18``), so the
    longest table key that prefixes the id wins.
    """
    if model_id:
        name = model_id.strip().lower()
        if name in RATE_TABLE:
            return RATE_TABLE[name]
        matches = [key for key in RATE_TABLE if name.startswith(key + "-")]
        if matches:
            return RATE_TABLE[max(matches, key=len)]
    return RATE_TABLE[CHEAPEST_MODEL]


def calculate_cost(usage: TokenUsage, model_id: Optional[str]) -> float:
    """cost = prompt/1000 * input rate + completion/1000 * output rate."""
    rate = resolve_rate(model_id)
    prompt = max(usage.prompt_tokens, 0)
    completion = max(usage.completion_tokens, 0)
    return (prompt / 1000) * rate.input + (completion / 1000) * rate.output


def build_receipt(usage: TokenUsage, model_id: str) -> CostReceipt:
    return CostReceipt(
        prompt_tokens=max(usage.prompt_tokens, 0),
        completion_tokens=max(usage.completion_tokens, 0),
        model_id=model_id,
        cost=calculate_cost(usage, model_id),
    )
