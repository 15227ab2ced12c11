"""Cost estimation for backend operations."""

from typing import Any

from ..domain import CostBreakdownItem, CostEstimate

# USD per 1K tokens (input, output) for models the backend exposes
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "@cf/meta/llama-3-8b-instruct": (0.00028, 0.00083),
    "@cf/meta/llama-3.1-8b-instruct": (0.00028, 0.00083),
    "@cf/meta/m2m100-1.2b": (0.00034, 0.00034),
}

# Flat per-operation estimates
STORE_COST = 0.0001
SEARCH_COST = 0.0001
RERANK_COST = 0.0002
GENERATE_COST = 0.001


def estimate_generation_cost(
    model: str,
    backend_data: dict[str, Any],
    fallback: float = GENERATE_COST,
) -> float:
    """Estimate what one generation call cost.

    Prefers the backend's own figure, then token usage priced with
    ``MODEL_PRICING``, then the flat ``fallback``.
    """
    reported = backend_data.get("estimatedCost")
    if isinstance(reported, int | float) and not isinstance(reported, bool) and reported >= 0:
        return float(reported)

    usage = backend_data.get("usage") or backend_data.get("generationMetadata")
    if not isinstance(usage, dict):
        return fallback
    prompt_tokens = usage.get("promptTokens", usage.get("prompt_tokens"))
    completion_tokens = usage.get("completionTokens", usage.get("completion_tokens"))
    pricing = MODEL_PRICING.get(model)
    if pricing and isinstance(prompt_tokens, int) and isinstance(completion_tokens, int):
        input_price, output_price = pricing
        return (prompt_tokens * input_price + completion_tokens * output_price) / 1000

    return fallback


def estimate_costs(operations: list[dict[str, Any]]) -> CostEstimate:
    """Estimate a batch of planned operations.

    Args:
        operations: Items like ``{"type": "search", "useReranking": True}``.
            Types are ``store``, ``search`` and ``generate``; anything else
            costs nothing.

    Returns:
        CostEstimate with the total and a per-operation breakdown.
    """
    breakdown = []
    for op in operations:
        op_type = op.get("type", "")
        use_reranking = bool(op.get("useReranking", op.get("use_reranking", False)))
        if op_type == "store":
            cost = STORE_COST
        elif op_type == "search":
            cost = SEARCH_COST + (RERANK_COST if use_reranking else 0.0)
        elif op_type == "generate":
            cost = GENERATE_COST
        else:
            cost = 0.0
        breakdown.append(
            CostBreakdownItem(operation=op_type, estimated_cost=cost, use_reranking=use_reranking)
        )

    return CostEstimate(
        total_estimated_cost=sum(item.estimated_cost for item in breakdown),
        breakdown=breakdown,
    )
