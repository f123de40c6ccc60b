# src/tracking/cost_calculator.py — v2
"""Cost estimation from node results.

Token cost by model, plus a flat price per generated image or video.
Unknown models fall back to a generic token rate and media price.
"""

from __future__ import annotations

from typing import Any, Iterable

from recipeflow.tracking.models import CostEstimate, ModelPricing, NodeResult

# Default pricing per 1M tokens / per asset
DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude-sonnet-4-5": ModelPricing(
        model="claude-sonnet-4-5", input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-haiku-4-5": ModelPricing(
        model="claude-haiku-4-5", input_price_per_1m=1.0, output_price_per_1m=5.0,
    ),
    "gpt-4o": ModelPricing(model="gpt-4o", input_price_per_1m=2.50, output_price_per_1m=10.0),
    "gpt-4o-mini": ModelPricing(
        model="gpt-4o-mini", input_price_per_1m=0.15, output_price_per_1m=0.60,
    ),
    "dall-e-3": ModelPricing(model="dall-e-3", per_image=0.04),
    "gpt-image-1": ModelPricing(
        model="gpt-image-1", input_price_per_1m=5.0, output_price_per_1m=40.0,
    ),
    "sora-2": ModelPricing(model="sora-2", per_video=0.40),
    "gemini-2.0-flash": ModelPricing(
        model="gemini-2.0-flash", input_price_per_1m=0.10, output_price_per_1m=0.40,
    ),
    "gemini-2.5-flash-image": ModelPricing(model="gemini-2.5-flash-image", per_image=0.039),
    "echo": ModelPricing(model="echo"),
}

FALLBACK_PRICING = ModelPricing(
    model="*", input_price_per_1m=0.075, output_price_per_1m=0.075,
    per_image=0.04, per_video=0.40,
)


def count_media(output: Any) -> tuple[int, int]:
    """Count (images, videos) among media artifacts in a node output."""
    images = videos = 0
    stack = [output]
    while stack:
        value = stack.pop()
        if isinstance(value, list):
            stack.extend(value)
        elif isinstance(value, dict):
            media_type = value.get("media_type") or value.get("mediaType")
            if isinstance(media_type, str):
                if media_type.startswith("image/"):
                    images += 1
                elif media_type.startswith("video/"):
                    videos += 1
    return images, videos


def compute_node_cost(
    result: NodeResult, pricing: dict[str, ModelPricing] | None = None
) -> float:
    """Estimated USD cost of one node result."""
    if result.model is None:
        return 0.0
    pricing = pricing or DEFAULT_PRICING
    p = pricing.get(result.model, FALLBACK_PRICING)
    usage = result.token_usage
    cost = (usage.input_tokens * p.input_price_per_1m / 1_000_000
            + usage.output_tokens * p.output_price_per_1m / 1_000_000)
    if result.status == "completed":
        images, videos = count_media(result.output)
        cost += images * p.per_image + videos * p.per_video
    return cost


def estimate_cost(
    results: Iterable[NodeResult], pricing: dict[str, ModelPricing] | None = None
) -> CostEstimate:
    """Total estimated cost across node results."""
    total = 0.0
    media = 0
    for result in results:
        total += compute_node_cost(result, pricing)
        if result.status == "completed" and result.model is not None:
            media += sum(count_media(result.output))
    return CostEstimate(estimated_cost=round(total, 4), media_count=media)
