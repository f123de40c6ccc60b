# src/pipeline/executor.py — v1
"""Action executor — run one node against its resolved inputs.

Generation nodes render their prompt and call the capability provider
resolved for (aiModel.provider, aiModel.modelName). Data-processing nodes
apply a named transform. Every failure surfaces as ActionExecutionError;
retry, timeout and failure policy live in the orchestrator.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from recipeflow.core.errors import ActionExecutionError, RecipeFlowError
from recipeflow.core.models import Node, TokenUsage
from recipeflow.pipeline.prompt_renderer import parse_json_output, render_prompt
from recipeflow.pipeline.transforms import (
    TRANSFORMS,
    Transform,
    TransformContext,
    get_transform,
    transform_name,
)
from recipeflow.providers.base_provider import (
    CAPABILITY_BY_NODE_TYPE,
    BaseCapabilityProvider,
    UnsupportedCapabilityError,
)
from recipeflow.providers.models import GenerationResult
from recipeflow.providers.registry import ProviderRegistry, UnsupportedProviderError
from recipeflow.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_TEMPLATE = "{prompt}"


@dataclass
class ActionResult:
    """Output of a single successful node attempt."""

    output: Any
    raw: Any = None
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str | None = None
    model: str | None = None
    duration_ms: int = 0


def _error_code(exc: Exception) -> str:
    if isinstance(exc, UnsupportedProviderError):
        return "UNSUPPORTED_PROVIDER"
    if isinstance(exc, UnsupportedCapabilityError):
        return "UNSUPPORTED_CAPABILITY"
    return getattr(exc, "code", None) or "ACTION_FAILED"


class ActionExecutor:
    """Execute nodes through capability providers and transforms.

    Args:
        registry: Provider registry used for generation nodes.
        storage: Object storage for media uploads (data_processing).
        transforms: Transform table; defaults to the built-ins.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        storage: BaseObjectStorage | None = None,
        transforms: dict[str, Transform] | None = None,
    ) -> None:
        self._registry = registry
        self._storage = storage
        self._transforms = dict(TRANSFORMS if transforms is None else transforms)

    def register_transform(self, name: str, transform: Transform) -> None:
        self._transforms[name] = transform

    async def execute(
        self,
        node: Node,
        resolved_inputs: dict[str, Any],
        *,
        execution_id: str | None = None,
    ) -> ActionResult:
        """Run a node once.

        Raises:
            ActionExecutionError: On any provider or transform failure.
        """
        start = time.monotonic()
        try:
            if node.type == "data_processing":
                result = await self._process(node, resolved_inputs, execution_id)
            else:
                result = await self._generate(node, resolved_inputs)
        except ActionExecutionError:
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            if not isinstance(exc, RecipeFlowError):
                logger.debug("Node '%s' raised %s", node.id, type(exc).__name__, exc_info=True)
            raise ActionExecutionError(node.id, message, code=_error_code(exc)) from exc

        result.duration_ms = int((time.monotonic() - start) * 1000)
        return result

    # --- data_processing ---

    async def _process(
        self, node: Node, inputs: dict[str, Any], execution_id: str | None
    ) -> ActionResult:
        name = transform_name(node)
        transform = get_transform(name, self._transforms)
        ctx = TransformContext(node=node, storage=self._storage, execution_id=execution_id)
        logger.debug("Node '%s': transform %s", node.id, name)
        output = await transform(dict(inputs), ctx)
        return ActionResult(output=output)

    # --- generation ---

    async def _generate(self, node: Node, inputs: dict[str, Any]) -> ActionResult:
        ai_model = node.ai_model
        if ai_model is None:
            raise ValueError(f"Node type {node.type} requires aiModel configuration")

        provider = self._registry.resolve(ai_model.provider, ai_model.model_name)
        params = node.parameters

        fan_out = params.get("fanOut")
        items = inputs.get(fan_out) if fan_out else None
        if isinstance(items, list):
            outputs: list[Any] = []
            raws: list[Any] = []
            usage = TokenUsage()
            for index, item in enumerate(items):
                values = {**inputs, fan_out: item, "index": index}
                output, raw, result = await self._call(node, provider, values)
                outputs.append(output)
                raws.append(raw)
                usage = usage + result.token_usage
            logger.info("Node '%s': fanned out over %d item(s)", node.id, len(items))
            return ActionResult(
                output=outputs, raw=raws, token_usage=usage,
                provider=provider.provider_name, model=provider.model_name,
            )

        output, raw, result = await self._call(node, provider, inputs)
        return ActionResult(
            output=output, raw=raw, token_usage=result.token_usage,
            provider=result.provider, model=result.model,
        )

    async def _call(
        self,
        node: Node,
        provider: BaseCapabilityProvider,
        values: dict[str, Any],
    ) -> tuple[Any, Any, GenerationResult]:
        params = node.parameters
        template = node.prompt or node.prompt_template or DEFAULT_PROMPT_TEMPLATE
        prompt, _ = render_prompt(template, values, params, node_id=node.id)

        options = dict(params)
        if params.get("systemPrompt"):
            options["system"], _ = render_prompt(
                params["systemPrompt"], values, params, node_id=node.id
            )

        capability = CAPABILITY_BY_NODE_TYPE[node.type]
        ai_model = node.ai_model
        result = await provider.generate(
            capability,
            prompt,
            temperature=ai_model.temperature,
            max_tokens=ai_model.max_tokens,
            options=options,
        )

        if capability == "text":
            wants_json = params.get("jsonFormat") or params.get("outputFormat") == "json"
            output = parse_json_output(result.content) if wants_json else result.content
            return output, result.content, result

        if not result.media:
            raise ValueError(f"Provider {provider.provider_name!r} returned no {capability}")
        return [artifact.to_output() for artifact in result.media], None, result
