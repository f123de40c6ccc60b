# tests/unit/pipeline/test_executor.py — v1
"""Tests for pipeline/executor.py — one node, one attempt."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from recipeflow.core.errors import ActionExecutionError
from recipeflow.core.models import Node
from recipeflow.pipeline.executor import ActionExecutor
from recipeflow.providers.adapters.echo_adapter import EchoAdapter
from recipeflow.providers.models import GenerationResult


def _node(node_type: str = "text_generation", provider: str = "echo", **fields) -> Node:
    doc = {
        "id": "n1",
        "type": node_type,
        "outputKey": "out",
        "aiModel": {"provider": provider, "modelName": "m-1"},
    }
    doc.update(fields)
    return Node.model_validate(doc)


@pytest.fixture
def executor(registry, object_storage) -> ActionExecutor:
    return ActionExecutor(registry, object_storage)


class TestTextGeneration:
    @pytest.mark.asyncio
    async def test_renders_prompt_and_reports_usage(self, executor):
        node = _node(prompt="Describe {product.name} for {audience}")
        result = await executor.execute(node, {"product": {"name": "Lamp"}, "audience": "kids"})
        assert result.output == "Describe Lamp for kids"
        assert result.raw == result.output
        assert result.provider == "echo"
        assert result.model == "m-1"
        assert result.token_usage.input_tokens == 4
        assert result.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_prompt_template_fallback(self, executor):
        node = _node(promptTemplate="T: {x}")
        assert (await executor.execute(node, {"x": "1"})).output == "T: 1"

    @pytest.mark.asyncio
    async def test_parameters_fill_placeholders(self, executor):
        node = _node(prompt="{count} items", parameters={"count": 3})
        assert (await executor.execute(node, {})).output == "3 items"

    @pytest.mark.asyncio
    async def test_json_format_parses_output(self, executor, registry, scripted):
        registry.register_provider("scripted", scripted(['```json\n{"name": "Ada"}\n```']))
        node = _node(provider="scripted", prompt="go", parameters={"jsonFormat": True})
        result = await executor.execute(node, {})
        assert result.output == {"name": "Ada"}
        assert result.raw.startswith("```json")

    @pytest.mark.asyncio
    async def test_system_prompt_rendered_into_options(self, executor, registry):
        provider = EchoAdapter(model="m-1")
        provider.generate = AsyncMock(
            return_value=GenerationResult(content="ok", model="m-1", provider="echo")
        )
        registry.register_provider("echo", provider)
        node = _node(prompt="hi", parameters={"systemPrompt": "You write for {audience}"})
        await executor.execute(node, {"audience": "kids"})
        options = provider.generate.call_args.kwargs["options"]
        assert options["system"] == "You write for kids"

    @pytest.mark.asyncio
    async def test_fan_out_calls_once_per_item(self, executor, registry, scripted):
        provider = scripted(["first", "second"])
        registry.register_provider("scripted", provider)
        node = _node(
            provider="scripted",
            prompt="#{index}: {persona}",
            parameters={"fanOut": "persona"},
        )
        result = await executor.execute(node, {"persona": ["Ada", "Bob"]})
        assert result.output == ["first", "second"]
        assert provider.calls == ["#0: Ada", "#1: Bob"]
        assert result.token_usage.input_tokens == 20
        assert result.provider == "scripted"

    @pytest.mark.asyncio
    async def test_fan_out_over_scalar_is_single_call(self, executor, registry, scripted):
        provider = scripted(["once"])
        registry.register_provider("scripted", provider)
        node = _node(provider="scripted", prompt="{persona}", parameters={"fanOut": "persona"})
        assert (await executor.execute(node, {"persona": "Ada"})).output == "once"
        assert provider.calls == ["Ada"]


class TestMediaGeneration:
    @pytest.mark.asyncio
    async def test_image_output_is_artifact_list(self, executor):
        result = await executor.execute(_node("image_generation", prompt="a cat"), {})
        assert result.output == [{"url": None, "data": b"a cat", "media_type": "image/png"}]
        assert result.raw is None

    @pytest.mark.asyncio
    async def test_empty_media_is_failure(self, executor, registry):
        provider = EchoAdapter(model="m-1")
        provider.generate = AsyncMock(
            return_value=GenerationResult(content="", model="m-1", provider="echo")
        )
        registry.register_provider("echo", provider)
        with pytest.raises(ActionExecutionError, match="returned no image"):
            await executor.execute(_node("image_generation", prompt="x"), {})


class TestDataProcessing:
    @pytest.mark.asyncio
    async def test_transform_applied(self, executor):
        node = Node(
            id="join", type="data_processing", output_key="joined",
            parameters={"transform": "collect"},
        )
        result = await executor.execute(node, {"a": 1, "b": 2})
        assert result.output == [1, 2]
        assert result.provider is None

    @pytest.mark.asyncio
    async def test_custom_transform(self, executor):
        async def shout(inputs, ctx):
            return inputs["text"].upper()

        executor.register_transform("shout", shout)
        node = Node(
            id="loud", type="data_processing", output_key="loud",
            parameters={"transform": "shout"},
        )
        assert (await executor.execute(node, {"text": "hey"})).output == "HEY"

    @pytest.mark.asyncio
    async def test_unknown_transform_is_action_error(self, executor):
        node = Node(
            id="bad", type="data_processing", output_key="x",
            parameters={"transform": "telepathy"},
        )
        with pytest.raises(ActionExecutionError) as exc_info:
            await executor.execute(node, {})
        assert exc_info.value.code == "ACTION_FAILED"
        assert exc_info.value.node_id == "bad"


class TestFailures:
    @pytest.mark.asyncio
    async def test_unsupported_provider(self, executor):
        with pytest.raises(ActionExecutionError) as exc_info:
            await executor.execute(_node(provider="nobody", prompt="x"), {})
        assert exc_info.value.code == "UNSUPPORTED_PROVIDER"

    @pytest.mark.asyncio
    async def test_unsupported_capability(self, executor, registry, scripted):
        registry.register_provider("scripted", scripted(["text only"]))
        with pytest.raises(ActionExecutionError) as exc_info:
            await executor.execute(_node("video_generation", provider="scripted", prompt="x"), {})
        assert exc_info.value.code == "UNSUPPORTED_CAPABILITY"

    @pytest.mark.asyncio
    async def test_provider_exception_wrapped(self, executor, registry, scripted):
        registry.register_provider("scripted", scripted([RuntimeError("quota exceeded")]))
        with pytest.raises(ActionExecutionError, match="quota exceeded") as exc_info:
            await executor.execute(_node(provider="scripted", prompt="x"), {})
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_action_error_passes_through(self, executor, registry, scripted):
        original = ActionExecutionError("n1", "boom", code="RATE_LIMITED")
        registry.register_provider("scripted", scripted([original]))
        with pytest.raises(ActionExecutionError) as exc_info:
            await executor.execute(_node(provider="scripted", prompt="x"), {})
        assert exc_info.value is original
