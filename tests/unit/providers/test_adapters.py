# tests/unit/providers/test_adapters.py — v1
"""Tests for providers/adapters — SDK calls mocked."""

from __future__ import annotations

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from recipeflow.providers.adapters.anthropic_adapter import AnthropicAdapter
from recipeflow.providers.adapters.echo_adapter import EchoAdapter
from recipeflow.providers.adapters.google_adapter import GoogleAdapter
from recipeflow.providers.adapters.ollama_adapter import OllamaAdapter
from recipeflow.providers.adapters.openai_adapter import OpenAIAdapter
from recipeflow.providers.base_provider import UnsupportedCapabilityError


class TestEchoAdapter:
    @pytest.mark.asyncio
    async def test_text_echoes_prompt(self):
        result = await EchoAdapter().generate("text", "hello world")
        assert result.content == "hello world"
        assert result.input_tokens == 2
        assert result.provider == "echo"

    @pytest.mark.asyncio
    async def test_image_returns_media(self):
        result = await EchoAdapter().generate("image", "a cat", options={"n": 2})
        assert len(result.media) == 2
        assert result.media[0].data == b"a cat"
        assert result.media[0].media_type == "image/png"

    @pytest.mark.asyncio
    async def test_video_returns_media(self):
        result = await EchoAdapter().generate("video", "a scene")
        assert result.media[0].media_type == "video/mp4"


class TestAnthropicAdapter:
    @pytest.mark.asyncio
    async def test_generate_text(self):
        adapter = AnthropicAdapter(model="claude-x", api_key="k")
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Hi "), SimpleNamespace(type="text", text="there")],
            usage=SimpleNamespace(input_tokens=5, output_tokens=2),
            model="claude-x",
        )
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)
        adapter._AnthropicAdapter__client = client

        result = await adapter.generate_text("Say hi", temperature=0.3, system="sys")
        assert result.content == "Hi there"
        assert result.token_usage.total_tokens == 7
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == 4096
        assert kwargs["messages"] == [{"role": "user", "content": "Say hi"}]

    @pytest.mark.asyncio
    async def test_image_unsupported(self):
        with pytest.raises(UnsupportedCapabilityError):
            await AnthropicAdapter().generate("image", "x")


class TestOpenAIAdapter:
    def _adapter(self, model: str = "gpt-4o") -> tuple[OpenAIAdapter, MagicMock]:
        adapter = OpenAIAdapter(model=model, api_key="k")
        client = MagicMock()
        adapter._OpenAIAdapter__client = client
        return adapter, client

    @pytest.mark.asyncio
    async def test_generate_text(self):
        adapter, client = self._adapter()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=1),
        ))
        result = await adapter.generate_text("p", max_tokens=50)
        assert result.content == "ok"
        assert client.chat.completions.create.call_args.kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_generate_image_decodes_b64(self):
        adapter, client = self._adapter("dall-e-3")
        payload = base64.b64encode(b"png-bytes").decode()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(
            data=[SimpleNamespace(b64_json=payload, url=None)], usage=None,
        ))
        result = await adapter.generate_image("a cat", options={"size": "1024x1024"})
        assert result.media[0].data == b"png-bytes"
        kwargs = client.images.generate.call_args.kwargs
        assert kwargs["response_format"] == "b64_json"
        assert kwargs["size"] == "1024x1024"

    @pytest.mark.asyncio
    async def test_generate_video_polls_until_complete(self):
        adapter, client = self._adapter("sora-2")
        client.videos.create = AsyncMock(return_value=SimpleNamespace(id="v1", status="queued"))
        client.videos.retrieve = AsyncMock(return_value=SimpleNamespace(id="v1", status="completed"))
        client.videos.download_content = AsyncMock(return_value=SimpleNamespace(content=b"mp4"))
        with patch("recipeflow.providers.adapters.openai_adapter.asyncio.sleep", new=AsyncMock()):
            result = await adapter.generate_video("a scene", options={"duration": 4})
        assert result.media[0].data == b"mp4"
        assert client.videos.create.call_args.kwargs["seconds"] == "4"

    @pytest.mark.asyncio
    async def test_generate_video_failed(self):
        adapter, client = self._adapter("sora-2")
        client.videos.create = AsyncMock(return_value=SimpleNamespace(
            id="v1", status="failed", error=SimpleNamespace(message="policy"),
        ))
        with pytest.raises(RuntimeError, match="policy"):
            await adapter.generate_video("a scene")


class TestGoogleAdapter:
    @pytest.mark.asyncio
    async def test_generate_image_reads_inline_parts(self):
        adapter = GoogleAdapter(model="gemini-2.5-flash-image", api_key="k")
        part = SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/png", data=b"img"))
        resp = SimpleNamespace(
            candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
            usage_metadata=SimpleNamespace(prompt_token_count=4, candidates_token_count=0),
        )
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=resp)
        with patch.object(GoogleAdapter, "_generative_model", return_value=model):
            result = await adapter.generate_image("a cat")
        assert result.media[0].data == b"img"
        assert result.input_tokens == 4


class TestOllamaAdapter:
    @pytest.mark.asyncio
    async def test_generate_text(self):
        client = MagicMock()
        client.chat = AsyncMock(return_value={
            "message": {"content": "local"}, "prompt_eval_count": 2, "eval_count": 1,
        })
        fake_ollama = SimpleNamespace(AsyncClient=MagicMock(return_value=client))
        with patch.dict("sys.modules", {"ollama": fake_ollama}):
            result = await OllamaAdapter(model="llama3").generate_text("p", max_tokens=20)
        assert result.content == "local"
        assert client.chat.call_args.kwargs["options"]["num_predict"] == 20
