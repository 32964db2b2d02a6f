"""Tests for GeminiCompletionProvider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import EmptyCompletion, ProviderError
from app.integrations.llm_client import GeminiCompletionProvider


def gemini_response(*texts):
    parts = [SimpleNamespace(text=text) for text in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


@pytest.fixture
def model():
    return MagicMock()


@pytest.mark.asyncio
async def test_returns_joined_text(model):
    model.generate_content_async = AsyncMock(return_value=gemini_response("Total: ", "10,000 yen "))

    text = await GeminiCompletionProvider(model).complete("prompt")

    assert text == "Total: 10,000 yen"
    config = model.generate_content_async.call_args.kwargs["generation_config"]
    assert config.max_output_tokens == 800
    assert config.temperature == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_transport_failure_is_provider_error(model):
    model.generate_content_async = AsyncMock(side_effect=RuntimeError("quota exhausted"))

    with pytest.raises(ProviderError) as exc_info:
        await GeminiCompletionProvider(model).complete("prompt")

    assert not isinstance(exc_info.value, EmptyCompletion)
    assert "quota exhausted" in exc_info.value.message


@pytest.mark.asyncio
async def test_no_candidates_is_empty_completion(model):
    model.generate_content_async = AsyncMock(return_value=SimpleNamespace(candidates=[]))

    with pytest.raises(EmptyCompletion):
        await GeminiCompletionProvider(model).complete("prompt")


@pytest.mark.asyncio
async def test_blank_text_is_empty_completion(model):
    model.generate_content_async = AsyncMock(return_value=gemini_response("   "))

    with pytest.raises(EmptyCompletion):
        await GeminiCompletionProvider(model).complete("prompt")


@pytest.mark.asyncio
async def test_unconfigured_model(monkeypatch):
    monkeypatch.setattr("app.integrations.llm_client.google_gemini_model", None)

    with pytest.raises(ProviderError, match="not configured"):
        await GeminiCompletionProvider().complete("prompt")
