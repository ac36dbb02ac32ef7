"""Tests for the LLM gateway's failure classification."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage

from cv_evaluator.errors import (
    EmptyResponseError,
    ErrorKind,
    ProviderError,
    QuotaExceededError,
    SafetyBlockedError,
)
from cv_evaluator.pipeline.gateway import LLMGateway, is_quota_error


def _llm(response=None, error: Exception | None = None) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=response, side_effect=error)
    return llm


def _rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("Too many requests", response=response, body=None)


class TestIsQuotaError:
    def test_openai_rate_limit(self):
        assert is_quota_error(_rate_limit_error())

    @pytest.mark.parametrize(
        "message",
        ["Quota exceeded for model", "HTTP 429", "rate limit reached", "billing hard limit"],
    )
    def test_message_markers(self, message):
        assert is_quota_error(RuntimeError(message))

    def test_other_errors(self):
        assert not is_quota_error(RuntimeError("connection reset by peer"))


class TestLLMGateway:
    @pytest.mark.asyncio
    async def test_returns_text(self):
        llm = _llm(AIMessage(content="analysis"))
        text = await LLMGateway(llm).generate("prompt", stage="stage1")
        assert text == "analysis"

        sent = llm.ainvoke.call_args.args[0]
        assert isinstance(sent[0], HumanMessage)
        assert sent[0].content == "prompt"

    @pytest.mark.asyncio
    async def test_joins_multipart_content(self):
        llm = _llm(AIMessage(content=[{"type": "text", "text": "part one, "}, {"type": "text", "text": "part two"}]))
        assert await LLMGateway(llm).generate("p") == "part one, part two"

    @pytest.mark.asyncio
    async def test_quota_error(self):
        gateway = LLMGateway(_llm(error=_rate_limit_error()))
        with pytest.raises(QuotaExceededError) as exc_info:
            await gateway.generate("p")
        assert exc_info.value.kind == ErrorKind.PROVIDER_QUOTA_EXCEEDED
        assert "quota" in str(exc_info.value).lower()

    @pytest.mark.asyncio
    async def test_generic_provider_error(self):
        gateway = LLMGateway(_llm(error=RuntimeError("upstream 502")))
        with pytest.raises(ProviderError) as exc_info:
            await gateway.generate("p", stage="stage2")
        assert type(exc_info.value) is ProviderError
        assert exc_info.value.kind == ErrorKind.PROVIDER_ERROR
        assert "stage2" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_safety_block(self):
        response = AIMessage(content="", response_metadata={"finish_reason": "content_filter"})
        with pytest.raises(SafetyBlockedError) as exc_info:
            await LLMGateway(_llm(response)).generate("p")
        assert exc_info.value.kind == ErrorKind.PROVIDER_SAFETY_BLOCKED

    @pytest.mark.asyncio
    async def test_safety_takes_precedence_over_content(self):
        response = AIMessage(content="partial", response_metadata={"finish_reason": "SAFETY"})
        with pytest.raises(SafetyBlockedError):
            await LLMGateway(_llm(response)).generate("p")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n\t"])
    async def test_empty_response(self, content):
        response = AIMessage(content=content, response_metadata={"finish_reason": "stop"})
        with pytest.raises(EmptyResponseError) as exc_info:
            await LLMGateway(_llm(response)).generate("p")
        assert exc_info.value.kind == ErrorKind.PROVIDER_EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        llm = _llm(error=RuntimeError("boom"))
        with pytest.raises(ProviderError):
            await LLMGateway(llm).generate("p")
        assert llm.ainvoke.await_count == 1
