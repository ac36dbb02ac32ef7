"""LLM Gateway: one prompt in, raw text out.

Owns the classification of provider failures into the error taxonomy:
quota/rate limits, content-safety blocks, empty responses, and everything
else. Nothing here retries; each failure is reported to the caller once.
"""

from __future__ import annotations

import openai
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from cv_evaluator.errors import (
    EmptyResponseError,
    ProviderError,
    QuotaExceededError,
    SafetyBlockedError,
)

logger = structlog.get_logger(__name__)

QUOTA_MARKERS = ("quota", "429", "rate limit", "rate_limit", "billing")
SAFETY_FINISH_REASONS = frozenset({"content_filter", "safety", "blocked", "prohibited_content"})


def is_quota_error(exc: BaseException) -> bool:
    """Return True if a provider exception signals rate or billing limits."""
    if isinstance(exc, openai.RateLimitError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in QUOTA_MARKERS)


def _finish_reason(response) -> str:  # noqa: ANN001
    metadata = getattr(response, "response_metadata", None) or {}
    return str(metadata.get("finish_reason") or "").lower()


def _content_text(response) -> str:  # noqa: ANN001
    content = getattr(response, "content", "")
    if isinstance(content, list):
        # Multi-part content: keep the text segments only
        parts = [
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        ]
        return "".join(parts)
    return content or ""


class LLMGateway:
    """Sends prompts to the chat model and classifies its failures.

    Args:
        llm: A LangChain chat model (see ``cv_evaluator.models.create_llm``).
    """

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate(self, prompt: str, *, stage: str = "generate") -> str:
        """Send one prompt and return the model's raw text.

        Raises:
            QuotaExceededError: provider rate/billing limit reached.
            SafetyBlockedError: provider content filter withheld the response.
            EmptyResponseError: provider returned no content.
            ProviderError: any other provider failure.
        """
        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            if is_quota_error(exc):
                logger.warning("llm_quota_exceeded", stage=stage, error=str(exc))
                raise QuotaExceededError(
                    "LLM provider quota exceeded. Check billing or wait for the quota "
                    f"to reset: {exc}"
                ) from exc
            logger.warning("llm_call_failed", stage=stage, error=str(exc))
            raise ProviderError(f"{stage} call failed: {exc}") from exc

        if _finish_reason(response) in SAFETY_FINISH_REASONS:
            logger.warning("llm_safety_blocked", stage=stage)
            raise SafetyBlockedError(f"{stage} response blocked by provider safety filters")

        text = _content_text(response)
        if not text.strip():
            logger.warning("llm_empty_response", stage=stage)
            raise EmptyResponseError(f"no content in {stage} response")

        logger.debug("llm_call_done", stage=stage, chars=len(text))
        return text
