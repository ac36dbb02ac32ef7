"""LLM and embedding factories.

Chat model: any OpenAI-compatible endpoint (OpenRouter by default).
Embeddings: OpenAI embeddings, used only for the guideline collection.

Model, temperature, and timeouts are configured in evaluator.toml.
Client-level retries default to zero: a failed call fails the job.
"""

from __future__ import annotations

import structlog
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from cv_evaluator.config import Settings, get_evaluator_settings, get_settings

logger = structlog.get_logger(__name__)


def create_llm(
    temperature: float | None = None,
    max_tokens: int | None = None,
    settings: Settings | None = None,
) -> ChatOpenAI:
    """Create the chat model used for both evaluation stages.

    Args:
        temperature: Sampling temperature. None = read from evaluator.toml.
        max_tokens: Maximum tokens in response. None = evaluator.toml / provider default.
        settings: Optional Settings instance; loads from env if not provided.
    """
    if settings is None:
        settings = get_settings()

    llm_cfg = get_evaluator_settings().llm
    if temperature is None:
        temperature = llm_cfg.temperature
    if max_tokens is None:
        max_tokens = llm_cfg.max_tokens

    kwargs = dict(
        model=llm_cfg.model,
        temperature=temperature,
        openai_api_key=settings.openai_api_key,
        openai_api_base=settings.openai_base_url,
        timeout=llm_cfg.timeout,
        max_retries=llm_cfg.max_retries,
    )
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    logger.debug("llm_configured", model=llm_cfg.model, temperature=temperature)
    return ChatOpenAI(**kwargs)


def create_embeddings(settings: Settings | None = None) -> OpenAIEmbeddings:
    """Create the embedding model for guideline indexing and lookup."""
    if settings is None:
        settings = get_settings()

    retrieval_cfg = get_evaluator_settings().retrieval
    kwargs = dict(
        model=retrieval_cfg.embedding_model,
        openai_api_key=settings.embeddings_api_key or settings.openai_api_key,
    )
    if settings.embeddings_base_url:
        kwargs["openai_api_base"] = settings.embeddings_base_url
    return OpenAIEmbeddings(**kwargs)
