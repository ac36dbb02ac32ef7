"""Application configuration using pydantic-settings.

Loads settings from environment variables and .env file.
Evaluator behavior config (model, temperature, retrieval tuning) loaded from evaluator.toml.

Priority: CLI args > Environment variables (.env) > evaluator.toml > hardcoded defaults
"""

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Evaluator settings from evaluator.toml
# ---------------------------------------------------------------------------


class LLMConfig(BaseModel):
    """The [llm] table from evaluator.toml."""

    model: str = "google/gemini-1.5-pro"
    # Scoring must be reproducible across runs of the same input
    temperature: float = 0.1
    timeout: int = 120
    max_retries: int = 0
    max_tokens: int | None = None


class RetrievalConfig(BaseModel):
    """The [retrieval] table from evaluator.toml."""

    top_k: int = 5
    query_max_chars: int = 1000
    collection: str = "evaluation_guidelines"
    tenant: str = "default_tenant"
    database: str = "default_database"
    embedding_model: str = "text-embedding-3-small"
    timeout: float = 30.0


class UploadsConfig(BaseModel):
    """The [uploads] table from evaluator.toml."""

    allowed_extensions: list[str] = Field(default_factory=lambda: [".pdf", ".txt", ".md"])
    max_bytes: int = 10 * 1024 * 1024


class EvaluatorSettings(BaseModel):
    """Configuration loaded from evaluator.toml."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    uploads: UploadsConfig = Field(default_factory=UploadsConfig)


_EVALUATOR_SETTINGS_CACHE: EvaluatorSettings | None = None


def get_evaluator_settings() -> EvaluatorSettings:
    """Load and cache evaluator settings from evaluator.toml."""
    global _EVALUATOR_SETTINGS_CACHE
    if _EVALUATOR_SETTINGS_CACHE is not None:
        return _EVALUATOR_SETTINGS_CACHE

    toml_path = Path(__file__).parent.parent / "evaluator.toml"
    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
        _EVALUATOR_SETTINGS_CACHE = EvaluatorSettings.model_validate(data)
    else:
        _EVALUATOR_SETTINGS_CACHE = EvaluatorSettings()

    return _EVALUATOR_SETTINGS_CACHE


# ---------------------------------------------------------------------------
# Environment settings from .env (API keys, secrets, env-var overrides)
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM provider (any OpenAI-compatible endpoint)
    openai_api_key: str
    openai_base_url: str = "https://openrouter.ai/api/v1"

    # Embeddings for the guideline collection (fall back to the LLM credentials)
    embeddings_api_key: str = ""
    embeddings_base_url: str | None = None

    # Storage
    database_url: str = "data/evaluator.db"
    chromadb_url: str = "http://localhost:8000"
    upload_dir: str = "uploads"

    # Worker pool
    max_workers: int = 4
    max_queue_size: int = 100
    shutdown_timeout: float = 30.0

    # LangSmith (set LANGCHAIN_TRACING_V2=true to enable)
    langchain_tracing_v2: bool = False
    langchain_api_key: str | None = None
    langchain_project: str = "cv-evaluator"

    # Logging (JSON lines for the API server)
    log_level: str = "INFO"
    log_json: bool = False


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Also exports LangSmith env vars so the LangChain SDK
    picks them up automatically for tracing.
    """
    settings = Settings()

    if settings.langchain_tracing_v2:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
        if settings.langchain_api_key:
            os.environ.setdefault("LANGCHAIN_API_KEY", settings.langchain_api_key)
        os.environ.setdefault("LANGCHAIN_PROJECT", settings.langchain_project)

    return settings
