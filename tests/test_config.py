"""Tests for configuration loading from evaluator.toml and the environment."""

from __future__ import annotations

import tomllib
from pathlib import Path

from cv_evaluator.config import EvaluatorSettings, Settings, get_evaluator_settings


class TestEvaluatorSettingsDefaults:
    def test_llm_defaults(self):
        s = EvaluatorSettings()
        assert s.llm.temperature == 0.1
        assert s.llm.max_retries == 0
        assert s.llm.timeout == 120

    def test_retrieval_defaults(self):
        s = EvaluatorSettings()
        assert s.retrieval.top_k == 5
        assert s.retrieval.query_max_chars == 1000

    def test_upload_defaults(self):
        s = EvaluatorSettings()
        assert s.uploads.allowed_extensions == [".pdf", ".txt", ".md"]
        assert s.uploads.max_bytes == 10 * 1024 * 1024


class TestEvaluatorSettingsOverrides:
    def test_override_top_k(self):
        s = EvaluatorSettings.model_validate({"retrieval": {"top_k": 3}})
        assert s.retrieval.top_k == 3
        assert s.retrieval.query_max_chars == 1000  # unchanged

    def test_override_model(self):
        s = EvaluatorSettings.model_validate({"llm": {"model": "other/model"}})
        assert s.llm.model == "other/model"
        assert s.llm.temperature == 0.1


class TestEvaluatorToml:
    def test_repo_toml_parses(self):
        toml_path = Path(__file__).parent.parent / "evaluator.toml"
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
        s = EvaluatorSettings.model_validate(data)
        assert s.llm.max_retries == 0
        assert s.retrieval.top_k == 5

    def test_cached_loader_returns_same_instance(self):
        assert get_evaluator_settings() is get_evaluator_settings()


class TestSettings:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("MAX_WORKERS", "8")
        monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
        s = Settings(_env_file=None)
        assert s.openai_api_key == "sk-env"
        assert s.max_workers == 8
        assert s.database_url == "postgresql://u@h/db"

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        for name in ("MAX_WORKERS", "MAX_QUEUE_SIZE", "DATABASE_URL", "CHROMADB_URL", "UPLOAD_DIR"):
            monkeypatch.delenv(name, raising=False)
        s = Settings(_env_file=None)
        assert s.openai_base_url == "https://openrouter.ai/api/v1"
        assert s.chromadb_url == "http://localhost:8000"
        assert s.upload_dir == "uploads"
        assert s.max_workers == 4
        assert s.max_queue_size == 100
