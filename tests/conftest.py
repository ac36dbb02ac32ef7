"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Ensure tests don't accidentally call real APIs
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("EMBEDDINGS_API_KEY", "test-key")

from cv_evaluator.graphs.evaluation_workflow import EvaluationPipeline  # noqa: E402
from cv_evaluator.pipeline.loader import DocumentLoader  # noqa: E402
from cv_evaluator.pipeline.nodes import EvaluationNodes  # noqa: E402
from cv_evaluator.persistence.repository import JobStore  # noqa: E402

VALID_STAGE2 = (
    "Here is my evaluation:\n"
    '{"cv_match_rate": 0.82, "cv_feedback": "Strong backend profile.", '
    '"project_score": 7.5, "project_feedback": "Clean architecture.", '
    '"overall_summary": "Recommended for interview."}\n'
    "Let me know if you need more detail."
)


class FakeGateway:
    """Records prompts and replays canned stage outputs."""

    def __init__(self, stage1: str = '{"cv_skills": ["python"]}', stage2: str = VALID_STAGE2):
        self.outputs = {"stage1": stage1, "stage2": stage2}
        self.prompts: dict[str, str] = {}
        self.calls: list[str] = []

    async def generate(self, prompt: str, *, stage: str = "generate") -> str:
        self.calls.append(stage)
        self.prompts[stage] = prompt
        output = self.outputs[stage]
        if isinstance(output, Exception):
            raise output
        return output


@pytest.fixture()
def documents(tmp_path: Path) -> tuple[Path, Path]:
    """A readable CV and project report on disk."""
    cv = tmp_path / "cv.txt"
    cv.write_text("Jane Doe. Backend engineer, 5 years Python and Go.", encoding="utf-8")
    report = tmp_path / "report.md"
    report.write_text("# Project\nREST API with job queue and tests.", encoding="utf-8")
    return cv, report


@pytest.fixture()
def store(tmp_path: Path):
    job_store = JobStore(tmp_path / "jobs.db")
    yield job_store
    job_store.close()


def make_pipeline(gateway: FakeGateway, retriever=None) -> EvaluationPipeline:
    nodes = EvaluationNodes(
        loader=DocumentLoader(),
        gateway=gateway,
        retriever=retriever,
        top_k=5,
        query_max_chars=1000,
    )
    return EvaluationPipeline(nodes)


def make_retriever(passages: list[str] | None = None, error: Exception | None = None) -> AsyncMock:
    retriever = AsyncMock()
    if error is not None:
        retriever.query.side_effect = error
    else:
        retriever.query.return_value = passages or []
    return retriever
