"""Graph nodes for the two-stage evaluation workflow.

Each node reads what it needs from ``EvaluationState`` and returns a partial
state update. Fatal failures propagate as ``EvaluationError`` subclasses and
abort the graph; only context retrieval recovers locally.
"""

from __future__ import annotations

import asyncio

import structlog

from cv_evaluator.errors import ContextUnavailableError, DocumentLoadError, InputUnreadableError
from cv_evaluator.pipeline.gateway import LLMGateway
from cv_evaluator.pipeline.loader import DocumentLoader
from cv_evaluator.pipeline.parser import parse_evaluation_result
from cv_evaluator.pipeline.retriever import DEFAULT_CONTEXT, ContextRetriever
from cv_evaluator.prompts.templates import build_stage1_prompt, build_stage2_prompt
from cv_evaluator.schemas.state import EvaluationState

logger = structlog.get_logger(__name__)

FALLBACK_QUERY = "CV and project evaluation guidelines"


def build_retrieval_query(cv_text: str, report_text: str, max_chars: int) -> str:
    """Query text for guideline lookup, bounded to ``max_chars``."""
    query = f"{cv_text} {report_text}".strip()
    if not query:
        return FALLBACK_QUERY
    return query[:max_chars]


class EvaluationNodes:
    """Node callables bound to their collaborators.

    Args:
        loader: Document loader for the two input files.
        gateway: LLM gateway used by both stages.
        retriever: Guideline retriever. None = always use DEFAULT_CONTEXT.
        top_k: Number of passages requested from the retriever.
        query_max_chars: Retrieval query length limit.
    """

    def __init__(
        self,
        loader: DocumentLoader,
        gateway: LLMGateway,
        retriever: ContextRetriever | None,
        top_k: int = 5,
        query_max_chars: int = 1000,
    ) -> None:
        self.loader = loader
        self.gateway = gateway
        self.retriever = retriever
        self.top_k = top_k
        self.query_max_chars = query_max_chars

    async def _read(self, label: str, path: str) -> str:
        try:
            return await asyncio.to_thread(self.loader.read, path)
        except DocumentLoadError as exc:
            raise InputUnreadableError(f"failed to read {label} file: {exc}") from exc

    async def load_documents(self, state: EvaluationState) -> dict:
        cv_text = await self._read("CV", state["cv_path"])
        report_text = await self._read("report", state["report_path"])
        logger.info("documents_loaded", cv_chars=len(cv_text), report_chars=len(report_text))
        return {"cv_text": cv_text, "report_text": report_text}

    async def stage1_analysis(self, state: EvaluationState) -> dict:
        prompt = build_stage1_prompt(state["cv_text"], state["report_text"])
        analysis = await self.gateway.generate(prompt, stage="stage1")
        logger.info("stage1_done", chars=len(analysis))
        return {"stage1_analysis": analysis}

    async def retrieve_context(self, state: EvaluationState) -> dict:
        query = build_retrieval_query(
            state.get("cv_text", ""), state.get("report_text", ""), self.query_max_chars
        )

        passages: list[str] = []
        if self.retriever is not None:
            try:
                passages = await self.retriever.query(query, self.top_k)
            except ContextUnavailableError as exc:
                logger.warning("context_retrieval_failed", error=str(exc))
            except Exception as exc:
                logger.warning("context_retrieval_failed", error=str(exc), error_type=type(exc).__name__)

        if not passages:
            logger.info("context_defaults_used", passages=len(DEFAULT_CONTEXT))
            return {"context": list(DEFAULT_CONTEXT), "context_is_default": True}

        logger.info("context_retrieved", passages=len(passages))
        return {"context": passages, "context_is_default": False}

    async def stage2_evaluation(self, state: EvaluationState) -> dict:
        prompt = build_stage2_prompt(
            state["stage1_analysis"],
            state["context"],
            state["cv_text"],
            state["report_text"],
        )
        raw = await self.gateway.generate(prompt, stage="stage2")
        logger.info("stage2_done", chars=len(raw))
        return {"stage2_raw": raw}

    async def parse_result(self, state: EvaluationState) -> dict:
        result = parse_evaluation_result(state["stage2_raw"])
        logger.info(
            "result_parsed",
            cv_match_rate=result.cv_match_rate,
            project_score=result.project_score,
        )
        return {"result": result}
