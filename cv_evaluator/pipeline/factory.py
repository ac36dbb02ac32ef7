"""Wiring for the evaluation pipeline.

Shared by the API lifespan and the CLI so both run the exact same graph.
"""

from __future__ import annotations

import structlog

from cv_evaluator.config import Settings, get_evaluator_settings
from cv_evaluator.graphs.evaluation_workflow import EvaluationPipeline
from cv_evaluator.models import create_embeddings, create_llm
from cv_evaluator.pipeline.gateway import LLMGateway
from cv_evaluator.pipeline.loader import DocumentLoader
from cv_evaluator.pipeline.nodes import EvaluationNodes
from cv_evaluator.pipeline.retriever import ChromaContextRetriever

logger = structlog.get_logger(__name__)


def create_retriever(settings: Settings) -> ChromaContextRetriever:
    retrieval_cfg = get_evaluator_settings().retrieval
    return ChromaContextRetriever(
        base_url=settings.chromadb_url,
        embeddings=create_embeddings(settings),
        collection=retrieval_cfg.collection,
        tenant=retrieval_cfg.tenant,
        database=retrieval_cfg.database,
        timeout=retrieval_cfg.timeout,
    )


def create_evaluation_pipeline(
    settings: Settings,
) -> tuple[EvaluationPipeline, ChromaContextRetriever]:
    """Build the pipeline and return it with the retriever it owns.

    The caller is responsible for closing the retriever.
    """
    retrieval_cfg = get_evaluator_settings().retrieval
    retriever = create_retriever(settings)
    nodes = EvaluationNodes(
        loader=DocumentLoader(),
        gateway=LLMGateway(create_llm(settings=settings)),
        retriever=retriever,
        top_k=retrieval_cfg.top_k,
        query_max_chars=retrieval_cfg.query_max_chars,
    )
    logger.debug("pipeline_wired", chromadb_url=settings.chromadb_url, top_k=retrieval_cfg.top_k)
    return EvaluationPipeline(nodes), retriever
