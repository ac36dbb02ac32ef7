"""Evaluation Workflow Graph: the two-stage, retrieval-augmented pipeline.

  START → load_documents → stage1_analysis → retrieve_context
        → stage2_evaluation → parse_result → END

Strictly sequential: stage 2 never starts before stage 1 completes.
No node has a retry policy; a fatal error aborts the run and the job fails.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from langgraph.constants import END, START
from langgraph.graph import StateGraph

from cv_evaluator.metrics import record_context_fallback
from cv_evaluator.pipeline.nodes import EvaluationNodes
from cv_evaluator.schemas.evaluation import EvaluationResult
from cv_evaluator.schemas.state import EvaluationState

logger = structlog.get_logger(__name__)

NODE_ORDER = (
    "load_documents",
    "stage1_analysis",
    "retrieve_context",
    "stage2_evaluation",
    "parse_result",
)


def build_evaluation_workflow(nodes: EvaluationNodes) -> StateGraph:
    """Build the evaluation graph with nodes bound to their collaborators."""
    builder = StateGraph(EvaluationState)

    for name in NODE_ORDER:
        builder.add_node(name, getattr(nodes, name))

    builder.add_edge(START, NODE_ORDER[0])
    for current, following in zip(NODE_ORDER, NODE_ORDER[1:]):
        builder.add_edge(current, following)
    builder.add_edge(NODE_ORDER[-1], END)

    return builder


class EvaluationPipeline:
    """Runs one evaluation: two document paths in, EvaluationResult out.

    Not idempotent with respect to the provider (each run re-issues both LLM
    calls), but has no side effects beyond its return value, so it is safe
    to run again.
    """

    def __init__(self, nodes: EvaluationNodes) -> None:
        self._graph = build_evaluation_workflow(nodes).compile()

    @property
    def graph(self):
        return self._graph

    async def run(self, cv_path: str | Path, report_path: str | Path) -> EvaluationResult:
        """Execute the workflow.

        Raises:
            EvaluationError: any fatal step failure (see ``cv_evaluator.errors``).
        """
        logger.info("pipeline_started", cv_path=str(cv_path), report_path=str(report_path))

        initial_state: EvaluationState = {
            "cv_path": str(cv_path),
            "report_path": str(report_path),
        }
        final_state = await self._graph.ainvoke(initial_state)

        if final_state.get("context_is_default"):
            record_context_fallback()

        logger.info("pipeline_completed")
        return final_state["result"]
