"""Graph state definition using TypedDict.

EvaluationState: state of the two-stage evaluation graph for one job.
"""

from __future__ import annotations

from typing import TypedDict

from cv_evaluator.schemas.evaluation import EvaluationResult


class EvaluationState(TypedDict, total=False):
    """State for the evaluation workflow graph.

    Flows: load_documents → stage1_analysis → retrieve_context
           → stage2_evaluation → parse_result
    """

    # ----- Input -----
    cv_path: str
    report_path: str

    # ----- Loaded document text -----
    cv_text: str
    report_text: str

    # ----- Stage 1 output (free text, expected to hold a JSON object) -----
    stage1_analysis: str

    # ----- Retrieved context (ephemeral, never persisted) -----
    context: list[str]
    context_is_default: bool

    # ----- Stage 2 output -----
    stage2_raw: str

    # ----- Parsed result -----
    result: EvaluationResult
