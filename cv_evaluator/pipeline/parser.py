"""Result parser: model output text → EvaluationResult.

The model is asked to wrap its answer in prose-tolerant JSON. We take the
span from the first ``{`` to the last ``}`` and decode that, then clamp the
two numeric fields into their domains.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ValidationError, field_validator

from cv_evaluator.errors import MalformedJSONError, NoJSONFoundError
from cv_evaluator.schemas.evaluation import EvaluationResult

DEFAULT_CV_MATCH_RATE = 0.5
DEFAULT_PROJECT_SCORE = 5.0


class _RawEvaluation(BaseModel):
    """Decoded stage-2 payload before range validation."""

    cv_match_rate: float = 0.0
    cv_feedback: str = ""
    project_score: float = 0.0
    project_feedback: str = ""
    overall_summary: str = ""

    # JSON null decodes to the field's zero value
    @field_validator("cv_match_rate", "project_score", mode="before")
    @classmethod
    def _null_number(cls, v):
        return 0.0 if v is None else v

    @field_validator("cv_feedback", "project_feedback", "overall_summary", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v


def extract_json_span(raw_text: str) -> str:
    """Return the substring from the first ``{`` to the last ``}`` inclusive."""
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJSONFoundError("no JSON found in response")
    return raw_text[start : end + 1]


def parse_evaluation_result(raw_text: str) -> EvaluationResult:
    """Parse stage-2 output into a validated EvaluationResult.

    Raises:
        NoJSONFoundError: no ``{ ... }`` span in the text.
        MalformedJSONError: the span is not a JSON object of the expected shape.
    """
    candidate = extract_json_span(raw_text)

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedJSONError(f"failed to decode JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedJSONError("decoded JSON is not an object")

    try:
        raw = _RawEvaluation.model_validate(data)
    except ValidationError as exc:
        raise MalformedJSONError(f"unexpected field types: {exc}") from exc

    cv_match_rate = raw.cv_match_rate
    if not 0.0 <= cv_match_rate <= 1.0:
        cv_match_rate = DEFAULT_CV_MATCH_RATE

    project_score = raw.project_score
    if not 0.0 <= project_score <= 10.0:
        project_score = DEFAULT_PROJECT_SCORE

    return EvaluationResult(
        cv_match_rate=cv_match_rate,
        cv_feedback=raw.cv_feedback,
        project_score=project_score,
        project_feedback=raw.project_feedback,
        overall_summary=raw.overall_summary,
    )
