"""Tests for the stage-2 result parser."""

from __future__ import annotations

import pytest

from cv_evaluator.errors import ErrorKind, MalformedJSONError, NoJSONFoundError, ResultUnparsableError
from cv_evaluator.pipeline.parser import (
    DEFAULT_CV_MATCH_RATE,
    DEFAULT_PROJECT_SCORE,
    extract_json_span,
    parse_evaluation_result,
)


class TestExtractJsonSpan:
    def test_strips_surrounding_prose(self):
        assert extract_json_span('Sure! {"a": 1} Hope that helps.') == '{"a": 1}'

    def test_first_open_to_last_close(self):
        text = 'x {"a": {"b": 2}} y }'
        assert extract_json_span(text) == '{"a": {"b": 2}} y }'

    def test_no_braces(self):
        with pytest.raises(NoJSONFoundError):
            extract_json_span("I cannot evaluate this.")

    def test_close_before_open(self):
        with pytest.raises(NoJSONFoundError):
            extract_json_span("} nothing here {")

    def test_only_open_brace(self):
        with pytest.raises(NoJSONFoundError):
            extract_json_span('{"cv_match_rate": 0.5')


class TestParseEvaluationResult:
    def test_valid_payload(self):
        result = parse_evaluation_result(
            '{"cv_match_rate": 0.8, "cv_feedback": "good", "project_score": 7.5, '
            '"project_feedback": "solid", "overall_summary": "hire"}'
        )
        assert result.cv_match_rate == 0.8
        assert result.project_score == 7.5
        assert result.cv_feedback == "good"
        assert result.project_feedback == "solid"
        assert result.overall_summary == "hire"

    def test_markdown_fenced_json(self):
        raw = '```json\n{"cv_match_rate": 0.3, "project_score": 2}\n```'
        result = parse_evaluation_result(raw)
        assert result.cv_match_rate == 0.3
        assert result.project_score == 2.0

    def test_out_of_range_values_are_clamped_to_defaults(self):
        result = parse_evaluation_result('{"cv_match_rate": 1.7, "project_score": 15}')
        assert result.cv_match_rate == DEFAULT_CV_MATCH_RATE == 0.5
        assert result.project_score == DEFAULT_PROJECT_SCORE == 5.0

    def test_negative_values_are_clamped(self):
        result = parse_evaluation_result('{"cv_match_rate": -0.1, "project_score": -3}')
        assert result.cv_match_rate == 0.5
        assert result.project_score == 5.0

    def test_boundaries_are_kept(self):
        result = parse_evaluation_result('{"cv_match_rate": 1.0, "project_score": 0}')
        assert result.cv_match_rate == 1.0
        assert result.project_score == 0.0

    def test_missing_fields_use_zero_values(self):
        result = parse_evaluation_result("{}")
        assert result.cv_match_rate == 0.0
        assert result.project_score == 0.0
        assert result.cv_feedback == ""
        assert result.overall_summary == ""

    def test_null_numbers_decode_as_zero(self):
        result = parse_evaluation_result(
            '{"cv_match_rate": null, "cv_feedback": "ok", "project_score": 7, "project_feedback": "fine"}'
        )
        assert result.cv_match_rate == 0.0
        assert result.project_score == 7.0

    def test_null_text_decodes_as_empty(self):
        result = parse_evaluation_result('{"cv_match_rate": 0.7, "overall_summary": null, "cv_feedback": null}')
        assert result.cv_match_rate == 0.7
        assert result.overall_summary == ""
        assert result.cv_feedback == ""

    def test_no_json(self):
        with pytest.raises(NoJSONFoundError) as exc_info:
            parse_evaluation_result("The candidate looks great.")
        assert exc_info.value.kind == ErrorKind.RESULT_UNPARSABLE

    def test_malformed_json(self):
        with pytest.raises(MalformedJSONError):
            parse_evaluation_result('{"cv_match_rate": 0.8, "cv_feedback": }')

    def test_wrong_field_type(self):
        with pytest.raises(MalformedJSONError):
            parse_evaluation_result('{"cv_match_rate": "very high"}')

    def test_both_errors_share_a_base(self):
        for raw in ("nothing", "{not json}"):
            with pytest.raises(ResultUnparsableError):
                parse_evaluation_result(raw)
