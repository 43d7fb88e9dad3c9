"""
Tests for response parsing: structured JSON and labeled text.
"""

import json

import pytest

from taskflow_ai.core.exceptions import ParseError
from taskflow_ai.models.parsers import (
    DEFAULT_HOURS,
    ResponseParser,
    extract_tags,
    find_sections,
    strip_noise,
)
from taskflow_ai.models.types import ModelResponse, ModelProvider, OperationType
from taskflow_ai.planning.models import Priority

from conftest import FIXED_NOW, OPTIMIZE_RESPONSE, prioritize_payload


@pytest.fixture
def parser():
    return ResponseParser()


class TestLabeledText:
    def test_full_response(self, parser):
        result = parser.parse_optimization(OPTIMIZE_RESPONSE)

        assert result.optimized_title == ""
        assert result.estimated_hours == 3
        assert result.priority == Priority.HIGH
        assert result.suggested_tags == ["auth", "bug-fix", "login"]
        assert result.definition_of_done.startswith("• Crash no longer reproduces")
        assert result.optimized_description.startswith("Investigate the crash")
        assert "\n\nDefinition of Done:\n• Crash no longer reproduces" in result.optimized_description

    def test_markdown_noise_is_stripped(self, parser):
        content = (
            "**TASK DESCRIPTION:**\nRefactor the parser.\n\n"
            "**DEFINITION OF DONE:**\n* Tests pass\n\n"
            "**Estimated Hours:** 5\n**Priority:** URGENT\n**Suggested Tags:** parser, refactor"
        )

        parsed = parser.parse(OperationType.OPTIMIZE, content)

        assert parsed.is_valid
        assert parsed.result.estimated_hours == 5
        assert parsed.result.priority == Priority.URGENT
        assert parsed.result.suggested_tags == ["parser", "refactor"]
        assert parsed.result.definition_of_done == "• Tests pass"

    def test_no_labels_uses_defaults(self, parser):
        parsed = parser.parse(OperationType.OPTIMIZE, "Just do the thing carefully.")

        assert parsed.result.estimated_hours == DEFAULT_HOURS
        assert parsed.result.priority == Priority.MEDIUM
        assert parsed.result.suggested_tags == []
        assert parsed.result.optimized_description == "Just do the thing carefully."
        assert not parsed.is_valid

    def test_empty_content_never_raises(self, parser):
        result = parser.parse_optimization("")

        assert result.estimated_hours == DEFAULT_HOURS
        assert result.optimized_description == ""

    def test_trailing_prose_after_tags(self, parser):
        content = OPTIMIZE_RESPONSE.replace(
            "Suggested Tags: [auth, bug-fix, login]",
            "Suggested Tags: auth, login\n\nLet me know if you need more details.",
        )

        result = parser.parse_optimization(content)

        assert result.suggested_tags == ["auth", "login"]

    def test_dunder_names_survive_cleanup(self, parser):
        content = OPTIMIZE_RESPONSE.replace(
            "patch the session handling", "patch Session.__init__ handling"
        )

        result = parser.parse_optimization(content)

        assert "Session.__init__ handling" in result.optimized_description

    def test_aliases_must_start_a_line(self, parser):
        content = (
            "TASK DESCRIPTION:\nImprove response time: target under 200ms.\n"
            "DEFINITION OF DONE:\nLatency dashboard is green.\n"
            "Hours: 6\n"
            "Tags: perf"
        )

        result = parser.parse_optimization(content)

        assert result.estimated_hours == 6
        assert "response time: target under 200ms" in result.optimized_description
        assert result.suggested_tags == ["perf"]

    def test_each_field_defaults_independently(self, parser):
        content = "TASK DESCRIPTION:\nWrite docs\nPriority: low"

        parsed = parser.parse(OperationType.OPTIMIZE, content)

        assert parsed.result.priority == Priority.LOW
        assert parsed.result.estimated_hours == DEFAULT_HOURS
        assert "No estimated hours found" in parsed.validation_errors
        assert "No definition of done found" in parsed.validation_errors


class TestHelpers:
    def test_strip_noise(self):
        assert strip_noise("```text\n**Bold** [note]\n- item\n```") == "Bold note\n• item"

    def test_find_sections_orders_by_position(self):
        sections = find_sections("Priority: high\nTASK DESCRIPTION:\nabc")

        assert sections == {"priority": "high", "description": "abc"}

    def test_extract_tags_variants(self):
        assert extract_tags("[a, b, a]") == ["a", "b"]
        assert extract_tags("#one, 'two', • three") == ["one", "two", "three"]
        assert extract_tags(None) == []

    def test_extract_tags_stops_at_end_of_line(self):
        section = "auth, login\n\nLet me know if you need more details."

        assert extract_tags(section) == ["auth", "login"]

    def test_strip_noise_keeps_dunder_identifiers(self):
        text = "__Note:__ override __init__ and __repr__"

        assert strip_noise(text) == "Note: override __init__ and __repr__"


class TestStructured:
    def test_prioritize_round_trip(self, parser, sample_tasks):
        ids = ["t-critical", "t-medium", "t-low"]

        parsed = parser.parse(OperationType.PRIORITIZE, prioritize_payload(ids), sample_tasks)

        assert parsed.result.task_ids == ids
        first = parsed.result.priority_order[0]
        assert first.title == "Fix login crash"
        assert first.project == "Auth"
        assert first.priority == Priority.HIGH
        assert parsed.result.timeline.critical_path == ["t-critical"]
        assert parsed.result.insights.recommendations == ["Start early"]

    def test_prioritize_inside_code_fence(self, parser, sample_tasks):
        ids = ["t-low", "t-medium", "t-critical"]
        content = "```json\n" + prioritize_payload(ids) + "\n```"

        parsed = parser.parse(OperationType.PRIORITIZE, content, sample_tasks)

        assert parsed.result.task_ids == ids

    def test_prioritize_unknown_id(self, parser, sample_tasks):
        content = prioritize_payload(["t-critical", "t-medium", "t-ghost"])

        with pytest.raises(ParseError, match="Unknown task id"):
            parser.parse(OperationType.PRIORITIZE, content, sample_tasks)

    def test_prioritize_missing_id(self, parser, sample_tasks):
        content = prioritize_payload(["t-critical", "t-medium"])

        with pytest.raises(ParseError, match="permutation"):
            parser.parse(OperationType.PRIORITIZE, content, sample_tasks)

    def test_prioritize_duplicate_id(self, parser, sample_tasks):
        content = prioritize_payload(["t-critical", "t-critical", "t-medium", "t-low"])

        with pytest.raises(ParseError, match="permutation"):
            parser.parse(OperationType.PRIORITIZE, content, sample_tasks)

    def test_extra_key_is_rejected(self, parser, sample_tasks):
        content = prioritize_payload(["t-critical", "t-medium", "t-low"], mood="great")

        with pytest.raises(ParseError, match="unexpected=\\['mood'\\]"):
            parser.parse(OperationType.PRIORITIZE, content, sample_tasks)

    def test_missing_key_is_rejected(self, parser):
        content = json.dumps({"suggestions": [{"title": "x"}]})

        with pytest.raises(ParseError, match="missing=\\['rationale'\\]"):
            parser.parse(OperationType.SUGGEST, content)

    def test_invalid_json(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse(OperationType.INSIGHTS, "Sorry, I cannot help with that.")

        assert exc_info.value.error_code == "RESPONSE_PARSE_FAILED"
        assert exc_info.value.raw_excerpt.startswith("Sorry")

    def test_suggestions(self, parser):
        content = json.dumps(
            {
                "suggestions": [
                    {
                        "title": "Automate reports",
                        "priority": "HIGH",
                        "estimatedHours": "3",
                        "tags": ["automation"],
                    },
                    {"description": "no title here"},
                ],
                "rationale": "Save time",
            }
        )

        parsed = parser.parse(OperationType.SUGGEST, content)

        assert len(parsed.result.suggestions) == 1
        suggestion = parsed.result.suggestions[0]
        assert suggestion.priority == Priority.HIGH
        assert suggestion.estimated_hours == 3.0
        assert parsed.validation_errors == ["Suggestion 2 has no title"]

    def test_empty_suggestions_rejected(self, parser):
        content = json.dumps({"suggestions": [], "rationale": "none"})

        with pytest.raises(ParseError):
            parser.parse(OperationType.SUGGEST, content)

    def test_insights(self, parser):
        content = json.dumps(
            {
                "overallScore": 140,
                "strengths": ["Consistent"],
                "areasForImprovement": "Estimation",
                "recommendations": [
                    {"category": "focus", "suggestion": "Block mornings", "impact": "High"},
                    "Take breaks",
                ],
                "patterns": {"completionTrends": "Up"},
                "nextSteps": ["Review backlog"],
            }
        )

        result = parser.parse(OperationType.INSIGHTS, content).result

        assert result.overall_score == 100
        assert result.areas_for_improvement == ["Estimation"]
        assert result.recommendations[0].impact == "high"
        assert result.recommendations[1].category == "general"
        assert result.patterns.completion_trends == "Up"

    def test_insights_non_numeric_score(self, parser):
        content = json.dumps(
            {
                "overallScore": "great",
                "strengths": [],
                "areasForImprovement": [],
                "recommendations": [],
                "patterns": {},
                "nextSteps": [],
            }
        )

        with pytest.raises(ParseError, match="overallScore"):
            parser.parse(OperationType.INSIGHTS, content)

    def test_parse_response_uses_model_operation(self, parser):
        response = ModelResponse(
            content=OPTIMIZE_RESPONSE,
            provider=ModelProvider.OPENAI,
            model_name="gpt-4o-mini",
            operation=OperationType.OPTIMIZE,
            timestamp=FIXED_NOW,
        )

        parsed = parser.parse_response(response)

        assert parsed.operation == OperationType.OPTIMIZE
        assert parsed.result.estimated_hours == 3
