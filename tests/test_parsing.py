"""
Tests: LLM response parsing (fence stripping, shape validation, array extraction).
"""

import json

from ideaforge.ai.parsing import (
    ANALYSIS_SHAPE,
    DIAGRAM_SHAPE,
    DOCUMENT_SHAPE,
    extract_json_array,
    parse,
    parser_for,
    strip_code_fence,
)

ANALYSIS = {
    "missingDetails": ["a"],
    "complementarySuggestions": [],
    "constraintsAndRisks": ["b"],
    "clarifyingQuestions": ["c?"],
}


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n[1, 2]\n```') == "[1, 2]"

    def test_text_around_fence(self):
        raw = 'Here you go:\n```json\n{"a": 1}\n```\nThanks!'
        assert strip_code_fence(raw) == '{"a": 1}'

    def test_no_fence_trims(self):
        assert strip_code_fence('  {"a": 1}\n') == '{"a": 1}'


class TestParse:
    def test_valid_analysis(self):
        assert parse(json.dumps(ANALYSIS), ANALYSIS_SHAPE) == ANALYSIS

    def test_fenced_document(self):
        raw = '```json\n{"title": "PRD: X", "content": "<p>x</p>"}\n```'
        assert parse(raw, DOCUMENT_SHAPE) == {"title": "PRD: X", "content": "<p>x</p>"}

    def test_extra_fields_are_dropped(self):
        raw = json.dumps({"title": "T", "mermaidCode": "graph TB", "notes": "ignored"})
        assert parse(raw, DIAGRAM_SHAPE) == {"title": "T", "mermaidCode": "graph TB"}

    def test_invalid_json_returns_none(self):
        assert parse("not json at all", ANALYSIS_SHAPE) is None

    def test_missing_field_returns_none(self):
        data = dict(ANALYSIS)
        del data["clarifyingQuestions"]
        assert parse(json.dumps(data), ANALYSIS_SHAPE) is None

    def test_wrong_kind_returns_none(self):
        data = dict(ANALYSIS, missingDetails="should be a list")
        assert parse(json.dumps(data), ANALYSIS_SHAPE) is None

    def test_non_string_list_item_returns_none(self):
        data = dict(ANALYSIS, clarifyingQuestions=["ok", 3])
        assert parse(json.dumps(data), ANALYSIS_SHAPE) is None

    def test_empty_string_field_returns_none(self):
        assert parse(json.dumps({"title": " ", "content": "<p/>"}), DOCUMENT_SHAPE) is None

    def test_array_instead_of_object_returns_none(self):
        assert parse("[1, 2, 3]", DOCUMENT_SHAPE) is None

    def test_parser_for_binds_shape(self):
        parser = parser_for(DIAGRAM_SHAPE)
        assert parser('{"title": "T", "mermaidCode": "erDiagram"}')["title"] == "T"
        assert parser("{}") is None


class TestExtractJsonArray:
    def test_array_with_prose(self):
        raw = 'Sure! Here are the features:\n[{"title": "A"}, {"title": "B"}]\nLet me know.'
        assert extract_json_array(raw) == [{"title": "A"}, {"title": "B"}]

    def test_array_inside_fence(self):
        raw = '```json\n[{"title": "A", "description": "d"}]\n```'
        assert extract_json_array(raw) == [{"title": "A", "description": "d"}]

    def test_non_object_items_are_skipped(self):
        assert extract_json_array('[{"title": "A"}, "loose", 3]') == [{"title": "A"}]

    def test_no_array(self):
        assert extract_json_array("no brackets here") is None

    def test_undecodable_array(self):
        assert extract_json_array("[not, valid, json]") is None

    def test_only_scalars(self):
        assert extract_json_array("[1, 2, 3]") is None

    def test_none_input(self):
        assert extract_json_array(None) is None
