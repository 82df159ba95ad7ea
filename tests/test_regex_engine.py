"""Tests for the regex extraction engine."""

import re
import time

import pytest

from event_stream.models import OsDocument
from event_stream.parsers.base import QUOTED
from event_stream.regex_engine import RegexBudget, RegexService, compile_pattern, group_to_path

P1 = re.compile(r"^(?P<event__action>login) (?P<user__name>\w+)$")
P2 = re.compile(r"^(?P<http__request__method>[A-Z]+) (?P<extract_target>\S+)$")


def _doc(original):
    return OsDocument(data={"event": {"original": original}})


class TestApplyRegex:
    def test_second_pattern_supplies_captures(self, regex_service):
        doc = _doc("GET /index.html")
        result = regex_service.apply_regex(doc, "event.original", [P1, P2])
        assert result.matched
        assert result.pattern_index == 1
        assert result.fields == {"http.request.method": "GET"}
        assert result.derived == {"target": "/index.html"}

    def test_literal_captures_merged_into_document(self, regex_service):
        doc = _doc("login alice")
        regex_service.apply_regex(doc, "event.original", [P1, P2])
        assert doc.data["event"]["action"] == "login"
        assert doc.data["user"]["name"] == "alice"

    def test_derived_captures_not_merged(self, regex_service):
        doc = _doc("GET /index.html")
        regex_service.apply_regex(doc, "event.original", [P2])
        assert not doc.has("extract_target")
        assert not doc.has("target")

    def test_first_match_wins(self, regex_service):
        catch_all = re.compile(r"^(?P<message>.*)$")
        doc = _doc("login bob")
        result = regex_service.apply_regex(doc, "event.original", [P1, catch_all])
        assert result.pattern_index == 0
        assert not doc.has("message")

    def test_no_match_is_empty_not_error(self, regex_service):
        doc = _doc("nothing to see")
        result = regex_service.apply_regex(doc, "event.original", [P1, P2])
        assert not result
        assert result.fields == {}
        assert result.derived == {}
        assert doc.data == {"event": {"original": "nothing to see"}}

    def test_missing_field(self, regex_service):
        doc = OsDocument(data={})
        assert not regex_service.apply_regex(doc, "event.original", [P1])

    def test_non_string_field(self, regex_service):
        doc = OsDocument(data={"event": {"original": 42}})
        assert not regex_service.apply_regex(doc, "event.original", [P1])

    def test_unmatched_optional_groups_skipped(self, regex_service):
        pattern = re.compile(r"^(?P<a>\w+)(?: (?P<b__c>\w+))?$")
        doc = _doc("only")
        result = regex_service.apply_regex(doc, "event.original", [pattern])
        assert result.fields == {"a": "only"}
        assert not doc.has("b")


class TestBudget:
    def test_oversized_input_not_matched(self):
        service = RegexService(RegexBudget(max_input_length=10))
        doc = _doc("GET /a/very/long/path/indeed")
        assert not service.apply_regex(doc, "event.original", [P2])
        assert not doc.has("http")

    def test_spent_budget_skips_remaining_patterns(self):
        service = RegexService(RegexBudget(time_budget_ms=0))
        doc = _doc("GET /index.html")
        assert not service.apply_regex(doc, "event.original", [P1, P2])

    def test_first_pattern_always_tried(self):
        service = RegexService(RegexBudget(time_budget_ms=0))
        doc = _doc("GET /index.html")
        assert service.apply_regex(doc, "event.original", [P2]).matched

    def test_quoted_fragment_is_linear_on_adversarial_input(self, regex_service):
        pattern = compile_pattern(r'^"(?P<extract_body>' + QUOTED + r')" (?P<status>\d+)$')
        hostile = '"' + '\\"' * 20000 + "x" * 20000
        doc = _doc(hostile)
        start = time.monotonic()
        result = regex_service.apply_regex(doc, "event.original", [pattern])
        assert not result
        assert time.monotonic() - start < 1.0


class TestHelpers:
    def test_group_to_path(self):
        assert group_to_path("http__response__status_code") == "http.response.status_code"
        assert group_to_path("message") == "message"

    def test_compile_pattern_requires_anchor(self):
        with pytest.raises(ValueError):
            compile_pattern(r"(?P<a>\w+)")
        assert compile_pattern(r"^(?P<a>\w+)$").match("abc")
