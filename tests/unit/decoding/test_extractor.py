"""Unit tests for candidate extraction."""

import pytest

from resilient_json.decoding.extractor import (
    extract_bracket_span,
    extract_candidate,
    extract_fenced_block,
)

pytestmark = pytest.mark.unit


class TestFencedBlock:
    """Markdown fence extraction"""

    def test_extracts_tagged_fence(self):
        """Should return the stripped interior of a ```json fence"""
        text = 'Here:\n```json\n{"a": 1}\n```\nDone'
        assert extract_fenced_block(text) == '{"a": 1}'

    def test_extracts_untagged_fence(self):
        """Should handle fences without a language tag"""
        assert extract_fenced_block("```\n[1, 2]\n```") == "[1, 2]"

    def test_extracts_inline_fence(self):
        """Should handle a fence opened and closed on one line"""
        assert extract_fenced_block('```{"a":1}```') == '{"a":1}'

    def test_only_first_fence_is_used(self):
        """Should ignore later fenced blocks"""
        text = '```json\n{"a": 1}\n```\ntext\n```json\n{"b": 2}\n```'
        assert extract_fenced_block(text) == '{"a": 1}'

    def test_unterminated_fence_runs_to_end(self):
        """Should take the rest of a truncated response"""
        assert extract_fenced_block('Sure:\n```json\n{"a": 1,') == '{"a": 1,'

    @pytest.mark.parametrize("text", ["", "no fence", "``````", "```json\n```"])
    def test_returns_none_without_content(self, text):
        """Should return None for missing or empty fences"""
        assert extract_fenced_block(text) is None


class TestBracketSpan:
    """First-opener to last-closer spans"""

    def test_object_span(self):
        """Should cut prose around an object"""
        assert extract_bracket_span('prefix {"a": [1]} suffix') == '{"a": [1]}'

    def test_array_appearing_first_wins(self):
        """Should prefer whichever opener appears first"""
        text = 'list: [1, {"a": 2}] end'
        assert extract_bracket_span(text) == '[1, {"a": 2}]'

    def test_missing_closer_runs_to_end(self):
        """Should keep a truncated blob for later recovery"""
        assert extract_bracket_span('x {"a": 1') == '{"a": 1'

    def test_closer_before_opener_is_ignored(self):
        """Should not produce an inverted span"""
        assert extract_bracket_span('} {"a"') == '{"a"'

    def test_no_opener(self):
        """Should return None when no bracket exists"""
        assert extract_bracket_span("hello world") is None


class TestExtractCandidate:
    """Combined extraction policy"""

    def test_fence_beats_bracket_span(self):
        """Should prefer fenced content over earlier bare brackets"""
        text = 'see {x}\n```json\n{"a": 1}\n```'
        assert extract_candidate(text) == '{"a": 1}'

    def test_falls_back_to_bracket_span(self):
        """Should use the bracket span when there is no fence"""
        assert extract_candidate('The answer is [1, 2].') == "[1, 2]"

    def test_none_when_nothing_found(self):
        """Should return None for plain prose"""
        assert extract_candidate("hello world") is None
