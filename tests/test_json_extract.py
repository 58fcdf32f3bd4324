"""Tests for fence stripping and JSON extraction."""
from __future__ import annotations

import json
import pytest

from trademind.errors import EmptyResponseError, GatewayError, ResponseParseError, TransportError
from trademind.utils.json_extract import extract_json, strip_code_fence


class TestStripCodeFence:
    """Single leading/trailing fence removal."""

    def test_plain_text_unchanged(self):
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_json_fence_removed(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self):
        assert strip_code_fence('```\n[1, 2]\n```') == '[1, 2]'

    def test_surrounding_whitespace_tolerated(self):
        assert strip_code_fence('\n\n   ```json   \n{"a": 1}\n   ```   \n') == '{"a": 1}'

    def test_single_line_fence(self):
        assert strip_code_fence('```json{"a": 1}```') == '{"a": 1}'


class TestExtractJson:
    """Decoding after fence stripping."""

    @pytest.mark.parametrize("payload", [
        {"recommendation": "HOLD", "confidenceScore": 50, "nested": {"x": [1, 2, 3]}},
        [{"title": "t", "sentiment": "neutral"}],
        {"text": "contains `backticks` inline"},
    ])
    def test_fenced_equals_bare(self, payload, fence):
        bare = json.dumps(payload)
        assert extract_json(fence(payload)) == extract_json(bare) == payload

    def test_empty_text_is_empty_error(self):
        with pytest.raises(EmptyResponseError):
            extract_json("   \n ")

    def test_none_is_empty_error(self):
        with pytest.raises(EmptyResponseError):
            extract_json(None)

    def test_invalid_json_is_parse_error(self):
        with pytest.raises(ResponseParseError) as exc_info:
            extract_json("```json\n{not json}\n```")
        assert "preview" in exc_info.value.details

    def test_multiple_fenced_blocks_rejected(self):
        text = '```json\n{"a": 1}\n```\nSome prose\n```json\n{"b": 2}\n```'
        with pytest.raises(ResponseParseError):
            extract_json(text)

    def test_failure_kinds_are_distinct(self):
        """Empty and parse failures are gateway errors but not transport errors."""
        assert issubclass(EmptyResponseError, GatewayError)
        assert issubclass(ResponseParseError, GatewayError)
        assert not issubclass(ResponseParseError, TransportError)
        assert not issubclass(EmptyResponseError, ResponseParseError)
