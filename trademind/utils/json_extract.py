"""Fence stripping and JSON decoding for model responses."""
from __future__ import annotations
import json
import re
from typing import Any

from ..errors import EmptyResponseError, ResponseParseError


# One opening fence with an optional language tag, one closing fence.
_LEADING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")
_FENCE_LINE = re.compile(r"^[ \t]*```", re.MULTILINE)


def strip_code_fence(text: str) -> str:
    """
    Remove a single surrounding markdown code fence, if present.

    Only the outermost leading and trailing fence markers are removed;
    whitespace around them is tolerated.
    """
    stripped = _LEADING_FENCE.sub("", text, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def extract_json(text: str) -> Any:
    """
    Decode a model response into Python data.

    Raises:
        EmptyResponseError: text is empty or whitespace only
        ResponseParseError: fence-stripped text is not valid JSON, or it
            still contains a fence line (nested or multiple fenced blocks)
    """
    if text is None or not text.strip():
        raise EmptyResponseError("Model returned an empty response")

    body = strip_code_fence(text)
    if _FENCE_LINE.search(body):
        raise ResponseParseError(
            "Response contains more than one fenced block",
            details={"preview": body[:200]},
        )

    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"Failed to decode model response: {e.msg}",
            details={"line": e.lineno, "column": e.colno, "preview": body[:200]},
        ) from e
