"""Utility functions and helpers."""
from .json_extract import strip_code_fence, extract_json
from .logging import configure_logging

__all__ = [
    "strip_code_fence",
    "extract_json",
    "configure_logging",
]
