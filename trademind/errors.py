"""Error types for the model gateway and a JSON error formatter."""
from __future__ import annotations
import json
import traceback
from typing import Any, Dict, Optional


class TradeMindError(Exception):
    """Base exception for trademind."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class GatewayError(TradeMindError):
    """A model gateway call did not produce a usable result."""


class TransportError(GatewayError):
    """The remote call itself failed (network, auth, rate limit, 5xx)."""


class EmptyResponseError(GatewayError):
    """The remote call succeeded but returned no text."""


class ResponseParseError(GatewayError):
    """The response text could not be decoded as JSON."""


class ResponseValidationError(ResponseParseError):
    """The decoded JSON does not match the declared schema."""


def error_payload(e: Exception, include_traceback: bool = False) -> Dict[str, Any]:
    """Build the error envelope used by the API and CLI."""
    if isinstance(e, TradeMindError):
        error_type = e.__class__.__name__
        message = e.message
        details = dict(e.details)
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {}
        if include_traceback:
            details["traceback"] = traceback.format_exc().splitlines()

    return {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details,
        },
    }


def format_error(e: Exception) -> str:
    """Format exception as a JSON string."""
    return json.dumps(error_payload(e, include_traceback=True), indent=2)
