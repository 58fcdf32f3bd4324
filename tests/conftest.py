"""Pytest fixtures for TradeMind testing.

Provides a fake async model client and temporary history storage so the
gateway, sessions and API can be exercised without network access.
"""
from __future__ import annotations

import json
import logging
import pytest
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Union

# Add project root to path
import sys
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from trademind.config.schemas import GatewayConfig
from trademind.models import TradeAnalysis
from trademind.services.history import HistoryStore
from trademind.services.llm import MarketGateway
from trademind.services.storage import LocalStorage


# =============================================================================
# Fake model client
# =============================================================================

class FakeResponses:
    """Stands in for client.responses; replays queued texts or exceptions."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self._queue: List[Union[str, BaseException, None]] = []

    def queue(self, *items: Union[str, BaseException, None]) -> None:
        self._queue.extend(items)

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        item = self._queue.pop(0) if self._queue else ""
        if isinstance(item, BaseException):
            raise item
        return SimpleNamespace(output_text=item)


class FakeClient:
    def __init__(self):
        self.responses = FakeResponses()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def gateway(fake_client) -> MarketGateway:
    return MarketGateway(fake_client, GatewayConfig())


# =============================================================================
# Sample payloads
# =============================================================================

@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    return {
        "recommendation": "BUY",
        "confidenceScore": 82,
        "summary": "Verdict: BUY. Momentum and earnings both point higher.",
        "reasoning": [
            "Price is above the 50 and 200 day moving averages",
            "Revenue grew 18% year over year",
        ],
        "riskFactors": ["Valuation stretched", "Export restrictions"],
        "keyMetrics": [
            {"label": "RSI", "value": "64", "trend": "up"},
            {"label": "P/E", "value": "38", "trend": "neutral"},
        ],
    }


@pytest.fixture
def analysis(analysis_payload) -> TradeAnalysis:
    return TradeAnalysis.model_validate(analysis_payload)


@pytest.fixture
def news_payload() -> List[Dict[str, Any]]:
    return [
        {
            "title": "Chipmaker beats estimates",
            "source": "Reuters",
            "url": "https://example.com/a",
            "sentiment": "positive",
            "snippet": "Quarterly revenue topped forecasts.",
        },
        {
            "title": "Regulators widen export probe",
            "source": "Bloomberg",
            "sentiment": "negative",
            "snippet": "New restrictions could hit sales.",
        },
    ]


# =============================================================================
# Storage
# =============================================================================

@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def history(storage) -> HistoryStore:
    return HistoryStore(storage)


def fenced(payload: Any, lang: str = "json") -> str:
    """Wrap a payload the way models often do."""
    return f"  ```{lang}\n{json.dumps(payload)}\n```  \n"


@pytest.fixture
def fence():
    return fenced


# =============================================================================
# Logging
# =============================================================================

@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so handlers never outlive a captured stream."""
    yield
    logger = logging.getLogger("trademind")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
