"""Data models for analyses, news, history and chat."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


Recommendation = Literal["BUY", "SELL", "HOLD"]
Sentiment = Literal["positive", "negative", "neutral"]
Trend = Literal["up", "down", "neutral"]
ChatRole = Literal["user", "model"]

RECOMMENDATIONS = ("BUY", "SELL", "HOLD")
SENTIMENTS = ("positive", "negative", "neutral")
TRENDS = ("up", "down", "neutral")


class NewsItem(BaseModel):
    """A single news headline with sentiment, as returned by the model."""
    model_config = ConfigDict(frozen=True)

    title: str
    source: str
    url: str = ""
    sentiment: Sentiment
    snippet: str

    @field_validator("url", mode="before")
    @classmethod
    def null_url_to_empty(cls, v: Any) -> str:
        return "" if v is None else v


class KeyMetric(BaseModel):
    """A labelled metric with its direction."""
    label: str
    value: str
    trend: Trend


class TradeAnalysis(BaseModel):
    """
    Structured trade recommendation.

    Wire format uses camelCase keys (confidenceScore, riskFactors,
    keyMetrics); snake_case names are accepted too. confidence_score is
    stored exactly as received; clamping is a rendering concern.
    """
    model_config = ConfigDict(populate_by_name=True)

    recommendation: Recommendation
    confidence_score: float = Field(alias="confidenceScore")
    summary: str
    reasoning: List[str]
    risk_factors: List[str] = Field(alias="riskFactors")
    key_metrics: List[KeyMetric] = Field(default_factory=list, alias="keyMetrics")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class HistoryEntry(TradeAnalysis):
    """A recorded analysis, owned by the history store."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    ticker: str
    timestamp: datetime

    @classmethod
    def from_analysis(cls, analysis: TradeAnalysis, ticker: str) -> "HistoryEntry":
        """Stamp an analysis with a fresh id and the current UTC time."""
        return cls(
            **analysis.model_dump(),
            id=uuid.uuid4().hex,
            ticker=ticker,
            timestamp=datetime.now(timezone.utc),
        )

    def to_analysis(self) -> TradeAnalysis:
        """Drop the history metadata."""
        return TradeAnalysis.model_validate(
            self.model_dump(exclude={"id", "ticker", "timestamp"})
        )


@dataclass
class ChatMessage:
    """One message in a chat session log."""
    role: ChatRole
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ChatTurn:
    """Prior conversation turn handed to the gateway (role + text parts)."""
    role: ChatRole
    parts: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.parts)

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ChatTurn":
        return cls(role=message.role, parts=[message.text])
