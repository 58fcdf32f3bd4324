"""LLM gateway: prompts, response schemas and the five model calls."""
from __future__ import annotations
import logging
import os
import re
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from ..config.schemas import GatewayConfig
from ..errors import (
    EmptyResponseError,
    ResponseValidationError,
    TransportError,
)
from ..models import (
    ChatTurn,
    NewsItem,
    RECOMMENDATIONS,
    SENTIMENTS,
    TRENDS,
    TradeAnalysis,
)
from ..utils.json_extract import extract_json

logger = logging.getLogger(__name__)


LOOKUP_FALLBACK = "Could not define term."
RISK_EMPTY_FALLBACK = "No details available."
RISK_ERROR_FALLBACK = "Unable to fetch details at this time."
CHAT_EMPTY_FALLBACK = "I couldn't generate a response."
CHAT_ERROR_FALLBACK = "Sorry, I encountered an error connecting to the server."

CHAT_SYSTEM_INSTRUCTION = (
    "You are a helpful and cautious financial assistant. "
    "Do not give binding financial advice, but provide educational analysis."
)

WEB_SEARCH_TOOL = {"type": "web_search"}


# =============================================================================
# Prompts
# =============================================================================

NEWS_PROMPT = """Find the latest financial news, earnings reports, and market sentiment for {query}.
Return a list of 3-5 key news items with their sentiment."""

ANALYSIS_PROMPT = """You are an expert financial trading AI. Your goal is to provide a clear, decisive BUY, SELL, or HOLD recommendation for {ticker} based on data.

User Context: "{context}"

MANDATORY STEPS:
1. SEARCH: Use the web search tool to retrieve the LATEST real-time data:
   - Technical Analysis: RSI, MACD, Moving Averages (50/200 day), Support/Resistance levels.
   - Fundamental Analysis: Recent earnings, Revenue growth, Net Income, Balance Sheet health.
   - Sentiment: Recent news, analyst upgrades/downgrades.

2. DECIDE:
   - Evaluate all factors.
   - If the trend is bullish and fundamentals are strong -> BUY.
   - If the trend is bearish or fundamentals are deteriorating -> SELL.
   - If signals are mixed or the market is flat -> HOLD.
   - Be decisive. Do not simply list facts; form a conclusion.

3. OUTPUT:
   - The 'summary' MUST start with a clear verdict (e.g., "Verdict: BUY. The stock is showing strong momentum...").
   - Provide specific reasoning for the decision in the 'reasoning' list.

Output a structured JSON response with your final recommendation."""

LOOKUP_PROMPT = 'Explain the financial term or concept "{term}" briefly in one sentence.'

RISK_PROMPT = """Explain why "{risk}" is a specific significant risk factor for the asset "{ticker}" right now.
Keep the explanation concise (under 50 words) and specific to the current market context."""


# =============================================================================
# Response schemas
# =============================================================================

NEWS_ITEM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "source": {"type": "string"},
        "url": {"type": "string"},
        "sentiment": {"type": "string", "enum": list(SENTIMENTS)},
        "snippet": {"type": "string"},
    },
    "required": ["title", "source", "sentiment", "snippet"],
}

# The structured-output API only accepts an object at the root, so the
# list travels inside an "items" envelope.
NEWS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "items": {"type": "array", "items": NEWS_ITEM_SCHEMA},
    },
    "required": ["items"],
}

TRADE_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "recommendation": {"type": "string", "enum": list(RECOMMENDATIONS)},
        "confidenceScore": {"type": "number", "description": "0 to 100"},
        "summary": {"type": "string"},
        "reasoning": {"type": "array", "items": {"type": "string"}},
        "riskFactors": {"type": "array", "items": {"type": "string"}},
        "keyMetrics": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "value": {"type": "string"},
                    "trend": {"type": "string", "enum": list(TRENDS)},
                },
                "required": ["label", "value", "trend"],
            },
        },
    },
    "required": ["recommendation", "confidenceScore", "summary", "reasoning", "riskFactors"],
}


def _json_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Structured-output text format. Non-strict so optional fields stay optional."""
    return {"format": {"type": "json_schema", "name": name, "schema": schema, "strict": False}}


# =============================================================================
# Client
# =============================================================================

def _create_openai_client(base_url: Optional[str] = None) -> AsyncOpenAI:
    """Create OpenAI client with environment variables."""
    key = os.getenv("OPENAI_API_KEY")
    if not key:
        raise RuntimeError("OPENAI_API_KEY not set")

    base_url = base_url or os.getenv("OPENAI_API_BASE")
    if base_url:
        base_url = base_url.rstrip("/")
        if base_url.endswith("/chat/completions") or base_url.endswith("/responses"):
            base_url = re.sub(r"/(chat/completions|responses)$", "", base_url)
        return AsyncOpenAI(api_key=key, base_url=base_url)
    else:
        return AsyncOpenAI(api_key=key)


def create_gateway(config: Optional[GatewayConfig] = None) -> "MarketGateway":
    """Build a MarketGateway with a client configured from the environment."""
    config = config or GatewayConfig()
    return MarketGateway(_create_openai_client(config.base_url), config)


# =============================================================================
# Gateway
# =============================================================================

class MarketGateway:
    """
    Thin adapter over a generative model client.

    Holds no state between calls besides the injected client and config.
    Each operation is one request: no retries, no streaming.

    Failure policy:
    - analyze_trade raises (TransportError, EmptyResponseError,
      ResponseParseError/ResponseValidationError); a recommendation is
      never defaulted.
    - Every other operation logs the failure and returns an empty or
      fallback value.
    """

    def __init__(self, client: Any, config: Optional[GatewayConfig] = None):
        self.client = client
        self.config = config or GatewayConfig()

    async def _generate(self, *, model: str, input: Any, **options: Any) -> str:
        """Issue one generation request and return its text ('' if none)."""
        try:
            response = await self.client.responses.create(model=model, input=input, **options)
        except OpenAIError as e:
            raise TransportError(
                f"Model request failed: {e}",
                details={"model": model, "error": e.__class__.__name__},
            ) from e
        return getattr(response, "output_text", None) or ""

    async def fetch_market_news(self, query: str) -> List[NewsItem]:
        """
        Grounded search for 3-5 recent news items on query.

        Never raises: news is supplementary, so any failure yields [].
        """
        if not query or not query.strip():
            return []

        try:
            text = await self._generate(
                model=self.config.news_model,
                input=NEWS_PROMPT.format(query=query.strip()),
                tools=[WEB_SEARCH_TOOL],
                text=_json_format("market_news", NEWS_SCHEMA),
            )
            data = extract_json(text)
            if isinstance(data, dict):
                data = data.get("items", [])
            if not isinstance(data, list):
                raise ResponseValidationError("News response is not a list")
        except Exception as e:
            logger.warning(f"Error fetching market news for '{query}': {e}")
            return []

        items: List[NewsItem] = []
        for raw in data:
            try:
                items.append(NewsItem.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed news item for '{query}': {e.error_count()} error(s)")
        return items

    async def analyze_trade(self, ticker: str, context: str = "") -> TradeAnalysis:
        """
        Deep grounded analysis producing a BUY/SELL/HOLD recommendation.

        Args:
            ticker: Symbol to analyze (required)
            context: Optional free-text user context

        Returns:
            TradeAnalysis exactly as decoded

        Raises:
            ValueError: ticker is blank
            TransportError: the request failed
            EmptyResponseError: the model returned no text
            ResponseParseError: the text is not valid JSON
            ResponseValidationError: the JSON does not match the schema
        """
        if not ticker or not ticker.strip():
            raise ValueError("ticker is required")
        ticker = ticker.strip()

        text = await self._generate(
            model=self.config.analysis_model,
            input=ANALYSIS_PROMPT.format(ticker=ticker, context=context or ""),
            tools=[WEB_SEARCH_TOOL],
            reasoning={"effort": self.config.analysis_reasoning_effort},
            text=_json_format("trade_analysis", TRADE_ANALYSIS_SCHEMA),
        )
        if not text.strip():
            raise EmptyResponseError("No analysis generated", details={"ticker": ticker})

        data = extract_json(text)
        try:
            analysis = TradeAnalysis.model_validate(data)
        except ValidationError as e:
            raise ResponseValidationError(
                "Analysis does not match the declared schema",
                details={"ticker": ticker, "errors": e.errors(include_url=False, include_context=False)},
            ) from e

        logger.info(f"Analysis for {ticker}: {analysis.recommendation} ({analysis.confidence_score})")
        return analysis

    async def quick_lookup(self, term: str) -> str:
        """One-sentence definition of a financial term."""
        try:
            text = await self._generate(
                model=self.config.lookup_model,
                input=LOOKUP_PROMPT.format(term=term),
            )
        except Exception as e:
            logger.warning(f"Lookup failed for '{term}': {e}")
            return LOOKUP_FALLBACK
        return text or LOOKUP_FALLBACK

    async def send_chat_message(self, history: Sequence[ChatTurn], new_message: str) -> str:
        """
        Reply to new_message given the prior turns.

        The conversation is rebuilt from history on every call; the caller
        owns the session log and appends both sides itself.
        """
        messages: List[Dict[str, str]] = [
            {"role": "assistant" if turn.role == "model" else "user", "content": turn.text}
            for turn in history
        ]
        messages.append({"role": "user", "content": new_message})

        try:
            text = await self._generate(
                model=self.config.chat_model,
                input=messages,
                instructions=CHAT_SYSTEM_INSTRUCTION,
            )
        except Exception as e:
            logger.warning(f"Chat request failed: {e}")
            return CHAT_ERROR_FALLBACK
        return text or CHAT_EMPTY_FALLBACK

    async def explain_risk_factor(self, ticker: str, risk: str) -> str:
        """Short explanation of why risk matters for ticker. Never raises."""
        try:
            text = await self._generate(
                model=self.config.risk_model,
                input=RISK_PROMPT.format(ticker=ticker, risk=risk),
            )
        except Exception as e:
            logger.warning(f"Risk explanation failed for {ticker} / '{risk}': {e}")
            return RISK_ERROR_FALLBACK
        return text or RISK_EMPTY_FALLBACK
