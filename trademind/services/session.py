"""Per-user session state: dashboard, ticker news feed and chat."""
from __future__ import annotations
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from ..models import ChatMessage, ChatTurn, HistoryEntry, NewsItem, TradeAnalysis
from .dispatch import Debouncer, LatestRequestGuard
from .history import HistoryStore
from .llm import MarketGateway

logger = logging.getLogger(__name__)

CHAT_GREETING = (
    "Hello! I am your financial assistant. Ask me anything about trading "
    "strategies, terminology, or specific assets."
)

NewsCallback = Callable[[str, List[NewsItem]], Awaitable[None]]


class TickerNewsFeed:
    """
    Debounced news lookups for a ticker that changes as the user types.

    Only the newest ticker's results are delivered to on_news; results
    for superseded tickers are dropped.
    """

    SLOT = "ticker_news"

    def __init__(
        self,
        gateway: MarketGateway,
        on_news: NewsCallback,
        debounce_seconds: float = 1.5,
        guard: Optional[LatestRequestGuard] = None,
    ):
        self.gateway = gateway
        self.on_news = on_news
        self.guard = guard or LatestRequestGuard()
        self.debouncer = Debouncer(debounce_seconds)
        self.ticker = ""

    async def update(self, ticker: str) -> None:
        """Register a new ticker value; the fetch fires once it settles."""
        self.ticker = (ticker or "").strip().upper()
        # A fetch already in flight belongs to the previous ticker
        self.guard.invalidate(self.SLOT)
        if not self.ticker:
            self.debouncer.cancel()
            await self.on_news("", [])
            return
        self.debouncer.trigger(self.ticker, self._load)

    async def _load(self, ticker: str) -> None:
        applied, items = await self.guard.run(self.SLOT, self.gateway.fetch_market_news(ticker))
        if applied:
            await self.on_news(ticker, items)

    async def close(self) -> None:
        self.debouncer.cancel()
        self.guard.invalidate(self.SLOT)


class DashboardSession:
    """
    State behind the analysis dashboard.

    analyze() writes successful results through to the history store;
    risk explanations are cached per risk for the current ticker.
    """

    def __init__(self, gateway: MarketGateway, history: HistoryStore):
        self.gateway = gateway
        self.history = history
        self.ticker = ""
        self.context = ""
        self.result: Optional[TradeAnalysis] = None
        self.risk_details: Dict[str, str] = {}

    async def analyze(self, ticker: str, context: str = "") -> HistoryEntry:
        """Run a trade analysis and record it. Gateway errors propagate."""
        self.ticker = ticker.strip().upper()
        self.context = context
        self.result = None
        self.risk_details = {}

        analysis = await self.gateway.analyze_trade(self.ticker, context)
        self.result = analysis
        return self.history.record(analysis, self.ticker)

    async def explain_risk(self, risk: str) -> str:
        if risk not in self.risk_details:
            self.risk_details[risk] = await self.gateway.explain_risk_factor(self.ticker, risk)
        return self.risk_details[risk]

    def open_from_history(self, entry_id: str) -> Optional[HistoryEntry]:
        """Show a past analysis again; returns None for unknown ids."""
        entry = self.history.get(entry_id)
        if entry is None:
            return None
        self.ticker = entry.ticker
        self.result = entry.to_analysis()
        self.risk_details = {}
        return entry

    def delete_history(self, entry_id: str) -> None:
        self.history.remove(entry_id)

    def clear_history(self) -> None:
        self.history.clear()


class ChatSession:
    """In-memory chat log; nothing here is persisted."""

    def __init__(self, gateway: MarketGateway, greeting: Optional[str] = CHAT_GREETING):
        self.gateway = gateway
        self.messages: List[ChatMessage] = []
        if greeting:
            self.messages.append(ChatMessage(role="model", text=greeting))

    async def send(self, text: str) -> Optional[ChatMessage]:
        """Append the user message and the model's reply; blank input is ignored."""
        if not text or not text.strip():
            return None

        history = [ChatTurn.from_message(m) for m in self.messages]
        self.messages.append(ChatMessage(role="user", text=text))

        reply_text = await self.gateway.send_chat_message(history, text)
        reply = ChatMessage(role="model", text=reply_text)
        self.messages.append(reply)
        return reply
