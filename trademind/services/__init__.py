"""External services module."""
from .llm import MarketGateway, create_gateway
from .storage import LocalStorage
from .history import HistoryStore
from .dispatch import LatestRequestGuard, Debouncer
from .session import TickerNewsFeed, DashboardSession, ChatSession

__all__ = [
    # LLM
    "MarketGateway",
    "create_gateway",
    # Persistence
    "LocalStorage",
    "HistoryStore",
    # Async state
    "LatestRequestGuard",
    "Debouncer",
    # Sessions
    "TickerNewsFeed",
    "DashboardSession",
    "ChatSession",
]
