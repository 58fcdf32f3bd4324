"""
TradeMind

LLM-backed market assistant with:
- Grounded BUY/SELL/HOLD trade analysis
- News sentiment, term lookup, risk explanations and chat
- Bounded local history of past analyses
"""
__version__ = "0.1.0"

# Lazy imports to avoid loading the OpenAI client on package import
def __getattr__(name):
    """Lazy import for heavy modules."""
    if name == "MarketGateway":
        from .services.llm import MarketGateway
        return MarketGateway
    elif name == "create_gateway":
        from .services.llm import create_gateway
        return create_gateway
    elif name == "HistoryStore":
        from .services.history import HistoryStore
        return HistoryStore
    elif name == "TradeAnalysis":
        from .models import TradeAnalysis
        return TradeAnalysis
    elif name == "NewsItem":
        from .models import NewsItem
        return NewsItem
    elif name == "HistoryEntry":
        from .models import HistoryEntry
        return HistoryEntry
    elif name == "AppConfig":
        from .config import AppConfig
        return AppConfig
    elif name == "load_config":
        from .config import load_config
        return load_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    # Gateway
    "MarketGateway",
    "create_gateway",
    # History
    "HistoryStore",
    # Models
    "TradeAnalysis",
    "NewsItem",
    "HistoryEntry",
    # Config
    "AppConfig",
    "load_config",
]
