"""Configuration schema definitions."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class GatewayConfig:
    """Model selection per call kind."""
    news_model: str = "gpt-4.1-mini"
    analysis_model: str = "gpt-5"
    analysis_reasoning_effort: str = "high"
    lookup_model: str = "gpt-4.1-nano"
    chat_model: str = "gpt-5"
    risk_model: str = "gpt-4.1-mini"
    base_url: Optional[str] = None  # Falls back to env var OPENAI_API_BASE


@dataclass
class HistoryConfig:
    """Configuration for the local analysis history."""
    path: str = "data/trademind_storage.json"
    key: str = "tradeHistory"
    max_entries: int = 20


@dataclass
class NewsConfig:
    """Configuration for the live ticker news feed."""
    debounce_seconds: float = 1.5


@dataclass
class ServerConfig:
    """Configuration for the HTTP API."""
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class AppConfig:
    """Main application configuration."""
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    news: NewsConfig = field(default_factory=NewsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
