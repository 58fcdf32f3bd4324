"""Configuration management module."""
from .schemas import GatewayConfig, HistoryConfig, NewsConfig, ServerConfig, AppConfig
from .loader import load_config

__all__ = [
    "GatewayConfig",
    "HistoryConfig",
    "NewsConfig",
    "ServerConfig",
    "AppConfig",
    "load_config",
]
