"""Configuration loading."""
from __future__ import annotations
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Union
import os
import yaml
from dotenv import load_dotenv

from .schemas import GatewayConfig, HistoryConfig, NewsConfig, ServerConfig, AppConfig


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update base dict with updates."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[Union[str, Path]] = None, env_file: Optional[Union[str, Path]] = ".env") -> AppConfig:
    """
    Load configuration from YAML file with environment overrides.

    Args:
        path: Path to YAML config file
        env_file: .env file to load into the environment (existing
            variables win); None to skip

    Returns:
        AppConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    config = AppConfig()

    if path:
        filepath = Path(path)
        if filepath.exists():
            data = yaml.safe_load(filepath.read_text()) or {}
            base = asdict(config)
            merged = _deep_update(base, data)

            config = AppConfig(
                gateway=GatewayConfig(**merged.get("gateway", {})),
                history=HistoryConfig(**merged.get("history", {})),
                news=NewsConfig(**merged.get("news", {})),
                server=ServerConfig(**merged.get("server", {})),
            )

    # Environment overrides
    config.history.path = os.getenv("TRADEMIND_HISTORY_PATH", config.history.path)
    config.gateway.analysis_model = os.getenv("TRADEMIND_ANALYSIS_MODEL", config.gateway.analysis_model)
    config.gateway.base_url = os.getenv("OPENAI_API_BASE", config.gateway.base_url)

    return config
