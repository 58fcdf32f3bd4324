# API module for the TradeMind browser client
"""FastAPI server exposing the model gateway and analysis history."""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
