"""FastAPI server for the TradeMind browser client.

Provides REST endpoints for:
- Trade analysis (recorded to history)
- Market news, term lookup, chat and risk explanations
- History listing, deletion and clearing

and a WebSocket that streams debounced news for a ticker as it is typed.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from ..config import AppConfig, load_config
from ..errors import GatewayError, error_payload
from ..models import ChatTurn, NewsItem
from ..services.history import HistoryStore
from ..services.llm import MarketGateway, create_gateway
from ..services.session import TickerNewsFeed
from ..services.storage import LocalStorage

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================

def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class AnalyzeRequest(BaseModel):
    ticker: str
    context: str = ""

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        return _required_text(v).upper()


class ChatPart(BaseModel):
    text: str


class ChatTurnIn(BaseModel):
    role: Literal["user", "model"]
    parts: List[ChatPart] = Field(default_factory=list)

    def to_turn(self) -> ChatTurn:
        return ChatTurn(role=self.role, parts=[p.text for p in self.parts])


class ChatRequest(BaseModel):
    history: List[ChatTurnIn] = Field(default_factory=list)
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        return _required_text(v)


class ChatReply(BaseModel):
    text: str


class RiskRequest(BaseModel):
    ticker: str
    risk: str

    @field_validator("ticker", "risk")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _required_text(v)


class TextReply(BaseModel):
    text: str


# =============================================================================
# FastAPI App
# =============================================================================

def create_app(
    config: Optional[AppConfig] = None,
    gateway: Optional[MarketGateway] = None,
    history: Optional[HistoryStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or load_config()

    app = FastAPI(
        title="TradeMind API",
        description="LLM-backed trade analysis, market news and chat",
        version="1.0.0",
    )

    # CORS middleware for the browser client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.gateway = gateway
    app.state.history = history or HistoryStore(
        LocalStorage(Path(config.history.path)),
        key=config.history.key,
        max_entries=config.history.max_entries,
    )

    def get_gateway() -> MarketGateway:
        # Created on first use so the app can start (and serve history)
        # without an API key in the environment.
        if app.state.gateway is None:
            app.state.gateway = create_gateway(config.gateway)
        return app.state.gateway

    # ==========================================================================
    # REST Endpoints
    # ==========================================================================

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "TradeMind API", "version": "1.0.0"}

    @app.get("/news", response_model=List[NewsItem])
    async def get_news(query: str = Query(..., min_length=1)):
        """Grounded news search; failures yield an empty list."""
        if not query.strip():
            raise HTTPException(status_code=422, detail="query must not be blank")
        return await get_gateway().fetch_market_news(query)

    @app.post("/analyze")
    async def analyze(request: AnalyzeRequest):
        """Run a trade analysis and record it to history."""
        try:
            analysis = await get_gateway().analyze_trade(request.ticker, request.context)
        except GatewayError as e:
            logger.error(f"Analysis failed for {request.ticker}: {e}")
            return JSONResponse(status_code=502, content=error_payload(e))

        entry = app.state.history.record(analysis, request.ticker)
        return entry.model_dump(mode="json", by_alias=True)

    @app.get("/lookup", response_model=TextReply)
    async def lookup(term: str = Query(..., min_length=1)):
        return {"text": await get_gateway().quick_lookup(term.strip())}

    @app.post("/chat", response_model=ChatReply)
    async def chat(request: ChatRequest):
        history = [turn.to_turn() for turn in request.history]
        return {"text": await get_gateway().send_chat_message(history, request.message)}

    @app.post("/risk/explain", response_model=TextReply)
    async def explain_risk(request: RiskRequest):
        return {"text": await get_gateway().explain_risk_factor(request.ticker, request.risk)}

    @app.get("/history")
    async def list_history() -> List[Dict[str, Any]]:
        return [e.model_dump(mode="json", by_alias=True) for e in app.state.history.load()]

    @app.get("/history/{entry_id}")
    async def get_history_entry(entry_id: str):
        entry = app.state.history.get(entry_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"History entry {entry_id} not found")
        return entry.model_dump(mode="json", by_alias=True)

    @app.delete("/history/{entry_id}")
    async def delete_history_entry(entry_id: str):
        app.state.history.remove(entry_id)
        return {"status": "ok"}

    @app.delete("/history")
    async def clear_history():
        app.state.history.clear()
        return {"status": "ok"}

    # ==========================================================================
    # WebSocket Endpoints
    # ==========================================================================

    @app.websocket("/ws/ticker-news")
    async def websocket_ticker_news(websocket: WebSocket):
        """Debounced news for the latest ticker the client has sent."""
        await websocket.accept()

        async def push(ticker: str, items: List[NewsItem]) -> None:
            await websocket.send_json({
                "event": "news",
                "ticker": ticker,
                "items": [item.model_dump(mode="json") for item in items],
            })

        feed = TickerNewsFeed(
            get_gateway(),
            on_news=push,
            debounce_seconds=config.news.debounce_seconds,
        )

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except ValueError:
                    data = None
                if not isinstance(data, dict):
                    await websocket.send_json({
                        "event": "error",
                        "message": 'expected a JSON object such as {"ticker": "AAPL"}',
                    })
                    continue
                if "ticker" in data:
                    await feed.update(str(data.get("ticker") or ""))
        except WebSocketDisconnect:
            pass
        finally:
            await feed.close()

    return app


# =============================================================================
# CLI entry point
# =============================================================================

def run_server(host: str = "127.0.0.1", port: int = 8000, config: Optional[AppConfig] = None):
    """Run the API server."""
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
