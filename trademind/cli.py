"""Command-line interface for TradeMind."""
from __future__ import annotations
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, load_config
from .errors import GatewayError, format_error
from .render import format_analysis, format_history, format_news
from .services.history import HistoryStore
from .services.llm import create_gateway
from .services.session import ChatSession, DashboardSession
from .services.storage import LocalStorage
from .utils.logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trademind",
        description="LLM-backed trade analysis, market news and chat",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deep analysis with optional context (recorded to history)
  trademind analyze NVDA --context "swing trade entry before earnings"

  # Latest news with sentiment for a ticker or topic
  trademind news "TSLA"

  # One-sentence definition
  trademind lookup "short selling"

  # Why a risk matters right now
  trademind explain-risk AAPL "supply chain concentration"

  # Interactive assistant
  trademind chat

  # Past analyses
  trademind history list
  trademind history show <id>
  trademind history remove <id>
  trademind history clear

  # Start the API server for the browser client
  trademind serve --port 8000
""",
    )
    parser.add_argument("--config", type=Path, help="Path to YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    analyze_parser = subparsers.add_parser("analyze", help="Run a BUY/SELL/HOLD analysis")
    analyze_parser.add_argument("ticker", help="Ticker symbol (e.g. AAPL, BTC)")
    analyze_parser.add_argument("--context", default="", help="Free-text context for the analysis")
    analyze_parser.add_argument(
        "--explain-risks",
        action="store_true",
        help="Also fetch a short explanation for every risk factor",
    )

    news_parser = subparsers.add_parser("news", help="Search recent news with sentiment")
    news_parser.add_argument("query", help="Ticker or market topic")

    lookup_parser = subparsers.add_parser("lookup", help="Define a financial term")
    lookup_parser.add_argument("term", help="Term to define")

    risk_parser = subparsers.add_parser("explain-risk", help="Explain a risk factor for a ticker")
    risk_parser.add_argument("ticker", help="Ticker symbol")
    risk_parser.add_argument("risk", help="Risk factor text")

    subparsers.add_parser("chat", help="Interactive chat with the financial assistant")

    history_parser = subparsers.add_parser("history", help="Manage past analyses")
    history_parser.add_argument(
        "action",
        nargs="?",
        default="list",
        choices=["list", "show", "remove", "clear"],
        help="History action (default: list)",
    )
    history_parser.add_argument("entry_id", nargs="?", help="Entry ID for show/remove")
    history_parser.add_argument("--yes", action="store_true", help="Skip the clear confirmation")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", type=str, default=None, help="Host to bind (default: from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind (default: from config)")

    return parser


def _history_store(config: AppConfig) -> HistoryStore:
    return HistoryStore(
        LocalStorage(config.history.path),
        key=config.history.key,
        max_entries=config.history.max_entries,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)
    config = load_config(args.config)

    if args.command == "analyze":
        return _run_analyze(args, config)

    elif args.command == "news":
        items = asyncio.run(create_gateway(config.gateway).fetch_market_news(args.query))
        print(format_news(items))

    elif args.command == "lookup":
        print(asyncio.run(create_gateway(config.gateway).quick_lookup(args.term)))

    elif args.command == "explain-risk":
        print(asyncio.run(create_gateway(config.gateway).explain_risk_factor(args.ticker, args.risk)))

    elif args.command == "chat":
        asyncio.run(_run_chat(config))

    elif args.command == "history":
        return _run_history(args, config)

    elif args.command == "serve":
        _run_api_server(args, config)

    else:
        parser.print_help()

    return 0


def _run_analyze(args, config: AppConfig) -> int:
    """Analyze a ticker, record it and print the panel."""
    session = DashboardSession(create_gateway(config.gateway), _history_store(config))

    async def _analyze():
        entry = await session.analyze(args.ticker, args.context)
        details = {}
        if args.explain_risks:
            for risk in entry.risk_factors:
                details[risk] = await session.explain_risk(risk)
        return entry, details

    try:
        entry, details = asyncio.run(_analyze())
    except (GatewayError, ValueError) as e:
        print("Analysis failed. Please try again.", file=sys.stderr)
        print(format_error(e), file=sys.stderr)
        return 1

    print(format_analysis(entry.ticker, entry))
    for risk, explanation in details.items():
        print(f"\n  {risk}\n    {explanation}")
    print(f"\nSaved to history as {entry.id}")
    return 0


async def _run_chat(config: AppConfig) -> None:
    """Simple REPL over a ChatSession; an empty line or EOF exits."""
    session = ChatSession(create_gateway(config.gateway))
    print(f"Assistant: {session.messages[0].text}")

    while True:
        try:
            text = input("You: ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not text.strip():
            break
        reply = await session.send(text)
        if reply is not None:
            print(f"Assistant: {reply.text}")


def _run_history(args, config: AppConfig) -> int:
    store = _history_store(config)

    if args.action == "list":
        print(format_history(store.load()))

    elif args.action == "show":
        if not args.entry_id:
            print("Error: history show requires an entry ID", file=sys.stderr)
            return 2
        entry = store.get(args.entry_id)
        if entry is None:
            print(f"Error: history entry '{args.entry_id}' not found", file=sys.stderr)
            return 1
        print(format_analysis(entry.ticker, entry))

    elif args.action == "remove":
        if not args.entry_id:
            print("Error: history remove requires an entry ID", file=sys.stderr)
            return 2
        store.remove(args.entry_id)
        print(f"Removed {args.entry_id}")

    elif args.action == "clear":
        if not args.yes:
            answer = input("Are you sure you want to clear your analysis history? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Aborted.")
                return 0
        store.clear()
        print("History cleared.")

    return 0


def _run_api_server(args, config: AppConfig):
    """Start the API server."""
    host = args.host or config.server.host
    port = args.port or config.server.port

    print(f"\n{'='*60}")
    print("TRADEMIND API SERVER")
    print(f"{'='*60}")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"History: {config.history.path}")
    print(f"{'='*60}\n")

    from .api.server import run_server
    run_server(host=host, port=port, config=config)


if __name__ == "__main__":
    sys.exit(main())
