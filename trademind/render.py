"""Plain-text panels for analyses, news, history and chat."""
from __future__ import annotations
from typing import List, Sequence

from .models import ChatMessage, HistoryEntry, NewsItem, TradeAnalysis

TREND_MARKERS = {"up": "▲", "down": "▼", "neutral": "•"}
SENTIMENT_MARKERS = {"positive": "+", "negative": "-", "neutral": "="}


def clamp_confidence(score: float) -> float:
    """Confidence from the model is untrusted; keep it within [0, 100]."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(100.0, value))


def confidence_bar(score: float, width: int = 20) -> str:
    filled = int(round(clamp_confidence(score) / 100.0 * width))
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def format_analysis(ticker: str, analysis: TradeAnalysis) -> str:
    """Render the analysis result panel."""
    confidence = clamp_confidence(analysis.confidence_score)
    lines = [
        f"=== {ticker}: {analysis.recommendation} ===",
        f"Confidence {confidence_bar(confidence)} {confidence:.0f}%",
        "",
        analysis.summary,
        "",
        "Reasoning:",
    ]
    lines.extend(f"  {i}. {reason}" for i, reason in enumerate(analysis.reasoning, 1))

    if analysis.key_metrics:
        lines.append("")
        lines.append("Key Metrics:")
        for metric in analysis.key_metrics:
            lines.append(f"  {TREND_MARKERS.get(metric.trend, '•')} {metric.label}: {metric.value}")

    lines.append("")
    lines.append("Risk Factors:")
    lines.extend(f"  ! {risk}" for risk in analysis.risk_factors)
    return "\n".join(lines)


def format_news(items: Sequence[NewsItem]) -> str:
    if not items:
        return "No news found."
    blocks: List[str] = []
    for item in items:
        block = [f"[{SENTIMENT_MARKERS[item.sentiment]}] {item.title} ({item.source})", f"    {item.snippet}"]
        if item.url:
            block.append(f"    {item.url}")
        blocks.append("\n".join(block))
    return "\n\n".join(blocks)


def format_history(entries: Sequence[HistoryEntry]) -> str:
    if not entries:
        return "No past analysis yet."
    return "\n".join(
        f"{e.id}  {e.timestamp.strftime('%Y-%m-%d %H:%M')}  {e.ticker:<8} {e.recommendation:<4} "
        f"{clamp_confidence(e.confidence_score):>3.0f}%"
        for e in entries
    )


def format_chat(messages: Sequence[ChatMessage]) -> str:
    return "\n".join(f"{'You' if m.role == 'user' else 'Assistant'}: {m.text}" for m in messages)
