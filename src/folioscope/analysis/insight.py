"""Compact technical-analysis payloads for LLM insight generation.

The insight layer sends a trimmed view of a TechnicalAnalysisResult to a
language model. This module builds that view and the delimited prompt text;
calling the model is left to the caller.
"""

import json
from typing import Any

from .types import TechnicalAnalysisResult

COMPACT_INDICATORS = ("rsi", "macd", "bollinger_bands", "stochastic", "williams_r")

TECHNICAL_TASKS = (
    "Summarize current state in plain terms.",
    "Highlight notable levels or signals (e.g., overbought/oversold, crossovers).",
    "Mention risks and opportunities for the next 1-2 sessions.",
    "Provide confidence score (0-1).",
)


def compact_technical_analysis(
    result: TechnicalAnalysisResult,
    last_n: int = 5,
    max_signals: int = 20,
) -> dict[str, Any]:
    """Reduce an analysis to the summary, the first signals and recent indicator points.

    Args:
        result: Full analysis
        last_n: Trailing points kept per indicator
        max_signals: Signals kept, in emission order

    Returns:
        JSON-serialisable dict; indicators absent from the analysis map to None
    """
    indicators: dict[str, Any] = {}
    for name in COMPACT_INDICATORS:
        series = result.indicators.get(name)
        if series is None:
            indicators[name] = None
        else:
            indicators[name] = [point.to_dict() for point in series[-last_n:]] if last_n > 0 else []

    return {
        "summary": result.summary.to_dict(),
        "signals": [s.to_dict() for s in result.signals[:max_signals]],
        "indicators": indicators,
    }


def build_technical_prompt(result: TechnicalAnalysisResult, symbol: str | None = None) -> str:
    """Render the user prompt for a technical insight request.

    The compact payload sits between ``<<<DATA`` and ``DATA>>>`` markers,
    followed by numbered tasks.
    """
    payload = json.dumps(compact_technical_analysis(result), sort_keys=True)
    lines = [
        f"SYMBOL: {symbol or result.symbol}",
        "TYPE: TECHNICAL",
        "DATA (JSON, DELIMITED):",
        "<<<DATA",
        payload,
        "DATA>>>",
        "Tasks:",
    ]
    lines.extend(f"{i}. {task}" for i, task in enumerate(TECHNICAL_TASKS, start=1))
    return "\n".join(lines)
