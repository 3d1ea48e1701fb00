"""
Example usage of the TechnicalAnalysisEngine.

Demonstrates:
1. Running a full analysis on a synthetic daily series
2. Querying strong, per-indicator and consensus signals
3. Partial configuration overrides and disabled families
4. Plain-language explanations with market context
5. Building the compact LLM prompt
"""

from datetime import datetime

from folioscope.analysis import (
    TechnicalAnalysisEngine,
    build_technical_prompt,
    generate_multiple_indicator_explanations,
    infer_market_context,
)
from folioscope.config import get_settings
from folioscope.data import generate_sample_price_data
from folioscope.utils import get_logger, setup_logging

logger = get_logger(__name__)


def print_section(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(title)
    print("=" * 60)


def example_full_analysis(engine, data):
    """Run every family and print the consensus summary."""
    print_section("1. Full Analysis")

    result = engine.analyze(data, "AAPL")
    summary = result.summary

    print(f"Bars analysed:   {len(data)}")
    print(f"Overall:         {summary.overall} (strength {summary.strength:.2f})")
    print(f"Confidence:      {summary.confidence:.2f}")
    print(f"Trend/momentum:  {summary.trend_direction} / {summary.momentum}")
    print(f"Volatility:      {summary.volatility}")
    print(f"Signals:         {len(result.signals)}")

    for name, outcome in result.families.items():
        note = f" ({outcome.reason})" if outcome.reason else ""
        print(f"  {name:<16} {outcome.status}{note}")

    return result


def example_signal_queries(engine, result):
    """Filter the signal list in the ways a dashboard does."""
    print_section("2. Signal Queries")

    strong = engine.get_strong_signals(result)
    print(f"Strong signals (>= 0.7): {len(strong)}")
    for signal in strong[-5:]:
        print(f"  {signal.timestamp:%Y-%m-%d} {signal.indicator:<18} {signal.signal:<4} {signal.strength:.2f}")

    rsi = engine.get_signals_by_indicator(result, "RSI")
    print(f"RSI signals: {len(rsi)}")

    consensus = engine.get_consensus_signals(result)
    print(f"Consensus groups: {len(consensus)}")
    for signal in consensus[-3:]:
        print(f"  {signal.timestamp:%Y-%m-%d} {signal.indicator} -> {signal.signal}")


def example_custom_config(data):
    """Override a few parameters and switch a family off."""
    print_section("3. Custom Configuration")

    engine = TechnicalAnalysisEngine(
        {
            "rsi": {"period": 10, "overbought": 75, "oversold": 25},
            "bollingerBands": {"standardDeviations": 2.5},
            "volume": None,
        }
    )
    result = engine.analyze(data[-40:], "AAPL")

    print(f"Skipped:  {result.skipped_families}")
    print(f"Volume:   {result.families['volume'].status}")
    print(f"Overall:  {result.summary.overall}")


def example_explanations(engine, result, data):
    """Turn strong signals into plain-language guidance."""
    print_section("4. Explanations")

    context = infer_market_context("AAPL", "Technology", 2.9e12)
    explained = generate_multiple_indicator_explanations(
        engine.get_strong_signals(result)[-4:], "AAPL", data[-1].close, context
    )

    for explanation in explained.explanations:
        print(f"\n[{explanation.indicator}] risk={explanation.risk_level} ({explanation.timeframe})")
        print(f"  {explanation.explanation}")
        print(f"  -> {explanation.actionable_insight}")

    for conflict in explained.conflicts:
        print(f"\n! {conflict}")
    print(f"\nOverall sentiment: {explained.overall_sentiment}")


def example_prompt(result):
    """Show the payload sent to an LLM for a written insight."""
    print_section("5. LLM Prompt")
    prompt = build_technical_prompt(result)
    print(prompt[:600] + ("..." if len(prompt) > 600 else ""))


def main():
    settings = get_settings()
    setup_logging(settings.log_config())

    data = generate_sample_price_data("AAPL", 250, start_price=180.0, seed=42, start_date=datetime(2024, 1, 1))
    engine = TechnicalAnalysisEngine()

    logger.info("example_started", bars=len(data))

    result = example_full_analysis(engine, data)
    example_signal_queries(engine, result)
    example_custom_config(data)
    example_explanations(engine, result, data)
    example_prompt(result)


if __name__ == "__main__":
    main()
