"""
Unit tests for the compact LLM payload and prompt builder.
"""

import json

import pytest

from folioscope.analysis import TechnicalAnalysisEngine, build_technical_prompt, compact_technical_analysis


@pytest.fixture
def analysis(sample_price_data, freeze_time):
    return TechnicalAnalysisEngine(clock=freeze_time.now).analyze(sample_price_data, "AAPL")


@pytest.mark.unit
class TestCompactAnalysis:
    """Tests for compact_technical_analysis."""

    def test_shape(self, analysis):
        compact = compact_technical_analysis(analysis)

        assert set(compact) == {"summary", "signals", "indicators"}
        assert compact["summary"] == analysis.summary.to_dict()
        assert len(compact["signals"]) == min(20, len(analysis.signals))
        assert set(compact["indicators"]) == {"rsi", "macd", "bollinger_bands", "stochastic", "williams_r"}
        for points in compact["indicators"].values():
            assert len(points) == 5

    def test_keeps_most_recent_points(self, analysis):
        compact = compact_technical_analysis(analysis, last_n=2, max_signals=3)
        assert compact["indicators"]["rsi"] == [r.to_dict() for r in analysis.indicators["rsi"][-2:]]
        assert compact["signals"] == [s.to_dict() for s in analysis.signals[:3]]

    def test_missing_indicator_is_none(self, sample_price_data):
        result = TechnicalAnalysisEngine({"macd": None}).analyze(sample_price_data, "AAPL")
        assert compact_technical_analysis(result)["indicators"]["macd"] is None

    def test_is_json_serializable(self, analysis):
        json.dumps(compact_technical_analysis(analysis))


@pytest.mark.unit
class TestTechnicalPrompt:
    """Tests for build_technical_prompt."""

    def test_layout(self, analysis):
        lines = build_technical_prompt(analysis).split("\n")

        assert lines[:4] == ["SYMBOL: AAPL", "TYPE: TECHNICAL", "DATA (JSON, DELIMITED):", "<<<DATA"]
        assert json.loads(lines[4]) == json.loads(json.dumps(compact_technical_analysis(analysis)))
        assert lines[5] == "DATA>>>"
        assert lines[6] == "Tasks:"
        assert lines[7] == "1. Summarize current state in plain terms."
        assert lines[-1] == "4. Provide confidence score (0-1)."

    def test_symbol_override(self, analysis):
        assert build_technical_prompt(analysis, symbol="MSFT").startswith("SYMBOL: MSFT\n")

    def test_deterministic(self, analysis):
        assert build_technical_prompt(analysis) == build_technical_prompt(analysis)
