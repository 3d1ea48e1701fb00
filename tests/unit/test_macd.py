"""
Unit tests for MACD calculation, divergence marking and signal generation.
"""

from datetime import datetime, timedelta

import numpy as np
import pytest
from hypothesis import given, strategies as st

from folioscope.analysis.indicators import (
    analyze_macd,
    calculate_macd,
    detect_macd_divergence,
    generate_macd_signals,
)
from folioscope.analysis.series import calculate_ema
from folioscope.analysis.types import MACDResult
from folioscope.exceptions import InsufficientDataError, InvalidParameterError


def macd_point(day, macd, signal, crossover="none", divergence="none"):
    return MACDResult(
        date=datetime(2024, 1, 1) + timedelta(days=day),
        macd=macd,
        signal=signal,
        histogram=macd - signal,
        crossover=crossover,
        divergence=divergence,
    )


@pytest.mark.unit
class TestCalculateMACD:
    """Tests for calculate_macd."""

    def test_result_length_and_first_date(self, sample_price_data):
        """Results start on bar slow + signal - 2."""
        results = calculate_macd(sample_price_data)
        assert len(results) == len(sample_price_data) - (26 + 9 - 2)
        assert results[0].date == sample_price_data[33].date
        assert results[-1].date == sample_price_data[-1].date

    def test_matches_ema_definition(self, sample_price_data):
        """The last MACD value equals EMA(12) - EMA(26) of the closes."""
        closes = [bar.close for bar in sample_price_data]
        expected = calculate_ema(closes, 12)[-1] - calculate_ema(closes, 26)[-1]
        assert calculate_macd(sample_price_data)[-1].macd == pytest.approx(expected)

    def test_histogram_is_difference(self, sample_price_data):
        for r in calculate_macd(sample_price_data):
            assert r.histogram == pytest.approx(r.macd - r.signal)

    def test_first_result_has_no_crossover(self, sample_price_data):
        assert calculate_macd(sample_price_data)[0].crossover == "none"

    def test_crossover_labels_follow_sign_change(self, sample_price_data):
        """Each labelled bar completes a sign change of the histogram."""
        results = calculate_macd(sample_price_data)
        for prev, curr in zip(results, results[1:]):
            if curr.crossover == "bullish":
                assert prev.histogram <= 0 < curr.histogram
            elif curr.crossover == "bearish":
                assert prev.histogram >= 0 > curr.histogram

    def test_uptrend_is_positive(self, uptrend_data):
        assert calculate_macd(uptrend_data)[-1].macd > 0

    def test_reversal_produces_bullish_crossover(self, macd_reversal_data):
        results = calculate_macd(macd_reversal_data)
        assert "bullish" in [r.crossover for r in results]

    def test_uptrend_pullback_recrosses_signal_line(self, macd_pullback_data):
        """The MACD line stays positive through the dip and re-crosses its signal line on bar 58."""
        results = calculate_macd(macd_pullback_data)
        by_date = {r.date: r for r in results}

        assert len(results) == 60 - 33
        assert all(r.macd > 0 for r in results)
        assert by_date[macd_pullback_data[58].date].crossover == "bullish"
        assert by_date[macd_pullback_data[58].date].histogram > 0
        assert all(by_date[bar.date].histogram < 0 for bar in macd_pullback_data[46:58])

    def test_fast_must_be_below_slow(self, sample_price_data):
        with pytest.raises(InvalidParameterError, match="Fast period must be less than slow period"):
            calculate_macd(sample_price_data, fast_period=26, slow_period=12)

    def test_insufficient_data(self, series_builder):
        with pytest.raises(InsufficientDataError, match="Insufficient data for MACD calculation"):
            calculate_macd(series_builder(range(100, 130)))


@pytest.mark.unit
class TestMACDSignals:
    """Tests for generate_macd_signals."""

    def test_histogram_and_zero_line(self):
        """A rising negative histogram and a zero-line cross each emit a buy."""
        results = [macd_point(0, -0.5, -0.3), macd_point(1, 0.1, 0.2)]
        signals = generate_macd_signals(results, "TEST")

        assert [s.signal for s in signals] == ["buy", "buy"]
        histogram, zero_line = signals
        assert histogram.strength == pytest.approx(0.8)
        assert histogram.description == "MACD histogram bullish momentum - histogram turning positive"
        assert zero_line.strength == pytest.approx(0.7)
        assert zero_line.description == "MACD zero line crossover - MACD line crossed above zero line"

    def test_crossover_strength(self):
        """Base 0.6 plus magnitude bonuses plus agreement with the zero line."""
        results = [macd_point(0, 0.8, 0.9), macd_point(1, 1.0, 0.5, crossover="bullish")]
        crossover = generate_macd_signals(results, "TEST")[0]

        assert crossover.signal == "buy"
        assert crossover.strength == pytest.approx(0.6 + 0.1 + 0.025 + 0.1)
        assert crossover.description.startswith("MACD bullish crossover - MACD line (1.0000)")
        assert crossover.description.endswith("crossed above signal line (0.5000)")

    def test_bearish_crossover(self):
        results = [macd_point(0, -0.1, -0.2), macd_point(1, -0.3, -0.1, crossover="bearish")]
        signals = generate_macd_signals(results, "TEST")
        assert signals[0].signal == "sell"
        assert "crossed below signal line" in signals[0].description

    def test_divergence_signal(self):
        results = [macd_point(0, 0.5, 0.4), macd_point(1, 0.6, 0.5, divergence="bearish")]
        signals = generate_macd_signals(results, "TEST")
        assert signals[-1].signal == "sell"
        assert signals[-1].description == (
            "Bearish MACD divergence detected - price momentum may reverse downward"
        )

    def test_first_result_never_signals(self):
        assert generate_macd_signals([macd_point(0, 1.0, 0.0, crossover="bullish")], "TEST") == []

    def test_reversal_signals(self, macd_reversal_data):
        analysis = analyze_macd(macd_reversal_data, "TEST")
        crossovers = [s for s in analysis.signals if "crossover - MACD line" in s.description]
        assert any(s.signal == "buy" for s in crossovers)

    def test_uptrend_pullback_buy_signal(self, macd_pullback_data):
        analysis = analyze_macd(macd_pullback_data, "TEST")
        crossovers = [s for s in analysis.signals if "crossover - MACD line" in s.description]
        buys = [s for s in crossovers if s.signal == "buy"]

        assert buys[-1].timestamp == macd_pullback_data[58].date
        assert 0.6 <= buys[-1].strength <= 1.0


@pytest.mark.unit
class TestMACDDivergence:
    """Tests for detect_macd_divergence."""

    def test_keeps_crossover(self, sample_price_data):
        results = calculate_macd(sample_price_data)
        marked = detect_macd_divergence(sample_price_data, results, lookback_period=5)
        assert [r.crossover for r in marked] == [r.crossover for r in results]

    def test_divergence_respects_zero_zones(self, sample_price_data):
        results = calculate_macd(sample_price_data)
        marked = detect_macd_divergence(sample_price_data, results, lookback_period=5)
        for r in marked:
            if r.divergence == "bullish":
                assert r.macd < 0
            elif r.divergence == "bearish":
                assert r.macd > 0

    def test_short_input_unchanged(self, macd_reversal_data):
        results = calculate_macd(macd_reversal_data)
        assert detect_macd_divergence(macd_reversal_data, results) == results

    def test_analyze_disabled_divergence(self, sample_price_data):
        analysis = analyze_macd(sample_price_data, "TEST", {"detect_divergence": False})
        assert all(r.divergence == "none" for r in analysis.results)


@pytest.mark.unit
class TestMACDPropertyBased:
    """Property-based tests for MACD."""

    @given(
        prices=st.lists(
            st.floats(min_value=1.0, max_value=10000.0, allow_nan=False, allow_infinity=False),
            min_size=35,
            max_size=120,
        )
    )
    def test_lengths_and_histogram(self, prices):
        from folioscope.data import PriceData

        start = datetime(2024, 1, 1)
        data = [
            PriceData(start + timedelta(days=i), p, p, p, p, 1.0) for i, p in enumerate(prices)
        ]
        results = calculate_macd(data)
        assert len(results) == len(prices) - 33
        histogram = np.array([r.histogram for r in results])
        expected = np.array([r.macd - r.signal for r in results])
        np.testing.assert_allclose(histogram, expected, atol=1e-9)
