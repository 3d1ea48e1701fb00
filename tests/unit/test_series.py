"""
Unit tests for the windowed series primitives.

Known inputs with hand-computed outputs, plus property-based checks on
lengths and bounds.
"""

import numpy as np
import pytest
from hypothesis import given, strategies as st

from folioscope.analysis.series import (
    calculate_atr,
    calculate_correlation,
    calculate_ema,
    calculate_gains_and_losses,
    calculate_percentage_change,
    calculate_price_changes,
    calculate_sma,
    calculate_standard_deviation,
    calculate_true_range,
    detect_crossovers,
    find_highest_high,
    find_lowest_low,
    normalize_values,
    rolling_max,
    rolling_min,
)
from folioscope.exceptions import InvalidPeriodError, SeriesLengthError

price_lists = st.lists(
    st.floats(min_value=1.0, max_value=100000.0, allow_nan=False, allow_infinity=False),
    min_size=2,
    max_size=200,
)


@pytest.mark.unit
class TestMovingAverages:
    """Tests for SMA and EMA."""

    def test_sma_known_values(self):
        """SMA(3) of 1..5 is 2, 3, 4."""
        np.testing.assert_allclose(calculate_sma([1, 2, 3, 4, 5], 3), [2.0, 3.0, 4.0])

    def test_sma_full_window(self):
        """A period equal to the length yields one value."""
        np.testing.assert_allclose(calculate_sma([2, 4, 6], 3), [4.0])

    @pytest.mark.parametrize("period", [0, -1, 6])
    def test_sma_invalid_period(self, period):
        """Periods <= 0 or longer than the input are rejected."""
        with pytest.raises(InvalidPeriodError, match="Invalid period for SMA calculation"):
            calculate_sma([1, 2, 3, 4, 5], period)

    def test_ema_seeded_with_sma(self):
        """The first EMA value is the SMA of the first window."""
        ema = calculate_ema([1, 2, 3, 4, 5], 3)
        assert len(ema) == 3
        assert ema[0] == pytest.approx(2.0)
        # k = 0.5
        assert ema[1] == pytest.approx(3.0)
        assert ema[2] == pytest.approx(4.0)

    def test_ema_recurrence(self):
        """Later values follow value * k + prev * (1 - k)."""
        values = [10, 11, 12, 20, 5]
        ema = calculate_ema(values, 2)
        k = 2 / 3
        expected = [10.5]
        for v in values[2:]:
            expected.append(v * k + expected[-1] * (1 - k))
        np.testing.assert_allclose(ema, expected)

    def test_ema_invalid_period(self):
        with pytest.raises(InvalidPeriodError, match="EMA"):
            calculate_ema([1, 2], 3)

    def test_input_not_mutated(self):
        """Inputs are left untouched."""
        values = [1.0, 2.0, 3.0, 4.0]
        calculate_sma(values, 2)
        calculate_ema(values, 2)
        assert values == [1.0, 2.0, 3.0, 4.0]


@pytest.mark.unit
class TestDispersion:
    """Tests for standard deviation, ranges and ATR."""

    def test_population_standard_deviation(self):
        """Standard deviation divides by the period."""
        std = calculate_standard_deviation([2, 4, 4, 4, 5, 5, 7, 9], 8)
        assert std[0] == pytest.approx(2.0)

    def test_flat_standard_deviation_is_zero(self):
        np.testing.assert_allclose(calculate_standard_deviation([5.0] * 10, 4), np.zeros(7))

    def test_true_range_uses_previous_close(self, series_builder):
        """Gaps are included through the previous close."""
        data = series_builder([100, 110, 105], spread=0.0)
        tr = calculate_true_range(data)
        assert len(tr) == 2
        # bar 1: open 100, close 110, high 110, low 100, prev close 100
        assert tr[0] == pytest.approx(10.0)
        # bar 2: high 110, low 105, prev close 110
        assert tr[1] == pytest.approx(5.0)

    def test_atr_length(self, uptrend_data):
        atr = calculate_atr(uptrend_data, 14)
        assert len(atr) == len(uptrend_data) - 1 - 14 + 1
        assert np.all(atr > 0)

    def test_rolling_extremes(self):
        np.testing.assert_allclose(rolling_max([1, 3, 2, 5, 4], 2), [3, 3, 5, 5])
        np.testing.assert_allclose(rolling_min([1, 3, 2, 5, 4], 2), [1, 2, 2, 4])

    def test_highest_high_and_lowest_low(self, series_builder):
        data = series_builder([10, 12, 9, 11], spread=0.0)
        assert find_highest_high(data, 1, 2) == pytest.approx(12.0)
        assert find_lowest_low(data, 1, 2) == pytest.approx(9.0)
        # window clipped to the end of the series
        assert find_highest_high(data, 3, 10) == pytest.approx(11.0)


@pytest.mark.unit
class TestChanges:
    """Tests for price changes and gains/losses."""

    def test_price_changes(self):
        np.testing.assert_allclose(calculate_price_changes([1, 3, 2]), [2, -1])

    def test_gains_and_losses_split(self):
        gains, losses = calculate_gains_and_losses([10, 12, 11, 11])
        np.testing.assert_allclose(gains, [2, 0, 0])
        np.testing.assert_allclose(losses, [0, 1, 0])

    def test_percentage_change(self):
        assert calculate_percentage_change(50, 75) == pytest.approx(50.0)
        assert calculate_percentage_change(0, 10) == 0.0

    def test_normalize_values(self):
        np.testing.assert_allclose(normalize_values([2, 4, 6]), [0.0, 0.5, 1.0])
        np.testing.assert_allclose(normalize_values([3, 3]), [0.5, 0.5])


@pytest.mark.unit
class TestCrossovers:
    """Tests for detect_crossovers."""

    def test_bullish_and_bearish(self):
        fast = [1, 3, 3, 1]
        slow = [2, 2, 2, 2]
        assert detect_crossovers(fast, slow) == ["bullish", "none", "bearish"]

    def test_touch_then_cross(self):
        """Moving from equality to above counts as bullish."""
        assert detect_crossovers([2, 3], [2, 2]) == ["bullish"]

    def test_short_series(self):
        assert detect_crossovers([1], [2]) == []
        assert detect_crossovers([], []) == []

    def test_unequal_lengths_rejected(self):
        """Series of different lengths are not clamped to a common prefix."""
        with pytest.raises(SeriesLengthError, match="same length"):
            detect_crossovers([1, 2, 3, 4], [2, 2])
        with pytest.raises(SeriesLengthError):
            detect_crossovers([1], [])


@pytest.mark.unit
class TestCorrelation:
    """Tests for calculate_correlation."""

    def test_perfect_correlation(self):
        assert calculate_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert calculate_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_zero_variance(self):
        assert calculate_correlation([1, 1, 1], [1, 2, 3]) == 0.0

    @pytest.mark.parametrize("a,b", [([1, 2], [1]), ([], [])])
    def test_length_mismatch(self, a, b):
        with pytest.raises(SeriesLengthError):
            calculate_correlation(a, b)


@pytest.mark.unit
class TestSeriesPropertyBased:
    """Property-based tests for series primitives."""

    @given(prices=price_lists, period=st.integers(min_value=1, max_value=50))
    def test_sma_length_and_bounds(self, prices, period):
        """SMA has len - period + 1 values within the input range."""
        if period > len(prices):
            with pytest.raises(InvalidPeriodError):
                calculate_sma(prices, period)
            return
        sma = calculate_sma(prices, period)
        assert len(sma) == len(prices) - period + 1
        assert np.all(sma >= min(prices) - 1e-6)
        assert np.all(sma <= max(prices) + 1e-6)

    @given(prices=price_lists, period=st.integers(min_value=1, max_value=50))
    def test_ema_length_and_seed(self, prices, period):
        """EMA starts at the SMA seed and has the same length as SMA."""
        if period > len(prices):
            return
        ema = calculate_ema(prices, period)
        assert len(ema) == len(prices) - period + 1
        assert ema[0] == pytest.approx(np.mean(prices[:period]), rel=1e-9)

    @given(a=price_lists, b=price_lists)
    def test_crossovers_are_symmetric(self, a, b):
        """Swapping the series swaps bullish and bearish."""
        swap = {"bullish": "bearish", "bearish": "bullish", "none": "none"}
        length = min(len(a), len(b))
        a, b = a[:length], b[:length]
        forward = detect_crossovers(a, b)
        backward = detect_crossovers(b, a)
        assert [swap[label] for label in forward] == backward

    @given(prices=price_lists)
    def test_correlation_bounded(self, prices):
        shifted = list(reversed(prices))
        assert -1.0 - 1e-9 <= calculate_correlation(prices, shifted) <= 1.0 + 1e-9
