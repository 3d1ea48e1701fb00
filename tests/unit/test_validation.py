"""
Unit tests for price data validation, quality checks and conversions.
"""

from dataclasses import replace
from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest
from hypothesis import given, strategies as st

from folioscope.data import (
    PriceData,
    assess_data_quality,
    extract,
    generate_sample_price_data,
    price_data_from_frame,
    price_data_from_records,
    price_data_to_frame,
    sort_price_data,
    validate_price_data,
)
from folioscope.exceptions import DataIntegrityError, TechnicalAnalysisError


def bar(day: int, **overrides) -> PriceData:
    values = dict(
        date=datetime(2024, 1, 1) + timedelta(days=day),
        open=10.0,
        high=11.0,
        low=9.0,
        close=10.5,
        volume=100.0,
    )
    values.update(overrides)
    return PriceData(**values)


@pytest.mark.unit
class TestValidatePriceData:
    """Tests for the validation gate."""

    def test_valid_series_passes(self, sample_price_data):
        validate_price_data(sample_price_data)

    @pytest.mark.parametrize("data", [[], None])
    def test_empty_rejected(self, data):
        with pytest.raises(DataIntegrityError, match="non-empty array"):
            validate_price_data(data)

    def test_missing_field(self):
        """A None or NaN field is reported with its index."""
        with pytest.raises(DataIntegrityError, match="index 1: missing required fields"):
            validate_price_data([bar(0), bar(1, close=None)])
        with pytest.raises(DataIntegrityError, match="index 0"):
            validate_price_data([bar(0, volume=float("nan"))])

    def test_high_below_low(self):
        with pytest.raises(DataIntegrityError, match="high price cannot be less than low price"):
            validate_price_data([bar(0, high=8.0, low=9.0)])

    def test_negative_values(self):
        with pytest.raises(DataIntegrityError, match="cannot be negative"):
            validate_price_data([bar(0), bar(1, volume=-1.0)])

    def test_mapping_records_accepted(self):
        """Dicts with the same keys are validated too."""
        validate_price_data([bar(0).__dict__])
        with pytest.raises(DataIntegrityError):
            validate_price_data([{"date": datetime(2024, 1, 1), "open": 1.0}])

    def test_errors_are_value_errors(self):
        """Callers guarding with ValueError keep working."""
        with pytest.raises(ValueError):
            validate_price_data([])
        assert issubclass(DataIntegrityError, TechnicalAnalysisError)

    def test_open_outside_range_is_not_rejected(self):
        """Open/close outside [low, high] is advisory only."""
        validate_price_data([bar(0, open=20.0)])

    @given(
        days=st.integers(min_value=1, max_value=40),
        seed=st.integers(min_value=0, max_value=10_000),
        data=st.data(),
    )
    def test_high_below_low_rejected_at_any_index(self, days, seed, data):
        series = generate_sample_price_data("TEST", days, seed=seed, start_date=datetime(2024, 1, 1))
        index = data.draw(st.integers(min_value=0, max_value=days - 1))
        series[index] = replace(series[index], high=series[index].low * 0.5)

        with pytest.raises(
            DataIntegrityError,
            match=f"at index {index}: high price cannot be less than low price",
        ):
            validate_price_data(series)


@pytest.mark.unit
class TestSortPriceData:
    """Tests for sort_price_data."""

    def test_sorted_copy(self):
        data = [bar(2), bar(0), bar(1)]
        result = sort_price_data(data)
        assert [b.date.day for b in result] == [1, 2, 3]
        assert [b.date.day for b in data] == [3, 1, 2]

    def test_stable_for_equal_dates(self):
        first = bar(0, close=10.0)
        second = bar(0, close=10.2)
        assert sort_price_data([first, second]) == [first, second]

    @given(
        days=st.integers(min_value=1, max_value=60),
        seed=st.integers(min_value=0, max_value=10_000),
        rnd=st.randoms(use_true_random=False),
    )
    def test_sorting_keeps_series_valid_and_is_idempotent(self, days, seed, rnd):
        """A shuffled valid series stays valid once sorted, and sorting twice changes nothing."""
        ordered = generate_sample_price_data("TEST", days, seed=seed, start_date=datetime(2024, 1, 1))
        shuffled = list(ordered)
        rnd.shuffle(shuffled)

        result = sort_price_data(shuffled)
        validate_price_data(result)
        assert result == ordered
        assert sort_price_data(result) == result


@pytest.mark.unit
class TestDataQuality:
    """Tests for the advisory quality report."""

    def test_clean_series(self, sample_price_data):
        report = assess_data_quality(sample_price_data)
        assert report.total_rows == 250
        assert report.duplicate_dates == 0
        assert report.ohlc_violations == 0

    def test_duplicates_and_gaps(self):
        data = [bar(0), bar(0), bar(1, open=20.0, high=21.0, close=20.5)]
        report = assess_data_quality(data)
        assert report.duplicate_dates == 1
        assert report.gaps_detected == 1
        assert not report.is_acceptable
        assert "NEEDS ATTENTION" in str(report)

    def test_ohlc_violation(self):
        report = assess_data_quality([bar(0, open=12.0)])
        assert report.ohlc_violations == 1

    def test_return_outlier(self, series_builder):
        closes = [100.0 + (i % 2) * 0.1 for i in range(60)]
        closes[40] = 300.0
        report = assess_data_quality(series_builder(closes))
        assert report.outliers_detected >= 1


@pytest.mark.unit
class TestConversions:
    """Tests for DataFrame and record bridges."""

    def test_frame_round_trip(self, sample_ohlcv_dataframe, sample_price_data):
        series = price_data_from_frame(sample_ohlcv_dataframe)
        assert series == sample_price_data

        frame = price_data_to_frame(series)
        assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
        assert isinstance(frame.index, pd.DatetimeIndex)

    def test_frame_with_datetime_index(self, sample_price_data):
        frame = price_data_to_frame(sample_price_data)
        assert price_data_from_frame(frame)[0].close == sample_price_data[0].close

    def test_frame_missing_columns(self):
        with pytest.raises(ValueError, match="Missing required columns"):
            price_data_from_frame(pd.DataFrame({"close": [1.0]}))

    def test_records_parse_iso_dates(self):
        series = price_data_from_records(
            [{"date": "2024-03-01", "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 10}]
        )
        assert series[0].date == datetime(2024, 3, 1)

    def test_extract_unknown_field(self, sample_price_data):
        with pytest.raises(ValueError, match="Unknown price field"):
            extract(sample_price_data, "vwap")


@pytest.mark.unit
class TestSampleGenerator:
    """Tests for generate_sample_price_data."""

    def test_seeded_is_deterministic(self):
        a = generate_sample_price_data("AAPL", 50, seed=1, start_date=datetime(2024, 1, 1))
        b = generate_sample_price_data("AAPL", 50, seed=1, start_date=datetime(2024, 1, 1))
        assert a == b

    @given(
        days=st.integers(min_value=1, max_value=120),
        seed=st.integers(min_value=0, max_value=10_000),
        volatility=st.floats(min_value=0.001, max_value=0.2),
    )
    def test_generated_series_is_valid(self, days, seed, volatility):
        """Generated bars always pass validation and stay ordered."""
        data = generate_sample_price_data(
            "TEST", days, volatility=volatility, seed=seed, start_date=datetime(2024, 1, 1)
        )
        assert len(data) == days
        validate_price_data(data)
        dates = [b.date for b in data]
        assert dates == sorted(dates)
        closes = extract(data, "close")
        assert np.all(closes > 0)
