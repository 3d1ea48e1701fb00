"""
Validation gate and data-quality checks for OHLCV series.

validate_price_data is the one hard gate of the analysis library: every
indicator calculation runs it first and the engine lets its errors reach the
caller. assess_data_quality is advisory: it reports duplicates, outliers and
gaps without rejecting the series.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import math
from numbers import Real
from typing import Any

import numpy as np
from scipy import stats

from folioscope.exceptions import DataIntegrityError
from folioscope.utils import get_logger

from .models import OHLCV_FIELDS, PriceData, extract

logger = get_logger(__name__)

REQUIRED_FIELDS = ("date", *OHLCV_FIELDS)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, Real) and not isinstance(value, bool):
        return math.isnan(value)
    return False


def validate_price_data(data: Sequence[PriceData]) -> None:
    """Validate a price series before any indicator calculation.

    Args:
        data: Sequence of PriceData records (or mappings with the same keys)

    Raises:
        DataIntegrityError: If the series is empty, a record is missing a field,
            high < low, or any price/volume is negative
    """
    if data is None or isinstance(data, (str, bytes)) or len(data) == 0:
        raise DataIntegrityError("Price data must be a non-empty array")

    for i, item in enumerate(data):
        values = {name: _field(item, name) for name in REQUIRED_FIELDS}
        if any(_is_missing(value) for value in values.values()):
            raise DataIntegrityError(f"Invalid price data at index {i}: missing required fields")

        if values["high"] < values["low"]:
            raise DataIntegrityError(
                f"Invalid price data at index {i}: high price cannot be less than low price"
            )

        if any(values[name] < 0 for name in OHLCV_FIELDS):
            raise DataIntegrityError(
                f"Invalid price data at index {i}: prices and volume cannot be negative"
            )


def sort_price_data(data: Sequence[PriceData]) -> list[PriceData]:
    """Return a new list ordered by ascending date; equal dates keep input order."""
    return sorted(data, key=lambda bar: bar.date)


@dataclass
class DataQualityReport:
    """
    Advisory data quality metrics for a validated series.

    Attributes:
        total_rows: Number of bars
        duplicate_dates: Bars sharing a date with an earlier bar
        outliers_detected: Close-to-close returns beyond the z-score threshold
        gaps_detected: Opens gapping more than max_gap from the previous close
        ohlc_violations: Bars whose open/close lie outside [low, high]
        issues: Human-readable issue descriptions
    """

    total_rows: int
    duplicate_dates: int
    outliers_detected: int
    gaps_detected: int
    ohlc_violations: int
    issues: list[str] = field(default_factory=list)

    @property
    def is_acceptable(self) -> bool:
        return not self.issues

    def __str__(self) -> str:
        return (
            f"Data Quality Report:\n"
            f"  Total Rows: {self.total_rows}\n"
            f"  Duplicates: {self.duplicate_dates}\n"
            f"  Outliers: {self.outliers_detected}\n"
            f"  Gaps: {self.gaps_detected}\n"
            f"  OHLC Violations: {self.ohlc_violations}\n"
            f"  Status: {'ACCEPTABLE' if self.is_acceptable else 'NEEDS ATTENTION'}"
        )


def assess_data_quality(
    data: Sequence[PriceData],
    outlier_zscore_threshold: float = 4.0,
    max_gap: float = 0.20,
) -> DataQualityReport:
    """
    Inspect a series for irregularities that do not make it invalid.

    Calendar gaps (weekends, holidays) are expected and are not reported;
    only price gaps between a close and the next open are.

    Args:
        data: Sorted price series
        outlier_zscore_threshold: |z| of a daily return above which it counts as an outlier
        max_gap: Fractional open-vs-previous-close jump treated as a gap

    Returns:
        DataQualityReport
    """
    issues: list[str] = []
    total_rows = len(data)

    seen = set()
    duplicate_dates = 0
    for bar in data:
        if bar.date in seen:
            duplicate_dates += 1
        seen.add(bar.date)
    if duplicate_dates:
        issues.append(f"Found {duplicate_dates} duplicate dates")

    closes = extract(data, "close")
    opens = extract(data, "open")
    highs = extract(data, "high")
    lows = extract(data, "low")

    outliers_detected = 0
    gaps_detected = 0
    if total_rows > 2:
        prev_close = closes[:-1]
        with np.errstate(divide="ignore", invalid="ignore"):
            returns = np.where(prev_close > 0, np.diff(closes) / prev_close, 0.0)
            gaps = np.where(prev_close > 0, np.abs(opens[1:] - prev_close) / prev_close, 0.0)
        if np.std(returns) > 0:
            z_scores = np.abs(stats.zscore(returns))
            outliers_detected = int(np.sum(z_scores > outlier_zscore_threshold))
        gaps_detected = int(np.sum(gaps > max_gap))
    if outliers_detected:
        issues.append(f"Found {outliers_detected} return outliers")
    if gaps_detected:
        issues.append(f"Found {gaps_detected} significant price gaps")

    ohlc_violations = int(
        np.sum((opens > highs) | (opens < lows) | (closes > highs) | (closes < lows))
    )
    if ohlc_violations:
        issues.append(f"Found {ohlc_violations} bars with open/close outside the high-low range")

    report = DataQualityReport(
        total_rows=total_rows,
        duplicate_dates=duplicate_dates,
        outliers_detected=outliers_detected,
        gaps_detected=gaps_detected,
        ohlc_violations=ohlc_violations,
        issues=issues,
    )
    logger.debug("data_quality_assessed", rows=total_rows, issues=len(issues))
    return report
