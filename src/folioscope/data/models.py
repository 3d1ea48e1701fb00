"""
Price data model and conversions.

PriceData is the single OHLCV record every indicator consumes. Series are
plain lists of PriceData ordered by date; the helpers here move them in and
out of pandas DataFrames and numpy arrays, and generate synthetic series for
demos and tests.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import numpy as np
import pandas as pd

OHLCV_FIELDS = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True)
class PriceData:
    """One trading session.

    Attributes:
        date: Session date (day granularity, timezone optional)
        open: Opening price
        high: Session high
        low: Session low
        close: Closing price
        volume: Traded volume
    """

    date: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


def extract(series: Sequence[PriceData], field: str) -> np.ndarray:
    """Return one OHLCV field of a series as a float array."""
    if field not in OHLCV_FIELDS:
        raise ValueError(f"Unknown price field: {field}")
    return np.array([getattr(bar, field) for bar in series], dtype=float)


def dates_of(series: Sequence[PriceData]) -> list[datetime]:
    return [bar.date for bar in series]


def price_data_from_records(records: Iterable[dict[str, Any]]) -> list[PriceData]:
    """Build PriceData from dicts with date/open/high/low/close/volume keys.

    Missing keys become None so that validate_price_data reports them.
    """
    series = []
    for record in records:
        date = record.get("date")
        if isinstance(date, str):
            date = datetime.fromisoformat(date)
        series.append(
            PriceData(
                date=date,
                open=record.get("open"),
                high=record.get("high"),
                low=record.get("low"),
                close=record.get("close"),
                volume=record.get("volume"),
            )
        )
    return series


def price_data_from_frame(df: pd.DataFrame) -> list[PriceData]:
    """Convert an OHLCV DataFrame into a list of PriceData.

    Dates are taken from a ``date`` or ``timestamp`` column, or from a
    DatetimeIndex when neither column exists.

    Raises:
        ValueError: If OHLCV columns or a date source are missing
    """
    missing = [col for col in OHLCV_FIELDS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    if "date" in df.columns:
        dates = pd.to_datetime(df["date"])
    elif "timestamp" in df.columns:
        dates = pd.to_datetime(df["timestamp"])
    elif isinstance(df.index, pd.DatetimeIndex):
        dates = df.index.to_series()
    else:
        raise ValueError("DataFrame needs a 'date'/'timestamp' column or a DatetimeIndex")

    return [
        PriceData(
            date=ts.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for ts, row in zip(dates, df[list(OHLCV_FIELDS)].itertuples(index=False))
    ]


def price_data_to_frame(series: Sequence[PriceData]) -> pd.DataFrame:
    """Convert a series into a DataFrame indexed by date."""
    df = pd.DataFrame(
        {field: extract(series, field) for field in OHLCV_FIELDS},
        index=pd.DatetimeIndex(dates_of(series), name="date"),
    )
    return df


def generate_sample_price_data(
    symbol: str,
    days: int,
    start_price: float = 100.0,
    volatility: float = 0.02,
    seed: int | None = None,
    start_date: datetime | None = None,
) -> list[PriceData]:
    """Generate a random-walk OHLCV series for demos and tests.

    Args:
        symbol: Ticker the data is generated for (recorded only in logs by callers)
        days: Number of daily bars
        start_price: Price of the first open
        volatility: Maximum fractional close-to-close move per bar
        seed: Seed for a reproducible series
        start_date: Date of the first bar; defaults to ``days`` days before today

    Returns:
        List of PriceData satisfying the validation invariants
    """
    rng = np.random.default_rng(seed)
    if start_date is None:
        today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
        start_date = today - timedelta(days=days)

    data: list[PriceData] = []
    current = start_price
    for i in range(days):
        change = (rng.random() - 0.5) * 2 * volatility * current
        new_price = max(current + change, 0.01)

        high = new_price * (1 + rng.random() * 0.02)
        low = new_price * (1 - rng.random() * 0.02)
        volume = float(rng.integers(100_000, 1_100_000))

        data.append(
            PriceData(
                date=start_date + timedelta(days=i),
                open=current,
                high=max(high, current, new_price),
                low=min(low, current, new_price),
                close=new_price,
                volume=volume,
            )
        )
        current = new_price

    return data
