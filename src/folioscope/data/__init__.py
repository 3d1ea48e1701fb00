"""
Price data package for folioscope.

Provides the PriceData record, pandas/numpy conversions, a synthetic series
generator, and the validation gate used by every indicator.
"""

from .models import (
    OHLCV_FIELDS,
    PriceData,
    dates_of,
    extract,
    generate_sample_price_data,
    price_data_from_frame,
    price_data_from_records,
    price_data_to_frame,
)
from .validation import (
    DataQualityReport,
    assess_data_quality,
    sort_price_data,
    validate_price_data,
)

__all__ = [
    # Models
    "PriceData",
    "OHLCV_FIELDS",
    "extract",
    "dates_of",
    "price_data_from_frame",
    "price_data_from_records",
    "price_data_to_frame",
    "generate_sample_price_data",
    # Validation
    "validate_price_data",
    "sort_price_data",
    "assess_data_quality",
    "DataQualityReport",
]
