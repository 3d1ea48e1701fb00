"""Price/indicator divergence scanner shared by RSI, MACD and the volume indicators."""

from collections.abc import Callable, Sequence

import numpy as np

from folioscope.analysis.types import DivergenceType

ZonePredicate = Callable[[float, np.ndarray], np.ndarray]


def scan_divergences(
    prices: Sequence[float],
    values: Sequence[float],
    lookback: int,
    bullish_zone: ZonePredicate | None = None,
    bearish_zone: ZonePredicate | None = None,
    first_match: bool = False,
) -> list[DivergenceType]:
    """Label each point with the divergence it completes, if any.

    A point ``i`` is bullish when some earlier point ``j`` in
    ``[i - lookback, i)`` has a higher price but a lower indicator value, and
    bearish for the mirror case. Bullish wins when both occur, unless
    ``first_match`` is set, in which case the earliest qualifying ``j``
    decides. Only points in ``[lookback, len - lookback)`` are scanned, and
    nothing is scanned when fewer than ``2 * lookback`` points are given.

    Args:
        prices: Closes aligned one-to-one with ``values``
        values: Indicator readings
        lookback: Number of preceding points compared with each point
        bullish_zone: Optional filter ``(current_value, past_values) -> mask``
            restricting where a bullish divergence may occur
        bearish_zone: Same for bearish divergences
        first_match: Label by the earliest matching earlier point

    Returns:
        One label per point
    """
    price_arr = np.asarray(prices, dtype=float)
    value_arr = np.asarray(values, dtype=float)
    n = min(len(price_arr), len(value_arr))
    labels: list[DivergenceType] = ["none"] * n

    if lookback <= 0 or n < lookback * 2:
        return labels

    for i in range(lookback, n - lookback):
        past_prices = price_arr[i - lookback : i]
        past_values = value_arr[i - lookback : i]
        price, value = price_arr[i], value_arr[i]

        bullish = (price < past_prices) & (value > past_values)
        if bullish_zone is not None:
            bullish &= bullish_zone(value, past_values)
        bearish = (price > past_prices) & (value < past_values)
        if bearish_zone is not None:
            bearish &= bearish_zone(value, past_values)

        if first_match:
            hits = np.flatnonzero(bullish | bearish)
            if hits.size:
                labels[i] = "bullish" if bullish[hits[0]] else "bearish"
        elif bullish.any():
            labels[i] = "bullish"
        elif bearish.any():
            labels[i] = "bearish"

    return labels
