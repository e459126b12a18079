"""
SATI - Technical Indicator Engine

Stateless indicators over an ordered series of closing prices.
Every function returns None when the series is too short; a short
history is the normal state of a fresh session, not an error.
"""

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np

from shared import PriceTick


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger Bands for the latest window."""
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class StochasticValue:
    """Latest Stochastic Oscillator pair."""
    k: float
    d: float


@dataclass(frozen=True)
class MACDValue:
    """Latest MACD line, signal line and histogram."""
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicators computed from one price history snapshot."""
    rsi: Optional[float]
    macd: Optional[MACDValue]
    bbands: Optional[BollingerBands]
    stochastic: Optional[StochasticValue]

    def has_data(self) -> bool:
        return any(
            value is not None
            for value in (self.rsi, self.macd, self.bbands, self.stochastic)
        )

    def to_dict(self) -> dict:
        """Plain dict form for request payloads."""
        return {
            "rsi": self.rsi,
            "macd": None if self.macd is None else asdict(self.macd),
            "bbands": None if self.bbands is None else asdict(self.bbands),
            "stochastic": (
                None if self.stochastic is None else asdict(self.stochastic)
            ),
        }


def ema_series(prices: Sequence[float], period: int) -> list[Optional[float]] | None:
    """
    Exponential moving average aligned with ``prices``.

    Seeded with the simple average of the first ``period`` values;
    entries before the seed index are None.
    """
    if len(prices) < period:
        return None

    k = 2 / (period + 1)
    emas: list[Optional[float]] = [None] * len(prices)
    emas[period - 1] = sum(prices[:period]) / period

    for i in range(period, len(prices)):
        emas[i] = prices[i] * k + emas[i - 1] * (1 - k)

    return emas


def sma(values: Sequence[float], period: int) -> float | None:
    """Trailing simple moving average."""
    if len(values) < period:
        return None
    return float(np.mean(values[-period:]))


def std_dev(values: Sequence[float], period: int) -> float | None:
    """Trailing population standard deviation."""
    if len(values) < period:
        return None
    return float(np.std(values[-period:]))


def bollinger_bands(
    prices: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands | None:
    """Bollinger Bands over the last ``period`` closes."""
    middle = sma(prices, period)
    sigma = std_dev(prices, period)
    if middle is None or sigma is None:
        return None

    return BollingerBands(
        upper=middle + multiplier * sigma,
        middle=middle,
        lower=middle - multiplier * sigma,
    )


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticValue | None:
    """
    Latest Stochastic Oscillator (%K, %D).

    %K is 100 for a flat window (highest high equals lowest low).
    %D is the mean of the last ``d_period`` %K values.
    """
    if len(closes) < k_period:
        return None

    high_arr = np.asarray(highs, dtype=float)
    low_arr = np.asarray(lows, dtype=float)

    k_values = []
    for i in range(k_period - 1, len(closes)):
        highest_high = high_arr[i - k_period + 1:i + 1].max()
        lowest_low = low_arr[i - k_period + 1:i + 1].min()

        if highest_high == lowest_low:
            k_values.append(100.0)
        else:
            k_values.append(
                100 * (closes[i] - lowest_low) / (highest_high - lowest_low)
            )

    if len(k_values) < d_period:
        return None

    return StochasticValue(
        k=float(k_values[-1]),
        d=float(np.mean(k_values[-d_period:])),
    )


def rsi(prices: Sequence[float], period: int = 14) -> float | None:
    """Relative Strength Index with Wilder smoothing."""
    if len(prices) <= period:
        return None

    deltas = np.diff(np.asarray(prices, dtype=float))

    # Seed averages over the first `period` deltas
    seed = deltas[:period]
    avg_gain = float(seed[seed > 0].sum()) / period
    avg_loss = float(-seed[seed < 0].sum()) / period

    for change in deltas[period:]:
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def macd(
    prices: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDValue | None:
    """Latest MACD line, signal line and histogram."""
    if len(prices) < slow_period + signal_period:
        return None

    fast = ema_series(prices, fast_period)
    slow = ema_series(prices, slow_period)
    if fast is None or slow is None:
        return None

    macd_line = [
        f - s
        for f, s in zip(fast, slow)
        if f is not None and s is not None
    ]

    signal_series = ema_series(macd_line, signal_period)
    if signal_series is None:
        return None

    last_macd = macd_line[-1]
    last_signal = signal_series[-1]

    return MACDValue(
        macd=last_macd,
        signal=last_signal,
        histogram=last_macd - last_signal,
    )


def compute_indicators(ticks: Sequence[PriceTick]) -> IndicatorSnapshot:
    """Compute the default indicator set from a price history snapshot."""
    closes = [t.price for t in ticks]
    highs = [t.high for t in ticks]
    lows = [t.low for t in ticks]

    return IndicatorSnapshot(
        rsi=rsi(closes),
        macd=macd(closes),
        bbands=bollinger_bands(closes),
        stochastic=stochastic(highs, lows, closes),
    )
