"""
ORACLE - Market Data and Prediction Oracle

"You do not truly know someone until you fight them."

Sees the future. Aggregates prices from several exchanges, reads the
order book and asks an external model where the price goes next.
"""

from .aggregator import PriceAggregator, SourceQuote
from .feeds import (
    BinanceKlineSource,
    BinanceOrderBookSource,
    BybitTickerSource,
    EndpointRotation,
    KucoinStatsSource,
    OrderBookSource,
    PriceSource,
)
from .predictor import (
    Oracle,
    OracleClient,
    OracleForecast,
    OracleRequest,
    OracleResponseError,
    OracleResult,
    OracleStatus,
    build_messages,
    parse_forecasts,
)

__all__ = [
    "PriceAggregator",
    "SourceQuote",
    "EndpointRotation",
    "PriceSource",
    "OrderBookSource",
    "BinanceKlineSource",
    "BybitTickerSource",
    "KucoinStatsSource",
    "BinanceOrderBookSource",
    "Oracle",
    "OracleClient",
    "OracleForecast",
    "OracleRequest",
    "OracleResponseError",
    "OracleResult",
    "OracleStatus",
    "build_messages",
    "parse_forecasts",
]
