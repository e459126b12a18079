"""
ORACLE - Market Data Feeds

Polls exchange REST endpoints for prices and order-book depth.
Every feed returns None on failure instead of raising.
"""

import asyncio
from collections.abc import Sequence
from typing import Protocol

import aiohttp

from rama_kandra import parse_levels
from shared import AgentLogger, OrderBookLevel

from .aggregator import SourceQuote


class PriceSource(Protocol):
    """Anything that can produce one quote per refresh."""
    name: str

    async def fetch(self) -> SourceQuote | None: ...


class OrderBookSource(Protocol):
    """Anything that can produce best-first bid and ask levels."""

    async def fetch(
        self,
    ) -> tuple[tuple[OrderBookLevel, ...], tuple[OrderBookLevel, ...]] | None: ...


class EndpointRotation:
    """
    Round-robin over interchangeable endpoints.

    Owned by the feed it is injected into. A failed request moves the
    feed to the next host for its following call.
    """

    def __init__(self, endpoints: Sequence[str]):
        if not endpoints:
            raise ValueError("At least one endpoint is required")
        self.endpoints = tuple(endpoints)
        self.index = 0
        self.rotations = 0

    @property
    def current(self) -> str:
        return self.endpoints[self.index]

    def rotate(self) -> str:
        """Advance to the next endpoint and return it."""
        self.index = (self.index + 1) % len(self.endpoints)
        self.rotations += 1
        return self.current


class BinanceKlineSource:
    """Latest 1s kline (close, high, low) from Binance."""

    name = "binance"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        rotation: EndpointRotation,
        symbol: str = "ETHUSDT",
        timeout_s: float = 5.0,
    ):
        self.logger = AgentLogger("ORACLE-FEED-BINANCE")
        self.session = session
        self.rotation = rotation
        self.symbol = symbol
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)

    async def fetch(self) -> SourceQuote | None:
        endpoint = self.rotation.current
        url = f"{endpoint}/api/v3/klines"
        params = {"symbol": self.symbol, "interval": "1s", "limit": "1"}

        try:
            async with self.session.get(url, params=params, timeout=self.timeout) as resp:
                if resp.status != 200:
                    self.logger.warning("Kline request failed", endpoint=endpoint, status=resp.status)
                    self.rotation.rotate()
                    return None
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.warning("Kline request error", endpoint=endpoint, error=str(e))
            self.rotation.rotate()
            return None

        if not data:
            return None

        try:
            kline = data[0]
            return SourceQuote(
                source=self.name,
                price=float(kline[4]),
                timestamp_ms=int(kline[0]),
                high=float(kline[2]),
                low=float(kline[3]),
            )
        except (TypeError, ValueError, IndexError, KeyError) as e:
            self.logger.warning("Malformed kline payload", error=str(e))
            return None


class BybitTickerSource:
    """Last traded price from Bybit spot tickers."""

    name = "bybit"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str = "https://api.bybit.com/v5/market/tickers",
        symbol: str = "ETHUSDT",
        timeout_s: float = 5.0,
    ):
        self.logger = AgentLogger("ORACLE-FEED-BYBIT")
        self.session = session
        self.url = url
        self.symbol = symbol
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)

    async def fetch(self) -> SourceQuote | None:
        params = {"category": "spot", "symbol": self.symbol}
        try:
            async with self.session.get(self.url, params=params, timeout=self.timeout) as resp:
                if resp.status != 200:
                    return None
                data = await resp.json()
            price = float(data["result"]["list"][0]["lastPrice"])
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError, KeyError, IndexError) as e:
            self.logger.debug("Bybit ticker unavailable", error=str(e))
            return None
        return SourceQuote(source=self.name, price=price)


class KucoinStatsSource:
    """Last traded price from KuCoin 24h market stats."""

    name = "kucoin"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str = "https://api.kucoin.com/api/v1/market/stats",
        symbol: str = "ETH-USDT",
        timeout_s: float = 5.0,
    ):
        self.logger = AgentLogger("ORACLE-FEED-KUCOIN")
        self.session = session
        self.url = url
        self.symbol = symbol
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)

    async def fetch(self) -> SourceQuote | None:
        params = {"symbol": self.symbol}
        try:
            async with self.session.get(self.url, params=params, timeout=self.timeout) as resp:
                if resp.status != 200:
                    return None
                data = await resp.json()
            price = float(data["data"]["last"])
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError, KeyError) as e:
            self.logger.debug("KuCoin stats unavailable", error=str(e))
            return None
        return SourceQuote(source=self.name, price=price)


class BinanceOrderBookSource:
    """Order-book depth snapshot from Binance."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        rotation: EndpointRotation,
        symbol: str = "ETHUSDT",
        limit: int = 50,
        timeout_s: float = 5.0,
    ):
        self.logger = AgentLogger("ORACLE-FEED-DEPTH")
        self.session = session
        self.rotation = rotation
        self.symbol = symbol
        self.limit = limit
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)

    async def fetch(
        self,
    ) -> tuple[tuple[OrderBookLevel, ...], tuple[OrderBookLevel, ...]] | None:
        endpoint = self.rotation.current
        url = f"{endpoint}/api/v3/depth"
        params = {"symbol": self.symbol, "limit": str(self.limit)}

        try:
            async with self.session.get(url, params=params, timeout=self.timeout) as resp:
                if resp.status != 200:
                    self.logger.warning("Depth request failed", endpoint=endpoint, status=resp.status)
                    self.rotation.rotate()
                    return None
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.warning("Depth request error", endpoint=endpoint, error=str(e))
            self.rotation.rotate()
            return None

        if not isinstance(data, dict):
            return None

        return parse_levels(data.get("bids") or ()), parse_levels(data.get("asks") or ())
