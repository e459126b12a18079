"""Tests for the Oracle market data feeds."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from oracle.feeds import (
    BinanceKlineSource,
    BinanceOrderBookSource,
    BybitTickerSource,
    EndpointRotation,
    KucoinStatsSource,
)
from shared import OrderBookLevel

ENDPOINTS = ["https://api1.example", "https://api2.example", "https://api3.example"]


def mock_session(payload=None, status=200, error=None):
    """ClientSession stand-in whose get() yields one canned response."""
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
        return session

    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    session.get.return_value = context
    return session


class TestEndpointRotation:
    """Test suite for EndpointRotation."""

    def test_requires_endpoints(self):
        """Test an empty endpoint list is refused."""
        with pytest.raises(ValueError):
            EndpointRotation([])

    def test_round_robin(self):
        """Test rotation wraps around."""
        rotation = EndpointRotation(ENDPOINTS)
        assert rotation.current == ENDPOINTS[0]
        assert rotation.rotate() == ENDPOINTS[1]
        assert rotation.rotate() == ENDPOINTS[2]
        assert rotation.rotate() == ENDPOINTS[0]
        assert rotation.rotations == 3


class TestBinanceKlineSource:
    """Test suite for BinanceKlineSource."""

    @pytest.mark.asyncio
    async def test_parses_kline(self):
        """Test close, high, low and open time are read from the kline row."""
        kline = [1_700_000_000_000, "2499.0", "2503.5", "2498.5", "2501.25", "12.0"]
        session = mock_session([kline])
        source = BinanceKlineSource(session, EndpointRotation(ENDPOINTS))

        quote = await source.fetch()

        assert quote.source == "binance"
        assert quote.price == 2501.25
        assert quote.high == 2503.5
        assert quote.low == 2498.5
        assert quote.timestamp_ms == 1_700_000_000_000
        url = session.get.call_args.args[0]
        assert url == "https://api1.example/api/v3/klines"

    @pytest.mark.asyncio
    async def test_bad_status_rotates_endpoint(self):
        """Test a non-200 answer moves to the next host."""
        rotation = EndpointRotation(ENDPOINTS)
        source = BinanceKlineSource(mock_session(status=451), rotation)

        assert await source.fetch() is None
        assert rotation.current == ENDPOINTS[1]

    @pytest.mark.asyncio
    async def test_network_error_rotates_endpoint(self):
        """Test a connection error returns None and rotates."""
        rotation = EndpointRotation(ENDPOINTS)
        session = mock_session(error=aiohttp.ClientConnectionError("unreachable"))
        source = BinanceKlineSource(session, rotation)

        assert await source.fetch() is None
        assert rotation.rotations == 1

    @pytest.mark.asyncio
    async def test_empty_payload(self):
        """Test an empty kline list yields no quote."""
        source = BinanceKlineSource(mock_session([]), EndpointRotation(ENDPOINTS))
        assert await source.fetch() is None


class TestTickerSources:
    """Test suite for the Bybit and KuCoin price feeds."""

    @pytest.mark.asyncio
    async def test_bybit(self):
        """Test Bybit lastPrice is read."""
        payload = {"result": {"list": [{"symbol": "ETHUSDT", "lastPrice": "2500.5"}]}}
        source = BybitTickerSource(mock_session(payload))

        quote = await source.fetch()

        assert quote.source == "bybit"
        assert quote.price == 2500.5
        assert quote.timestamp_ms is None

    @pytest.mark.asyncio
    async def test_bybit_malformed(self):
        """Test an unexpected payload shape yields None."""
        source = BybitTickerSource(mock_session({"result": {"list": []}}))
        assert await source.fetch() is None

    @pytest.mark.asyncio
    async def test_kucoin(self):
        """Test KuCoin last price is read."""
        source = KucoinStatsSource(mock_session({"data": {"last": "2499.75"}}))

        quote = await source.fetch()

        assert quote.source == "kucoin"
        assert quote.price == 2499.75

    @pytest.mark.asyncio
    async def test_kucoin_error_status(self):
        """Test a failed request yields None."""
        source = KucoinStatsSource(mock_session(status=503))
        assert await source.fetch() is None


class TestBinanceOrderBookSource:
    """Test suite for BinanceOrderBookSource."""

    @pytest.mark.asyncio
    async def test_parses_depth(self):
        """Test bids and asks come back as parsed levels."""
        payload = {
            "bids": [["2500.00", "1.0"], ["2499.90", "2.0"]],
            "asks": [["2500.10", "0.5"]],
        }
        source = BinanceOrderBookSource(mock_session(payload), EndpointRotation(ENDPOINTS))

        bids, asks = await source.fetch()

        assert bids == (OrderBookLevel(2500.0, 1.0), OrderBookLevel(2499.9, 2.0))
        assert asks == (OrderBookLevel(2500.1, 0.5),)

    @pytest.mark.asyncio
    async def test_requests_limit(self):
        """Test the depth limit is sent with the request."""
        session = mock_session({"bids": [], "asks": []})
        source = BinanceOrderBookSource(session, EndpointRotation(ENDPOINTS), limit=50)

        await source.fetch()

        assert session.get.call_args.kwargs["params"]["limit"] == "50"

    @pytest.mark.asyncio
    async def test_failure_rotates(self):
        """Test a failed depth request returns None and rotates."""
        rotation = EndpointRotation(ENDPOINTS)
        source = BinanceOrderBookSource(mock_session(status=500), rotation)

        assert await source.fetch() is None
        assert rotation.current == ENDPOINTS[1]

    @pytest.mark.asyncio
    async def test_null_side_parses_empty(self):
        """Test a null bids or asks array yields empty levels instead of raising."""
        payload = {"bids": None, "asks": [["2500.10", "0.5"]]}
        source = BinanceOrderBookSource(mock_session(payload), EndpointRotation(ENDPOINTS))

        bids, asks = await source.fetch()

        assert bids == ()
        assert asks == (OrderBookLevel(2500.1, 0.5),)
