"""Fakes shared by the session tests."""

import asyncio

import pytest

from oracle import OracleForecast, OracleRequest, OracleResult, OracleStatus, SourceQuote
from session import SessionOrchestrator
from shared import Direction, Horizon, OrderBookLevel, TickcastConfig
from shared.config import HeuristicConfig, HistoryConfig, MarketDataConfig, OracleConfig


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now_ms: int = 1_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakePriceSource:
    """Returns a settable price, None, or raises."""

    def __init__(self, name: str, price: float | None = 2500.0, error: Exception | None = None):
        self.name = name
        self.price = price
        self.error = error
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.price is None:
            return None
        return SourceQuote(source=self.name, price=self.price)


class FakeOrderBook:
    """Returns a book with the given bid and ask volume on one level each."""

    def __init__(self, bid_qty: float = 3.0, ask_qty: float = 1.0):
        self.bid_qty = bid_qty
        self.ask_qty = ask_qty
        self.available = True

    async def fetch(self):
        if not self.available:
            return None
        return (
            (OrderBookLevel(2499.9, self.bid_qty),),
            (OrderBookLevel(2500.1, self.ask_qty),),
        )


def forecasts(direction: Direction = Direction.UP) -> tuple[OracleForecast, ...]:
    return tuple(
        OracleForecast(horizon=h, direction=direction, confidence=0.7, reasoning="test")
        for h in (Horizon.FIFTEEN_SECONDS, Horizon.THIRTY_SECONDS, Horizon.SIXTY_SECONDS)
    )


class FakeOracle:
    """Scripted oracle; optionally blocks until released."""

    def __init__(self, result: OracleResult | None = None, error: Exception | None = None):
        self.result = result or OracleResult(status=OracleStatus.SUCCESS, forecasts=forecasts())
        self.error = error
        self.requests: list[OracleRequest] = []
        self.gate: asyncio.Event | None = None

    def block(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate

    async def predict(self, request: OracleRequest) -> OracleResult:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return TickcastConfig(
        market=MarketDataConfig(refresh_interval_s=3600.0),
        history=HistoryConfig(),
        heuristic=HeuristicConfig(initial_delay_s=3600.0, initial_jitter_s=0.0),
        oracle=OracleConfig(min_history=5, warmup_s=3600.0, rate_limit_cooldown_s=60.0),
    )


@pytest.fixture
def sources():
    return [
        FakePriceSource("binance", 2500.0),
        FakePriceSource("bybit", 2501.0),
        FakePriceSource("kucoin", 2502.0),
    ]


@pytest.fixture
def order_book():
    return FakeOrderBook()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def session(sources, order_book, oracle, config, clock):
    return SessionOrchestrator(
        sources,
        order_book_source=order_book,
        oracle=oracle,
        config=config,
        clock=clock,
    )
