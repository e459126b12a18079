"""
SESSION - Orchestrator

Owns every mutable history of a live session and the periodic tasks
that feed it: market refresh, one heuristic loop per horizon and the
oracle loop. Other components only ever see immutable snapshots.
"""

import asyncio
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from oracle import (
    Oracle,
    OracleRequest,
    OracleResult,
    OracleStatus,
    OrderBookSource,
    PriceAggregator,
    PriceSource,
    SourceQuote,
)
from persephone import BaselinePolicy, OutcomeTracker
from rama_kandra import extract_features
from sati import HeuristicPredictor, compute_indicators
from shared import (
    PREDICTION_HORIZONS,
    AccuracyStats,
    AgentLogger,
    BoundedHistory,
    Direction,
    Horizon,
    OrderBookFeatures,
    Prediction,
    PredictionOutcome,
    PredictionSource,
    PriceTick,
    SessionStatus,
    TickcastConfig,
    get_config,
)

Clock = Callable[[], int]
UpdateHandler = Callable[["SessionSnapshot"], None]

MARKET_LOOP = "market"
ORACLE_LOOP = "oracle"


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def heuristic_loop_name(horizon: Horizon) -> str:
    return f"heuristic:{horizon.value}"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for display consumers."""
    taken_ms: int
    status: SessionStatus
    price_history: tuple[PriceTick, ...]
    imbalance_history: tuple[tuple[int, float], ...]
    features: Optional[OrderBookFeatures]
    heuristic_predictions: tuple[Prediction, ...]
    oracle_predictions: Optional[tuple[Prediction, ...]]
    prediction_history: tuple[Prediction, ...]
    oracle_outcomes: tuple[PredictionOutcome, ...]
    heuristic_outcomes: tuple[PredictionOutcome, ...]
    oracle_accuracy: AccuracyStats
    heuristic_accuracy: AccuracyStats
    is_predicting: bool
    is_rate_limited: bool
    error: Optional[str]
    next_fire_ms: dict[str, int] = field(default_factory=dict)

    @property
    def current_price(self) -> float | None:
        return self.price_history[-1].price if self.price_history else None

    @property
    def price_change(self) -> float:
        """Change between the last two ticks (0 with fewer than two)."""
        if len(self.price_history) < 2:
            return 0.0
        return self.price_history[-1].price - self.price_history[-2].price


class SessionOrchestrator:
    """
    Drives one in-memory prediction session.

    Market refresh fans out to every source concurrently and tolerates
    any subset failing. Heuristic loops are staggered by a random initial
    delay. The oracle loop waits for a warm-up and enough history, runs
    one call at a time and backs off for a cooldown when rate limited.
    Outcomes are re-resolved after every new tick and every new prediction.
    """

    def __init__(
        self,
        price_sources: Sequence[PriceSource],
        order_book_source: OrderBookSource | None = None,
        oracle: Oracle | None = None,
        heuristic: HeuristicPredictor | None = None,
        aggregator: PriceAggregator | None = None,
        config: TickcastConfig | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self.logger = AgentLogger("SESSION")
        self.config = config or get_config()
        self.price_sources = tuple(price_sources)
        self.order_book_source = order_book_source
        self.oracle = oracle
        self.heuristic = heuristic or HeuristicPredictor()
        self.aggregator = aggregator or PriceAggregator(
            [s.name for s in self.price_sources]
        )
        self.clock = clock or wall_clock_ms
        self.rng = rng or random.Random()
        self.horizons = PREDICTION_HORIZONS

        history = self.config.history
        self._price_history: BoundedHistory[PriceTick] = BoundedHistory(
            history.max_price_history
        )
        self._imbalance_history: BoundedHistory[tuple[int, float]] = BoundedHistory(
            history.max_price_history
        )
        self._prediction_history: BoundedHistory[Prediction] = BoundedHistory(
            history.max_prediction_history
        )
        self.oracle_tracker = OutcomeTracker(
            "oracle", BaselinePolicy.PREDICTION_PRICE, history.max_outcome_history
        )
        self.heuristic_tracker = OutcomeTracker(
            "heuristic", BaselinePolicy.FIRST_TICK_AFTER, history.max_outcome_history
        )

        self._features: OrderBookFeatures | None = None
        self._previous_features: OrderBookFeatures | None = None
        self._heuristic_predictions: dict[Horizon, Prediction] = {
            h: Prediction(
                horizon=h,
                direction=Direction.NEUTRAL,
                confidence=0.0,
                timestamp_ms=0,
                source=PredictionSource.HEURISTIC,
            )
            for h in self.horizons
        }
        self._oracle_predictions: tuple[Prediction, ...] | None = None

        self._oracle_in_flight = False
        self._rate_limited_until_ms = 0
        self._error: str | None = None

        self._status = SessionStatus.STOPPED
        self._generation = 0
        self._tasks: list[asyncio.Task] = []
        self._next_fire_ms: dict[str, int] = {}
        self._update_handlers: list[UpdateHandler] = []

        self.logger.info(
            "Session orchestrator initialized",
            price_sources=[s.name for s in self.price_sources],
            order_book=order_book_source is not None,
            oracle=oracle is not None,
        )

    # ========================================================================
    # STATE
    # ========================================================================

    @property
    def status(self) -> SessionStatus:
        if self._status == SessionStatus.RUNNING and self.is_rate_limited:
            return SessionStatus.DEGRADED
        return self._status

    @property
    def is_rate_limited(self) -> bool:
        return self.clock() < self._rate_limited_until_ms

    @property
    def is_predicting(self) -> bool:
        return self._oracle_in_flight

    @property
    def error(self) -> str | None:
        if self.is_rate_limited:
            cooldown = self.config.oracle.rate_limit_cooldown_s
            return f"Rate limit reached. Predictions paused for {cooldown:.0f} seconds."
        return self._error

    @property
    def features(self) -> OrderBookFeatures | None:
        return self._features

    def price_history(self) -> tuple[PriceTick, ...]:
        return self._price_history.snapshot()

    def on_update(self, handler: UpdateHandler) -> None:
        """Register a display handler called with a snapshot after each commit."""
        self._update_handlers.append(handler)

    def snapshot(self) -> SessionSnapshot:
        """Immutable view of the whole session."""
        return SessionSnapshot(
            taken_ms=self.clock(),
            status=self.status,
            price_history=self._price_history.snapshot(),
            imbalance_history=self._imbalance_history.snapshot(),
            features=self._features,
            heuristic_predictions=tuple(
                self._heuristic_predictions[h] for h in self.horizons
            ),
            oracle_predictions=self._oracle_predictions,
            prediction_history=self._prediction_history.snapshot(),
            oracle_outcomes=self.oracle_tracker.outcomes(),
            heuristic_outcomes=self.heuristic_tracker.outcomes(),
            oracle_accuracy=self.oracle_tracker.accuracy(),
            heuristic_accuracy=self.heuristic_tracker.accuracy(),
            is_predicting=self.is_predicting,
            is_rate_limited=self.is_rate_limited,
            error=self.error,
            next_fire_ms=dict(self._next_fire_ms),
        )

    def _notify(self) -> None:
        if not self._update_handlers:
            return
        snapshot = self.snapshot()
        for handler in self._update_handlers:
            try:
                handler(snapshot)
            except Exception as e:
                self.logger.error("Update handler error", error=str(e))

    # ========================================================================
    # TASK BODIES
    # ========================================================================

    async def refresh_market_data(self) -> PriceTick | None:
        """Poll every source once and commit the results."""
        fetches: list[Awaitable] = [source.fetch() for source in self.price_sources]
        if self.order_book_source is not None:
            fetches.append(self.order_book_source.fetch())

        results = await asyncio.gather(*fetches, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                self.logger.warning("Market data source raised", error=repr(result))

        quotes: list[SourceQuote | None] = [
            r if isinstance(r, SourceQuote) else None
            for r in results[:len(self.price_sources)]
        ]
        book = results[-1] if self.order_book_source is not None else None
        now = self.clock()

        features = None
        if isinstance(book, tuple):
            bids, asks = book
            features = extract_features(bids, asks, self.config.market.order_book_depth)

        # One-step lookback: the previous snapshot shifts even if this refresh failed
        self._previous_features = self._features
        if features is not None:
            self._features = features
            self._imbalance_history.append((now, features.imbalance))

        tick = self.aggregator.aggregate(quotes, now)
        if tick is not None:
            self._price_history.append(tick)
            self.resolve_outcomes()

        self._notify()
        return tick

    def run_heuristic(self, horizon: Horizon) -> Prediction | None:
        """Generate and record one heuristic prediction."""
        features = self._features
        previous = self._previous_features
        history = self._price_history.snapshot()

        if features is None or len(history) < 2:
            return None

        prediction = self.heuristic.predict(
            horizon,
            features,
            previous,
            price_change=history[-1].price - history[-2].price,
            accuracy=self.heuristic_tracker.accuracy().get(horizon),
            now_ms=self.clock(),
        )

        self._heuristic_predictions[horizon] = prediction
        self.heuristic_tracker.record([prediction])
        self.resolve_outcomes()
        self._notify()

        self.logger.debug(
            "Heuristic prediction",
            horizon=horizon.value,
            direction=prediction.direction.value,
            confidence=round(prediction.confidence, 4),
        )
        return prediction

    async def run_oracle(self) -> OracleResult | None:
        """
        One oracle cycle.

        Returns None when the call was skipped (no oracle, already in
        flight, rate limited, not enough history) or its result arrived
        after teardown.
        """
        if self.oracle is None or self._oracle_in_flight or self.is_rate_limited:
            return None

        history = self._price_history.snapshot()
        if len(history) < self.config.oracle.min_history:
            return None

        request = OracleRequest(
            price_history=history[-self.config.oracle.request_history:],
            features=self._features,
            accuracy=self.oracle_tracker.accuracy(),
            indicators=compute_indicators(history),
        )
        price_at_prediction = history[-1].price
        generation = self._generation

        self._oracle_in_flight = True
        self._error = None
        self._notify()

        try:
            result = await self.oracle.predict(request)
        except Exception as e:
            self.logger.exception("Oracle raised instead of returning a result")
            result = OracleResult(status=OracleStatus.FAILED, error=str(e))
        finally:
            if generation == self._generation:
                self._oracle_in_flight = False

        if generation != self._generation:
            self.logger.info("Discarding oracle result after teardown", status=result.status.value)
            return None

        self._apply_oracle_result(result, price_at_prediction)
        self._notify()
        return result

    def _apply_oracle_result(self, result: OracleResult, price_at_prediction: float) -> None:
        now = self.clock()

        if result.status == OracleStatus.SUCCESS:
            predictions = tuple(
                Prediction(
                    horizon=f.horizon,
                    direction=f.direction,
                    confidence=f.confidence,
                    timestamp_ms=now,
                    source=PredictionSource.ORACLE,
                    reasoning=f.reasoning,
                    price_at_prediction=price_at_prediction,
                )
                for f in result.forecasts
            )
            self._oracle_predictions = predictions
            self._prediction_history.extend(predictions)
            self.oracle_tracker.record(predictions)
            self.resolve_outcomes()
            return

        self._oracle_predictions = None

        if result.status == OracleStatus.RATE_LIMITED:
            cooldown_s = self.config.oracle.rate_limit_cooldown_s
            self._rate_limited_until_ms = now + int(cooldown_s * 1000)
            self.logger.warning("Oracle paused for cooldown", cooldown_s=cooldown_s)
        else:
            self._error = f"Failed to get prediction: {result.error or 'unknown error'}"

    def resolve_outcomes(self) -> int:
        """Re-scan both trackers against the current price history."""
        history = self._price_history.snapshot()
        now = self.clock()
        return (
            self.oracle_tracker.resolve(history, now)
            + self.heuristic_tracker.resolve(history, now)
        )

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def start(self) -> None:
        """Start every periodic task."""
        if self._tasks:
            return

        self._status = SessionStatus.STARTING
        heuristic = self.config.heuristic

        self._tasks.append(asyncio.create_task(self._market_loop(), name=MARKET_LOOP))
        for horizon in self.horizons:
            delay = heuristic.initial_delay_s + self.rng.random() * heuristic.initial_jitter_s
            self._tasks.append(asyncio.create_task(
                self._heuristic_loop(horizon, delay),
                name=heuristic_loop_name(horizon),
            ))
        if self.oracle is not None:
            self._tasks.append(asyncio.create_task(self._oracle_loop(), name=ORACLE_LOOP))

        self._status = SessionStatus.RUNNING
        self.logger.info("Session started", tasks=len(self._tasks))

    async def stop(self) -> None:
        """Cancel every task; late oracle results are dropped."""
        self._status = SessionStatus.STOPPING
        self._generation += 1

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._oracle_in_flight = False
        self._next_fire_ms.clear()
        self._status = SessionStatus.STOPPED
        self.logger.info("Session stopped", cancelled=len(tasks))

    async def _market_loop(self) -> None:
        interval = self.config.market.refresh_interval_s
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.refresh_market_data()
            except Exception:
                self.logger.exception("Market refresh failed")
            delay = max(0.0, interval - (loop.time() - started))
            self._schedule(MARKET_LOOP, delay)
            await asyncio.sleep(delay)

    async def _heuristic_loop(self, horizon: Horizon, initial_delay: float) -> None:
        name = heuristic_loop_name(horizon)
        interval = self.config.get_heuristic_interval(horizon)
        self._schedule(name, initial_delay)
        await asyncio.sleep(initial_delay)
        while True:
            try:
                self.run_heuristic(horizon)
            except Exception:
                self.logger.exception("Heuristic prediction failed", horizon=horizon.value)
            self._schedule(name, interval)
            await asyncio.sleep(interval)

    async def _oracle_loop(self) -> None:
        oracle = self.config.oracle
        self._schedule(ORACLE_LOOP, oracle.warmup_s)
        await asyncio.sleep(oracle.warmup_s)
        while True:
            try:
                await self.run_oracle()
            except Exception:
                self.logger.exception("Oracle cycle failed")
            self._schedule(ORACLE_LOOP, oracle.interval_s)
            await asyncio.sleep(oracle.interval_s)

    def _schedule(self, name: str, delay_s: float) -> None:
        self._next_fire_ms[name] = self.clock() + int(delay_s * 1000)

    def get_stats(self) -> dict:
        """Get session statistics."""
        return {
            "status": self.status.value,
            "price_samples": len(self._price_history),
            "prediction_history": len(self._prediction_history),
            "tasks": len(self._tasks),
            "aggregator": self.aggregator.get_stats(),
            "oracle_outcomes": self.oracle_tracker.get_stats(),
            "heuristic_outcomes": self.heuristic_tracker.get_stats(),
        }
