"""
ORACLE - Prediction Oracle Client

Asks an external language model for 15s/30s/60s direction calls.
Failures come back as a structured result so the session can tell a
rate limit apart from any other error.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Protocol

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError

from sati import AdaptiveFeedback, IndicatorSnapshot
from shared import (
    PREDICTION_HORIZONS,
    AccuracyStats,
    AgentLogger,
    Direction,
    Horizon,
    OrderBookFeatures,
    PriceTick,
)


class OracleStatus(str, Enum):
    """Outcome of one oracle call."""
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


class OracleResponseError(ValueError):
    """Oracle answered, but not with a usable set of predictions."""


class ForecastPayload(BaseModel):
    """One prediction as returned by the model."""
    timeframe: Literal["15s", "30s", "60s"]
    direction: Literal["UP", "DOWN"]
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str


class OracleResponse(BaseModel):
    """Top-level JSON object returned by the model."""
    predictions: list[ForecastPayload]


@dataclass(frozen=True)
class OracleForecast:
    """Validated oracle prediction, before it is stamped by the session."""
    horizon: Horizon
    direction: Direction
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class OracleRequest:
    """Feature snapshot sent to the oracle."""
    price_history: tuple[PriceTick, ...]
    features: Optional[OrderBookFeatures]
    accuracy: AccuracyStats
    indicators: IndicatorSnapshot


@dataclass(frozen=True)
class OracleResult:
    """Structured oracle answer."""
    status: OracleStatus
    forecasts: tuple[OracleForecast, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OracleStatus.SUCCESS


class Oracle(Protocol):
    """External prediction service."""

    async def predict(self, request: OracleRequest) -> OracleResult: ...


def parse_forecasts(
    text: str,
    horizons: Sequence[Horizon] = PREDICTION_HORIZONS,
) -> tuple[OracleForecast, ...]:
    """
    Validate a model response.

    Accepts ``{"predictions": [...]}`` or a bare list and requires
    exactly one prediction per horizon. Raises OracleResponseError.
    """
    try:
        data = json.loads(text)
        if isinstance(data, list):
            data = {"predictions": data}
        response = OracleResponse.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise OracleResponseError(f"Invalid oracle response: {e}") from e

    by_horizon: dict[Horizon, ForecastPayload] = {}
    for payload in response.predictions:
        horizon = Horizon(payload.timeframe)
        if horizon in by_horizon:
            raise OracleResponseError(f"Duplicate prediction for {horizon.value}")
        by_horizon[horizon] = payload

    missing = [h.value for h in horizons if h not in by_horizon]
    if missing:
        raise OracleResponseError(f"Missing predictions for {', '.join(missing)}")

    return tuple(
        OracleForecast(
            horizon=h,
            direction=Direction(by_horizon[h].direction),
            confidence=by_horizon[h].confidence,
            reasoning=by_horizon[h].reasoning,
        )
        for h in horizons
    )


SYSTEM_PROMPT = """You are a quantitative short-horizon trading model for ETH/USDT.
Synthesize price action, technical indicators and order-book pressure, and use
the feedback on your recent accuracy to calibrate your confidence.

Respond with a single JSON object with one key, "predictions": an array of
exactly three objects, one per timeframe ("15s", "30s", "60s"), each with:
- "timeframe": "15s", "30s" or "60s"
- "direction": "UP" or "DOWN"
- "confidence": number from 0.0 to 1.0
- "reasoning": short quantitative explanation citing at least two data sources

Base your reasoning only on the numbers provided."""


def _format_indicators(indicators: IndicatorSnapshot) -> str:
    if not indicators.has_data():
        return "No technical indicator data available due to insufficient price history."

    lines = ["Technical Indicator Data:"]
    if indicators.rsi is not None:
        lines.append(f"- RSI (14): {indicators.rsi:.2f} (> 70 overbought, < 30 oversold)")
    if indicators.macd is not None:
        m = indicators.macd
        lines.append(
            f"- MACD Line: {m.macd:.4f}, Signal Line: {m.signal:.4f}, Histogram: {m.histogram:.4f}"
        )
    if indicators.bbands is not None:
        b = indicators.bbands
        lines.append(
            f"- Bollinger Bands: Upper={b.upper:.2f}, Middle={b.middle:.2f}, Lower={b.lower:.2f}"
        )
    if indicators.stochastic is not None:
        s = indicators.stochastic
        lines.append(
            f"- Stochastic Oscillator: %K={s.k:.2f}, %D={s.d:.2f} (> 80 overbought, < 20 oversold)"
        )
    return "\n".join(lines)


def _format_order_book(features: OrderBookFeatures | None) -> str:
    if features is None:
        return "No order book data available."
    return "\n".join([
        "Real-time Order Book Snapshot:",
        f"- Mid Price: {features.mid_price:.4f}",
        f"- Spread (Best Ask - Best Bid): {features.spread:.4f}",
        f"- Top 10 Bids Volume: {features.bid_vol:.2f}",
        f"- Top 10 Asks Volume: {features.ask_vol:.2f}",
        f"- Order Book Imbalance: {features.imbalance:.4f} (positive = buy pressure)",
        f"- Volume-Weighted Mid Price: {features.weighted_mid:.4f}",
    ])


def build_messages(
    request: OracleRequest,
    feedback: AdaptiveFeedback,
) -> list[dict[str, str]]:
    """Chat messages for one oracle call."""
    history = [
        {
            "time": datetime.fromtimestamp(t.timestamp_ms / 1000, tz=timezone.utc).isoformat(),
            "price": t.price,
            "high": t.high,
            "low": t.low,
        }
        for t in request.price_history
    ]

    user_prompt = "\n\n".join([
        "Analyze the following real-time data snapshot and return your predictions.",
        "Recent Performance Feedback:\n" + feedback.describe(request.accuracy),
        "Accuracy by horizon (json):\n" + json.dumps(feedback.oracle_context(request.accuracy)),
        "If accuracy for a timeframe is low, be more cautious with its confidence.",
        f"Price Data (last {len(history)} samples, ohlc):\n{json.dumps(history)}",
        _format_indicators(request.indicators),
        _format_order_book(request.features),
    ])

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class OracleClient:
    """
    OpenAI-backed prediction oracle.

    Never raises: rate limits map to RATE_LIMITED, everything else that
    goes wrong maps to FAILED.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout_s: float = 20.0,
        feedback: AdaptiveFeedback | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.logger = AgentLogger("ORACLE-PREDICTOR")
        self.model = model
        self.feedback = feedback or AdaptiveFeedback()
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=0,
        )

        # Statistics
        self.calls = 0
        self.successes = 0
        self.rate_limited = 0
        self.failures = 0

        self.logger.info("Oracle client initialized", model=model)

    async def predict(self, request: OracleRequest) -> OracleResult:
        """Request one prediction per horizon."""
        self.calls += 1
        messages = build_messages(request, self.feedback)

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
            )
            text = completion.choices[0].message.content or ""
            forecasts = parse_forecasts(text)
        except openai.RateLimitError as e:
            return self._rate_limited(str(e))
        except openai.APIStatusError as e:
            if e.status_code == 429:
                return self._rate_limited(str(e))
            return self._failed(f"Oracle returned status {e.status_code}: {e.message}")
        except (openai.OpenAIError, OracleResponseError, IndexError) as e:
            return self._failed(str(e))

        self.successes += 1
        self.logger.info(
            "Oracle prediction received",
            directions={f.horizon.value: f.direction.value for f in forecasts},
        )
        return OracleResult(status=OracleStatus.SUCCESS, forecasts=forecasts)

    def _rate_limited(self, message: str) -> OracleResult:
        self.rate_limited += 1
        self.logger.warning("Oracle rate limited", error=message)
        return OracleResult(status=OracleStatus.RATE_LIMITED, error=message)

    def _failed(self, message: str) -> OracleResult:
        self.failures += 1
        self.logger.error("Oracle request failed", error=message)
        return OracleResult(status=OracleStatus.FAILED, error=message)

    def get_stats(self) -> dict:
        """Get oracle client statistics."""
        return {
            "calls": self.calls,
            "successes": self.successes,
            "rate_limited": self.rate_limited,
            "failures": self.failures,
        }
