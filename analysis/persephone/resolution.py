"""
PERSEPHONE - Outcome Resolution

Scores pending predictions against realized prices once their
horizon has elapsed.
"""

from collections.abc import Sequence
from enum import Enum

from shared import Direction, OutcomeStatus, PredictionOutcome, PriceTick


class BaselinePolicy(str, Enum):
    """Which price a prediction is scored against."""
    # Oracle predictions carry the price they were made at
    PREDICTION_PRICE = "prediction_price"
    # Heuristic predictions use the first tick at or after the prediction
    FIRST_TICK_AFTER = "first_tick_after"


def find_baseline_price(
    outcome: PredictionOutcome,
    price_history: Sequence[PriceTick],
    policy: BaselinePolicy,
) -> float | None:
    """Baseline price for an outcome, or None if not available yet."""
    prediction = outcome.prediction

    if policy == BaselinePolicy.PREDICTION_PRICE:
        return prediction.price_at_prediction

    # Earliest sample avoids scoring against a much later price
    for tick in price_history:
        if tick.timestamp_ms >= prediction.timestamp_ms:
            return tick.price
    return None


def resolve_outcome(
    outcome: PredictionOutcome,
    price_history: Sequence[PriceTick],
    now_ms: int,
    policy: BaselinePolicy,
) -> PredictionOutcome:
    """
    Resolve a single outcome.

    Terminal outcomes are returned unchanged. A pending outcome stays
    pending until ``now_ms`` reaches its horizon end and both a
    baseline and a latest price exist.
    """
    if not outcome.is_pending or not price_history:
        return outcome

    prediction = outcome.prediction
    if now_ms - prediction.timestamp_ms < prediction.horizon.duration_ms:
        return outcome

    baseline = find_baseline_price(outcome, price_history, policy)
    if baseline is None:
        return outcome

    if prediction.direction == Direction.NEUTRAL:
        return outcome.resolve(OutcomeStatus.NEUTRAL)

    latest_price = price_history[-1].price
    actual = Direction.UP if latest_price > baseline else Direction.DOWN

    if actual == prediction.direction:
        return outcome.resolve(OutcomeStatus.CORRECT)
    return outcome.resolve(OutcomeStatus.INCORRECT)


def resolve_outcomes(
    outcomes: Sequence[PredictionOutcome],
    price_history: Sequence[PriceTick],
    now_ms: int,
    policy: BaselinePolicy,
) -> tuple[PredictionOutcome, ...]:
    """Resolve every outcome in order; returns a new tuple."""
    return tuple(
        resolve_outcome(outcome, price_history, now_ms, policy)
        for outcome in outcomes
    )
