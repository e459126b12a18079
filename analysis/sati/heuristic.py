"""
SATI - Order-Book Heuristic Predictor

Short-horizon directional signals from order-book pressure and
price momentum, without calling the oracle.
"""

import time

from rama_kandra import imbalance_delta
from shared import (
    Direction,
    Horizon,
    HorizonAccuracy,
    OrderBookFeatures,
    Prediction,
    PredictionSource,
)

from .feedback import AdaptiveFeedback

# Longer horizons are less certain from order-book-only signals
HORIZON_DECAY = {
    Horizon.FIVE_SECONDS: 0.0,
    Horizon.FIFTEEN_SECONDS: 0.0,
    Horizon.THIRTY_SECONDS: 0.05,
    Horizon.SIXTY_SECONDS: 0.1,
}


class HeuristicPredictor:
    """
    Order-book imbalance predictor with accuracy feedback.

    Steps, in order:
    - Direction from imbalance beyond ``direction_threshold``.
    - Base confidence = |imbalance| * ``imbalance_scale``.
    - Imbalance momentum: +/- ``imbalance_momentum_step`` when the
      imbalance delta agrees/disagrees with the direction.
    - Price momentum: + ``price_momentum_bonus`` when the last price
      change agrees, - ``price_momentum_penalty`` when it disagrees.
    - Below ``confidence_floor`` the direction becomes NEUTRAL.
    - Clamp, apply horizon decay and the accuracy adjustment, clamp again.
    """

    def __init__(
        self,
        feedback: AdaptiveFeedback | None = None,
        direction_threshold: float = 0.05,
        imbalance_scale: float = 1.5,
        imbalance_momentum_threshold: float = 0.01,
        imbalance_momentum_step: float = 0.15,
        price_momentum_threshold: float = 0.1,
        price_momentum_bonus: float = 0.1,
        price_momentum_penalty: float = 0.2,
        confidence_floor: float = 0.3,
        max_confidence: float = 0.95,
    ):
        self.feedback = feedback or AdaptiveFeedback()
        self.direction_threshold = direction_threshold
        self.imbalance_scale = imbalance_scale
        self.imbalance_momentum_threshold = imbalance_momentum_threshold
        self.imbalance_momentum_step = imbalance_momentum_step
        self.price_momentum_threshold = price_momentum_threshold
        self.price_momentum_bonus = price_momentum_bonus
        self.price_momentum_penalty = price_momentum_penalty
        self.confidence_floor = confidence_floor
        self.max_confidence = max_confidence

    def predict(
        self,
        horizon: Horizon,
        features: OrderBookFeatures | None,
        previous_features: OrderBookFeatures | None = None,
        price_change: float = 0.0,
        accuracy: HorizonAccuracy | None = None,
        now_ms: int | None = None,
    ) -> Prediction:
        """Produce a prediction for one horizon. Never raises."""
        timestamp_ms = now_ms if now_ms is not None else int(time.time() * 1000)

        if features is None:
            return Prediction(
                horizon=horizon,
                direction=Direction.NEUTRAL,
                confidence=0.0,
                timestamp_ms=timestamp_ms,
                source=PredictionSource.HEURISTIC,
            )

        direction = self._base_direction(features.imbalance)
        confidence = abs(features.imbalance) * self.imbalance_scale

        confidence += self._imbalance_momentum(
            direction, imbalance_delta(features, previous_features)
        )

        confidence += self._price_momentum(direction, price_change)

        # Low-conviction signals are suppressed, not reported as directional
        if confidence < self.confidence_floor:
            direction = Direction.NEUTRAL

        confidence = self._clamp(confidence)
        decay = HORIZON_DECAY.get(horizon, 0.0)
        adjustment = self.feedback.adjustment(accuracy)

        return Prediction(
            horizon=horizon,
            direction=direction,
            confidence=self._clamp(confidence - decay + adjustment),
            timestamp_ms=timestamp_ms,
            source=PredictionSource.HEURISTIC,
        )

    def _base_direction(self, imbalance: float) -> Direction:
        if imbalance > self.direction_threshold:
            return Direction.UP
        if imbalance < -self.direction_threshold:
            return Direction.DOWN
        return Direction.NEUTRAL

    def _imbalance_momentum(self, direction: Direction, delta: float) -> float:
        threshold = self.imbalance_momentum_threshold
        if (delta > threshold and direction == Direction.UP) or (
            delta < -threshold and direction == Direction.DOWN
        ):
            return self.imbalance_momentum_step
        if (delta < -threshold and direction == Direction.UP) or (
            delta > threshold and direction == Direction.DOWN
        ):
            return -self.imbalance_momentum_step
        return 0.0

    def _price_momentum(self, direction: Direction, price_change: float) -> float:
        threshold = self.price_momentum_threshold
        if (price_change > threshold and direction == Direction.UP) or (
            price_change < -threshold and direction == Direction.DOWN
        ):
            return self.price_momentum_bonus
        # Contradicting momentum costs more than confirming momentum earns
        if (price_change < -threshold and direction == Direction.UP) or (
            price_change > threshold and direction == Direction.DOWN
        ):
            return -self.price_momentum_penalty
        return 0.0

    def _clamp(self, confidence: float) -> float:
        return max(0.0, min(self.max_confidence, confidence))

    def get_stats(self) -> dict:
        """Get predictor parameters."""
        return {
            "direction_threshold": self.direction_threshold,
            "confidence_floor": self.confidence_floor,
            "max_confidence": self.max_confidence,
            "feedback_min_samples": self.feedback.min_samples,
        }
