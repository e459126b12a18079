"""
Shared types for Tickcast analysis agents.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional


class Horizon(str, Enum):
    """Prediction horizons."""
    FIVE_SECONDS = "5s"
    FIFTEEN_SECONDS = "15s"
    THIRTY_SECONDS = "30s"
    SIXTY_SECONDS = "60s"

    @property
    def seconds(self) -> int:
        """Horizon length in seconds."""
        return int(self.value[:-1])

    @property
    def duration_ms(self) -> int:
        """Horizon length in milliseconds."""
        return self.seconds * 1000


# Horizons the oracle answers for and the heuristic loops run on
PREDICTION_HORIZONS = (
    Horizon.FIFTEEN_SECONDS,
    Horizon.THIRTY_SECONDS,
    Horizon.SIXTY_SECONDS,
)


class Direction(str, Enum):
    """Predicted or realized price direction."""
    UP = "UP"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"


class OutcomeStatus(str, Enum):
    """Resolution status of a prediction."""
    PENDING = "PENDING"
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    NEUTRAL = "NEUTRAL"


class PredictionSource(str, Enum):
    """Where a prediction came from."""
    ORACLE = "oracle"
    HEURISTIC = "heuristic"


class SessionStatus(str, Enum):
    """Session status values."""
    STARTING = "starting"
    RUNNING = "running"
    DEGRADED = "degraded"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class PriceTick:
    """One aggregated price sample."""
    timestamp_ms: int
    price: float  # Close
    high: float
    low: float


@dataclass(frozen=True)
class OrderBookLevel:
    """Single price level on one side of the book."""
    price: float
    quantity: float


@dataclass(frozen=True)
class OrderBookFeatures:
    """Feature vector derived from the top of the order book."""
    mid_price: float
    spread: float
    bid_vol: float
    ask_vol: float
    imbalance: float  # -1 to 1
    weighted_mid: float


@dataclass(frozen=True)
class Prediction:
    """Directional prediction for one horizon."""
    horizon: Horizon
    direction: Direction
    confidence: float  # 0-1
    timestamp_ms: int
    source: PredictionSource = PredictionSource.HEURISTIC
    reasoning: Optional[str] = None  # Oracle only
    price_at_prediction: Optional[float] = None  # Oracle only


@dataclass(frozen=True)
class PredictionOutcome:
    """A prediction and its resolution status."""
    prediction: Prediction
    status: OutcomeStatus = OutcomeStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == OutcomeStatus.PENDING

    def resolve(self, status: OutcomeStatus) -> "PredictionOutcome":
        """Return a copy moved to a terminal status."""
        if not self.is_pending:
            return self
        return replace(self, status=status)


@dataclass(frozen=True)
class HorizonAccuracy:
    """Accuracy aggregate for one horizon."""
    correct: int
    total: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.total


# None marks a horizon with no scored outcomes yet
AccuracyStats = Dict[Horizon, Optional[HorizonAccuracy]]
