"""
PERSEPHONE - Prediction Outcome Tracker
"""

from collections.abc import Iterable, Sequence

from shared import (
    PREDICTION_HORIZONS,
    AccuracyStats,
    AgentLogger,
    BoundedHistory,
    Horizon,
    OutcomeStatus,
    Prediction,
    PredictionOutcome,
    PriceTick,
)

from .accuracy import accuracy_stats
from .resolution import BaselinePolicy, resolve_outcomes


class OutcomeTracker:
    """
    Rolling window of prediction outcomes for one prediction source.

    New predictions enter as PENDING. ``resolve`` re-scans the window
    and commits only when something changed; ``revision`` counts
    commits so cached accuracy is recomputed only after a change.
    """

    def __init__(
        self,
        name: str,
        policy: BaselinePolicy,
        capacity: int = 60,
        horizons: Iterable[Horizon] = PREDICTION_HORIZONS,
    ):
        self.logger = AgentLogger(f"PERSEPHONE-{name.upper()}")
        self.name = name
        self.policy = policy
        self.horizons = tuple(horizons)
        self._outcomes: BoundedHistory[PredictionOutcome] = BoundedHistory(capacity)

        self.revision = 0
        self._stats_revision = -1
        self._stats: AccuracyStats = {h: None for h in self.horizons}

        # Statistics
        self.recorded = 0
        self.resolved = 0

        self.logger.info("Outcome tracker initialized", policy=policy.value, capacity=capacity)

    def record(self, predictions: Iterable[Prediction]) -> int:
        """Add predictions as PENDING outcomes. Returns count added."""
        added = [PredictionOutcome(prediction=p) for p in predictions]
        if not added:
            return 0

        self._outcomes.extend(added)
        self.recorded += len(added)
        self.revision += 1
        return len(added)

    def resolve(self, price_history: Sequence[PriceTick], now_ms: int) -> int:
        """Resolve elapsed outcomes. Returns count newly resolved."""
        current = self._outcomes.snapshot()
        updated = resolve_outcomes(current, price_history, now_ms, self.policy)

        if updated == current:
            return 0

        changed = sum(1 for before, after in zip(current, updated) if before != after)
        self._outcomes.replace(updated)
        self.resolved += changed
        self.revision += 1

        self.logger.debug("Outcomes resolved", count=changed, revision=self.revision)
        return changed

    def outcomes(self) -> tuple[PredictionOutcome, ...]:
        """Outcome window, oldest first."""
        return self._outcomes.snapshot()

    def accuracy(self) -> AccuracyStats:
        """Per-horizon accuracy, recomputed only after a commit."""
        if self._stats_revision != self.revision:
            self._stats = accuracy_stats(self._outcomes.snapshot(), self.horizons)
            self._stats_revision = self.revision
        return dict(self._stats)

    def pending_count(self) -> int:
        return sum(1 for o in self._outcomes if o.status == OutcomeStatus.PENDING)

    def get_stats(self) -> dict:
        """Get tracker statistics."""
        return {
            "outcomes": len(self._outcomes),
            "pending": self.pending_count(),
            "recorded": self.recorded,
            "resolved": self.resolved,
            "revision": self.revision,
        }
