"""
PERSEPHONE - Accuracy Aggregation
"""

from collections.abc import Iterable, Sequence

from shared import (
    PREDICTION_HORIZONS,
    AccuracyStats,
    Direction,
    Horizon,
    HorizonAccuracy,
    OutcomeStatus,
    PredictionOutcome,
)


def accuracy_stats(
    outcomes: Sequence[PredictionOutcome],
    horizons: Iterable[Horizon] = PREDICTION_HORIZONS,
) -> AccuracyStats:
    """
    Per-horizon accuracy over scored outcomes.

    Pending outcomes and NEUTRAL predictions are excluded. A horizon
    with nothing left to score maps to None.
    """
    stats: AccuracyStats = {}

    for horizon in horizons:
        scored = [
            o for o in outcomes
            if o.prediction.horizon == horizon
            and o.prediction.direction != Direction.NEUTRAL
            and o.status != OutcomeStatus.PENDING
        ]
        if not scored:
            stats[horizon] = None
            continue

        correct = sum(1 for o in scored if o.status == OutcomeStatus.CORRECT)
        stats[horizon] = HorizonAccuracy(correct=correct, total=len(scored))

    return stats


def format_accuracy(stat: HorizonAccuracy | None) -> str:
    """Display form, e.g. ``3/5 (60.0%)`` or ``N/A``."""
    if stat is None:
        return "N/A"
    return f"{stat.correct}/{stat.total} ({stat.accuracy * 100:.1f}%)"
