"""
SATI - Adaptive Feedback

Turns live per-horizon accuracy into a confidence nudge for the
heuristic generator and a performance summary for the oracle.
"""

from collections.abc import Iterable

from shared import PREDICTION_HORIZONS, AccuracyStats, Horizon, HorizonAccuracy


class AdaptiveFeedback:
    """
    Accuracy feedback shared by the heuristic and the oracle request.

    A horizon only contributes once it has more than ``min_samples``
    scored predictions. The adjustment is (accuracy - 0.5) * weight,
    so a horizon beating chance gains a little confidence and a
    horizon losing to chance gives a little back.
    """

    def __init__(self, min_samples: int = 5, weight: float = 0.1):
        self.min_samples = min_samples
        self.weight = weight

    def adjustment(self, accuracy: HorizonAccuracy | None) -> float:
        """Confidence adjustment for one horizon."""
        if accuracy is None or accuracy.total <= self.min_samples:
            return 0.0
        return (accuracy.accuracy - 0.5) * self.weight

    def oracle_context(
        self,
        stats: AccuracyStats,
        horizons: Iterable[Horizon] = PREDICTION_HORIZONS,
    ) -> dict[str, dict | None]:
        """JSON-ready accuracy summary keyed by horizon label."""
        context: dict[str, dict | None] = {}
        for horizon in horizons:
            stat = stats.get(horizon)
            if stat is None:
                context[horizon.value] = None
            else:
                context[horizon.value] = {
                    "correct": stat.correct,
                    "total": stat.total,
                    "accuracy": round(stat.accuracy, 4),
                }
        return context

    def describe(
        self,
        stats: AccuracyStats,
        horizons: Iterable[Horizon] = PREDICTION_HORIZONS,
    ) -> str:
        """Performance feedback lines for the oracle prompt."""
        lines = [
            "Your performance on recent predictions is being tracked to "
            "create a feedback loop. Use this to improve your accuracy.",
        ]
        for horizon in horizons:
            stat = stats.get(horizon)
            if stat is None:
                lines.append(
                    f"- {horizon.value} Horizon: No completed predictions to analyze yet."
                )
            else:
                lines.append(
                    f"- {horizon.value} Horizon: {stat.correct}/{stat.total} correct "
                    f"({stat.accuracy * 100:.1f}% accuracy)."
                )
        return "\n".join(lines)
