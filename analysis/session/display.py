"""
SESSION - Display

Read-only rendering of session snapshots. The bundled display writes
a compact summary to the structured log.
"""

from collections import defaultdict
from collections.abc import Iterable

from persephone import format_accuracy
from shared import AgentLogger, Prediction

from .orchestrator import SessionSnapshot


def group_by_timestamp(
    predictions: Iterable[Prediction],
) -> list[tuple[int, tuple[Prediction, ...]]]:
    """Group predictions made together, newest group first."""
    groups: dict[int, list[Prediction]] = defaultdict(list)
    for prediction in predictions:
        groups[prediction.timestamp_ms].append(prediction)
    return [
        (timestamp, tuple(groups[timestamp]))
        for timestamp in sorted(groups, reverse=True)
    ]


def format_prediction(prediction: Prediction) -> str:
    return f"{prediction.direction.value} {prediction.confidence * 100:.1f}%"


def summarize(snapshot: SessionSnapshot) -> dict:
    """Display-ready values for one snapshot."""
    countdowns = {
        name: max(0, (fire_ms - snapshot.taken_ms) // 1000)
        for name, fire_ms in snapshot.next_fire_ms.items()
    }
    oracle = None
    if snapshot.oracle_predictions is not None:
        oracle = {p.horizon.value: format_prediction(p) for p in snapshot.oracle_predictions}

    return {
        "status": snapshot.status.value,
        "price": None if snapshot.current_price is None else round(snapshot.current_price, 2),
        "change": round(snapshot.price_change, 2),
        "imbalance": None if snapshot.features is None else round(snapshot.features.imbalance, 4),
        "signals": {
            p.horizon.value: format_prediction(p) for p in snapshot.heuristic_predictions
        },
        "oracle": oracle,
        "history": [
            {"timestamp_ms": timestamp, "predictions": [format_prediction(p) for p in group]}
            for timestamp, group in group_by_timestamp(snapshot.prediction_history)
        ],
        "predicting": snapshot.is_predicting,
        "signal_accuracy": {
            h.value: format_accuracy(stat) for h, stat in snapshot.heuristic_accuracy.items()
        },
        "oracle_accuracy": {
            h.value: format_accuracy(stat) for h, stat in snapshot.oracle_accuracy.items()
        },
        "countdowns": countdowns,
        "error": snapshot.error,
    }


class LogDisplay:
    """Logs a session summary at most once per ``min_interval_ms``."""

    def __init__(self, min_interval_ms: int = 2000):
        self.logger = AgentLogger("DISPLAY")
        self.min_interval_ms = min_interval_ms
        self._last_render_ms: int | None = None
        self.renders = 0

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if (
            self._last_render_ms is not None
            and snapshot.taken_ms - self._last_render_ms < self.min_interval_ms
        ):
            return

        self._last_render_ms = snapshot.taken_ms
        self.renders += 1
        self.logger.info("Session update", **summarize(snapshot))
