"""Tests for session display helpers."""

import pytest

from session import LogDisplay, SessionSnapshot, group_by_timestamp, summarize
from shared import (
    Direction,
    Horizon,
    HorizonAccuracy,
    Prediction,
    PredictionSource,
    PriceTick,
    SessionStatus,
)


def prediction(ts_ms, horizon=Horizon.FIFTEEN_SECONDS, direction=Direction.UP, confidence=0.45):
    return Prediction(
        horizon=horizon,
        direction=direction,
        confidence=confidence,
        timestamp_ms=ts_ms,
        source=PredictionSource.ORACLE,
    )


def make_snapshot(taken_ms=100_000, **overrides):
    fields = dict(
        taken_ms=taken_ms,
        status=SessionStatus.RUNNING,
        price_history=(
            PriceTick(98_000, 2500.0, 2500.0, 2500.0),
            PriceTick(99_000, 2500.5, 2500.5, 2500.5),
        ),
        imbalance_history=(),
        features=None,
        heuristic_predictions=(prediction(90_000),),
        oracle_predictions=None,
        prediction_history=(),
        oracle_outcomes=(),
        heuristic_outcomes=(),
        oracle_accuracy={Horizon.FIFTEEN_SECONDS: None},
        heuristic_accuracy={Horizon.FIFTEEN_SECONDS: HorizonAccuracy(correct=3, total=5)},
        is_predicting=False,
        is_rate_limited=False,
        error=None,
        next_fire_ms={"oracle": taken_ms + 12_400},
    )
    fields.update(overrides)
    return SessionSnapshot(**fields)


class TestGroupByTimestamp:
    """Test suite for group_by_timestamp."""

    def test_newest_group_first(self):
        """Test predictions made together are grouped, newest first."""
        history = [
            prediction(1_000, Horizon.FIFTEEN_SECONDS),
            prediction(1_000, Horizon.THIRTY_SECONDS),
            prediction(31_000, Horizon.FIFTEEN_SECONDS),
        ]

        groups = group_by_timestamp(history)

        assert [ts for ts, _ in groups] == [31_000, 1_000]
        assert [p.horizon for p in groups[1][1]] == [
            Horizon.FIFTEEN_SECONDS,
            Horizon.THIRTY_SECONDS,
        ]

    def test_empty(self):
        """Test no history gives no groups."""
        assert group_by_timestamp([]) == []


class TestSummarize:
    """Test suite for summarize."""

    def test_summary_fields(self):
        """Test display values derived from a snapshot."""
        summary = summarize(make_snapshot())

        assert summary["price"] == 2500.5
        assert summary["change"] == pytest.approx(0.5)
        assert summary["signals"] == {"15s": "UP 45.0%"}
        assert summary["oracle"] is None
        assert summary["signal_accuracy"] == {"15s": "3/5 (60.0%)"}
        assert summary["oracle_accuracy"] == {"15s": "N/A"}
        assert summary["countdowns"] == {"oracle": 12}

    def test_empty_session(self):
        """Test a fresh session has no price and zero change."""
        summary = summarize(make_snapshot(price_history=()))
        assert summary["price"] is None
        assert summary["change"] == 0.0
        assert summary["history"] == []

    def test_history_grouped_newest_first(self):
        """Test past predictions are shown in groups made together, newest first."""
        history = (
            prediction(60_000),
            prediction(60_000, horizon=Horizon.THIRTY_SECONDS, direction=Direction.DOWN),
            prediction(90_000, confidence=0.7),
        )

        summary = summarize(make_snapshot(prediction_history=history))

        assert summary["history"] == [
            {"timestamp_ms": 90_000, "predictions": ["UP 70.0%"]},
            {"timestamp_ms": 60_000, "predictions": ["UP 45.0%", "DOWN 45.0%"]},
        ]


class TestLogDisplay:
    """Test suite for LogDisplay."""

    def test_throttled(self):
        """Test renders are limited to one per interval."""
        display = LogDisplay(min_interval_ms=2_000)

        display(make_snapshot(taken_ms=100_000))
        display(make_snapshot(taken_ms=101_000))
        display(make_snapshot(taken_ms=102_000))

        assert display.renders == 2
