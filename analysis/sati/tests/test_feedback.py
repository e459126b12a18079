"""Tests for SATI adaptive feedback."""

import pytest

from sati import AdaptiveFeedback
from shared import Horizon, HorizonAccuracy


class TestAdaptiveFeedback:
    """Test suite for AdaptiveFeedback."""

    def test_no_data_no_adjustment(self):
        """Test a horizon without scored outcomes is not adjusted."""
        feedback = AdaptiveFeedback()
        assert feedback.adjustment(None) == 0.0

    def test_adjustment_scales_with_accuracy(self):
        """Test adjustment is (accuracy - 0.5) * weight."""
        feedback = AdaptiveFeedback(min_samples=5, weight=0.1)
        assert feedback.adjustment(HorizonAccuracy(correct=8, total=10)) == pytest.approx(0.03)
        assert feedback.adjustment(HorizonAccuracy(correct=2, total=10)) == pytest.approx(-0.03)

    def test_describe_lists_every_horizon(self):
        """Test prompt feedback covers scored and unscored horizons."""
        feedback = AdaptiveFeedback()
        text = feedback.describe({
            Horizon.FIFTEEN_SECONDS: HorizonAccuracy(correct=3, total=5),
            Horizon.THIRTY_SECONDS: None,
            Horizon.SIXTY_SECONDS: None,
        })

        assert "- 15s Horizon: 3/5 correct (60.0% accuracy)." in text
        assert "- 30s Horizon: No completed predictions to analyze yet." in text
        assert "- 60s Horizon: No completed predictions to analyze yet." in text

    def test_oracle_context(self):
        """Test the JSON summary is keyed by horizon label."""
        feedback = AdaptiveFeedback()
        context = feedback.oracle_context({Horizon.FIFTEEN_SECONDS: HorizonAccuracy(1, 4)})

        assert context["15s"] == {"correct": 1, "total": 4, "accuracy": 0.25}
        assert context["30s"] is None
        assert context["60s"] is None
