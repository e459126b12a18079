"""
SATI - Signal Agent

"I made a choice, and that choice was to love."

Program created from love of patterns. Computes technical indicators,
generates order-book heuristic predictions and learns from their
accuracy to adjust future confidence.
"""

from .feedback import AdaptiveFeedback
from .heuristic import HORIZON_DECAY, HeuristicPredictor
from .indicators import IndicatorSnapshot, compute_indicators

__all__ = [
    "AdaptiveFeedback",
    "HeuristicPredictor",
    "HORIZON_DECAY",
    "IndicatorSnapshot",
    "compute_indicators",
]
