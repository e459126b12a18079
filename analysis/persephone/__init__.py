"""
PERSEPHONE - Outcome Tracker

"I choose to see what you believe."

Feels the truth behind every prediction. Holds each one until its
horizon passes, scores it against the realized price and keeps the
per-horizon accuracy that feeds back into future confidence.
"""

from .accuracy import accuracy_stats, format_accuracy
from .resolution import BaselinePolicy, resolve_outcome, resolve_outcomes
from .tracker import OutcomeTracker

__all__ = [
    "BaselinePolicy",
    "OutcomeTracker",
    "accuracy_stats",
    "format_accuracy",
    "resolve_outcome",
    "resolve_outcomes",
]
