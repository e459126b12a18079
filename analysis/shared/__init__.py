"""
Tickcast Shared - Common types and utilities for Python analysis agents.
"""

from .buffers import BoundedHistory
from .config import TickcastConfig, get_config
from .logger import (
    AgentLogger,
    bind_session_context,
    clear_session_context,
    configure_logging,
    get_logger,
)
from .types import (
    PREDICTION_HORIZONS,
    AccuracyStats,
    Direction,
    Horizon,
    HorizonAccuracy,
    OrderBookFeatures,
    OrderBookLevel,
    OutcomeStatus,
    Prediction,
    PredictionOutcome,
    PredictionSource,
    PriceTick,
    SessionStatus,
)

__all__ = [
    # Types
    "Horizon",
    "PREDICTION_HORIZONS",
    "Direction",
    "OutcomeStatus",
    "PredictionSource",
    "SessionStatus",
    "PriceTick",
    "OrderBookLevel",
    "OrderBookFeatures",
    "Prediction",
    "PredictionOutcome",
    "HorizonAccuracy",
    "AccuracyStats",
    # Buffers
    "BoundedHistory",
    # Config
    "get_config",
    "TickcastConfig",
    # Logger
    "get_logger",
    "configure_logging",
    "bind_session_context",
    "clear_session_context",
    "AgentLogger",
]
