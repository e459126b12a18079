"""
SESSION - Live Session Orchestrator

"Everything that has a beginning has an end."

Runs the market refresh, heuristic and oracle loops on one event loop
and hands read-only snapshots to the display.
"""

from .display import LogDisplay, group_by_timestamp, summarize
from .orchestrator import SessionOrchestrator, SessionSnapshot

__all__ = [
    "SessionOrchestrator",
    "SessionSnapshot",
    "LogDisplay",
    "group_by_timestamp",
    "summarize",
]
