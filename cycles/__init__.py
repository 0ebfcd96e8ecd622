"""
Cycle engine for Cykel.

Handles:
- Rebuilding cycles from daily flow logs
- Next-period prediction and confidence
- Fertility window estimate
- Historical cycle statistics
"""

from .rebuild import rebuild_cycles
from .prediction import predict, fertility_window, cycle_stats

__all__ = ["rebuild_cycles", "predict", "fertility_window", "cycle_stats"]
