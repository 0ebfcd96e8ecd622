"""
Reconstruct cycles from daily flow observations.

The cycle list is never edited by hand. It is recomputed from the day logs
after every change to them.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from models import Cycle, DayLog, FlowLevel

logger = logging.getLogger(__name__)

# Flow days at most this far apart belong to the same period
MAX_GAP_DAYS = 2


def rebuild_cycles(day_logs: Iterable[DayLog], today: Optional[date] = None) -> list[Cycle]:
    """
    Rebuild the cycle list from day logs.

    Args:
        day_logs: All logged days, in any order
        today: Reference date for deciding whether the last period is still
            running. Defaults to the local current date.

    Returns:
        Cycles in ascending start order. Every call assigns new ids.
    """
    flow_days = sorted({log.date for log in day_logs if log.flow_level != FlowLevel.NONE})
    if not flow_days:
        return []

    max_gap = timedelta(days=MAX_GAP_DAYS)
    cycles: list[Cycle] = []
    run_start = run_end = flow_days[0]

    for day in flow_days[1:]:
        if day - run_end <= max_gap:
            run_end = day
        else:
            cycles.append(Cycle(start_date=run_start, end_date=run_end))
            run_start = run_end = day

    today = today or date.today()
    # A period that ended in the last couple of days may still continue
    last_end = None if today - run_end <= max_gap else run_end
    cycles.append(Cycle(start_date=run_start, end_date=last_end))

    logger.debug(f"Rebuilt {len(cycles)} cycle(s) from {len(flow_days)} flow day(s)")
    return cycles
