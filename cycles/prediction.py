"""
Cycle statistics and forward predictions.

predict() forecasts from the six most recent completed cycles, while
cycle_stats() summarises every completed cycle. The two use different sample
sets on purpose and are kept as separate code paths.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from models import Cycle, CycleStats, FertilityWindow, Prediction

# Rolling window for prediction
RECENT_CYCLES = 6
# Used when no completed cycle has a period length
DEFAULT_PERIOD_DAYS = 5.0
# Ovulation sits about 14 days before the next period
LUTEAL_PHASE_DAYS = 14
FERTILE_DAYS_BEFORE_OVULATION = 5
PEAK_DAYS_BEFORE_OVULATION = 2

CONFIDENCE_FLOOR = 0.1
CONFIDENCE_CEILING = 0.95
LOW_EVIDENCE_CONFIDENCE = 0.5


@dataclass
class _PredictionInputs:
    avg_cycle: float
    avg_period: float
    cycle_lengths: list[float]
    last_start: date


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (values here are >= 0)."""
    return int(math.floor(value + 0.5))


def _period_length(cycle: Cycle) -> float:
    return float((cycle.end_date - cycle.start_date).days + 1)


def _completed(cycles: Sequence[Cycle]) -> list[Cycle]:
    return sorted((c for c in cycles if c.is_complete), key=lambda c: c.start_date)


def _prediction_inputs(cycles: Sequence[Cycle]) -> Optional[_PredictionInputs]:
    completed = _completed(cycles)
    if len(completed) < 2:
        return None

    # Newest first
    recent = completed[::-1][:RECENT_CYCLES]

    cycle_lengths = [
        float(abs((newer.start_date - older.start_date).days))
        for newer, older in zip(recent, recent[1:])
    ]
    if not cycle_lengths:
        return None

    period_lengths = [_period_length(c) for c in recent if c.is_complete]

    return _PredictionInputs(
        avg_cycle=statistics.fmean(cycle_lengths),
        avg_period=statistics.fmean(period_lengths) if period_lengths else DEFAULT_PERIOD_DAYS,
        cycle_lengths=cycle_lengths,
        last_start=completed[-1].start_date,
    )


def predict(cycles: Sequence[Cycle]) -> Optional[Prediction]:
    """
    Predict the next period from completed cycles.

    Needs at least two completed cycles. Confidence is 0.5 when only one
    cycle-length sample exists, otherwise one minus the coefficient of
    variation of the recent cycle lengths, clamped to [0.1, 0.95].
    """
    inputs = _prediction_inputs(cycles)
    if inputs is None:
        return None

    predicted_start = inputs.last_start + timedelta(days=_round_half_up(inputs.avg_cycle))
    period_days = max(_round_half_up(inputs.avg_period) - 1, 0)
    predicted_end = predicted_start + timedelta(days=period_days)

    if len(inputs.cycle_lengths) < 2:
        confidence = LOW_EVIDENCE_CONFIDENCE
    else:
        std_dev = statistics.stdev(inputs.cycle_lengths)
        confidence = 1.0 - std_dev / inputs.avg_cycle
        confidence = max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, confidence))

    return Prediction(
        predicted_start=predicted_start,
        predicted_end=predicted_end,
        confidence=confidence,
    )


def fertility_window(cycles: Sequence[Cycle]) -> Optional[FertilityWindow]:
    """Estimate the fertile window leading up to the predicted period."""
    prediction = predict(cycles)
    if prediction is None:
        return None

    ovulation_day = prediction.predicted_start - timedelta(days=LUTEAL_PHASE_DAYS)
    return FertilityWindow(
        fertile_start=ovulation_day - timedelta(days=FERTILE_DAYS_BEFORE_OVULATION),
        fertile_end=ovulation_day,
        ovulation_day=ovulation_day,
        peak_start=ovulation_day - timedelta(days=PEAK_DAYS_BEFORE_OVULATION),
        peak_end=ovulation_day,
    )


def cycle_stats(cycles: Sequence[Cycle]) -> CycleStats:
    """Compute history statistics over all completed cycles."""
    completed = _completed(cycles)
    if not completed:
        return CycleStats()

    period_lengths = [_period_length(c) for c in completed]
    cycle_lengths = [
        (later.start_date - earlier.start_date).days
        for earlier, later in zip(completed, completed[1:])
    ]
    last = completed[-1]

    return CycleStats(
        total_cycles=len(completed),
        avg_cycle_length=statistics.fmean(cycle_lengths) if cycle_lengths else None,
        avg_period_length=statistics.fmean(period_lengths) if period_lengths else None,
        shortest_cycle=min(cycle_lengths) if cycle_lengths else None,
        longest_cycle=max(cycle_lengths) if cycle_lengths else None,
        last_period_start=last.start_date,
        last_period_end=last.end_date,
    )
