"""Tests for cycle reconstruction, prediction, fertility window and statistics."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from conftest import flow_days, make_cycle
from cycles import cycle_stats, fertility_window, predict, rebuild_cycles
from cycles.prediction import _round_half_up
from models import DayLog, FlowLevel

TODAY = date(2026, 6, 1)


def two_cycles():
    return [
        make_cycle("2026-01-01", "2026-01-05"),
        make_cycle("2026-01-29", "2026-02-02"),
    ]


def regular_cycles(n: int, length: int, period: int = 5, start: date = date(2025, 1, 1)):
    cycles = []
    for i in range(n):
        s = start + timedelta(days=i * length)
        cycles.append(make_cycle(s.isoformat(), (s + timedelta(days=period - 1)).isoformat()))
    return cycles


# ---------------------------------------------------------------------------
# Rebuild
# ---------------------------------------------------------------------------


class TestRebuildCycles:
    def test_empty_logs(self) -> None:
        assert rebuild_cycles([], today=TODAY) == []

    def test_no_flow_days(self) -> None:
        logs = flow_days(date(2026, 1, 1), 5, flow=FlowLevel.NONE)
        assert rebuild_cycles(logs, today=TODAY) == []

    def test_two_periods(self) -> None:
        logs = flow_days(date(2026, 1, 1), 5) + flow_days(date(2026, 1, 29), 5)
        cycles = rebuild_cycles(logs, today=TODAY)
        assert [(c.start_date, c.end_date) for c in cycles] == [
            (date(2026, 1, 1), date(2026, 1, 5)),
            (date(2026, 1, 29), date(2026, 2, 2)),
        ]

    def test_last_period_open_when_recent(self) -> None:
        logs = flow_days(date(2026, 1, 1), 5) + flow_days(date(2026, 1, 29), 5)
        cycles = rebuild_cycles(logs, today=date(2026, 2, 4))
        assert cycles[-1].start_date == date(2026, 1, 29)
        assert cycles[-1].end_date is None
        assert cycles[0].end_date == date(2026, 1, 5)

    def test_last_period_closed_after_three_days(self) -> None:
        logs = flow_days(date(2026, 1, 29), 5)
        cycles = rebuild_cycles(logs, today=date(2026, 2, 5))
        assert cycles[-1].end_date == date(2026, 2, 2)

    def test_gap_of_two_days_merges(self) -> None:
        logs = [
            DayLog(date=date(2026, 3, 1), flow_level=FlowLevel.HEAVY),
            DayLog(date=date(2026, 3, 3), flow_level=FlowLevel.LIGHT),
        ]
        cycles = rebuild_cycles(logs, today=TODAY)
        assert len(cycles) == 1
        assert (cycles[0].start_date, cycles[0].end_date) == (date(2026, 3, 1), date(2026, 3, 3))

    def test_gap_of_three_days_splits(self) -> None:
        logs = [
            DayLog(date=date(2026, 3, 1), flow_level=FlowLevel.HEAVY),
            DayLog(date=date(2026, 3, 4), flow_level=FlowLevel.LIGHT),
        ]
        cycles = rebuild_cycles(logs, today=TODAY)
        assert len(cycles) == 2

    def test_unsorted_and_duplicate_dates(self) -> None:
        logs = [
            DayLog(date=date(2026, 3, 3), flow_level=FlowLevel.LIGHT),
            DayLog(date=date(2026, 3, 1), flow_level=FlowLevel.HEAVY),
            DayLog(date=date(2026, 3, 1), flow_level=FlowLevel.MEDIUM),
            DayLog(date=date(2026, 3, 2), flow_level=FlowLevel.NONE),
        ]
        cycles = rebuild_cycles(logs, today=TODAY)
        assert [(c.start_date, c.end_date) for c in cycles] == [(date(2026, 3, 1), date(2026, 3, 3))]

    def test_fresh_ids_every_rebuild(self) -> None:
        logs = flow_days(date(2026, 1, 1), 5)
        first = rebuild_cycles(logs, today=TODAY)
        second = rebuild_cycles(logs, today=TODAY)
        assert first[0].id != second[0].id

    def test_at_most_one_open_cycle_and_it_is_last(self) -> None:
        logs = flow_days(date(2026, 1, 1), 4) + flow_days(date(2026, 1, 28), 4) + flow_days(date(2026, 2, 25), 4)
        cycles = rebuild_cycles(logs, today=date(2026, 2, 28))
        open_cycles = [c for c in cycles if c.end_date is None]
        assert open_cycles == [cycles[-1]]
        starts = [c.start_date for c in cycles]
        assert starts == sorted(starts)


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------


class TestPredict:
    def test_no_prediction_with_one_cycle(self) -> None:
        assert predict([make_cycle("2026-01-01", "2026-01-05")]) is None

    def test_open_cycles_do_not_count(self) -> None:
        cycles = [make_cycle("2026-01-01", "2026-01-05"), make_cycle("2026-01-29", None)]
        assert predict(cycles) is None

    def test_predicts_with_two_cycles(self) -> None:
        prediction = predict(two_cycles())
        assert prediction is not None
        assert prediction.predicted_start == date(2026, 2, 26)
        assert prediction.predicted_end == date(2026, 3, 2)
        assert prediction.confidence == 0.5

    def test_input_order_does_not_matter(self) -> None:
        assert predict(list(reversed(two_cycles()))) == predict(two_cycles())

    def test_regular_cycles_hit_confidence_ceiling(self) -> None:
        prediction = predict(regular_cycles(4, 28))
        assert prediction.confidence == pytest.approx(0.95)

    def test_irregular_cycles_lower_confidence(self) -> None:
        cycles = [
            make_cycle("2026-01-01", "2026-01-05"),
            make_cycle("2026-01-21", "2026-01-25"),
            make_cycle("2026-03-02", "2026-03-06"),
        ]
        prediction = predict(cycles)
        # gaps 40 and 20: mean 30, sample stdev ~14.14
        assert prediction.confidence == pytest.approx(1 - 14.142135623730951 / 30)
        assert prediction.predicted_start == date(2026, 4, 1)

    def test_confidence_floor(self) -> None:
        cycles = [
            make_cycle("2026-01-01", "2026-01-02"),
            make_cycle("2026-01-06", "2026-01-07"),
            make_cycle("2026-04-01", "2026-04-02"),
        ]
        assert predict(cycles).confidence == pytest.approx(0.1)

    def test_only_six_most_recent_cycles_used(self) -> None:
        # Old history of 40-day cycles followed by six 28-day cycles
        old = regular_cycles(3, 40, start=date(2024, 1, 1))
        recent = regular_cycles(6, 28, start=date(2025, 1, 1))
        prediction = predict(old + recent)
        assert prediction.predicted_start == recent[-1].start_date + timedelta(days=28)
        assert prediction.confidence == pytest.approx(0.95)

    def test_period_length_drives_predicted_end(self) -> None:
        cycles = regular_cycles(3, 30, period=7)
        prediction = predict(cycles)
        assert prediction.predicted_end - prediction.predicted_start == timedelta(days=6)

    def test_single_day_periods(self) -> None:
        cycles = regular_cycles(2, 28, period=1)
        prediction = predict(cycles)
        assert prediction.predicted_end == prediction.predicted_start

    def test_rounds_half_away_from_zero(self) -> None:
        assert _round_half_up(28.5) == 29
        assert _round_half_up(27.5) == 28
        assert _round_half_up(28.49) == 28


# ---------------------------------------------------------------------------
# Fertility window
# ---------------------------------------------------------------------------


class TestFertilityWindow:
    def test_window_from_prediction(self) -> None:
        window = fertility_window(two_cycles())
        assert window.ovulation_day == date(2026, 2, 12)
        assert window.fertile_start == date(2026, 2, 7)
        assert window.fertile_end == date(2026, 2, 12)
        assert window.peak_start == date(2026, 2, 10)
        assert window.peak_end == date(2026, 2, 12)

    def test_no_window_without_prediction(self) -> None:
        assert fertility_window([make_cycle("2026-01-01", "2026-01-05")]) is None
        assert fertility_window([]) is None


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class TestCycleStats:
    def test_two_cycles(self) -> None:
        stats = cycle_stats(two_cycles())
        assert stats.total_cycles == 2
        assert stats.avg_cycle_length == 28.0
        assert stats.avg_period_length == 5.0
        assert stats.shortest_cycle == 28
        assert stats.longest_cycle == 28
        assert stats.last_period_start == date(2026, 1, 29)
        assert stats.last_period_end == date(2026, 2, 2)

    def test_empty(self) -> None:
        stats = cycle_stats([])
        assert stats.total_cycles == 0
        assert stats.avg_cycle_length is None
        assert stats.avg_period_length is None
        assert stats.shortest_cycle is None
        assert stats.longest_cycle is None
        assert stats.last_period_start is None

    def test_single_cycle_has_no_cycle_length(self) -> None:
        stats = cycle_stats([make_cycle("2026-01-01", "2026-01-04")])
        assert stats.total_cycles == 1
        assert stats.avg_cycle_length is None
        assert stats.avg_period_length == 4.0

    def test_open_cycle_ignored(self) -> None:
        cycles = two_cycles() + [make_cycle("2026-02-26", None)]
        assert cycle_stats(cycles).total_cycles == 2

    def test_uses_all_cycles_unlike_prediction(self) -> None:
        cycles = regular_cycles(3, 40, start=date(2024, 1, 1)) + regular_cycles(6, 28, start=date(2025, 1, 1))
        stats = cycle_stats(cycles)
        assert stats.total_cycles == 9
        assert stats.longest_cycle > 40
        assert stats.shortest_cycle == 28
        assert stats.avg_cycle_length > 28
