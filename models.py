"""
Domain records stored in the vault and values derived from them.

Everything here maps to and from plain JSON-compatible dicts. Dates are ISO
strings, enums are stored by name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
from datetime import date
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4


SEVERITY_MIN = 1
SEVERITY_MAX = 3
AUTO_LOCK_MIN = 1
AUTO_LOCK_MAX = 60


@total_ordering
class FlowLevel(Enum):
    """Flow intensity, ordered from none to heavy."""

    NONE = "None"
    LIGHT = "Light"
    MEDIUM = "Medium"
    HEAVY = "Heavy"

    @property
    def rank(self) -> int:
        return list(FlowLevel).index(self)

    def __lt__(self, other):
        if not isinstance(other, FlowLevel):
            return NotImplemented
        return self.rank < other.rank


class SymptomType(Enum):
    CRAMPS = "Cramps"
    HEADACHE = "Headache"
    MOOD_LOW = "MoodLow"
    MOOD_HIGH = "MoodHigh"
    FATIGUE = "Fatigue"
    BLOATING = "Bloating"
    BREAST_TENDERNESS = "BreastTenderness"
    ACNE = "Acne"


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _date(value: str) -> date:
    if not isinstance(value, str):
        raise TypeError(f"expected ISO date string, got {type(value).__name__}")
    return date.fromisoformat(value)


def _opt_date(value: Optional[str]) -> Optional[date]:
    return None if value is None else _date(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


@dataclass
class Cycle:
    """
    One reconstructed menstrual cycle.

    end_date is None while the cycle is still in progress. Only the most
    recent cycle can be open.
    """
    start_date: date
    end_date: Optional[date] = None
    id: UUID = field(default_factory=uuid4)

    @property
    def is_complete(self) -> bool:
        return self.end_date is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "start_date": self.start_date.isoformat(),
            "end_date": _iso(self.end_date),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cycle":
        data = _mapping(data, "cycle")
        cycle_id = data["id"]
        if not isinstance(cycle_id, str):
            raise TypeError(f"cycle id must be a string, got {type(cycle_id).__name__}")
        return cls(
            id=UUID(cycle_id),
            start_date=_date(data["start_date"]),
            end_date=_opt_date(data.get("end_date")),
        )


@dataclass
class DayLog:
    """A single day's flow observation. One per date."""
    date: date
    flow_level: FlowLevel = FlowLevel.NONE
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "flow_level": self.flow_level.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DayLog":
        data = _mapping(data, "day log")
        return cls(
            date=_date(data["date"]),
            flow_level=FlowLevel(data["flow_level"]),
            notes=str(data.get("notes", "")),
        )


@dataclass
class Symptom:
    """A symptom on a given date. Severity is clamped to 1-3."""
    date: date
    symptom_type: SymptomType
    severity: int = SEVERITY_MIN

    def __post_init__(self):
        self.severity = clamp(int(self.severity), SEVERITY_MIN, SEVERITY_MAX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "symptom_type": self.symptom_type.value,
            "severity": self.severity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Symptom":
        data = _mapping(data, "symptom")
        return cls(
            date=_date(data["date"]),
            symptom_type=SymptomType(data["symptom_type"]),
            severity=data["severity"],
        )


@dataclass
class Prediction:
    predicted_start: date
    predicted_end: date
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "predicted_start": self.predicted_start.isoformat(),
            "predicted_end": self.predicted_end.isoformat(),
            "confidence": self.confidence,
        }


@dataclass
class FertilityWindow:
    fertile_start: date
    fertile_end: date
    ovulation_day: date
    peak_start: date
    peak_end: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "fertile_start": self.fertile_start.isoformat(),
            "fertile_end": self.fertile_end.isoformat(),
            "ovulation_day": self.ovulation_day.isoformat(),
            "peak_start": self.peak_start.isoformat(),
            "peak_end": self.peak_end.isoformat(),
        }


@dataclass
class CycleStats:
    """Summary over every completed cycle."""
    total_cycles: int = 0
    avg_cycle_length: Optional[float] = None
    avg_period_length: Optional[float] = None
    shortest_cycle: Optional[int] = None
    longest_cycle: Optional[int] = None
    last_period_start: Optional[date] = None
    last_period_end: Optional[date] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cycles": self.total_cycles,
            "avg_cycle_length": self.avg_cycle_length,
            "avg_period_length": self.avg_period_length,
            "shortest_cycle": self.shortest_cycle,
            "longest_cycle": self.longest_cycle,
            "last_period_start": _iso(self.last_period_start),
            "last_period_end": _iso(self.last_period_end),
        }


@dataclass
class AppSettings:
    auto_lock_minutes: int = 5
    wipe_after_attempts: Optional[int] = None
    show_fertility: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "auto_lock_minutes": self.auto_lock_minutes,
            "wipe_after_attempts": self.wipe_after_attempts,
            "show_fertility": self.show_fertility,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        data = _mapping(data, "settings")
        wipe_after = data.get("wipe_after_attempts")
        return cls(
            auto_lock_minutes=int(data["auto_lock_minutes"]),
            wipe_after_attempts=None if wipe_after is None else int(wipe_after),
            # Older vaults were written before this setting existed
            show_fertility=bool(data.get("show_fertility", False)),
        )


@dataclass
class VaultData:
    """The whole decrypted vault. Always loaded and saved as one unit."""
    cycles: list[Cycle] = field(default_factory=list)
    day_logs: list[DayLog] = field(default_factory=list)
    symptoms: list[Symptom] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycles": [c.to_dict() for c in self.cycles],
            "day_logs": [log.to_dict() for log in self.day_logs],
            "symptoms": [s.to_dict() for s in self.symptoms],
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultData":
        data = _mapping(data, "vault payload")
        return cls(
            cycles=[Cycle.from_dict(c) for c in data.get("cycles", [])],
            day_logs=[DayLog.from_dict(d) for d in data.get("day_logs", [])],
            symptoms=[Symptom.from_dict(s) for s in data.get("symptoms", [])],
            settings=AppSettings.from_dict(data["settings"]) if "settings" in data else AppSettings(),
        )


@dataclass
class MonthData:
    """Everything the calendar view needs for one month."""
    year: int
    month: int
    day_logs: list[DayLog]
    symptoms: list[Symptom]
    predictions: list[Prediction]
    fertility: Optional[FertilityWindow]
    current_cycle: Optional[Cycle]
    stats: CycleStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "day_logs": [log.to_dict() for log in self.day_logs],
            "symptoms": [s.to_dict() for s in self.symptoms],
            "predictions": [p.to_dict() for p in self.predictions],
            "fertility": self.fertility.to_dict() if self.fertility else None,
            "current_cycle": self.current_cycle.to_dict() if self.current_cycle else None,
            "stats": self.stats.to_dict(),
        }
