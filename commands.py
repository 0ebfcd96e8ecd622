"""
Named operations exposed to the UI.

Each command takes the VaultSession explicitly. Commands that touch the
aggregate raise SessionLockedError while the vault is locked.
"""

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Union

from cycles import cycle_stats, fertility_window, predict, rebuild_cycles
from models import (
    AUTO_LOCK_MAX,
    AUTO_LOCK_MIN,
    AppSettings,
    CycleStats,
    DayLog,
    FlowLevel,
    MonthData,
    Prediction,
    Symptom,
    SymptomType,
    clamp,
)
from session import VaultSession
from storage import export_json

logger = logging.getLogger(__name__)

SymptomEntry = tuple[Union[SymptomType, str], int]


class InvalidInputError(ValueError):
    """A command argument could not be parsed."""


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"invalid date {value!r}, expected YYYY-MM-DD") from e


def _parse_flow(value: Union[FlowLevel, str]) -> FlowLevel:
    if isinstance(value, FlowLevel):
        return value
    try:
        return FlowLevel(value)
    except ValueError as e:
        raise InvalidInputError(f"unknown flow level {value!r}") from e


def _parse_symptom_type(value: Union[SymptomType, str]) -> SymptomType:
    if isinstance(value, SymptomType):
        return value
    try:
        return SymptomType(value)
    except ValueError as e:
        raise InvalidInputError(f"unknown symptom {value!r}") from e


def is_setup(session: VaultSession) -> bool:
    return session.is_setup()


def setup(session: VaultSession, passphrase: str) -> None:
    session.setup(passphrase)


def unlock(session: VaultSession, passphrase: str) -> bool:
    return session.unlock(passphrase)


def lock(session: VaultSession) -> None:
    session.lock()


def log_day(
    session: VaultSession,
    day: str,
    flow_level: Union[FlowLevel, str],
    notes: str,
    symptoms: Iterable[SymptomEntry],
) -> None:
    """
    Record one day's flow, notes and symptoms.

    The day log is upserted. The symptoms given replace every symptom already
    stored for that date, and cycles are rebuilt afterwards.

    Args:
        session: The active session
        day: Date as YYYY-MM-DD
        flow_level: Flow intensity
        notes: Free text
        symptoms: (symptom type, severity) pairs; severity is clamped to 1-3
    """
    log_date = _parse_date(day)
    flow = _parse_flow(flow_level)
    new_symptoms = [
        Symptom(date=log_date, symptom_type=_parse_symptom_type(kind), severity=severity)
        for kind, severity in symptoms
    ]

    with session.write() as data:
        existing = next((log for log in data.day_logs if log.date == log_date), None)
        if existing is not None:
            existing.flow_level = flow
            existing.notes = notes
        else:
            data.day_logs.append(DayLog(date=log_date, flow_level=flow, notes=notes))

        data.symptoms = [s for s in data.symptoms if s.date != log_date]
        data.symptoms.extend(new_symptoms)

        data.cycles = rebuild_cycles(data.day_logs)

    logger.info(f"Logged day with {len(new_symptoms)} symptom(s)")


def get_month(session: VaultSession, year: int, month: int) -> MonthData:
    """
    Collect the month view.

    Logs and symptoms are limited to the month. Predictions, fertility and
    stats are computed over the full cycle history. The fertility window is
    only included when the user enabled it.
    """
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise InvalidInputError(f"invalid month {year}-{month}")
    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    with session.read() as data:
        day_logs = [replace(log) for log in data.day_logs if first_day <= log.date <= last_day]
        symptoms = [replace(s) for s in data.symptoms if first_day <= s.date <= last_day]
        prediction = predict(data.cycles)
        fertility = fertility_window(data.cycles) if data.settings.show_fertility else None
        current_cycle = next((replace(c) for c in data.cycles if not c.is_complete), None)
        stats = cycle_stats(data.cycles)

    return MonthData(
        year=year,
        month=month,
        day_logs=day_logs,
        symptoms=symptoms,
        predictions=[prediction] if prediction else [],
        fertility=fertility,
        current_cycle=current_cycle,
        stats=stats,
    )


def get_predictions(session: VaultSession) -> Optional[Prediction]:
    with session.read() as data:
        return predict(data.cycles)


def get_stats(session: VaultSession) -> CycleStats:
    with session.read() as data:
        return cycle_stats(data.cycles)


def get_settings(session: VaultSession) -> AppSettings:
    with session.read() as data:
        return AppSettings(**data.settings.to_dict())


def toggle_fertility(session: VaultSession, enabled: bool) -> None:
    with session.write() as data:
        data.settings.show_fertility = bool(enabled)


def update_settings(session: VaultSession, auto_lock_minutes: int) -> None:
    """Set the auto-lock delay, clamped to 1-60 minutes."""
    with session.write() as data:
        data.settings.auto_lock_minutes = clamp(int(auto_lock_minutes), AUTO_LOCK_MIN, AUTO_LOCK_MAX)


def export_data(session: VaultSession) -> str:
    """Plaintext JSON export of the whole vault."""
    with session.read() as data:
        return export_json(data)


def wipe_all_data(session: VaultSession) -> None:
    session.wipe()
    logger.info("All data wiped")
