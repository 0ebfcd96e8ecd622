"""Shared fixtures for the vault, storage, session and engine tests."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import pytest

from models import Cycle, DayLog, FlowLevel
from session import VaultSession
from storage import VaultStore
from vault import PassphraseDeriver

PASSPHRASE = "correct horse battery staple"

# Far enough in the past that the last period is always closed
HISTORY_START = date(2026, 1, 1)


# ---------------------------------------------------------------------------
# KDF cost
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fast_kdf(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    """Lower the Argon2id cost so the suite does not spend seconds per save."""
    if request.node.get_closest_marker("real_kdf"):
        return
    monkeypatch.setattr(PassphraseDeriver, "MEMORY_COST", 1024)
    monkeypatch.setattr(PassphraseDeriver, "TIME_COST", 1)


# ---------------------------------------------------------------------------
# Storage and session
# ---------------------------------------------------------------------------


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    return tmp_path / "cykel" / "data.cykel"


@pytest.fixture
def store(vault_path: Path) -> VaultStore:
    return VaultStore(vault_path)


@pytest.fixture
def session(store: VaultStore) -> VaultSession:
    return VaultSession(store)


@pytest.fixture
def unlocked_session(session: VaultSession) -> VaultSession:
    session.setup(PASSPHRASE)
    return session


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_cycle(start: str, end: str | None) -> Cycle:
    return Cycle(
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end) if end else None,
    )


def flow_days(start: date, days: int, flow: FlowLevel = FlowLevel.MEDIUM) -> list[DayLog]:
    return [DayLog(date=start + timedelta(days=i), flow_level=flow) for i in range(days)]
