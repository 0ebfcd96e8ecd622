"""
Cykel - Main Entry Point

A local FastAPI application exposing the encrypted cycle vault to the UI.
Runs on http://127.0.0.1:18422 and only binds to localhost.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

import commands
from commands import InvalidInputError
from config import VERSION, config
from session import SessionLockedError, VaultExistsError, VaultSession
from storage import StorageError, VaultStore

logger = logging.getLogger("cykel")


class AppState:
    """Application state container."""
    session: Optional[VaultSession] = None


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    if app_state.session is None:
        app_state.session = VaultSession(VaultStore(config.vault_path))
    logger.info(f"Cykel started on http://{config.HOST}:{config.PORT}")

    yield

    # Shutdown - scrub passphrase and records from memory
    app_state.session.lock()
    logger.info("Cykel stopped, vault locked")


app = FastAPI(
    title="Cykel",
    description="Local encrypted cycle tracker",
    version=VERSION,
    lifespan=lifespan,
)


def get_session() -> VaultSession:
    if app_state.session is None:
        raise HTTPException(status_code=503, detail="Vault not initialised")
    return app_state.session


# ============================================================================
# Error mapping
# ============================================================================

@app.exception_handler(SessionLockedError)
async def locked_handler(request, exc: SessionLockedError):
    return JSONResponse(status_code=423, content={"detail": str(exc)})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(VaultExistsError)
async def vault_exists_handler(request, exc: VaultExistsError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request, exc: StorageError):
    logger.error(f"Storage error: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# ============================================================================
# Request bodies
# ============================================================================

class PassphraseBody(BaseModel):
    passphrase: str


class SymptomBody(BaseModel):
    symptom_type: str
    severity: int


class DayLogBody(BaseModel):
    date: str
    flow_level: str = "None"
    notes: str = ""
    symptoms: list[SymptomBody] = Field(default_factory=list)


class FertilityBody(BaseModel):
    enabled: bool


class SettingsBody(BaseModel):
    auto_lock_minutes: int


# ============================================================================
# Vault API
# ============================================================================

@app.get("/api/status")
def get_status(session: VaultSession = Depends(get_session)):
    """Whether a vault exists and whether it is unlocked."""
    return {
        "is_setup": commands.is_setup(session),
        "is_unlocked": session.is_unlocked,
    }


@app.post("/api/setup")
def api_setup(body: PassphraseBody, session: VaultSession = Depends(get_session)):
    """Create a new vault."""
    if not body.passphrase:
        raise HTTPException(status_code=400, detail="Passphrase required")
    commands.setup(session, body.passphrase)
    return {"success": True}


@app.post("/api/unlock")
def api_unlock(body: PassphraseBody, session: VaultSession = Depends(get_session)):
    """Unlock the vault with a passphrase."""
    if not commands.unlock(session, body.passphrase):
        return JSONResponse(status_code=401, content={"success": False, "detail": "Invalid passphrase"})
    return {"success": True}


@app.post("/api/lock")
def api_lock(session: VaultSession = Depends(get_session)):
    commands.lock(session)
    return {"success": True}


@app.post("/api/wipe")
def api_wipe(session: VaultSession = Depends(get_session)):
    """Lock and permanently delete the vault file."""
    commands.wipe_all_data(session)
    return {"success": True}


# ============================================================================
# Tracking API
# ============================================================================

@app.post("/api/days")
def api_log_day(body: DayLogBody, session: VaultSession = Depends(get_session)):
    commands.log_day(
        session,
        body.date,
        body.flow_level,
        body.notes,
        [(s.symptom_type, s.severity) for s in body.symptoms],
    )
    return {"success": True}


@app.get("/api/months/{year}/{month}")
def api_get_month(year: int, month: int, session: VaultSession = Depends(get_session)):
    return commands.get_month(session, year, month).to_dict()


@app.get("/api/predictions")
def api_get_predictions(session: VaultSession = Depends(get_session)):
    prediction = commands.get_predictions(session)
    return {"prediction": prediction.to_dict() if prediction else None}


@app.get("/api/stats")
def api_get_stats(session: VaultSession = Depends(get_session)):
    return commands.get_stats(session).to_dict()


# ============================================================================
# Settings API
# ============================================================================

@app.get("/api/settings")
def api_get_settings(session: VaultSession = Depends(get_session)):
    return commands.get_settings(session).to_dict()


@app.post("/api/settings")
def api_update_settings(body: SettingsBody, session: VaultSession = Depends(get_session)):
    commands.update_settings(session, body.auto_lock_minutes)
    return {"success": True}


@app.post("/api/settings/fertility")
def api_toggle_fertility(body: FertilityBody, session: VaultSession = Depends(get_session)):
    commands.toggle_fertility(session, body.enabled)
    return {"success": True}


@app.get("/api/export")
def api_export(session: VaultSession = Depends(get_session)):
    """Download a plaintext JSON export."""
    exported = commands.export_data(session)
    filename = f"cykel-export-{date.today().isoformat()}.json"
    return Response(
        content=exported,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info",
    )
