from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from habitlog import (
    EntryExistsError,
    FileStore,
    NotFoundError,
    RuleViolation,
    StorageError,
    ValidationError,
    create_habit,
    delete_entry,
    delete_habit,
    get_entry,
    get_habit,
    list_entries,
    list_habits,
    load_settings,
    parse_day,
    reconcile_year,
    refresh_fines,
    save_entry,
    set_fine_status,
    set_out_of_control_miss,
    set_text_value,
    summarize_fines,
    take_week_off,
    track_value,
    tracked_summary,
    update_habit,
    update_settings,
    workspace_root,
    yearly_summary,
)
from habitlog.tracking import day_status, progress_overview

logging.basicConfig(
    level=os.environ.get("HABITLOG_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="HabitLog API", version="0.1.0")


def _store() -> FileStore:
    return FileStore(workspace_root())


# ── Error mapping ─────────────────────────────────────────────

@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RuleViolation)
async def _rule_violation(request: Request, exc: RuleViolation) -> JSONResponse:
    content: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, EntryExistsError):
        content["needsOverwrite"] = True
    return JSONResponse(status_code=409, content=content)


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": f"Could not access saved data, please try again. ({exc})"},
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


# ── Habits ────────────────────────────────────────────────────

@app.get("/api/habits")
def api_list_habits(newest_first: bool = False) -> dict[str, Any]:
    habits = list_habits(_store(), newest_first=newest_first)
    return {"habits": [h.to_dict() for h in habits]}


@app.get("/api/habits/{habit_id}")
def api_get_habit(habit_id: str) -> dict[str, Any]:
    return {"habit": get_habit(_store(), habit_id).to_dict()}


@app.post("/api/habits")
def api_create_habit(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Create a new habit."""
    store = _store()
    habits = store.load_habits()
    habit, errors = create_habit(habits, payload, store.now().isoformat(timespec="seconds"))
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    store.save_habits(habits)
    return {"ok": True, "habit": habit.to_dict()}


@app.put("/api/habits/{habit_id}")
def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    store = _store()
    habits = store.load_habits()
    updated, errors = update_habit(habits, habit_id, payload)
    if updated is None and errors and errors[0].startswith("Habit not found"):
        raise HTTPException(status_code=404, detail=errors[0])
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    store.save_habits(habits)
    return {"ok": True, "habit": updated.to_dict() if updated else None}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str) -> dict[str, Any]:
    """Delete a habit. Its past tracking records are left in place."""
    store = _store()
    habits = store.load_habits()
    if not delete_habit(habits, habit_id):
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    store.save_habits(habits)
    return {"ok": True, "habit_id": habit_id}


# ── Daily tracking ────────────────────────────────────────────

@app.get("/api/tracking/{day}")
def api_get_tracking(day: str) -> dict[str, Any]:
    """Every habit's state for the day, plus the one-line summary of what was tracked."""
    store = _store()
    d = parse_day(day)
    states = [day_status(store, h.id, d).to_dict() for h in list_habits(store)]
    return {"date": d.isoformat(), "habits": states, "summary": tracked_summary(store, d)}


@app.put("/api/tracking/{day}/{habit_id}")
def api_track(day: str, habit_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Body: {"value": "Done"} / {"value": null} for tracking habits, {"text": "..."} for free text."""
    store = _store()
    if "text" in payload:
        status = set_text_value(store, habit_id, day, payload.get("text") or "")
    elif "value" in payload:
        status = track_value(store, habit_id, day, payload.get("value"))
    else:
        raise HTTPException(status_code=400, detail="Missing value or text")
    return {"ok": True, "status": status.to_dict()}


@app.put("/api/tracking/{day}/{habit_id}/miss")
def api_out_of_control_miss(day: str, habit_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    on = payload.get("on")
    if not isinstance(on, bool):
        raise HTTPException(status_code=400, detail="'on' must be true or false")
    status = set_out_of_control_miss(_store(), habit_id, day, on)
    return {"ok": True, "status": status.to_dict()}


@app.post("/api/week_off")
def api_week_off(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    day = payload.get("date")
    if not day:
        raise HTTPException(status_code=400, detail="Missing date")
    return {"ok": True, **take_week_off(_store(), day)}


@app.post("/api/reconcile/{year}")
def api_reconcile(year: int) -> dict[str, Any]:
    return {"ok": True, "changed": reconcile_year(_store(), year)}


# ── Fines ─────────────────────────────────────────────────────

@app.get("/api/fines/{year}")
def api_fines(year: int, frequency: str = "weekly") -> dict[str, Any]:
    """Recompute the year's fines for one frequency and return them per period."""
    reports = refresh_fines(_store(), year, frequency)
    return {
        "year": year,
        "frequency": frequency,
        "periods": [r.to_dict() for r in reports],
        "totals": summarize_fines(reports),
    }


@app.put("/api/fines/{period_key}/{habit_id}")
def api_fine_status(period_key: str, habit_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    tracking_value = payload.get("trackingValue")
    if not tracking_value:
        raise HTTPException(status_code=400, detail="Missing trackingValue")
    fine = set_fine_status(_store(), period_key, habit_id, tracking_value, str(payload.get("status", "")))
    return {"ok": True, "fine": fine.to_dict()}


# ── Analytics ─────────────────────────────────────────────────

@app.get("/api/analytics/{year}")
def api_analytics(year: int) -> dict[str, Any]:
    store = _store()
    summary = yearly_summary(store, year)
    return {**summary.to_dict(), "goals": progress_overview(store, year)}


# ── Journal entries ───────────────────────────────────────────

@app.get("/api/entries")
def api_list_entries() -> dict[str, Any]:
    return {"entries": [e.to_dict() for e in list_entries(_store())]}


@app.get("/api/entries/{day}")
def api_get_entry(day: str) -> dict[str, Any]:
    entry = get_entry(_store(), day)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"No journal entry for {day}")
    return {"entry": entry.to_dict()}


@app.put("/api/entries/{day}")
def api_save_entry(day: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Save the day's entry. Replacing an existing one needs {"overwrite": true}."""
    entry = save_entry(
        _store(),
        day,
        payload.get("text") or "",
        mood=payload.get("mood") or "",
        new_learning_text=payload.get("new_learning_text"),
        overwrite=bool(payload.get("overwrite", False)),
    )
    return {"ok": True, "entry": entry.to_dict()}


@app.delete("/api/entries/{day}")
def api_delete_entry(day: str) -> dict[str, Any]:
    entry = delete_entry(_store(), day)
    return {"ok": True, "date": entry.date}


# ── Settings ──────────────────────────────────────────────────

def _public_settings(settings: Any) -> dict[str, Any]:
    data = settings.to_dict()
    data.pop("app_password", None)
    return data


@app.get("/api/settings")
def api_get_settings() -> dict[str, Any]:
    return {"settings": _public_settings(load_settings(_store()))}


@app.put("/api/settings")
def api_update_settings(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    settings = update_settings(_store(), payload)
    return {"ok": True, "settings": _public_settings(settings)}
