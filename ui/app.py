from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from resetrun import (
    ProfileReconciler,
    day_number,
    home_modes,
    is_settings_locked,
    load_preferences,
    lock_expires_at,
    remote_store_from_config,
    today_key,
    workspace_root as _workspace_root,
)

app = FastAPI(title="ResetRun API", version="0.1.0")

security = HTTPBasic(auto_error=False)

# One reconciler per workspace root; the signed-in identity is the Basic auth user.
_reconcilers: dict[Path, ProfileReconciler] = {}

_SETTINGS_FIELDS = {
    "dailyResets": "daily_resets",
    "preferredModes": "preferred_modes",
    "preferredDuration": "preferred_duration",
    "reminderTime": "reminder_time",
}


# ── Auth ──────────────────────────────────────────────────────

def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("RESETRUN_USERNAME", "")
    expected_password = os.environ.get("RESETRUN_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def _reconciler(username: str) -> ProfileReconciler:
    """Reconciler for the workspace, signed in as *username* (signed out for guests)."""
    root = _workspace_root()
    rec = _reconcilers.get(root)
    if rec is None:
        rec = ProfileReconciler(remote=remote_store_from_config(root), root=root)
        _reconcilers[root] = rec
    if username == "guest":
        if rec.signed_in:
            rec.sign_out()
    elif rec.active_uid != username:
        rec.sign_in(username)
    return rec


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/run")
def api_get_run(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Current run, cycle day and lock state."""
    rec = _reconciler(username)
    store = rec.load_store()
    today = today_key(rec.root)
    preferences = load_preferences(rec.root, authenticated=rec.signed_in)
    return {
        "today": today,
        "dayNumber": day_number(store.run_start_date, today),
        "run": store.to_dict(),
        "locked": is_settings_locked(store, root=rec.root),
        "lockExpiresAt": lock_expires_at(store),
        "homeModes": home_modes(preferences),
    }


@app.post("/api/session/start")
def api_session_start(username: str = Depends(get_current_user)) -> dict[str, Any]:
    rec = _reconciler(username)
    store = rec.begin_session()
    return {"ok": True, "locked": True, "lockedForDate": store.settings_locked_for_date}


@app.post("/api/session/complete")
def api_session_complete(
    payload: dict[str, Any] = Body(default={}),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Record a finished session and return the celebration signals."""
    completed = payload.get("completed", True)
    if not isinstance(completed, bool):
        raise HTTPException(status_code=400, detail="completed must be a boolean")
    rec = _reconciler(username)
    result = rec.record_completion(completed)
    return {"ok": True, **result.signals(), "run": result.store.to_dict()}


@app.get("/api/settings")
def api_get_settings(username: str = Depends(get_current_user)) -> dict[str, Any]:
    rec = _reconciler(username)
    store = rec.load_store()
    preferences = load_preferences(rec.root, authenticated=rec.signed_in)
    return {
        "preferences": preferences.to_dict() if preferences else None,
        "dailyGoal": store.daily_goal,
        "locked": is_settings_locked(store, root=rec.root),
    }


@app.post("/api/settings")
def api_update_settings(
    payload: dict[str, Any] = Body(...),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Change settings; refused while today's settings are locked."""
    changes = {attr: payload[key] for key, attr in _SETTINGS_FIELDS.items() if key in payload}
    if not changes:
        raise HTTPException(status_code=400, detail="No settings to change")
    rec = _reconciler(username)
    result = rec.change_settings(**changes)
    if not result.applied:
        return {"ok": False, "reason": result.reason, "locked": result.locked}
    return {
        "ok": True,
        "preferences": result.preferences.to_dict() if result.preferences else None,
        "locked": result.locked,
    }


@app.get("/api/profile")
def api_get_profile(username: str = Depends(get_current_user)) -> dict[str, Any]:
    rec = _reconciler(username)
    return {
        "signedIn": rec.signed_in,
        "state": rec.state,
        "onboardingComplete": rec.onboarding_complete,
        "profile": rec.profile.to_dict() if rec.profile else None,
    }
