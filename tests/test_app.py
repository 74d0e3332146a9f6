"""Tests for ui/app.py: the JSON API over the resetrun package."""

import os

import pytest
from fastapi.testclient import TestClient

from ui.app import app


@pytest.fixture
def client(workspace):
    return TestClient(app)


@pytest.fixture
def signed_in(workspace):
    os.environ["RESETRUN_USERNAME"] = "alice"
    os.environ["RESETRUN_PASSWORD"] = "pw"
    yield TestClient(app)
    os.environ.pop("RESETRUN_USERNAME", None)
    os.environ.pop("RESETRUN_PASSWORD", None)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_guest_run_and_completion(client):
    run = client.get("/api/run").json()
    assert run["dayNumber"] == 1
    assert run["locked"] is False
    assert run["homeModes"] == ["calm", "focus", "clean", "body", "timeout"]

    first = client.post("/api/session/complete", json={}).json()
    assert first["ok"] is True
    assert first["completedDayNow"] is True
    assert first["alreadyCompletedToday"] is False
    assert first["hitDaySeven"] is False

    second = client.post("/api/session/complete", json={"completed": True}).json()
    assert second["completedDayNow"] is False
    assert second["alreadyCompletedToday"] is True
    assert second["run"]["totalResets"] == 2


def test_complete_rejects_non_boolean(client):
    assert client.post("/api/session/complete", json={"completed": "yes"}).status_code == 400


def test_session_start_locks_settings(client):
    assert client.post("/api/session/start").json()["locked"] is True
    assert client.get("/api/run").json()["locked"] is True


def test_guest_profile_is_empty(client):
    body = client.get("/api/profile").json()
    assert body["signedIn"] is False
    assert body["profile"] is None


def test_credentials_required_when_configured(signed_in):
    assert signed_in.get("/api/run").status_code == 401
    assert signed_in.get("/api/run", auth=("alice", "wrong")).status_code == 401


def test_signed_in_settings_lock(signed_in):
    auth = ("alice", "pw")
    profile = signed_in.get("/api/profile", auth=auth).json()
    assert profile["signedIn"] is True
    assert profile["state"] == "ready"
    assert profile["onboardingComplete"] is False

    changed = signed_in.post(
        "/api/settings",
        json={"dailyResets": 2, "preferredModes": ["focus"], "preferredDuration": 5},
        auth=auth,
    ).json()
    assert changed["ok"] is True
    assert changed["preferences"]["dailyResets"] == 2

    refused = signed_in.post("/api/settings", json={"dailyResets": 1}, auth=auth).json()
    assert refused == {"ok": False, "reason": "settings-locked", "locked": True}

    settings = signed_in.get("/api/settings", auth=auth).json()
    assert settings["dailyGoal"] == 2
    assert settings["locked"] is True
    assert signed_in.get("/api/profile", auth=auth).json()["onboardingComplete"] is True


def test_settings_requires_fields(signed_in):
    assert signed_in.post("/api/settings", json={"unknown": 1}, auth=("alice", "pw")).status_code == 400
