"""Tests for resetrun/run_store.py — loading, migrations, lock expiry."""

from resetrun.fileio import read_json
from resetrun.models import RunStore
from resetrun.run_store import load_run_store, save_run_store, update_daily_goal
from resetrun.settings_lock import begin_session
from resetrun.workspace import RUN_STORE_KEY, run_store_path


def test_load_missing_creates_fresh_store(workspace, at):
    store = load_run_store(workspace, now=at("2024-01-05"))
    assert store.run_start_date == "2024-01-05"
    assert store.daily_goal == 1
    assert store.completions_by_date == {}
    assert store.completed_date_keys == []
    assert store.total_resets == 0
    assert store.settings_locked_for_date is None
    # Persisted straight away
    assert read_json(run_store_path(workspace))["runStartDate"] == "2024-01-05"


def test_load_corrupt_json_falls_back(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, "{not json")
    store = load_run_store(workspace, now=at("2024-01-05"))
    assert store.run_start_date == "2024-01-05"
    assert store.total_resets == 0


def test_load_unrecognized_shape_falls_back(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, ["what", "is", "this"])
    assert load_run_store(workspace, now=at("2024-01-05")).completed_date_keys == []

    write_blob(RUN_STORE_KEY, {"streak": 4})
    assert load_run_store(workspace, now=at("2024-01-05")).run_start_date == "2024-01-05"


def test_migrates_flat_shape_without_lock_fields(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, {
        "runStartDate": "2024-01-01",
        "dailyGoal": 2,
        "completionsByDate": {"2024-01-01": 2},
        "completedDates": ["2024-01-01"],
        "totalResets": 5,
    })
    store = load_run_store(workspace, now=at("2024-01-02"))
    assert store.run_start_date == "2024-01-01"
    assert store.daily_goal == 2
    assert store.completions_by_date == {"2024-01-01": 2}
    assert store.completed_date_keys == ["2024-01-01"]
    assert store.total_resets == 5
    assert store.last_completion_date is None
    assert store.settings_locked_for_date is None
    assert store.last_settings_change_date is None


def test_migrates_original_day_index_shape(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, {
        "currentRun": {"startDate": "2024-01-01T10:00:00.000Z", "completedDays": [1, 3, 3, 9, 0, "x"]},
        "stats": {"totalResets": 4},
    })
    store = load_run_store(workspace, now=at("2024-01-04"))
    assert store.run_start_date == "2024-01-01"
    assert store.completed_date_keys == ["2024-01-01", "2024-01-03"]
    assert store.completions_by_date == {"2024-01-01": 1, "2024-01-03": 1}
    assert store.daily_goal == 1
    assert store.total_resets == 4

    # Rewritten in the current shape
    raw = read_json(run_store_path(workspace))
    assert "currentRun" not in raw
    assert raw["completedDates"] == ["2024-01-01", "2024-01-03"]


def test_original_shape_with_bad_start_falls_back(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, {"currentRun": {"startDate": "yesterday-ish", "completedDays": [1]}})
    store = load_run_store(workspace, now=at("2024-01-04"))
    assert store.run_start_date == "2024-01-04"
    assert store.completed_date_keys == []


def test_fields_are_sanitized_independently(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, {
        "runStartDate": "2024-01-01",
        "dailyGoal": 7,
        "completionsByDate": {"2024-01-01": 3, "2024-01-02": -1, "nope": 2, "2024-01-03": "2"},
        "completedDates": ["2024-01-01", "2024-01-01", "bad"],
        "totalResets": -3,
        "lastCompletionDate": "2024-01-01",
    })
    store = load_run_store(workspace, now=at("2024-01-02"))
    assert store.daily_goal == 1
    assert store.completions_by_date == {"2024-01-01": 3}
    assert store.completed_date_keys == ["2024-01-01"]
    assert store.total_resets == 0
    assert store.last_completion_date == "2024-01-01"


def test_lock_expires_on_a_later_day(workspace, at):
    store = RunStore.fresh("2024-01-01")
    store.settings_locked_for_date = "2024-01-01"
    store.last_settings_change_date = "2024-01-01"
    save_run_store(store, workspace)

    same_day = load_run_store(workspace, now=at("2024-01-01", hour=23))
    assert same_day.settings_locked_for_date == "2024-01-01"

    next_day = load_run_store(workspace, now=at("2024-01-02", hour=0, minute=1))
    assert next_day.settings_locked_for_date is None
    assert next_day.last_settings_change_date is None
    assert read_json(run_store_path(workspace))["settingsLockedForDate"] is None


def test_update_daily_goal(workspace, at):
    store = load_run_store(workspace, now=at("2024-01-01"))

    assert update_daily_goal(store, 4, workspace).daily_goal == 1
    assert update_daily_goal(store, True, workspace).daily_goal == 1

    update_daily_goal(store, 3, workspace)
    assert store.daily_goal == 3
    assert read_json(run_store_path(workspace))["dailyGoal"] == 3


def test_update_daily_goal_refused_while_locked(workspace, at):
    store = load_run_store(workspace, now=at("2024-01-01"))
    begin_session(store, now=at("2024-01-01", hour=9), root=workspace)

    assert update_daily_goal(store, 3, workspace, now=at("2024-01-01", hour=10)).daily_goal == 1
    assert read_json(run_store_path(workspace))["dailyGoal"] == 1

    assert update_daily_goal(store, 3, workspace, now=at("2024-01-02")).daily_goal == 3


def test_credited_keys_need_a_recorded_completion(workspace, at, write_blob):
    write_blob(RUN_STORE_KEY, {
        "runStartDate": "2024-01-01",
        "completionsByDate": {"2024-01-01": 1},
        "completedDates": ["2024-01-01", "2024-01-02"],
    })
    assert load_run_store(workspace, now=at("2024-01-03")).completed_date_keys == ["2024-01-01"]
