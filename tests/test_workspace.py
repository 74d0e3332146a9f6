"""Tests for resetrun/workspace.py — timezone resolution and day keys."""

import os
import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from resetrun.run_store import load_run_store
from resetrun.workspace import RUN_STORE_KEY, get_user_timezone, today_key


@pytest.fixture
def new_york_device(workspace):
    """Workspace with no configured zone on a device set to New York time."""
    (workspace / "config.yaml").write_text("{}\n", encoding="utf-8")
    with patch.dict(os.environ, {"TZ": "America/New_York"}):
        time.tzset()
        yield workspace
    time.tzset()


def test_configured_zone_wins(workspace):
    assert str(get_user_timezone(workspace)) == "UTC"
    assert today_key(workspace, datetime(2024, 1, 2, 4, 30, tzinfo=timezone.utc)) == "2024-01-02"


def test_device_zone_applies_dst_per_instant(new_york_device):
    assert get_user_timezone(new_york_device) is None

    # 00:30 EDT and 23:30 EST
    summer = datetime(2024, 7, 1, 4, 30, tzinfo=timezone.utc)
    winter = datetime(2024, 1, 2, 4, 30, tzinfo=timezone.utc)
    assert today_key(new_york_device, summer) == "2024-07-01"
    assert today_key(new_york_device, winter) == "2024-01-01"


def test_legacy_start_uses_device_zone(new_york_device, write_blob):
    write_blob(RUN_STORE_KEY, {
        "currentRun": {"startDate": "2024-01-02T04:30:00.000Z", "completedDays": [1]},
    })
    store = load_run_store(new_york_device, now=datetime(2024, 1, 3, 17, 0, tzinfo=timezone.utc))
    assert store.run_start_date == "2024-01-01"
    assert store.completed_date_keys == ["2024-01-01"]


def test_unknown_zone_falls_back_to_device(workspace):
    (workspace / "config.yaml").write_text("timezone: Mars/Olympus\n", encoding="utf-8")
    assert get_user_timezone(workspace) is None
