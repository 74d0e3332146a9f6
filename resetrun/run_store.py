"""Run store lifecycle: creation, shape migration, persistence, lock expiry.

Three persisted shapes are understood:

- current: ``runStartDate`` + ``completionsByDate`` with the lock and
  idempotency fields;
- flat legacy: the same without ``lastCompletionDate`` / lock fields, which
  default to null;
- original legacy: ``currentRun.startDate`` (a timestamp) and
  ``currentRun.completedDays`` (1-7 day indices), with ``stats.totalResets``.

Anything else, including unreadable JSON, becomes a fresh store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any

from resetrun.datekeys import date_key, is_date_key, parse_date_key
from resetrun.fileio import read_json, write_json_atomic
from resetrun.models import RunStore
from resetrun.modes import is_daily_goal
from resetrun.workspace import get_user_timezone, run_store_path, today_key

logger = logging.getLogger(__name__)


def fresh_store(today: str) -> RunStore:
    return RunStore.fresh(today)


def _legacy_start(value: Any, tz: tzinfo | None) -> str | None:
    if not isinstance(value, str):
        return None
    if is_date_key(value):
        return value
    try:
        instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if instant.tzinfo is not None:
        instant = instant.astimezone(tz)
    return date_key(instant)


def _migrate_original(raw: dict[str, Any], today: str, tz: tzinfo | None) -> RunStore:
    current = raw["currentRun"]
    start = _legacy_start(current.get("startDate"), tz)
    if start is None:
        logger.warning("Unreadable legacy run start %r, starting fresh", current.get("startDate"))
        return fresh_store(today)

    store = fresh_store(start)
    start_date = parse_date_key(start)
    days = current.get("completedDays")
    if isinstance(days, list):
        for n in days:
            if isinstance(n, int) and not isinstance(n, bool) and 1 <= n <= 7:
                key = date_key(start_date + timedelta(days=n - 1))
                if key not in store.completed_date_keys:
                    store.completed_date_keys.append(key)
    # Back-filled at the store's goal so every migrated day reads as credited.
    for key in store.completed_date_keys:
        store.completions_by_date[key] = store.daily_goal

    stats = raw.get("stats")
    total = stats.get("totalResets") if isinstance(stats, dict) else None
    if isinstance(total, int) and not isinstance(total, bool) and total >= 0:
        store.total_resets = total
    return store


def migrate_store(raw: Any, today: str, tz: tzinfo | None = None) -> RunStore:
    """Bring any persisted shape forward to a RunStore. Never raises."""
    if isinstance(raw, dict):
        if isinstance(raw.get("runStartDate"), str) and isinstance(raw.get("completionsByDate"), dict):
            return RunStore.from_dict(raw, fallback=fresh_store(today))
        current = raw.get("currentRun")
        if isinstance(current, dict) and current.get("startDate"):
            return _migrate_original(raw, today, tz)
    logger.warning("Unrecognized run store shape, starting a fresh run")
    return fresh_store(today)


def expire_settings_lock(store: RunStore, today: str) -> bool:
    """Clear a settings lock left over from an earlier day. Returns True if cleared."""
    expired = False
    if store.settings_locked_for_date is not None and store.settings_locked_for_date != today:
        store.settings_locked_for_date = None
        expired = True
    if store.last_settings_change_date is not None and store.last_settings_change_date != today:
        store.last_settings_change_date = None
        expired = True
    return expired


def save_run_store(store: RunStore, root: Path | None = None) -> None:
    write_json_atomic(run_store_path(root), store.to_dict())


def load_run_store(root: Path | None = None, now: datetime | None = None) -> RunStore:
    """Load, migrate and re-persist the run store. Falls back to a fresh store."""
    today = today_key(root, now)
    path = run_store_path(root)
    try:
        raw = read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("Corrupt run store at %s, starting fresh: %s", path, e)
        raw = None

    if raw is None:
        store = fresh_store(today)
    else:
        store = migrate_store(raw, today, get_user_timezone(root))
    expire_settings_lock(store, today)

    try:
        save_run_store(store, root)
    except OSError as e:
        logger.warning("Could not persist run store to %s: %s", path, e)
    return store


def update_daily_goal(
    store: RunStore, goal: Any, root: Path | None = None, now: datetime | None = None
) -> RunStore:
    """Set the daily goal.

    Out-of-range values, and any change while today's settings are locked,
    leave the store untouched.
    """
    if not is_daily_goal(goal) or store.daily_goal == goal:
        return store
    if store.settings_locked_for_date == today_key(root, now):
        logger.info("Daily goal change refused: settings locked for %s", store.settings_locked_for_date)
        return store
    store.daily_goal = goal
    save_run_store(store, root)
    return store
