"""Daily settings lock.

Starting a session or changing settings freezes the daily goal, modes and
duration until the end of that calendar day, so progress can't be inflated
by loosening settings after the fact. The lock clears on the first load of a
later day (see run_store.expire_settings_lock).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from resetrun.datekeys import next_date_key, parse_date_key
from resetrun.models import PreferenceSet, RunStore, SettingsChangeResult
from resetrun.modes import is_daily_goal, is_duration, is_mode, upgrade_preferred_modes
from resetrun.preferences import save_preferences
from resetrun.run_store import save_run_store, update_daily_goal
from resetrun.workspace import today_key

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def is_settings_locked(store: RunStore, now: datetime | None = None, root: Path | None = None) -> bool:
    return store.settings_locked_for_date == today_key(root, now)


def lock_expires_at(store: RunStore) -> str | None:
    """Key of the day on which the current lock no longer applies."""
    if store.settings_locked_for_date is None:
        return None
    return next_date_key(parse_date_key(store.settings_locked_for_date))


def lock_settings(store: RunStore, *, now: datetime | None = None, root: Path | None = None) -> RunStore:
    today = today_key(root, now)
    store.settings_locked_for_date = today
    store.last_settings_change_date = today
    save_run_store(store, root)
    return store


def begin_session(store: RunStore, *, now: datetime | None = None, root: Path | None = None) -> RunStore:
    """A session starting locks today's settings."""
    return lock_settings(store, now=now, root=root)


def apply_settings_change(
    store: RunStore,
    preferences: PreferenceSet | None,
    *,
    daily_resets: Any = _UNSET,
    preferred_modes: Any = _UNSET,
    preferred_duration: Any = _UNSET,
    reminder_time: Any = _UNSET,
    now: datetime | None = None,
    root: Path | None = None,
) -> SettingsChangeResult:
    """Apply a settings edit unless today's settings are locked.

    A refused or invalid edit leaves both *store* and *preferences* untouched.
    An accepted edit updates the preference set (creating it if needed),
    syncs the run's daily goal and locks settings for the rest of today.
    """
    if is_settings_locked(store, now, root):
        logger.info("Settings change refused: locked for %s", store.settings_locked_for_date)
        return SettingsChangeResult(store, preferences, applied=False, locked=True, reason="settings-locked")

    updated = PreferenceSet(**vars(preferences)) if preferences else PreferenceSet()
    updated.preferred_modes = list(updated.preferred_modes)

    if daily_resets is not _UNSET:
        if not is_daily_goal(daily_resets):
            return SettingsChangeResult(store, preferences, applied=False, locked=False, reason="invalid-input")
        updated.daily_resets = daily_resets
    if preferred_modes is not _UNSET:
        if (
            not isinstance(preferred_modes, (list, tuple))
            or not preferred_modes
            or not all(is_mode(m) for m in preferred_modes)
        ):
            return SettingsChangeResult(store, preferences, applied=False, locked=False, reason="invalid-input")
        updated.preferred_modes = upgrade_preferred_modes(list(preferred_modes))
    if preferred_duration is not _UNSET:
        if not is_duration(preferred_duration):
            return SettingsChangeResult(store, preferences, applied=False, locked=False, reason="invalid-input")
        updated.preferred_duration = preferred_duration
    if reminder_time is not _UNSET:
        if reminder_time is not None and not isinstance(reminder_time, str):
            return SettingsChangeResult(store, preferences, applied=False, locked=False, reason="invalid-input")
        updated.reminder_time = reminder_time

    if not updated.preferred_modes:
        return SettingsChangeResult(store, preferences, applied=False, locked=False, reason="invalid-input")

    save_preferences(updated, root)
    update_daily_goal(store, updated.daily_resets, root, now)
    lock_settings(store, now=now, root=root)
    return SettingsChangeResult(store, updated, applied=True, locked=True)
