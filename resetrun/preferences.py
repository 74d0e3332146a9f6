"""Preference set persistence.

Guests never read the stored blob, so a signed-out session always shows the
full default mode set regardless of what an earlier signed-in session saved.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from resetrun.fileio import read_json, remove_file, write_json_atomic
from resetrun.models import PreferenceSet
from resetrun.modes import MODES, is_daily_goal, is_duration, is_mode, upgrade_preferred_modes
from resetrun.workspace import preferences_path

logger = logging.getLogger(__name__)


def normalize_preferences(raw: Any, fallback: PreferenceSet | None) -> PreferenceSet | None:
    """Validate each field of *raw*, taking invalid ones from *fallback*.

    A missing or invalid duration with no fallback yields None (not onboarded).
    """
    if not isinstance(raw, dict):
        return fallback

    duration = raw.get("preferredDuration")
    if not is_duration(duration):
        if fallback is None:
            return None
        duration = fallback.preferred_duration

    goal = raw.get("dailyResets")
    if not is_daily_goal(goal):
        goal = fallback.daily_resets if fallback else 1

    modes = raw.get("preferredModes")
    modes = [m for m in modes if is_mode(m)] if isinstance(modes, list) else []
    if not modes:
        modes = list(fallback.preferred_modes) if fallback else []

    reminder = raw.get("reminderTime")
    return PreferenceSet(
        daily_resets=goal,
        preferred_modes=upgrade_preferred_modes(modes),
        preferred_duration=duration,
        reminder_time=reminder if isinstance(reminder, str) else None,
    )


def load_preferences(root: Path | None = None, *, authenticated: bool = False) -> PreferenceSet | None:
    if not authenticated:
        return None
    path = preferences_path(root)
    try:
        raw = read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring corrupt preferences at %s: %s", path, e)
        return None
    return normalize_preferences(raw, None)


def save_preferences(preferences: PreferenceSet, root: Path | None = None) -> None:
    write_json_atomic(preferences_path(root), preferences.to_dict())


def clear_preferences(root: Path | None = None) -> None:
    remove_file(preferences_path(root))


def home_modes(preferences: PreferenceSet | None) -> list[str]:
    """Modes to offer on the home screen."""
    if preferences and preferences.preferred_modes:
        return list(preferences.preferred_modes)
    return list(MODES)
