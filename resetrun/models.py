"""Typed dataclasses for the ResetRun data model.

Persisted and remote documents use camelCase keys; attributes are snake_case.
Reading is per-field: an invalid field takes the value of a fallback entity
instead of rejecting the whole document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from resetrun.datekeys import day_offset, is_date_key
from resetrun.modes import is_daily_goal

CYCLE_DAYS = 7


def _is_count(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and x >= 0


def clean_completions(raw: Any) -> dict[str, int] | None:
    """Valid key -> count entries of *raw*, or None if it is not a mapping."""
    if not isinstance(raw, dict):
        return None
    return {k: v for k, v in raw.items() if is_date_key(k) and _is_count(v)}


def clean_date_keys(raw: Any) -> list[str] | None:
    """De-duplicated valid keys of *raw* in order, or None if it is not a list."""
    if not isinstance(raw, list):
        return None
    return list(dict.fromkeys(k for k in raw if is_date_key(k)))


def credited_in_cycle(keys: list[str], run_start_date: str, counts: dict[str, int]) -> list[str]:
    """Credited keys that fall inside the cycle starting at *run_start_date*.

    A key outside days 0-6 of the cycle, or with no recorded completion, is
    dropped. The result never holds more than CYCLE_DAYS keys.
    """
    kept = []
    for key in keys:
        offset = day_offset(run_start_date, key)
        if offset is None or not 0 <= offset < CYCLE_DAYS:
            continue
        if counts.get(key, 0) < 1:
            continue
        kept.append(key)
    return kept[:CYCLE_DAYS]


# ── Run store ─────────────────────────────────────────────────


@dataclass
class RunStore:
    run_start_date: str
    daily_goal: int = 1
    completions_by_date: dict[str, int] = field(default_factory=dict)
    completed_date_keys: list[str] = field(default_factory=list)  # ordered set
    last_completion_date: str | None = None
    settings_locked_for_date: str | None = None
    last_settings_change_date: str | None = None
    total_resets: int = 0

    @classmethod
    def fresh(cls, today_key: str) -> RunStore:
        return cls(run_start_date=today_key)

    @classmethod
    def from_dict(cls, d: dict[str, Any], fallback: RunStore) -> RunStore:
        """Read a current-shape document; invalid fields come from *fallback*."""

        def opt_key(name: str, default: str | None) -> str | None:
            if name not in d or d[name] is None:
                return None
            return d[name] if is_date_key(d[name]) else default

        start = d.get("runStartDate")
        goal = d.get("dailyGoal")
        counts = clean_completions(d.get("completionsByDate"))
        credited = clean_date_keys(d.get("completedDates", d.get("completedDateKeys")))
        total = d.get("totalResets")
        start = start if is_date_key(start) else fallback.run_start_date
        counts = counts if counts is not None else dict(fallback.completions_by_date)
        credited = credited if credited is not None else list(fallback.completed_date_keys)
        return cls(
            run_start_date=start,
            daily_goal=goal if is_daily_goal(goal) else fallback.daily_goal,
            completions_by_date=counts,
            completed_date_keys=credited_in_cycle(credited, start, counts),
            last_completion_date=opt_key("lastCompletionDate", fallback.last_completion_date),
            settings_locked_for_date=opt_key("settingsLockedForDate", fallback.settings_locked_for_date),
            last_settings_change_date=opt_key("lastSettingsChangeDate", fallback.last_settings_change_date),
            total_resets=total if _is_count(total) else fallback.total_resets,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "runStartDate": self.run_start_date,
            "dailyGoal": self.daily_goal,
            "completionsByDate": dict(self.completions_by_date),
            "completedDates": list(self.completed_date_keys),
            "lastCompletionDate": self.last_completion_date,
            "settingsLockedForDate": self.settings_locked_for_date,
            "lastSettingsChangeDate": self.last_settings_change_date,
            "totalResets": self.total_resets,
        }


# ── Preferences & profile ─────────────────────────────────────


@dataclass
class PreferenceSet:
    daily_resets: int = 1
    preferred_modes: list[str] = field(default_factory=list)
    preferred_duration: int = 5
    reminder_time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "dailyResets": self.daily_resets,
            "preferredModes": list(self.preferred_modes),
            "preferredDuration": self.preferred_duration,
            "reminderTime": self.reminder_time,
        }


@dataclass
class ProfileLocks:
    daily_lock_date: str | None = None
    run_lock_until: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"dailyLockDate": self.daily_lock_date, "runLockUntil": self.run_lock_until}


@dataclass
class Profile:
    onboarding_complete: bool = False
    preferences: PreferenceSet | None = None
    run_state: RunStore | None = None
    locks: ProfileLocks = field(default_factory=ProfileLocks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "onboardingComplete": self.onboarding_complete,
            "preferences": self.preferences.to_dict() if self.preferences else None,
            "runState": self.run_state.to_dict() if self.run_state else None,
            "locks": self.locks.to_dict(),
        }


# ── Operation results ─────────────────────────────────────────


@dataclass
class CompletionResult:
    store: RunStore
    today_key: str
    day_index: int  # 0-based offset from run start
    completed_count: int
    completed_day_now: bool = False
    already_completed_today: bool = False
    hit_day_seven: bool = False

    def signals(self) -> dict[str, Any]:
        return {
            "todayKey": self.today_key,
            "dayIndex": self.day_index,
            "completedCount": self.completed_count,
            "completedDayNow": self.completed_day_now,
            "alreadyCompletedToday": self.already_completed_today,
            "hitDaySeven": self.hit_day_seven,
        }


@dataclass
class SettingsChangeResult:
    store: RunStore
    preferences: PreferenceSet | None
    applied: bool
    locked: bool
    reason: str = ""


@dataclass
class SyncResult:
    """Outcome of a best-effort remote operation. Callers may ignore it."""

    ok: bool
    error: str | None = None
