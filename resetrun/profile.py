"""Profile assembly, normalization and the local profile cache.

Remote and cached documents are untrusted. Each field is validated on its own
and falls back to the matching field of a trusted baseline (normally the
profile rebuilt from local state), so one bad field never discards the rest.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from resetrun.datekeys import is_date_key
from resetrun.fileio import read_json, remove_file, write_json_atomic
from resetrun.models import Profile, ProfileLocks, RunStore
from resetrun.preferences import (
    clear_preferences,
    load_preferences,
    normalize_preferences,
    save_preferences,
)
from resetrun.run_store import load_run_store, save_run_store
from resetrun.workspace import profile_cache_path

logger = logging.getLogger(__name__)


def build_profile_from_local(root: Path | None = None, now: datetime | None = None) -> Profile:
    run_state = load_run_store(root, now)
    preferences = load_preferences(root, authenticated=True)
    return Profile(
        onboarding_complete=preferences is not None,
        preferences=preferences,
        run_state=run_state,
        locks=ProfileLocks(daily_lock_date=run_state.settings_locked_for_date),
    )


def normalize_run_state(raw: Any, fallback: RunStore | None) -> RunStore | None:
    if not isinstance(raw, dict):
        return fallback
    if not is_date_key(raw.get("runStartDate")) or not isinstance(raw.get("completionsByDate"), dict):
        return fallback
    if fallback is None:
        fallback = RunStore.fresh(raw["runStartDate"])
    return RunStore.from_dict(raw, fallback=fallback)


def normalize_locks(raw: Any, fallback: ProfileLocks) -> ProfileLocks:
    if not isinstance(raw, dict):
        return ProfileLocks(fallback.daily_lock_date, fallback.run_lock_until)

    def lock_field(name: str, default: str | None) -> str | None:
        # An explicit null clears the lock; only a missing or mistyped value falls back.
        if name not in raw:
            return default
        value = raw[name]
        return value if value is None or isinstance(value, str) else default

    return ProfileLocks(
        daily_lock_date=lock_field("dailyLockDate", fallback.daily_lock_date),
        run_lock_until=lock_field("runLockUntil", fallback.run_lock_until),
    )


def normalize_profile(raw: Any, fallback: Profile) -> Profile:
    if isinstance(raw, Profile):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        raw = {}
    onboarding = raw.get("onboardingComplete")
    return Profile(
        onboarding_complete=onboarding if isinstance(onboarding, bool) else fallback.onboarding_complete,
        preferences=normalize_preferences(raw.get("preferences"), fallback.preferences),
        run_state=normalize_run_state(raw.get("runState"), fallback.run_state),
        locks=normalize_locks(raw.get("locks"), fallback.locks),
    )


def hydrate_local_from_profile(profile: Profile, root: Path | None = None) -> None:
    """Write the profile's preferences and run state to the local blobs."""
    if profile.preferences:
        save_preferences(profile.preferences, root)
    else:
        clear_preferences(root)
    if profile.run_state:
        save_run_store(profile.run_state, root)


# ── Local cache ───────────────────────────────────────────────


def load_cached_profile(uid: str, root: Path | None = None, now: datetime | None = None) -> Profile | None:
    """Cached profile for *uid*, or None if absent, unreadable or owned by someone else."""
    path = profile_cache_path(root)
    try:
        cached = read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring corrupt profile cache at %s: %s", path, e)
        return None
    if not isinstance(cached, dict) or cached.get("uid") != uid:
        return None
    if not isinstance(cached.get("profile"), dict):
        return None
    return normalize_profile(cached["profile"], build_profile_from_local(root, now))


def save_cached_profile(uid: str, profile: Profile, root: Path | None = None) -> None:
    write_json_atomic(profile_cache_path(root), {
        "uid": uid,
        "profile": profile.to_dict(),
        "cachedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    })


def clear_cached_profile(root: Path | None = None) -> None:
    remove_file(profile_cache_path(root))
