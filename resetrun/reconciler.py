"""Profile reconciliation between the local device state and a remote store.

Per sign-in the reconciler moves idle -> loading -> ready, and back to idle on
sign-out. Loading:

1. Apply the cached profile for the identity immediately, if there is one
2. Fetch the remote profile; any failure falls back to the local rebuild
3. Normalize it field by field against the local rebuild
4. Push the result back to the remote store (best effort)
5. Drop the result if another identity became active meanwhile
6. Cache it, hydrate the local blobs, become ready

Local mutations afterwards update the in-memory profile and the cache at once
and push to the remote store without waiting on or surfacing the outcome.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from resetrun import completion, settings_lock
from resetrun.models import CompletionResult, Profile, ProfileLocks, RunStore, SettingsChangeResult, SyncResult
from resetrun.preferences import load_preferences
from resetrun.profile import (
    build_profile_from_local,
    clear_cached_profile,
    hydrate_local_from_profile,
    load_cached_profile,
    normalize_profile,
    save_cached_profile,
)
from resetrun.remote import RemoteProfileStore, push_profile
from resetrun.run_store import load_run_store

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
READY = "ready"


class ProfileReconciler:
    def __init__(self, remote: RemoteProfileStore | None = None, root: Path | None = None):
        self.remote = remote
        self.root = root
        self.state = IDLE
        self.active_uid: str | None = None
        self.profile: Profile | None = None
        self.last_sync: SyncResult | None = None

    # ── Sign-in lifecycle ─────────────────────────────────────

    def _fetch_remote(self, uid: str) -> Any:
        if self.remote is None:
            return None
        try:
            return self.remote.fetch(uid)
        except Exception as e:
            logger.warning("Remote profile fetch for %s failed, using local state: %s", uid, e)
            return None

    def sign_in(self, uid: str, now: datetime | None = None) -> Profile | None:
        """Load the profile for *uid*. Returns None if the load was superseded."""
        self.active_uid = uid
        self.state = LOADING

        cached = load_cached_profile(uid, self.root, now)
        if cached is not None:
            self.profile = cached
            hydrate_local_from_profile(cached, self.root)

        baseline = build_profile_from_local(self.root, now)
        raw = self._fetch_remote(uid)
        profile = normalize_profile(raw if raw is not None else baseline, baseline)

        self.last_sync = push_profile(self.remote, uid, profile)

        if self.active_uid != uid:
            logger.info("Discarding profile load for %s: identity changed", uid)
            return None

        self.profile = profile
        save_cached_profile(uid, profile, self.root)
        hydrate_local_from_profile(profile, self.root)
        self.state = READY
        return profile

    def refresh(self, now: datetime | None = None) -> Profile | None:
        if self.active_uid is None:
            return None
        return self.sign_in(self.active_uid, now)

    def sign_out(self) -> None:
        self.active_uid = None
        self.profile = None
        self.state = IDLE
        clear_cached_profile(self.root)

    @property
    def signed_in(self) -> bool:
        return self.active_uid is not None

    @property
    def onboarding_complete(self) -> bool:
        return bool(self.profile and self.profile.onboarding_complete)

    # ── Optimistic updates ────────────────────────────────────

    def _merge(self, base: Profile, changes: dict[str, Any]) -> Profile:
        merged = base.to_dict()
        for name, value in changes.items():
            if name == "onboarding_complete":
                merged["onboardingComplete"] = value
            elif name in ("preferences", "run_state", "locks"):
                key = {"run_state": "runState"}.get(name, name)
                merged[key] = value.to_dict() if hasattr(value, "to_dict") else value
            else:
                raise TypeError(f"Unknown profile field: {name}")
        return normalize_profile(merged, base)

    def _commit(self, profile: Profile) -> Profile:
        self.profile = profile
        save_cached_profile(self.active_uid, profile, self.root)
        hydrate_local_from_profile(profile, self.root)
        self.last_sync = push_profile(self.remote, self.active_uid, profile)
        return profile

    def _locked_store(self, base: Profile, now: datetime | None) -> RunStore | None:
        """The run state holding today's settings lock, if any."""
        for store in (self.load_store(now), base.run_state):
            if store is not None and settings_lock.is_settings_locked(store, now, self.root):
                return store
        return None

    def update_profile(self, now: datetime | None = None, **changes: Any) -> Profile | None:
        """Merge *changes* (Profile attribute names) into the profile and write through.

        While today's settings are locked the preferences, daily goal and lock
        fields keep their current values; settings edits go through
        change_settings. The remote push is best effort; its outcome is kept
        in ``last_sync``.
        """
        if self.active_uid is None:
            return None
        base = self.profile or build_profile_from_local(self.root, now)
        profile = self._merge(base, changes)
        locked = self._locked_store(base, now)
        if locked is not None:
            profile.preferences = base.preferences
            profile.locks.daily_lock_date = locked.settings_locked_for_date
            if profile.run_state is not None:
                profile.run_state.daily_goal = locked.daily_goal
                profile.run_state.settings_locked_for_date = locked.settings_locked_for_date
                profile.run_state.last_settings_change_date = locked.last_settings_change_date
        return self._commit(profile)

    def _write_through(self, store: RunStore, now: datetime | None, **extra: Any) -> None:
        if self.active_uid is None:
            return
        base = self.profile or build_profile_from_local(self.root, now)
        locks = ProfileLocks(
            daily_lock_date=store.settings_locked_for_date,
            run_lock_until=base.locks.run_lock_until,
        )
        self._commit(self._merge(base, dict(run_state=store, locks=locks, **extra)))

    # ── Mutations routed through the profile ──────────────────

    def load_store(self, now: datetime | None = None) -> RunStore:
        return load_run_store(self.root, now)

    def record_completion(self, completed: bool = True, now: datetime | None = None) -> CompletionResult:
        store = self.load_store(now)
        result = completion.record_completion(store, completed, now=now, root=self.root)
        self._write_through(result.store, now)
        return result

    def begin_session(self, now: datetime | None = None) -> RunStore:
        store = settings_lock.begin_session(self.load_store(now), now=now, root=self.root)
        self._write_through(store, now)
        return store

    def change_settings(self, now: datetime | None = None, **changes: Any) -> SettingsChangeResult:
        store = self.load_store(now)
        preferences = load_preferences(self.root, authenticated=self.signed_in)
        result = settings_lock.apply_settings_change(store, preferences, now=now, root=self.root, **changes)
        if result.applied:
            self._write_through(
                result.store, now,
                preferences=result.preferences,
                onboarding_complete=True,
            )
        return result
