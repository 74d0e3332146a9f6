"""ResetRun core library: run tracking, streak integrity and profile sync.

Public API re-exports for convenient imports:
    from resetrun import load_run_store, record_completion, ProfileReconciler, ...
"""

# Workspace & paths
from resetrun.workspace import (
    workspace_root,
    load_config,
    get_user_timezone,
    today_key,
    run_store_path,
    preferences_path,
    profile_cache_path,
)

# Date keys
from resetrun.datekeys import (
    date_key,
    parse_date_key,
    is_date_key,
    day_offset,
    add_days,
    next_date_key,
    day_number,
)

# Modes
from resetrun.modes import (
    MODES,
    DURATIONS,
    DAILY_GOALS,
    is_mode,
    is_duration,
    is_daily_goal,
    upgrade_preferred_modes,
)

# Models
from resetrun.models import (
    RunStore,
    PreferenceSet,
    ProfileLocks,
    Profile,
    CompletionResult,
    SettingsChangeResult,
    SyncResult,
)

# Run store
from resetrun.run_store import (
    fresh_store,
    migrate_store,
    load_run_store,
    save_run_store,
    expire_settings_lock,
    update_daily_goal,
)

# Completion & settings lock
from resetrun.completion import record_completion
from resetrun.settings_lock import (
    is_settings_locked,
    lock_settings,
    begin_session,
    apply_settings_change,
    lock_expires_at,
)

# Preferences & profile
from resetrun.preferences import (
    load_preferences,
    save_preferences,
    clear_preferences,
    home_modes,
)
from resetrun.profile import (
    build_profile_from_local,
    normalize_profile,
    hydrate_local_from_profile,
    load_cached_profile,
    save_cached_profile,
    clear_cached_profile,
)

# Remote sync
from resetrun.remote import HttpProfileStore, RemoteProfileStore, push_profile, remote_store_from_config
from resetrun.reconciler import ProfileReconciler
