"""Workspace root, configuration, timezone and blob paths."""

from __future__ import annotations

import logging
import os
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from resetrun.datekeys import date_key
from resetrun.fileio import read_yaml

logger = logging.getLogger(__name__)

# Storage keys of the persisted blobs.
RUN_STORE_KEY = "reset_run_v3"
PREFERENCES_KEY = "reset_run_v2_goals"
PROFILE_CACHE_KEY = "reset_run_profile_cache"


def workspace_root() -> Path:
    """Directory holding config.yaml and the persisted blobs."""
    return Path(
        os.environ.get("RESETRUN_ROOT", str(Path.home() / ".resetrun"))
    ).expanduser().resolve()


def load_config(root: Path | None = None) -> dict[str, Any]:
    """Read config.yaml from the workspace root."""
    if root is None:
        root = workspace_root()
    try:
        return read_yaml(root / "config.yaml")
    except Exception as e:
        logger.warning("Ignoring unreadable config.yaml in %s: %s", root, e)
        return {}


def get_user_timezone(root: Path | None = None) -> tzinfo | None:
    """Configured timezone, or None for the device's local zone.

    None is passed to ``datetime.astimezone`` as is, so each instant picks up
    the local offset in force at that instant (DST included).
    """
    name = load_config(root).get("timezone")
    if name:
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r in config.yaml, using local time", name)
    return None


def today_key(root: Path | None = None, now: datetime | None = None) -> str:
    """Calendar-day key of *now* (default: the current time) in the user's zone."""
    tz = get_user_timezone(root)
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is not None:
        now = now.astimezone(tz)
    return date_key(now)


# ── Path helpers ──────────────────────────────────────────────

def blob_path(key: str, root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / f"{key}.json"


def run_store_path(root: Path | None = None) -> Path:
    return blob_path(RUN_STORE_KEY, root)


def preferences_path(root: Path | None = None) -> Path:
    return blob_path(PREFERENCES_KEY, root)


def profile_cache_path(root: Path | None = None) -> Path:
    return blob_path(PROFILE_CACHE_KEY, root)
