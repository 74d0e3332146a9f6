"""Reset mode, duration and daily-goal identifiers."""

from __future__ import annotations

from typing import Any

MODES: list[str] = ["calm", "focus", "clean", "body", "timeout"]
LEGACY_MODES: list[str] = ["calm", "focus", "clean", "body"]
DURATIONS: list[int] = [2, 5, 10]  # minutes
DAILY_GOALS: list[int] = [1, 2, 3]


def is_mode(x: Any) -> bool:
    return isinstance(x, str) and x in MODES


def is_duration(x: Any) -> bool:
    # bool is an int subclass; True must not pass as a duration
    return isinstance(x, int) and not isinstance(x, bool) and x in DURATIONS


def is_daily_goal(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and x in DAILY_GOALS


def upgrade_preferred_modes(modes: list[str]) -> list[str]:
    """De-duplicate, and give users who picked every legacy mode the newer 'timeout' too."""
    if not modes:
        return modes
    unique = list(dict.fromkeys(modes))
    if (
        "timeout" not in unique
        and len(unique) == len(LEGACY_MODES)
        and all(m in unique for m in LEGACY_MODES)
    ):
        return unique + ["timeout"]
    return unique
