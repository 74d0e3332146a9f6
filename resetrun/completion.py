"""Completion recording: credits at most one day per calendar day.

The recorder:
1. Works out today's key and its offset into the current cycle
2. Restarts the cycle if the offset is outside days 0-6 (or unreadable)
3. Checks whether today is already credited (idempotency)
4. Counts the completion and credits today once the daily goal is reached
5. Persists and returns the signals the UI consumes
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from resetrun.datekeys import day_offset
from resetrun.models import CYCLE_DAYS, CompletionResult, RunStore
from resetrun.run_store import save_run_store
from resetrun.workspace import today_key

logger = logging.getLogger(__name__)


def record_completion(
    store: RunStore,
    completed: bool = True,
    *,
    now: datetime | None = None,
    root: Path | None = None,
) -> CompletionResult:
    """Record a finished session on *store* (mutated in place) and persist it.

    ``hit_day_seven`` is only true when this call credits a new day and that
    day is the seventh credited day of the cycle.
    """
    today = today_key(root, now)
    day_index = day_offset(store.run_start_date, today)

    if day_index is None or not 0 <= day_index < CYCLE_DAYS:
        logger.info(
            "Starting a new run on %s (previous start %s, offset %s)",
            today, store.run_start_date, day_index,
        )
        store.run_start_date = today
        store.completions_by_date = {}
        store.completed_date_keys = []
        store.last_completion_date = None
        day_index = 0

    already_completed = store.last_completion_date == today or today in store.completed_date_keys
    completed_day_now = False

    if completed:
        count = store.completions_by_date.get(today, 0) + 1
        store.completions_by_date[today] = count
        if not already_completed and count >= store.daily_goal:
            store.completed_date_keys.append(today)
            store.last_completion_date = today
            completed_day_now = True
        store.total_resets += 1

    save_run_store(store, root)

    credited = len(store.completed_date_keys)
    return CompletionResult(
        store=store,
        today_key=today,
        day_index=day_index,
        completed_count=credited,
        completed_day_now=completed_day_now,
        already_completed_today=already_completed,
        hit_day_seven=completed_day_now and credited == CYCLE_DAYS,
    )
