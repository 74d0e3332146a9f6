"""Shared test fixtures for ResetRun tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml


class FakeRemote:
    """In-memory remote profile store with switchable failures."""

    def __init__(self) -> None:
        self.docs: dict[str, Any] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.fetch_error: Exception | None = None
        self.write_error: Exception | None = None
        self.on_fetch: Callable[[str], None] | None = None

    def fetch(self, uid: str) -> Any:
        if self.on_fetch is not None:
            self.on_fetch(uid)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.docs.get(uid)

    def write(self, uid: str, payload: dict[str, Any]) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append((uid, payload))
        self.docs[uid] = payload


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Temporary workspace root pinned to UTC."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)
    (root / "config.yaml").write_text(
        yaml.dump({"timezone": "UTC"}, default_flow_style=False), encoding="utf-8"
    )

    os.environ["RESETRUN_ROOT"] = str(root)
    yield root
    if "RESETRUN_ROOT" in os.environ:
        del os.environ["RESETRUN_ROOT"]


@pytest.fixture
def at() -> Callable[..., datetime]:
    """Build a UTC instant on a calendar-day key: at("2024-01-01", hour=9)."""

    def _at(key: str, hour: int = 12, minute: int = 0) -> datetime:
        return datetime.fromisoformat(key).replace(hour=hour, minute=minute, tzinfo=timezone.utc)

    return _at


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def write_blob(workspace: Path) -> Callable[[str, Any], Path]:
    """Write raw content to a storage key, bypassing the models."""

    def _write(key: str, data: Any) -> Path:
        path = workspace / f"{key}.json"
        text = data if isinstance(data, str) else json.dumps(data, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
