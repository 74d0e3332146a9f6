"""Remote profile store.

The remote side is an external collaborator: fetches and writes may fail or
return junk, and the reconciler treats both as untrusted. Writes go through
push_profile, which never raises and has no retry queue.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import requests

from resetrun.models import Profile, SyncResult
from resetrun.workspace import load_config

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class RemoteProfileStore(Protocol):
    def fetch(self, uid: str) -> dict[str, Any] | None:
        """Raw profile document for *uid*, or None if there is none."""
        ...

    def write(self, uid: str, payload: dict[str, Any]) -> None:
        ...


class HttpProfileStore:
    """Profiles stored as JSON documents at ``{base_url}/profiles/{uid}``."""

    def __init__(self, base_url: str, token: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _url(self, uid: str) -> str:
        return f"{self.base_url}/profiles/{quote(uid, safe='')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def fetch(self, uid: str) -> dict[str, Any] | None:
        resp = requests.get(self._url(uid), headers=self._headers(), timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Profile document for {uid!r} is not an object")
        return data

    def write(self, uid: str, payload: dict[str, Any]) -> None:
        resp = requests.put(self._url(uid), headers=self._headers(), json=payload, timeout=self.timeout)
        resp.raise_for_status()


def remote_store_from_config(root: Path | None = None) -> HttpProfileStore | None:
    """HTTP store from the ``remote`` section of config.yaml, or None if unset."""
    remote = load_config(root).get("remote")
    if not isinstance(remote, dict) or not remote.get("base_url"):
        return None
    try:
        timeout = float(remote.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError):
        timeout = DEFAULT_TIMEOUT
    return HttpProfileStore(str(remote["base_url"]), token=remote.get("token"), timeout=timeout)


def push_profile(remote: RemoteProfileStore | None, uid: str, profile: Profile) -> SyncResult:
    """Best-effort write of *profile*. Failures are logged and reported, never raised."""
    if remote is None:
        return SyncResult(ok=False, error="no remote store configured")
    payload = profile.to_dict()
    payload["updatedAt"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    try:
        remote.write(uid, payload)
    except Exception as e:
        logger.warning("Profile sync for %s failed: %s", uid, e)
        return SyncResult(ok=False, error=str(e))
    return SyncResult(ok=True)
