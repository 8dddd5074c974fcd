"""
SessionLockManager - per-conversation locks shared by threads and processes.

Uses fcntl file locks, one lock file per conversation id. The lock
directory comes from settings.session.lock_dir, then SESSION_LOCK_DIR,
then /tmp/briefbot_session_locks.
"""

from __future__ import annotations

import fcntl
import hashlib
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from briefbot.settings import settings

DEFAULT_LOCK_DIR = "/tmp/briefbot_session_locks"


class SessionLockManager:
    """Serializes turns of one conversation."""

    def __init__(self, lock_dir: Optional[str] = None):
        configured = lock_dir or settings.get_nested("session.lock_dir")
        self._lock_dir = Path(
            configured or os.getenv("SESSION_LOCK_DIR", DEFAULT_LOCK_DIR)
        ).resolve()
        self._lock_dir.mkdir(parents=True, exist_ok=True)

    @property
    def lock_dir(self) -> Path:
        return self._lock_dir

    def lock_path(self, conversation_id: str) -> Path:
        # Ids are hashed so any string is a safe file name
        digest = hashlib.sha256(conversation_id.encode("utf-8")).hexdigest()
        return self._lock_dir / f"{digest}.lock"

    @contextmanager
    def lock(self, conversation_id: str) -> Iterator[None]:
        """Hold the exclusive lock for a conversation while the block runs."""
        path = self.lock_path(conversation_id)
        with open(path, "a", encoding="utf-8") as handle:
            fcntl.flock(handle, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)
