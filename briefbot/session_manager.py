"""
Session Manager - the reference caller of ConversationEngine.

Keeps active conversations in memory, serializes turns per conversation
with SessionLockManager and loads snapshots only on a cache miss.
Persistence is delegated to the injected load_snapshot / save_snapshot
callables; without them sessions live in memory only.

Usage:
    manager = SessionManager(save_snapshot=store.put, load_snapshot=store.get)
    result = manager.handle_message("conv-42", "I want a recipe app")
    result.message
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from briefbot.context_accumulator import ConversationContext
from briefbot.engine import ConversationEngine, TurnResult
from briefbot.errors import SessionNotFoundError
from briefbot.logger import logger
from briefbot.session_lock import SessionLockManager
from briefbot.settings import settings
from briefbot.stage_machine import ConversationState

SNAPSHOT_VERSION = 1


@dataclass
class Session:
    conversation_id: str
    context: ConversationContext
    state: ConversationState
    history: List[Dict] = field(default_factory=list)
    created_at: float = 0.0
    last_activity: float = 0.0

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "conversation_id": self.conversation_id,
            "context": self.context.to_dict(),
            "state": self.state.to_dict(),
            "history": [dict(entry) for entry in self.history],
            "created_at": self.created_at,
        }

    @classmethod
    def from_snapshot(cls, snapshot: Dict[str, Any], now: float) -> "Session":
        return cls(
            conversation_id=snapshot["conversation_id"],
            context=ConversationContext.from_dict(snapshot.get("context")),
            state=ConversationState.from_dict(snapshot.get("state")),
            history=list(snapshot.get("history", [])),
            created_at=snapshot.get("created_at", now),
            last_activity=now,
        )


class SessionManager:
    """
    In-memory session cache in front of ConversationEngine.

    Args:
        engine: Shared engine (it holds no per-conversation state)
        ttl_seconds: Idle time before a session is evicted (settings.session.ttl_seconds)
        load_snapshot: conversation_id -> snapshot dict or None
        save_snapshot: (conversation_id, snapshot dict) -> None
        lock_manager: Per-conversation lock
        clock: Time source, time.time by default
    """

    def __init__(
        self,
        engine: Optional[ConversationEngine] = None,
        ttl_seconds: Optional[int] = None,
        load_snapshot: Optional[Callable[[str], Optional[Dict]]] = None,
        save_snapshot: Optional[Callable[[str, Dict], None]] = None,
        lock_manager: Optional[SessionLockManager] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._engine = engine or ConversationEngine()
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.get_nested("session.ttl_seconds", 3600)
        self._load_snapshot = load_snapshot
        self._save_snapshot = save_snapshot
        self._lock = lock_manager or SessionLockManager()
        self._clock = clock or time.time
        self._sessions: Dict[str, Session] = {}

    @property
    def engine(self) -> ConversationEngine:
        return self._engine

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    # =========================================================================
    # Lookup
    # =========================================================================

    def _restore(self, conversation_id: str, now: float) -> Optional[Session]:
        if self._load_snapshot is None:
            return None
        snapshot = self._load_snapshot(conversation_id)
        if not snapshot:
            return None
        session = Session.from_snapshot(snapshot, now)
        logger.info("Session restored from snapshot", conversation_id=conversation_id)
        return session

    def _new_session(self, conversation_id: str, now: float) -> Session:
        start = self._engine.start_conversation()
        session = Session(
            conversation_id=conversation_id,
            context=start.context,
            state=start.state,
            history=[{"content": m, "sender_role": "bot"} for m in start.messages],
            created_at=now,
            last_activity=now,
        )
        logger.info("New session created", conversation_id=conversation_id)
        return session

    def _get_or_create_unlocked(self, conversation_id: str) -> Session:
        """
        1. Cache hit (not expired) -> cached session.
        2. Expired -> save and evict, continue.
        3. Snapshot -> restored session.
        4. Otherwise -> new session.
        """
        now = self._clock()

        session = self._sessions.get(conversation_id)
        if session is not None:
            if now - session.last_activity < self._ttl:
                session.last_activity = now
                return session
            self._persist(session)
            del self._sessions[conversation_id]

        session = self._restore(conversation_id, now) or self._new_session(conversation_id, now)
        self._sessions[conversation_id] = session
        return session

    def get_or_create(self, conversation_id: str) -> Session:
        with self._lock.lock(conversation_id):
            return self._get_or_create_unlocked(conversation_id)

    def get(self, conversation_id: str) -> Session:
        """
        Cached or persisted session.

        Raises:
            SessionNotFoundError: nothing in cache or storage
        """
        with self._lock.lock(conversation_id):
            session = self._sessions.get(conversation_id)
            if session is not None:
                return session
            session = self._restore(conversation_id, self._clock())
            if session is None:
                raise SessionNotFoundError(conversation_id)
            self._sessions[conversation_id] = session
            return session

    # =========================================================================
    # Turns
    # =========================================================================

    def handle_message(self, conversation_id: str, text: str) -> TurnResult:
        """Run one turn under the conversation lock and persist the result."""
        with self._lock.lock(conversation_id):
            session = self._get_or_create_unlocked(conversation_id)
            result = self._engine.process_message(
                text,
                session.context,
                session.state,
                history=session.history,
                conversation_id=conversation_id,
            )
            session.context = result.context
            session.state = result.state
            session.history.append({"content": text, "sender_role": "user"})
            session.history.append({"content": result.message, "sender_role": "bot"})
            session.last_activity = self._clock()
            self._persist(session)
            return result

    # =========================================================================
    # Persistence and eviction
    # =========================================================================

    def _persist(self, session: Session) -> None:
        if self._save_snapshot is None:
            return
        self._save_snapshot(session.conversation_id, session.to_snapshot())
        logger.debug("Snapshot saved", conversation_id=session.conversation_id)

    def save(self, conversation_id: str) -> bool:
        session = self._sessions.get(conversation_id)
        if session is None:
            return False
        self._persist(session)
        return True

    def close_session(self, conversation_id: str) -> bool:
        """Persist and evict one session. False when it was not cached."""
        with self._lock.lock(conversation_id):
            session = self._sessions.pop(conversation_id, None)
            if session is None:
                return False
            self._persist(session)
            logger.info("Session closed", conversation_id=conversation_id)
            return True

    def cleanup_expired(self) -> int:
        """Persist and evict idle sessions. Returns how many were removed."""
        now = self._clock()
        expired = [
            cid for cid, session in self._sessions.items()
            if now - session.last_activity >= self._ttl
        ]
        for cid in expired:
            self._persist(self._sessions.pop(cid))

        if expired:
            logger.info("Cleaned up expired sessions", count=len(expired))
        return len(expired)
