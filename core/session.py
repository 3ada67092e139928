"""
Session Management

In-memory, thread-safe session store for chat conversations.
State is lost on restart; sessions idle for longer than the TTL are swept
by a background thread.
"""

import time
import uuid
import threading
from contextlib import contextmanager
from typing import Dict, List, Optional, Iterator

from models import Session, SessionMetadata
from chat_logger import get_logger
from app_config import SESSION_TTL_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS

logger = get_logger("printo_cs")


def generate_user_id() -> str:
    return f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def generate_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class _SessionLock:
    """Per-session RLock plus the number of threads holding or waiting on it."""

    def __init__(self):
        self.lock = threading.RLock()
        self.holders = 0


class SessionStore:
    """
    Session map guarded by a store-wide lock, plus one lock per session id.

    The store lock protects the dict itself. ``session_lock`` serialises the
    read-modify-write of a single conversation, so two quick "Next" taps on
    the same session cannot both read the same order page. A lock entry
    outlives delete/sweep while any thread still holds or waits on it.
    """

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS,
                 sweep_interval: int = SESSION_SWEEP_INTERVAL_SECONDS):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._session_locks: Dict[str, _SessionLock] = {}
        self.ttl_seconds = ttl_seconds
        self.sweep_interval = sweep_interval
        self._sweep_thread: Optional[threading.Thread] = None
        self._stop_sweep = threading.Event()

    # ─────────────────────────────────────────────
    # BASIC OPERATIONS
    # ─────────────────────────────────────────────

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def set(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        with self._lock:
            self._drop_idle_lock(session_id)
            return self._sessions.pop(session_id, None) is not None

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get_or_create(self, session_id: str, user_id: str, **metadata) -> Session:
        """Return the session, creating it (with *metadata* fields) on first sight."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(
                    session_id=session_id,
                    user_id=user_id,
                    metadata=SessionMetadata(**metadata),
                )
                self._sessions[session_id] = session
                logger.info(f"Session created | session={session_id}")
            return session

    def touch(self, session_id: str, now: Optional[float] = None) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.metadata.last_activity = now if now is not None else time.time()

    def list_for_user(self, user_id: str) -> List[Session]:
        with self._lock:
            return [s for s in self._sessions.values() if s.user_id == user_id]

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        """Hold the per-session lock for the duration of the block."""
        with self._lock:
            entry = self._session_locks.get(session_id)
            if entry is None:
                entry = self._session_locks[session_id] = _SessionLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.holders -= 1
                if session_id not in self._sessions:
                    self._drop_idle_lock(session_id)

    def _drop_idle_lock(self, session_id: str) -> None:
        """Forget the lock entry unless a thread holds or waits on it. Caller holds _lock."""
        entry = self._session_locks.get(session_id)
        if entry is not None and entry.holders == 0:
            del self._session_locks[session_id]

    # ─────────────────────────────────────────────
    # EVICTION
    # ─────────────────────────────────────────────

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop sessions idle for longer than the TTL. Returns how many were removed."""
        cutoff = (now if now is not None else time.time()) - self.ttl_seconds
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if s.metadata.last_activity < cutoff
            ]
            for sid in expired:
                del self._sessions[sid]
                self._drop_idle_lock(sid)
        if expired:
            logger.info(f"Session sweep removed {len(expired)} idle session(s)")
        return len(expired)

    def start_background_sweep(self) -> None:
        """Start a daemon thread that sweeps idle sessions every sweep_interval seconds."""
        if self._sweep_thread and self._sweep_thread.is_alive():
            return
        self._stop_sweep.clear()

        def _sweep_loop():
            while not self._stop_sweep.wait(self.sweep_interval):
                try:
                    self.sweep()
                except Exception as e:
                    logger.error(f"Session sweep failed: {e}", exc_info=True)

        self._sweep_thread = threading.Thread(target=_sweep_loop, daemon=True)
        self._sweep_thread.start()
        logger.info(f"Session sweep scheduled every {self.sweep_interval // 60} min")

    def stop_background_sweep(self) -> None:
        self._stop_sweep.set()
        if self._sweep_thread:
            self._sweep_thread.join(timeout=1)
        self._sweep_thread = None


# Global session store instance
session_store = SessionStore()
