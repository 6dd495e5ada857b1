"""Per-session storage of the client draft under edit."""

import logging
import secrets
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, MutableMapping, Optional

from client_registry.schemas.client import ClientDraft

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "session_id"

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_SESSIONS = 1000


@dataclass
class _DraftSlot:
    draft: ClientDraft
    expires_at: float


class EditSessionStore:
    """Single-slot draft holder keyed by session id.

    Each session holds at most one draft. Drafts are copied on the way in and
    out, so a caller mutating its own instance never changes the stored slot.

    A slot expires ``ttl_seconds`` after its last ``begin``; expired slots are
    dropped on access. When ``max_sessions`` slots are live, starting another
    evicts the one closest to expiry.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._slots: Dict[str, _DraftSlot] = {}
        self._lock = threading.Lock()

    def begin(self, session_id: str, draft: ClientDraft) -> None:
        """Start an edit flow, replacing any draft already held for the session."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            replaced = self._slots.pop(session_id, None) is not None
            while len(self._slots) >= self.max_sessions:
                oldest = min(self._slots, key=lambda sid: self._slots[sid].expires_at)
                del self._slots[oldest]
                logger.warning(f"Draft store full, evicted session {oldest[:8]}")
            self._slots[session_id] = _DraftSlot(replace(draft), now + self.ttl_seconds)
        if replaced:
            logger.debug(f"Replaced draft for session {session_id[:8]}")

    def current(self, session_id: str) -> Optional[ClientDraft]:
        with self._lock:
            slot = self._slots.get(session_id)
            if slot is None:
                return None
            if self._clock() >= slot.expires_at:
                del self._slots[session_id]
                logger.debug(f"Draft for session {session_id[:8]} expired")
                return None
            return replace(slot.draft)

    def complete(self, session_id: str) -> None:
        """Drop the session's draft. Safe to call when none is held."""
        with self._lock:
            self._slots.pop(session_id, None)

    def purge_expired(self) -> int:
        """Drop every expired slot and return how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    def _purge_expired(self, now: float) -> int:
        expired = [sid for sid, slot in self._slots.items() if now >= slot.expires_at]
        for sid in expired:
            del self._slots[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._slots)


def ensure_session_id(session: MutableMapping[str, object]) -> str:
    """Return the session's id, minting one on first use."""
    session_id = session.get(SESSION_ID_KEY)
    if not isinstance(session_id, str) or not session_id:
        session_id = secrets.token_urlsafe(24)
        session[SESSION_ID_KEY] = session_id
    return session_id
