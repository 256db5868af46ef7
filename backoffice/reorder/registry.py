"""
Registry of open reorder sessions, keyed by session id

Sessions the client abandons without cancelling or closing are evicted once
they have been idle longer than ``ttl`` seconds.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from backoffice.reorder.errors import SessionNotFoundError
from backoffice.reorder.session import ReorderSession

logger = logging.getLogger("flask.app")


class SessionRegistry:
    """Holds the sessions the REST surface can address"""

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, ReorderSession] = {}
        self._last_access: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def open(self, *args, **kwargs) -> ReorderSession:
        """Creates and registers a new ReorderSession"""
        self.evict_idle()
        session = ReorderSession(*args, **kwargs)
        with self._lock:
            self._sessions[session.id] = session
            self._last_access[session.id] = self._clock()
        logger.info("Opened reorder session %s with %d items", session.id, len(session.store))
        return session

    def get(self, session_id: str) -> ReorderSession:
        """Returns a session and marks it as used"""
        self.evict_idle()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_access[session_id] = self._clock()
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> None:
        """Cancels and forgets a session"""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_access.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.cancel()

    def evict_idle(self) -> int:
        """Cancels the sessions idle for longer than ttl; returns how many

        A session with a save in flight is never evicted.
        """
        if not self.ttl or self.ttl <= 0:
            return 0
        cutoff = self._clock() - self.ttl
        stale: List[ReorderSession] = []
        with self._lock:
            for session_id, touched in list(self._last_access.items()):
                session = self._sessions[session_id]
                if touched < cutoff and not session.saving:
                    stale.append(self._sessions.pop(session_id))
                    del self._last_access[session_id]
        for session in stale:
            logger.info("Evicting idle reorder session %s", session.id)
            session.cancel()
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_access.clear()
        for session in sessions:
            session.cancel()
