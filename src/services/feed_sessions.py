"""
In-memory registry of recommendation feeds.

HTTP is stateless, but "load more" continues a feed's page cursor, so each
viewing session (identified by a client-generated ``session_id``) keeps its
own RecommendationFeed here. The manager is owned by the application
(``app.state.feed_sessions``) and lives as long as the app.

In production with several workers this should move to a shared store.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from core.logging import LoggerMixin
from recs.feed import RecommendationFeed
from recs.models import FeedStatus


@dataclass
class FeedSession:
    """A feed plus the bookkeeping needed to expire it."""

    feed: RecommendationFeed
    ttl_seconds: int
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_used_at: datetime = field(default_factory=datetime.utcnow)

    def is_expired(self) -> bool:
        return datetime.utcnow() > self.last_used_at + timedelta(seconds=self.ttl_seconds)

    def touch(self) -> None:
        self.last_used_at = datetime.utcnow()


class FeedSessionManager(LoggerMixin):
    """
    Thread-safe map of ``session_id -> FeedSession`` with idle expiry.

    Usage:
        sessions = FeedSessionManager(feed_factory, ttl_seconds=3600)
        session = await sessions.resolve("tab-42", user_id)   # reset on first use / user change
        await session.feed.load_more()
    """

    def __init__(self, feed_factory: Callable[[], RecommendationFeed], ttl_seconds: int = 3600):
        self._feed_factory = feed_factory
        self._ttl_seconds = ttl_seconds
        self._lock = threading.RLock()
        self._sessions: Dict[str, FeedSession] = {}

    def get(self, session_id: str) -> Optional[FeedSession]:
        """Live session or None if unknown/expired."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[session_id]
                return None
            session.touch()
            return session

    def get_or_create(self, session_id: str) -> Tuple[FeedSession, bool]:
        """
        Return ``(session, created)``. New sessions hold an IDLE feed.

        Creating a session first sweeps every expired one, so ids that are
        never revisited do not accumulate.
        """
        with self._lock:
            session = self.get(session_id)
            if session is not None:
                return session, False
            self.clear_expired()
            session = FeedSession(feed=self._feed_factory(), ttl_seconds=self._ttl_seconds)
            self._sessions[session_id] = session
            return session, True

    async def resolve(self, session_id: str, user_id: Optional[str]) -> FeedSession:
        """
        Session whose feed is driven by ``user_id``.

        A new session, or one built for a different identifier (including a
        switch to or from anonymous), is reset to page 1 first.
        """
        session, created = self.get_or_create(session_id)
        user_id = user_id or None
        feed = session.feed
        if feed.status is FeedStatus.IDLE or feed.user_id != user_id:
            if not created:
                self.logger.info(
                    "Feed identifier changed, resetting",
                    session_id=session_id,
                    previous_user_id=feed.user_id,
                    user_id=user_id,
                )
            await feed.reset(user_id)
        return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear_expired(self) -> int:
        with self._lock:
            expired = [k for k, v in self._sessions.items() if v.is_expired()]
            for key in expired:
                del self._sessions[key]

        if expired:
            self.logger.info("Cleared expired feed sessions", count=len(expired))
        return len(expired)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "sessions": len(self._sessions),
                "loading": sum(1 for s in self._sessions.values() if s.feed.is_loading),
            }
