"""
Services module for application-scoped state.

Provides the per-session registry of recommendation feeds.
"""

from services.feed_sessions import FeedSession, FeedSessionManager

__all__ = ["FeedSession", "FeedSessionManager"]
