# src/api_client/core/session_manager.py
"""
Thread-safe session management for the synchronous transport.

requests.Session is not guaranteed to be thread-safe, so the transport
hands every thread its own session built by the same factory. Sessions
live as long as the transport; they are never created per request.
"""
import threading
from typing import Callable, List

import requests

from .exceptions import TransportClosedError


class ThreadSafeSessionManager:
    """
    Manages thread-local requests.Session instances.

    Example:
        >>> manager = ThreadSafeSessionManager(session_factory)
        >>> session = manager.get_session()  # Gets thread-local session
        >>> manager.close_all()              # Closes sessions from all threads
    """

    def __init__(self, session_factory: Callable[[], requests.Session]):
        """
        Args:
            session_factory: Callable that creates and configures a new Session
        """
        self._session_factory = session_factory
        self._local = threading.local()

        # Strong references: sessions must outlive the thread that created them
        # until close_all(), otherwise pooled sockets leak without being closed
        self._all_sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self._closed = False

    def get_session(self) -> requests.Session:
        """
        Get thread-local session, creating it lazily if needed.

        Raises:
            TransportClosedError: The manager has been closed
        """
        session = getattr(self._local, 'session', None)
        if session is not None:
            return session

        with self._sessions_lock:
            if self._closed:
                raise TransportClosedError()
            session = self._session_factory()
            self._all_sessions.append(session)

        self._local.session = session
        return session

    def close_all(self) -> None:
        """
        Close sessions from all threads. Safe to call multiple times.
        """
        with self._sessions_lock:
            sessions, self._all_sessions = self._all_sessions, []
            self._closed = True

        for session in sessions:
            session.close()

        self._local = threading.local()

    @property
    def closed(self) -> bool:
        return self._closed

    def get_active_sessions_count(self) -> int:
        """Number of sessions created and not yet closed."""
        with self._sessions_lock:
            return len(self._all_sessions)
