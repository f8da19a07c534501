"""
In-memory session store: the single source of truth for session status.

The store keeps an immutable tuple of frozen sessions and swaps the whole
tuple on every mutation. None of the methods suspend, so on a single event
loop each mutation is atomic and readers only ever see complete snapshots.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from leapp_sessions.errors import SessionNotFoundError
from leapp_sessions.models.session import AwsIamRoleChainedSession, Session, SessionStatus, SessionType

logger = logging.getLogger(__name__)

StoreListener = Callable[[tuple[Session, ...]], None]


class SessionStore:
    def __init__(self, sessions: Optional[Sequence[Session]] = None):
        self._sessions: tuple[Session, ...] = ()
        self._listeners: list[StoreListener] = []
        for session in sessions or ():
            self.add(session)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Call `listener` with the new snapshot after each mutation. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _commit(self, sessions: tuple[Session, ...]) -> None:
        self._sessions = sessions
        for listener in list(self._listeners):
            try:
                listener(sessions)
            except Exception:
                logger.exception("session store listener failed")

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return self.index_of(session_id) > -1  # type: ignore[arg-type]

    def list(self) -> tuple[Session, ...]:
        return self._sessions

    def index_of(self, session_id: str) -> int:
        for i, session in enumerate(self._sessions):
            if session.session_id == session_id:
                return i
        return -1

    def find(self, session_id: str) -> Optional[Session]:
        index = self.index_of(session_id)
        return self._sessions[index] if index > -1 else None

    def get(self, session_id: str) -> Session:
        session = self.find(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_by_type(self, session_type: SessionType) -> list[Session]:
        return [s for s in self._sessions if s.type == session_type]

    def list_chained(self, parent_session_id: str) -> list[AwsIamRoleChainedSession]:
        return [
            s for s in self._sessions
            if isinstance(s, AwsIamRoleChainedSession) and s.parent_session_id == parent_session_id
        ]

    def add(self, session: Session) -> None:
        if self.index_of(session.session_id) > -1:
            raise ValueError(f"session {session.session_id!r} already in store")
        self._commit(self._sessions + (session,))

    def remove(self, session_id: str) -> None:
        """Drop `session_id`. Unknown ids are ignored; a concurrent cascade may have got there first."""
        remaining = tuple(s for s in self._sessions if s.session_id != session_id)
        if len(remaining) != len(self._sessions):
            self._commit(remaining)

    def replace(self, session_id: str, session: Session) -> None:
        index = self.index_of(session_id)
        if index < 0:
            raise SessionNotFoundError(session_id)
        if session.session_id != session_id and self.index_of(session.session_id) > -1:
            raise ValueError(f"session {session.session_id!r} already in store")
        sessions = list(self._sessions)
        sessions[index] = session
        self._commit(tuple(sessions))

    def update_status(self, session_id: str, status: SessionStatus, **changes: object) -> Session:
        updated = self.get(session_id).model_copy(update={"status": status, **changes})
        self.replace(session_id, updated)
        return updated
