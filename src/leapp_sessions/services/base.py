"""
Session lifecycle services.

Each session type has one service implementing the same capability set.
Status changes go through the store only, so the store stays the one place
where status can be observed.
"""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from leapp_sessions.errors import SessionNotFoundError
from leapp_sessions.models.session import (
    AwsIamRoleChainedSession,
    CredentialsInfo,
    Session,
    SessionStatus,
    SessionType,
)
from leapp_sessions.store import SessionStore
from leapp_sessions.transport.http import DaemonClient, DaemonUrls

logger = logging.getLogger(__name__)


class SessionService(abc.ABC):
    session_type: SessionType

    def __init__(self, store: SessionStore):
        self._store = store

    @property
    def store(self) -> SessionStore:
        return self._store

    def get(self, session_id: str) -> Session:
        return self._store.get(session_id)

    def list(self) -> list[Session]:
        return self._store.list_by_type(self.session_type)

    def list_chained(self, parent: Session) -> list[AwsIamRoleChainedSession]:
        return self._store.list_chained(parent.session_id)

    def session_loading(self, session_id: str) -> None:
        self._store.update_status(session_id, SessionStatus.LOADING, last_error=None)

    def session_activate(self, session_id: str) -> None:
        self._store.update_status(
            session_id, SessionStatus.ACTIVE, start_datetime=datetime.now(timezone.utc), last_error=None,
        )

    def session_deactivated(self, session_id: str) -> None:
        self._store.update_status(session_id, SessionStatus.STOPPED, start_datetime=None, last_error=None)

    def session_error(self, session_id: str, error: BaseException) -> None:
        """Record `error` on the session. A session removed meanwhile is left alone."""
        logger.warning("session %s failed: %s", session_id, error)
        try:
            self._store.update_status(
                session_id, SessionStatus.ERROR, start_datetime=None, last_error=str(error) or type(error).__name__,
            )
        except SessionNotFoundError:
            logger.debug("session %s gone before its error could be recorded", session_id)

    @abc.abstractmethod
    async def start(self, session_id: str) -> None: ...

    @abc.abstractmethod
    async def stop(self, session_id: str) -> None: ...

    @abc.abstractmethod
    async def create(self, request: Any, profile_id: Optional[str] = None) -> Session: ...

    @abc.abstractmethod
    async def update(
        self,
        session_id: str,
        session: Session,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ) -> None: ...

    @abc.abstractmethod
    async def delete(self, session_id: str) -> Any: ...

    @abc.abstractmethod
    async def rotate(self, session_id: str) -> None: ...

    @abc.abstractmethod
    async def apply_credentials(self, session_id: str, credentials_info: CredentialsInfo) -> None: ...

    @abc.abstractmethod
    async def deapply_credentials(self, session_id: str) -> None: ...

    @abc.abstractmethod
    async def generate_credentials(self, session_id: str) -> Optional[CredentialsInfo]: ...


class DaemonSessionService(SessionService):
    """Start/stop through a daemon endpoint family.

    Failures of existing sessions land in their status; only create and the
    final step of delete raise.
    """

    start_url: DaemonUrls
    stop_url: DaemonUrls
    delete_url: DaemonUrls

    def __init__(self, store: SessionStore, daemon: DaemonClient):
        super().__init__(store)
        self._daemon = daemon

    async def start(self, session_id: str) -> None:
        self.get(session_id)
        try:
            self.session_loading(session_id)
            await self._daemon.call(self.start_url, {"id": session_id}, "POST")
            self.session_activate(session_id)
        except Exception as e:
            self.session_error(session_id, e)

    async def stop(self, session_id: str) -> None:
        try:
            await self._daemon.call(self.stop_url, {"id": session_id}, "POST")
            self.session_deactivated(session_id)
        except Exception as e:
            self.session_error(session_id, e)

    async def remote_delete(self, session_id: str) -> None:
        await self._daemon.call(self.delete_url, {"id": session_id}, "DELETE")

    async def rotate(self, session_id: str) -> None:
        return None

    async def apply_credentials(self, session_id: str, credentials_info: CredentialsInfo) -> None:
        return None

    async def deapply_credentials(self, session_id: str) -> None:
        return None

    async def generate_credentials(self, session_id: str) -> Optional[CredentialsInfo]:
        return None
