"""
Session type → lifecycle service lookup.
"""

from __future__ import annotations

import logging
from typing import Optional

from leapp_sessions.models.session import SessionStatus, SessionType
from leapp_sessions.services.aws_iam_role_chained import AwsIamRoleChainedService
from leapp_sessions.services.aws_iam_user import AwsIamUserService
from leapp_sessions.services.base import SessionService
from leapp_sessions.store import SessionStore
from leapp_sessions.transport.http import DaemonClient

logger = logging.getLogger(__name__)


class SessionServiceRegistry:
    def __init__(self, store: SessionStore):
        self._store = store
        self._services: dict[SessionType, SessionService] = {}

    @classmethod
    def default(cls, store: SessionStore, daemon: DaemonClient) -> "SessionServiceRegistry":
        registry = cls(store)
        registry.register(AwsIamUserService(store, daemon, registry))
        registry.register(AwsIamRoleChainedService(store, daemon))
        return registry

    def register(self, service: SessionService) -> None:
        self._services[service.session_type] = service

    def get_service(self, session_type: SessionType) -> SessionService:
        try:
            return self._services[SessionType(session_type)]
        except (KeyError, ValueError):
            raise KeyError(f"no session service registered for {session_type!r}") from None

    def service_for(self, session_id: str) -> SessionService:
        return self.get_service(self._store.get(session_id).type)

    async def start(self, session_id: str) -> None:
        await self.service_for(session_id).start(session_id)

    async def stop(self, session_id: str) -> None:
        await self.service_for(session_id).stop(session_id)

    async def stop_all(self, only_active: bool = False) -> None:
        """Stop every known session so the client starts from a clean slate."""
        for session in self._store.list():
            if only_active and session.status != SessionStatus.ACTIVE:
                continue
            if self._store.find(session.session_id) is None:
                continue
            try:
                await self.get_service(session.type).stop(session.session_id)
            except Exception as e:
                logger.warning("failed to stop session %s: %s", session.session_id, e)

    @property
    def iam_user(self) -> AwsIamUserService:
        return self.get_service(SessionType.AWS_IAM_USER)  # type: ignore[return-value]

    @property
    def iam_role_chained(self) -> Optional[AwsIamRoleChainedService]:
        service = self._services.get(SessionType.AWS_IAM_ROLE_CHAINED)
        return service  # type: ignore[return-value]
