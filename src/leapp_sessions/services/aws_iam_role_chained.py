"""
AWS IAM role-chained sessions: credentials derived from a parent IAM user session.
"""

from __future__ import annotations

import logging
from typing import Optional

from leapp_sessions.errors import DaemonCommunicationError, LeappError, SessionNotFoundError
from leapp_sessions.models.daemon import IamRoleChainedCreateDto
from leapp_sessions.models.session import (
    AwsIamRoleChainedSession,
    AwsIamRoleChainedSessionRequest,
    Session,
    SessionStatus,
    SessionType,
)
from leapp_sessions.services.base import DaemonSessionService
from leapp_sessions.transport.http import DaemonUrls

logger = logging.getLogger(__name__)


class AwsIamRoleChainedService(DaemonSessionService):
    session_type = SessionType.AWS_IAM_ROLE_CHAINED
    # the daemon starts, stops and deletes chained sessions on the iam user routes
    start_url = DaemonUrls.START_IAM_USER_SESSION
    stop_url = DaemonUrls.STOP_IAM_USER_SESSION
    delete_url = DaemonUrls.DELETE_IAM_USER

    @property
    def collection_path(self) -> str:
        return self._daemon.settings.chained_sessions_path.rstrip("/")

    def has_parent(self, session: AwsIamRoleChainedSession) -> bool:
        parent = self._store.find(session.parent_session_id)
        return parent is not None and parent.type == SessionType.AWS_IAM_USER

    async def create(
        self, request: AwsIamRoleChainedSessionRequest, profile_id: Optional[str] = None,
    ) -> AwsIamRoleChainedSession:
        parent = self._store.get(request.parent_session_id)
        if parent.type != SessionType.AWS_IAM_USER:
            raise SessionNotFoundError(request.parent_session_id)

        dto = IamRoleChainedCreateDto(
            name=request.account_name,
            region=request.region,
            role_arn=request.role_arn,
            parent_session_id=request.parent_session_id,
            role_session_name=request.role_session_name,
            aws_named_profile_name=profile_id,
        )
        try:
            response = await self._daemon.call(self.collection_path, dto.to_params(), "POST")
        except LeappError as e:
            raise DaemonCommunicationError(
                f"Daemon Error: {e.message}", status_code=getattr(e, "status_code", None), details={"cause": e.code},
            ) from e

        session_id = response.get("data") if isinstance(response, dict) else None
        if not session_id or not isinstance(session_id, str):
            raise DaemonCommunicationError(f"daemon returned no session id: {response!r}")

        session = AwsIamRoleChainedSession(
            session_id=session_id,
            session_name=request.account_name,
            region=request.region,
            profile_id=profile_id,
            parent_session_id=request.parent_session_id,
            role_arn=request.role_arn,
            role_session_name=request.role_session_name,
        )
        self._store.add(session)
        logger.info("created chained session %s under %s", session_id, request.parent_session_id)
        return session

    async def update(
        self,
        session_id: str,
        session: Session,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ) -> None:
        # keys belong to the parent iam user session
        if session_id not in self._store or not isinstance(session, AwsIamRoleChainedSession):
            return
        dto = IamRoleChainedCreateDto(
            name=session.session_name,
            region=session.region,
            role_arn=session.role_arn,
            parent_session_id=session.parent_session_id,
            role_session_name=session.role_session_name,
            aws_named_profile_name=session.profile_id,
        )
        try:
            await self._daemon.call(f"{self.collection_path}/:id", {"id": session_id, **dto.to_params()}, "PUT")
            self._store.replace(session_id, session)
        except Exception as e:
            self.session_error(session_id, e)

    async def delete(self, session_id: str) -> None:
        session = self.get(session_id)
        # a broken chain has no remote credentials left to stop
        if (
            session.status == SessionStatus.ACTIVE
            and isinstance(session, AwsIamRoleChainedSession)
            and self.has_parent(session)
        ):
            await self.stop(session_id)
        await self.remote_delete(session_id)
        self._store.remove(session_id)
