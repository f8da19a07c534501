"""
AWS IAM user sessions: long-lived access keys held by the daemon.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

from leapp_sessions.errors import DaemonCommunicationError, LeappError
from leapp_sessions.models.daemon import IamUserCreateDto, IamUserEditDto
from leapp_sessions.models.session import (
    AwsIamUserSession,
    AwsIamUserSessionRequest,
    Session,
    SessionStatus,
    SessionType,
)
from leapp_sessions.services.base import DaemonSessionService
from leapp_sessions.store import SessionStore
from leapp_sessions.transport.http import DaemonClient, DaemonUrls

if TYPE_CHECKING:
    from leapp_sessions.services.registry import SessionServiceRegistry

logger = logging.getLogger(__name__)


class CascadeFailure(BaseModel):
    session_id: str
    step: str  # "stop" | "delete"
    error: str


class CascadeReport(BaseModel):
    """Outcome of deleting a session together with its chained sessions."""
    session_id: str
    deleted: list[str] = Field(default_factory=list)
    failures: list[CascadeFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class AwsIamUserService(DaemonSessionService):
    session_type = SessionType.AWS_IAM_USER
    start_url = DaemonUrls.START_IAM_USER_SESSION
    stop_url = DaemonUrls.STOP_IAM_USER_SESSION
    delete_url = DaemonUrls.DELETE_IAM_USER

    def __init__(
        self,
        store: SessionStore,
        daemon: DaemonClient,
        registry: SessionServiceRegistry,
    ):
        super().__init__(store, daemon)
        self._registry = registry

    async def create(self, request: AwsIamUserSessionRequest, profile_id: Optional[str] = None) -> AwsIamUserSession:
        dto = IamUserCreateDto(
            name=request.account_name,
            region=request.region,
            mfa_device=request.mfa_device,
            aws_named_profile_name=profile_id,
            aws_access_key_id=request.access_key,
            aws_secret_access_key=request.secret_key,
        )
        try:
            response = await self._daemon.call(DaemonUrls.CREATE_IAM_USER, dto.to_params(), "POST")
        except LeappError as e:
            raise DaemonCommunicationError(
                f"Daemon Error: {e.message}", status_code=getattr(e, "status_code", None), details={"cause": e.code},
            ) from e

        session_id = response.get("data") if isinstance(response, dict) else None
        if not session_id or not isinstance(session_id, str):
            raise DaemonCommunicationError(f"daemon returned no session id: {response!r}")

        session = AwsIamUserSession(
            session_id=session_id,
            session_name=request.account_name,
            region=request.region,
            profile_id=profile_id,
            mfa_device=request.mfa_device,
        )
        self._store.add(session)
        logger.info("created iam user session %s (%s)", session_id, request.account_name)
        return session

    async def update(
        self,
        session_id: str,
        session: Session,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ) -> None:
        if session_id not in self._store:
            return

        dto = IamUserEditDto(
            id=session_id,
            name=session.session_name,
            region=session.region,
            mfa_device=getattr(session, "mfa_device", None),
            aws_named_profile_name=session.profile_id,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
        try:
            await self._daemon.call(DaemonUrls.EDIT_IAM_USER, dto.to_params(), "PUT")
            self._store.replace(session_id, session)
        except Exception as e:
            self.session_error(session_id, e)

    async def delete(self, session_id: str) -> CascadeReport:
        """Tear down chained sessions first, then the session itself.

        Stops and chained deletes are best-effort and reported in the returned
        CascadeReport. The final delete of `session_id` raises
        DaemonCommunicationError on failure and the session stays in the store.
        """
        report = CascadeReport(session_id=session_id)
        session = self.get(session_id)

        if session.status == SessionStatus.ACTIVE:
            await self._best_effort_stop(self, session_id, report)

        for chained in self.list_chained(session):
            current = self._store.find(chained.session_id)
            if current is None:
                continue
            try:
                service = self._service_for(current)
                if current.status == SessionStatus.ACTIVE:
                    await self._best_effort_stop(service, chained.session_id, report)
                await service.remote_delete(chained.session_id)
                report.deleted.append(chained.session_id)
            except Exception as e:
                logger.warning("failed to delete chained session %s: %s", chained.session_id, e)
                report.failures.append(CascadeFailure(session_id=chained.session_id, step="delete", error=str(e)))
            self._store.remove(chained.session_id)

        await self.remote_delete(session_id)
        self._store.remove(session_id)
        report.deleted.append(session_id)

        if report.failures:
            logger.warning(
                "deleted session %s with %d cascade failure(s): %s",
                session_id, len(report.failures), ", ".join(f.session_id for f in report.failures),
            )
        return report

    def _service_for(self, session: Session) -> DaemonSessionService:
        return self._registry.get_service(session.type)  # type: ignore[return-value]

    async def _best_effort_stop(self, service: DaemonSessionService, session_id: str, report: CascadeReport) -> None:
        # stop() records failures in the session status instead of raising
        try:
            await service.stop(session_id)
        except Exception as e:
            report.failures.append(CascadeFailure(session_id=session_id, step="stop", error=str(e)))
            return
        current = self._store.find(session_id)
        if current is not None and current.status == SessionStatus.ERROR:
            report.failures.append(
                CascadeFailure(session_id=session_id, step="stop", error=current.last_error or "stop failed")
            )
