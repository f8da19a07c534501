"""
Leapp / AsyncLeapp: session lifecycle clients for the local daemon.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from leapp_sessions.config import DaemonSettings
from leapp_sessions.errors import LeappError
from leapp_sessions.mfa import ErrorHook, MfaCoordinator, MfaPrompt
from leapp_sessions.models.daemon import MfaTokenRequest
from leapp_sessions.models.session import (
    AwsIamRoleChainedSession,
    AwsIamRoleChainedSessionRequest,
    AwsIamUserSession,
    AwsIamUserSessionRequest,
    Session,
)
from leapp_sessions.services.aws_iam_user import CascadeReport
from leapp_sessions.services.registry import SessionServiceRegistry
from leapp_sessions.services.rotation import RotationService
from leapp_sessions.store import SessionStore
from leapp_sessions.transport.http import DaemonClient, DaemonUrls
from leapp_sessions.transport.websocket import PushChannelListener

logger = logging.getLogger(__name__)


async def _no_prompt(label: str) -> Optional[str]:
    logger.warning("no MFA prompt configured, cancelling MFA request for %s", label)
    return None


class AsyncLeapp:
    """Async client (primary)."""

    def __init__(
        self,
        settings: Optional[DaemonSettings] = None,
        mfa_prompt: Optional[MfaPrompt] = None,
        on_mfa_error: Optional[ErrorHook] = None,
        daemon: Optional[DaemonClient] = None,
        store: Optional[SessionStore] = None,
    ):
        self.settings = settings or DaemonSettings.from_env()
        self.daemon = daemon or DaemonClient(self.settings)
        self.store = store if store is not None else SessionStore()
        self.services = SessionServiceRegistry.default(self.store, self.daemon)
        self.rotation = RotationService(self.store, self.services, self.settings.rotation_interval)
        self.mfa = MfaCoordinator(
            self.daemon,
            stop_session=self.services.iam_user.stop,
            prompt=mfa_prompt or _no_prompt,
            on_error=on_mfa_error,
        )
        self._push: Optional[PushChannelListener] = None
        self._remove_mfa_handler: Optional[Any] = None

    @property
    def connected(self) -> bool:
        return self._push is not None and self._push.connected

    async def connect(self, rotate: bool = False) -> None:
        """Stop every known session, then open the push channel."""
        await self.services.stop_all()
        self._push = PushChannelListener(self.daemon.ws_url(), reconnect_delay=self.settings.reconnect_delay)
        self._remove_mfa_handler = self._push.on_mfa_token_request(self._on_mfa_token_request)
        self._push.start()
        if rotate:
            self.rotation.start()

    async def disconnect(self) -> None:
        await self.rotation.stop()
        if self._push:
            if self._remove_mfa_handler:
                self._remove_mfa_handler()
                self._remove_mfa_handler = None
            await self._push.stop()
            self._push = None
        await self.mfa.wait_idle()
        await self.daemon.close()

    def _on_mfa_token_request(self, request: MfaTokenRequest) -> None:
        self.mfa.submit(request)

    def list(self) -> tuple[Session, ...]:
        return self.store.list()

    def get(self, session_id: str) -> Session:
        return self.store.get(session_id)

    async def fetch(self, session_id: str) -> dict[str, Any]:
        """Read an IAM user session as the daemon sees it."""
        response = await self.daemon.call(DaemonUrls.GET_IAM_USER, {"id": session_id}, "GET")
        return response.get("data", {}) if isinstance(response, dict) else {}

    async def create_iam_user(
        self, request: AwsIamUserSessionRequest, profile_id: Optional[str] = None,
    ) -> AwsIamUserSession:
        return await self.services.iam_user.create(request, profile_id)

    async def create_iam_role_chained(
        self, request: AwsIamRoleChainedSessionRequest, profile_id: Optional[str] = None,
    ) -> AwsIamRoleChainedSession:
        service = self.services.iam_role_chained
        if service is None:
            raise LeappError("unsupported", "chained sessions are not registered")
        return await service.create(request, profile_id)

    async def start(self, session_id: str) -> Session:
        await self.services.start(session_id)
        return self.store.get(session_id)

    async def stop(self, session_id: str) -> Optional[Session]:
        await self.services.stop(session_id)
        return self.store.find(session_id)

    async def update(
        self,
        session_id: str,
        session: Session,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ) -> None:
        current = self.store.find(session_id)
        if current is None:
            return
        await self.services.get_service(current.type).update(session_id, session, access_key, secret_key)

    async def delete(self, session_id: str) -> Optional[CascadeReport]:
        return await self.services.service_for(session_id).delete(session_id)


class Leapp:
    """Sync wrapper around AsyncLeapp. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async = AsyncLeapp(**kwargs)

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def store(self) -> SessionStore:
        return self._async.store

    def list(self) -> tuple[Session, ...]:
        return self._async.list()

    def get(self, session_id: str) -> Session:
        return self._async.get(session_id)

    def fetch(self, session_id: str) -> dict[str, Any]:
        return self._run(self._async.fetch(session_id))

    def create_iam_user(self, request: AwsIamUserSessionRequest, profile_id: Optional[str] = None) -> AwsIamUserSession:
        return self._run(self._async.create_iam_user(request, profile_id))

    def create_iam_role_chained(
        self, request: AwsIamRoleChainedSessionRequest, profile_id: Optional[str] = None,
    ) -> AwsIamRoleChainedSession:
        return self._run(self._async.create_iam_role_chained(request, profile_id))

    def start(self, session_id: str) -> Session:
        return self._run(self._async.start(session_id))

    def stop(self, session_id: str) -> Optional[Session]:
        return self._run(self._async.stop(session_id))

    def update(
        self,
        session_id: str,
        session: Session,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ) -> None:
        self._run(self._async.update(session_id, session, access_key, secret_key))

    def delete(self, session_id: str) -> Optional[CascadeReport]:
        return self._run(self._async.delete(session_id))

    def close(self) -> None:
        self._run(self._async.disconnect())
        self._loop.close()
