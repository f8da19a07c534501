"""Shared fixtures: a recording stand-in for the daemon RPC client."""

from typing import Any, Optional, Union

import pytest

from leapp_sessions.config import DaemonSettings
from leapp_sessions.models.session import AwsIamRoleChainedSession, AwsIamUserSession, SessionStatus
from leapp_sessions.services.registry import SessionServiceRegistry
from leapp_sessions.store import SessionStore
from leapp_sessions.transport.http import DaemonUrls, render_path


class FakeDaemon:
    """Records every call as (verb, path, params) and answers from canned tables."""

    def __init__(self) -> None:
        self.settings = DaemonSettings(base_url="http://127.0.0.1:1")
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.responses: dict[tuple[str, str], Any] = {}
        self.closed = False

    async def call(self, url: Union[DaemonUrls, str], params: Optional[dict[str, Any]], verb: str) -> Any:
        path = render_path(url.value if isinstance(url, DaemonUrls) else url, params)
        self.calls.append((verb, path, dict(params or {})))
        key = (verb, path)
        if key in self.failures:
            raise self.failures[key]
        return self.responses.get(key, {"data": None})

    def ws_url(self, url: DaemonUrls = DaemonUrls.OPEN_WEBSOCKET_CONNECTION) -> str:
        return f"{self.settings.ws_api_url}{url.value}"

    async def close(self) -> None:
        self.closed = True

    def verbs(self, verb: str) -> list[str]:
        return [path for v, path, _ in self.calls if v == verb]


@pytest.fixture
def daemon() -> FakeDaemon:
    return FakeDaemon()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def registry(store: SessionStore, daemon: FakeDaemon) -> SessionServiceRegistry:
    return SessionServiceRegistry.default(store, daemon)  # type: ignore[arg-type]


def iam_user(session_id: str, status: SessionStatus = SessionStatus.STOPPED, **kwargs: Any) -> AwsIamUserSession:
    values = {"session_name": f"acct-{session_id}", "region": "us-east-1", **kwargs}
    return AwsIamUserSession(session_id=session_id, status=status, **values)


def chained(
    session_id: str, parent_id: str, status: SessionStatus = SessionStatus.STOPPED, **kwargs: Any,
) -> AwsIamRoleChainedSession:
    values = {"session_name": f"role-{session_id}", "region": "us-east-1", "role_arn": "arn:aws:iam::1:role/x", **kwargs}
    return AwsIamRoleChainedSession(session_id=session_id, parent_session_id=parent_id, status=status, **values)
