"""
leapp-sessions: session lifecycle client for the Leapp daemon.

REST + WebSocket client that starts, stops and tears down cloud credential
sessions held by a local daemon, and answers its MFA challenges.
"""

from leapp_sessions.client import Leapp, AsyncLeapp
from leapp_sessions.config import DaemonSettings
from leapp_sessions.errors import (
    LeappError,
    DaemonCommunicationError,
    SessionNotFoundError,
    MissingMfaTokenError,
    ParseError,
    UnboundPlaceholderError,
)
from leapp_sessions.models.session import (
    Session,
    SessionStatus,
    SessionType,
    AwsIamUserSession,
    AwsIamRoleChainedSession,
    AwsIamUserSessionRequest,
    AwsIamRoleChainedSessionRequest,
)
from leapp_sessions.store import SessionStore

__version__ = "0.1.0"
__all__ = [
    "Leapp",
    "AsyncLeapp",
    "DaemonSettings",
    "LeappError",
    "DaemonCommunicationError",
    "SessionNotFoundError",
    "MissingMfaTokenError",
    "ParseError",
    "UnboundPlaceholderError",
    "Session",
    "SessionStatus",
    "SessionType",
    "AwsIamUserSession",
    "AwsIamRoleChainedSession",
    "AwsIamUserSessionRequest",
    "AwsIamRoleChainedSessionRequest",
    "SessionStore",
]
