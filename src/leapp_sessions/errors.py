"""
Leapp session error types.
"""

from typing import Any, Optional


class LeappError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class DaemonCommunicationError(LeappError):
    """Transport failure or non-2xx answer from the daemon."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        super().__init__("daemon_error", message, details)
        self.status_code = status_code


class SessionNotFoundError(LeappError):
    def __init__(self, session_id: str):
        super().__init__("session_not_found", f"session {session_id!r} not found")
        self.session_id = session_id


class MissingMfaTokenError(LeappError):
    def __init__(self, session_id: str, message: str = "Missing Mfa Code"):
        super().__init__("missing_mfa_token", message, {"session_id": session_id})
        self.session_id = session_id


class ParseError(LeappError):
    def __init__(self, message: str):
        super().__init__("parse_error", message)


class UnboundPlaceholderError(LookupError):
    """A URL template placeholder had no value in the call parameters.

    Raised before any I/O. This is a programming error, so it is not a
    LeappError and lifecycle code never absorbs it into a session status.
    """

    def __init__(self, template: str, placeholder: str):
        super().__init__(f"placeholder :{placeholder} unbound in {template!r}")
        self.template = template
        self.placeholder = placeholder
