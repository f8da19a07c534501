"""
REST client for the local Leapp daemon.

Every call names a path template from DaemonUrls. `:name` placeholders are
bound from the call parameters, which also form the JSON body.
"""

import logging
import re
from enum import Enum
from typing import Any, Optional, Union

import httpx

from leapp_sessions.config import DaemonSettings
from leapp_sessions.errors import DaemonCommunicationError, UnboundPlaceholderError

logger = logging.getLogger(__name__)

HTTP_VERBS = ("GET", "POST", "PUT", "DELETE")
_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


class DaemonUrls(str, Enum):
    CREATE_IAM_USER = "/aws/iam-user-sessions"  # POST
    GET_IAM_USER = "/aws/iam-user-sessions/:id"  # GET
    EDIT_IAM_USER = "/aws/iam-user-sessions/:id"  # PUT
    DELETE_IAM_USER = "/aws/iam-user-sessions/:id"  # DELETE
    START_IAM_USER_SESSION = "/aws/iam-user-sessions/:id/start"  # POST
    STOP_IAM_USER_SESSION = "/aws/iam-user-sessions/:id/stop"  # POST
    IAM_USER_CONFIRM_MFA_CODE = "/aws/iam-user-sessions/:id/confirm-mfa-token"  # POST

    OPEN_WEBSOCKET_CONNECTION = "/websocket/register-client"


def render_path(template: str, params: Optional[dict[str, Any]]) -> str:
    """Substitute every `:name` placeholder of `template` from `params`."""
    params = params or {}

    def _bind(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = params.get(name)
        if value is None or value == "":
            raise UnboundPlaceholderError(template, name)
        return str(value)

    return _PLACEHOLDER.sub(_bind, template)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message", "Error", "Message"):
            if body.get(key):
                return str(body[key])
    text = resp.text.strip()
    return f"HTTP {resp.status_code}: {text[:200]}" if text else f"HTTP {resp.status_code} {resp.reason_phrase}"


class DaemonClient:
    """Stateless, shareable RPC client. No retries at this layer."""

    def __init__(
        self,
        settings: Optional[DaemonSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or DaemonSettings()
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_url,
            headers={"User-Agent": "leapp-sessions/0.1.0", "Accept": "application/json"},
            timeout=self._settings.timeout,
            transport=transport,
        )

    @property
    def settings(self) -> DaemonSettings:
        return self._settings

    def ws_url(self, url: DaemonUrls = DaemonUrls.OPEN_WEBSOCKET_CONNECTION) -> str:
        return f"{self._settings.ws_api_url}{url.value}"

    async def call(self, url: Union[DaemonUrls, str], params: Optional[dict[str, Any]], verb: str) -> Any:
        verb = verb.upper()
        if verb not in HTTP_VERBS:
            raise ValueError(f"unsupported HTTP verb {verb!r}")
        template = url.value if isinstance(url, DaemonUrls) else str(url)
        path = render_path(template, params)
        body = params if verb != "GET" else None

        logger.debug("daemon %s %s", verb, path)
        try:
            resp = await self._client.request(verb, path, json=body)
        except httpx.TimeoutException as e:
            raise DaemonCommunicationError(f"daemon call {verb} {path} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise DaemonCommunicationError(str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise DaemonCommunicationError(_error_message(resp), status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise DaemonCommunicationError(f"daemon returned invalid JSON for {verb} {path}") from e

    async def close(self) -> None:
        await self._client.aclose()
