"""
MFA correlation: turns a daemon `mfaTokenRequest` into one user prompt.

At most one prompt is outstanding process-wide. A request arriving while
the gate is held is dropped, not queued; the daemon asks again when its
pending call still needs a token.

Resolution:
1. look up the session label from the daemon (authoritative for the name)
2. prompt the user with that label
3. any code, even an empty one -> POST confirm-mfa-token; a None answer
   (cancel) or a failed confirm -> stop the session and raise
   MissingMfaTokenError
4. release the gate, whatever happened
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from leapp_sessions.errors import MissingMfaTokenError
from leapp_sessions.models.daemon import MfaTokenRequest
from leapp_sessions.transport.http import DaemonClient, DaemonUrls

logger = logging.getLogger(__name__)

MfaPrompt = Callable[[str], Awaitable[Optional[str]]]
StopSession = Callable[[str], Awaitable[None]]
ErrorHook = Callable[[BaseException], None]


def _session_label(response: Any, fallback: str) -> str:
    data = response.get("data") if isinstance(response, dict) else None
    if isinstance(data, dict):
        for key in ("Name", "name", "sessionName"):
            if data.get(key):
                return str(data[key])
    return fallback


class MfaCoordinator:
    def __init__(
        self,
        daemon: DaemonClient,
        stop_session: StopSession,
        prompt: MfaPrompt,
        on_error: Optional[ErrorHook] = None,
    ):
        self._daemon = daemon
        self._stop_session = stop_session
        self._prompt = prompt
        self._on_error = on_error
        # single writer: only submit() sets it, only _resolve() clears it
        self._busy = False
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._busy

    def submit(self, request: MfaTokenRequest) -> bool:
        """Take the gate and resolve `request` in the background. False when dropped."""
        if self._busy:
            logger.info("MFA prompt already open, dropping request for session %s", request.session_id)
            return False
        self._busy = True
        self._task = asyncio.get_running_loop().create_task(
            self._resolve(request), name=f"mfa-{request.session_id}",
        )
        self._task.add_done_callback(self._on_done)
        return True

    async def wait_idle(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _resolve(self, request: MfaTokenRequest) -> None:
        session_id = request.session_id
        try:
            try:
                response = await self._daemon.call(DaemonUrls.GET_IAM_USER, {"id": session_id}, "GET")
            except Exception:
                await self._stop_session(session_id)
                raise

            label = _session_label(response, session_id)
            try:
                code = await self._prompt(label)
                if code is None:
                    raise MissingMfaTokenError(session_id)
                await self._daemon.call(
                    DaemonUrls.IAM_USER_CONFIRM_MFA_CODE, {"id": session_id, "mfaToken": code}, "POST",
                )
            except Exception as err:
                await self._stop_session(session_id)
                if isinstance(err, MissingMfaTokenError):
                    raise
                raise MissingMfaTokenError(session_id, str(err)) from err
            logger.info("MFA token confirmed for session %s", session_id)
        finally:
            self._busy = False

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.warning("MFA request failed: %s: %s", type(exc).__name__, exc)
        if self._on_error is not None:
            self._on_error(exc)
