"""
Push channel to the daemon: ws://localhost:8080/api/v1/websocket/register-client.

The daemon sends unsolicited JSON frames {messageType, data}; `data` is a
JSON string. Frames are best-effort: anything malformed or of an unknown
type is dropped.
"""

import asyncio
import logging
from typing import Callable, Optional

import websockets
from websockets.exceptions import WebSocketException

from leapp_sessions.errors import ParseError
from leapp_sessions.models.daemon import DaemonMessage, DaemonMessageType, MfaTokenRequest

logger = logging.getLogger(__name__)

MfaHandler = Callable[[MfaTokenRequest], object]


class PushChannelListener:
    def __init__(self, url: str, reconnect_delay: Optional[float] = None):
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._mfa_handlers: list[MfaHandler] = []
        self._task: Optional[asyncio.Task] = None
        self._connected = False
        self._stop = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._connected

    def on_mfa_token_request(self, handler: MfaHandler) -> Callable[[], None]:
        """Register an MFA request handler. Returns a cleanup function."""
        self._mfa_handlers.append(handler)

        def remove() -> None:
            try:
                self._mfa_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def dispatch(self, raw: "str | bytes") -> None:
        """Parse one frame and hand it to the handlers of its type."""
        try:
            message = DaemonMessage.parse_frame(raw)
        except ParseError as e:
            logger.debug("dropping malformed frame: %s", e)
            return

        if message.message_type != DaemonMessageType.MFA_TOKEN_REQUEST:
            logger.debug("dropping frame of unknown type %s", message.message_type)
            return
        try:
            request = MfaTokenRequest.from_message(message)
        except ParseError as e:
            logger.debug("dropping malformed mfaTokenRequest: %s", e)
            return

        for handler in list(self._mfa_handlers):
            try:
                handler(request)
            except Exception:
                logger.exception("mfaTokenRequest handler failed")

    async def run_once(self) -> None:
        """Connect and dispatch frames until the daemon closes the channel."""
        async with websockets.connect(self._url) as ws:
            self._connected = True
            logger.info("push channel connected to %s", self._url)
            try:
                async for frame in ws:
                    self.dispatch(frame)
            finally:
                self._connected = False

    async def run(self) -> None:
        while not self._stop:
            try:
                await self.run_once()
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                logger.info("push channel dropped: %s", e)
            else:
                logger.info("push channel closed by daemon")
            if self._reconnect_delay is None or self._stop:
                break
            await asyncio.sleep(self._reconnect_delay)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop = False
            self._task = asyncio.get_running_loop().create_task(self.run(), name="daemon-push-channel")
        return self._task

    async def stop(self) -> None:
        self._stop = True
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._connected = False
