"""
Periodic rotation tick over active sessions.
"""

import asyncio
import logging
from typing import Optional

from leapp_sessions.models.session import SessionStatus
from leapp_sessions.services.registry import SessionServiceRegistry
from leapp_sessions.store import SessionStore

logger = logging.getLogger(__name__)


class RotationService:
    def __init__(self, store: SessionStore, registry: SessionServiceRegistry, interval: float = 1.0):
        self._store = store
        self._registry = registry
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def rotate(self) -> None:
        """Ask each active session's service to rotate. One failure does not stop the others."""
        for session in self._store.list():
            if session.status != SessionStatus.ACTIVE:
                continue
            try:
                await self._registry.get_service(session.type).rotate(session.session_id)
            except Exception as e:
                logger.warning("rotation failed for session %s: %s", session.session_id, e)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.rotate()

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run(), name="session-rotation")
        return self._task  # type: ignore[return-value]

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
