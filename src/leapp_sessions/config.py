"""
Daemon connection settings.
"""

import os
from typing import Any, Optional

from pydantic import BaseModel

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_API_ROOT = "/api/v1"
DEFAULT_CHAINED_SESSIONS_PATH = "/aws/iam-role-chained-sessions"


class DaemonSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    api_root: str = DEFAULT_API_ROOT
    timeout: float = 30.0
    # None keeps the push channel down after the first disconnect
    reconnect_delay: Optional[float] = None
    rotation_interval: float = 1.0
    # create and edit routes for role-chained sessions; start, stop and delete
    # share the iam-user-sessions routes
    chained_sessions_path: str = DEFAULT_CHAINED_SESSIONS_PATH

    @classmethod
    def from_env(cls, **overrides: Any) -> "DaemonSettings":
        """Build settings from LEAPP_* environment variables; explicit overrides win."""
        values: dict[str, Any] = {}
        if os.environ.get("LEAPP_DAEMON_URL"):
            values["base_url"] = os.environ["LEAPP_DAEMON_URL"]
        if os.environ.get("LEAPP_DAEMON_TIMEOUT"):
            values["timeout"] = float(os.environ["LEAPP_DAEMON_TIMEOUT"])
        if os.environ.get("LEAPP_RECONNECT_DELAY"):
            values["reconnect_delay"] = float(os.environ["LEAPP_RECONNECT_DELAY"])
        if os.environ.get("LEAPP_CHAINED_SESSIONS_PATH"):
            values["chained_sessions_path"] = os.environ["LEAPP_CHAINED_SESSIONS_PATH"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.api_root}"

    @property
    def ws_api_url(self) -> str:
        url = self.api_url
        if url.startswith("https://"):
            return "wss://" + url[len("https://"):]
        if url.startswith("http://"):
            return "ws://" + url[len("http://"):]
        return url
