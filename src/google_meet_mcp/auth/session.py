from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from google_meet_mcp.errors import AuthFlowError

if TYPE_CHECKING:
    import uvicorn
    from google_auth_oauthlib.flow import Flow


class SessionStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AuthorizationSession:
    """
    State of one authorization flow invocation.

    The first outcome recorded with `succeed` or `fail` wins; later ones are
    ignored. Recording and signalling are separate so the callback can finish
    sending its status page before the waiting caller tears the listener down.
    """

    auth_url: str
    port: int
    flow: Flow
    status: SessionStatus = SessionStatus.PENDING
    error: AuthFlowError | None = None
    server: uvicorn.Server | None = None
    exchange_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _done: threading.Event = field(default_factory=threading.Event, repr=False)
    _state_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def resolved(self) -> bool:
        return self.status is not SessionStatus.PENDING

    @property
    def open_connections(self) -> set[Any]:
        """Client connections currently tracked by the bound listener."""
        if self.server is None:
            return set()
        return set(self.server.server_state.connections)

    def succeed(self, *, notify: bool = True) -> bool:
        return self._record(SessionStatus.SUCCEEDED, None, notify)

    def fail(self, error: AuthFlowError, *, notify: bool = True) -> bool:
        return self._record(SessionStatus.FAILED, error, notify)

    def notify(self) -> None:
        """Wake the waiter once an outcome has been recorded."""
        if self.resolved:
            self._done.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until notified; returns False if `timeout` elapsed first."""
        return self._done.wait(timeout)

    def _record(self, status: SessionStatus, error: AuthFlowError | None, notify: bool) -> bool:
        with self._state_lock:
            if self.resolved:
                return False
            self.status = status
            self.error = error
        if notify:
            self._done.set()
        return True
