"""Cancel and pause requests for a running client test, and negotiated server facts."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Iterable

PAUSE_RESUME_CAPABILITY = "pause_resume"


class PauseResult(Enum):
    """Outcome of a pause toggle request."""

    APPLIED = "applied"
    """Pause/resume was applied to the transport and the server."""
    UNSUPPORTED = "unsupported"
    """The server does not support pause/resume."""
    NOT_READY = "not_ready"
    """No test is running, or capabilities have not been negotiated yet."""


class NoActiveTestError(RuntimeError):
    """Raised when a cancel is requested while no test is running."""

    def __init__(self, message: str = "No test is currently running") -> None:
        super().__init__(message)


class _Flag:
    """A boolean request shared between the caller and the control loop."""

    __slots__ = ("value",)

    def __init__(self) -> None:
        self.value = False


class ClientControl:
    """Shared state between a running client test and the code that steers it.

    The user interface calls :meth:`cancel` and :meth:`pause`; the control
    loop reads :meth:`cancel_requested` and :meth:`is_paused` and forwards
    the requests to the server. All methods are safe to call from any thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancel: _Flag | None = None
        self._pause: _Flag | None = None
        self._supports_pause: bool | None = None
        self._server_version: str | None = None

    def reset(self) -> None:
        """Forget pause state and the server version before a new connection.

        A cancel channel from an earlier test is kept until :meth:`begin_test`
        replaces it.
        """
        with self._lock:
            self._supports_pause = None
            self._pause = None
            self._server_version = None

    def set_server_version(self, version: str | None) -> None:
        """Record the server's advertised version; ``None`` clears a stale value."""
        with self._lock:
            self._server_version = version

    def set_capabilities(self, capabilities: Iterable[str] | None) -> bool:
        """Record the server's capabilities and return whether it supports pausing."""
        supports = capabilities is not None and PAUSE_RESUME_CAPABILITY in set(capabilities)
        with self._lock:
            self._supports_pause = supports
        return supports

    def begin_test(self) -> None:
        """Open fresh cancel and pause channels for a test that is starting."""
        with self._lock:
            self._cancel = _Flag()
            self._pause = _Flag()

    def server_version(self) -> str | None:
        """The server's advertised version from the handshake, if received."""
        with self._lock:
            return self._server_version

    def cancel(self) -> None:
        """Ask the running test to cancel; raises NoActiveTestError if none is running."""
        with self._lock:
            if self._cancel is None:
                raise NoActiveTestError()
            self._cancel.value = True

    def pause(self) -> PauseResult:
        """Toggle pause on the running test."""
        with self._lock:
            if self._supports_pause is None:
                return PauseResult.NOT_READY
            if not self._supports_pause:
                return PauseResult.UNSUPPORTED
            if self._pause is None:
                return PauseResult.NOT_READY
            self._pause.value = not self._pause.value
            return PauseResult.APPLIED

    def cancel_requested(self) -> bool:
        """Whether a cancel has been requested for the current test."""
        with self._lock:
            return self._cancel is not None and self._cancel.value

    def is_paused(self) -> bool:
        """Whether the current test has been asked to pause."""
        with self._lock:
            return self._pause is not None and self._pause.value