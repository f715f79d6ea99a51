"""
Connection Lifecycle Primitives

Connection states, the outcome recorded when a session ends, and the
single-fire termination signal that every shutdown path converges on.

State machine:
    CONNECTING -> OPEN -> CLOSING -> CLOSED
    CONNECTING -> ERROR -> CLOSED
    OPEN -> ERROR -> CLOSED
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """State of the connection to the chat server."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    ERROR = "error"
    CLOSED = "closed"


TRANSITIONS: Dict[ConnectionState, FrozenSet[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.OPEN, ConnectionState.ERROR}
    ),
    ConnectionState.OPEN: frozenset(
        {ConnectionState.CLOSING, ConnectionState.ERROR}
    ),
    ConnectionState.CLOSING: frozenset(
        {ConnectionState.CLOSED, ConnectionState.ERROR}
    ),
    ConnectionState.ERROR: frozenset({ConnectionState.CLOSED}),
    ConnectionState.CLOSED: frozenset(),
}


# Origins of a session end
ORIGIN_LOCAL = "local"
ORIGIN_INPUT = "input"
ORIGIN_SHUTDOWN = "shutdown"
ORIGIN_REMOTE = "remote"
ORIGIN_ERROR = "error"


@dataclass(frozen=True)
class SessionOutcome:
    """
    Why a session ended.

    Attributes:
        origin: What triggered the end (local, input, shutdown, remote, error)
        code: WebSocket close code, if a close frame was involved
        reason: Close reason or error description
    """

    origin: str
    code: Optional[int] = None
    reason: str = ""

    def describe(self) -> str:
        if self.code is None:
            if self.reason:
                return f"{self.origin}: {self.reason}"
            return self.origin
        return f"{self.origin}: code={self.code}, reason={self.reason}"


class TerminationSignal:
    """
    Fires at most once per session and wakes everything waiting on it.

    fire() may be called from any thread; once a waiter has bound the
    event loop, calls from other threads set the asyncio event through
    call_soon_threadsafe.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._lock = threading.Lock()
        self._event = asyncio.Event()
        self._outcome: Optional[SessionOutcome] = None

    @property
    def is_set(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[SessionOutcome]:
        return self._outcome

    def fire(self, outcome: SessionOutcome) -> bool:
        """
        Record the outcome and release waiters, unless already fired.

        Args:
            outcome: Why the session is ending

        Returns:
            True if this call fired the signal, False if it was already set
        """
        with self._lock:
            if self._outcome is not None:
                logger.debug(
                    "Termination already signalled, ignoring %s",
                    outcome.origin,
                )
                return False
            self._outcome = outcome

        logger.info("Termination signalled (%s)", outcome.describe())

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self._loop
        if loop is not None and running is not loop and not loop.is_closed():
            loop.call_soon_threadsafe(self._event.set)
        else:
            self._event.set()
        return True

    async def wait(self) -> SessionOutcome:
        """Wait until the signal fires and return the recorded outcome."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        await self._event.wait()
        return self._outcome
