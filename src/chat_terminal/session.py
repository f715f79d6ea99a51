"""
Chat Session Controller

This module owns the WebSocket connection to the chat server and runs the
three concurrent activities of a terminal session:

    - Inbound loop: receives message fragments, reassembles them, and
      renders each complete payload in arrival order
    - Input loop: a daemon thread reading one line at a time from the
      terminal and dispatching commands onto the event loop
    - Heartbeat: pings the server on a fixed interval; failures are
      logged and otherwise ignored

Every way a session can end (local quit, end of input, process signal,
remote close, transport error) fires one TerminationSignal. run() waits
for it, stops the heartbeat and reports the end of the session. The input
thread is never joined; if it is still blocked reading it is abandoned at
process exit.

Usage:
    session = ChatSession("ws://localhost:8080/chat")
    outcome = await session.run()
"""

import asyncio
import logging
import signal
import sys
import threading
from concurrent.futures import CancelledError
from typing import Any, Awaitable, Callable, Optional, TextIO

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode

from .commands import LocalAction, parse_command
from .config import DEFAULT_HEARTBEAT_INTERVAL
from .envelope import Envelope
from .frame_assembler import FrameAssembler
from .lifecycle import (
    ORIGIN_ERROR,
    ORIGIN_INPUT,
    ORIGIN_LOCAL,
    ORIGIN_REMOTE,
    ORIGIN_SHUTDOWN,
    TRANSITIONS,
    ConnectionState,
    SessionOutcome,
    TerminationSignal,
)
from .registry import SessionRegistry
from .renderer import PRODUCT_NAME, Renderer

logger = logging.getLogger(__name__)

# Close reasons sent to the server
QUIT_REASON = "bye"
SHUTDOWN_REASON = "shutdown"

# Payload of the liveness ping
HEARTBEAT_PAYLOAD = b"\x01"


def _open_websocket(url: str) -> Awaitable[Any]:
    # The heartbeat task replaces the library's own keepalive pings
    return connect(url, ping_interval=None)


class ChatSession:
    """
    Lifecycle controller for one connection to the chat server.

    Attributes:
        server_url: WebSocket URL of the chat server
        renderer: Renderer all output goes through
        registry: Users and rooms observed during this session
        websocket: Active connection (None until connected)
        state: Current ConnectionState
        heartbeat_interval: Seconds between liveness pings
    """

    def __init__(
        self,
        server_url: str,
        renderer: Optional[Renderer] = None,
        registry: Optional[SessionRegistry] = None,
        websocket_factory: Optional[Callable[[str], Awaitable[Any]]] = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        input_stream: Optional[TextIO] = None,
        handle_signals: bool = True,
    ):
        """
        Initialize the session.

        Args:
            server_url: WebSocket URL of the chat server
            renderer: Renderer to write output with (defaults to stdout)
            registry: Session registry to record users and rooms in
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
            heartbeat_interval: Seconds between liveness pings
            input_stream: Where commands are read from (defaults to stdin)
            handle_signals: Install SIGINT/SIGTERM handlers while running
        """
        self.server_url = server_url
        self.renderer = renderer or Renderer()
        self.registry = registry or SessionRegistry()
        self.websocket: Optional[Any] = None
        self.state = ConnectionState.CONNECTING
        self.heartbeat_interval = heartbeat_interval

        self._websocket_factory = websocket_factory or _open_websocket
        self._input_stream = input_stream
        self._handle_signals = handle_signals
        self._assembler = FrameAssembler()
        self._termination = TerminationSignal()
        self._closing_origin: Optional[str] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._receiver_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._shutdown_task: Optional[asyncio.Task] = None
        self._input_thread: Optional[threading.Thread] = None

        logger.info(f"ChatSession initialized for server: {server_url}")

    @property
    def termination(self) -> TerminationSignal:
        return self._termination

    @property
    def is_connected(self) -> bool:
        """Check if the connection is open for sending."""
        return (
            self.state is ConnectionState.OPEN and self.websocket is not None
        )

    def _transition(self, new_state: ConnectionState) -> bool:
        if new_state not in TRANSITIONS[self.state]:
            logger.warning(
                "Ignoring illegal transition %s -> %s",
                self.state.value,
                new_state.value,
            )
            return False
        logger.info(
            "Connection state %s -> %s", self.state.value, new_state.value
        )
        self.state = new_state
        return True

    def _render_link_up(self) -> None:
        self.renderer.status("LINK UP", f"CONNECTED TO {self.server_url}")
        self.renderer.help_hint()

    async def connect(self) -> None:
        """
        Open the WebSocket connection to the chat server.

        Raises:
            ConnectionError: If the handshake fails
        """
        try:
            logger.info(f"Connecting to {self.server_url}...")
            self.websocket = await self._websocket_factory(self.server_url)
        except Exception as e:
            logger.error(f"Failed to connect to server: {e}")
            raise ConnectionError(f"Could not connect to {self.server_url}: {e}")

        self._transition(ConnectionState.OPEN)
        self._render_link_up()

    def handle_payload(self, payload: str) -> Envelope:
        """
        Classify a complete payload, record what it mentions, and render it.

        Args:
            payload: Complete inbound message text

        Returns:
            The envelope that was rendered
        """
        envelope = Envelope.from_payload(payload)
        self.registry.observe(envelope)
        self.renderer.incoming(envelope)
        return envelope

    async def receive_messages(self) -> None:
        """
        Receive messages until the connection closes or fails.

        Fragments of each message go through the FrameAssembler; the
        assembled payload is rendered before the next message is read.
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to a chat server")

        logger.info("Starting message receive loop")

        try:
            while True:
                async for fragment in self.websocket.recv_streaming():
                    self._assembler.feed(fragment)
                payload = self._assembler.feed("", final=True)
                try:
                    self.handle_payload(payload)
                except Exception:
                    logger.exception("Failed to render inbound payload")
        except ConnectionClosed as e:
            self._assembler.reset()
            self._handle_closed(e)
        except asyncio.CancelledError:
            logger.info("Message receive loop cancelled")
            raise
        except Exception as e:
            self._handle_transport_error(e)

    def _handle_closed(self, closed: ConnectionClosed) -> None:
        # No close frame from the server and no close of our own in
        # progress means the connection was lost
        if closed.rcvd is None and self.state is not ConnectionState.CLOSING:
            self._handle_transport_error(closed)
            return

        if self.state is ConnectionState.OPEN:
            self._transition(ConnectionState.CLOSING)
        self._transition(ConnectionState.CLOSED)

        frame = closed.rcvd if closed.rcvd is not None else closed.sent
        if frame is not None:
            code, reason = int(frame.code), frame.reason
        else:
            code, reason = int(CloseCode.ABNORMAL_CLOSURE), ""

        logger.warning("Connection closed (code=%s, reason=%s)", code, reason)
        self.renderer.status(
            "LINK DOWN", f"DISCONNECTED (code={code}, reason={reason})"
        )
        self._termination.fire(
            SessionOutcome(self._closing_origin or ORIGIN_REMOTE, code, reason)
        )

    def _handle_transport_error(self, error: Exception) -> None:
        logger.error(f"Connection error: {error}")
        self._transition(ConnectionState.ERROR)
        self.renderer.error(f"CONNECTION ERROR: {error}")
        self._termination.fire(SessionOutcome(ORIGIN_ERROR, reason=str(error)))

    async def send_command(self, text: str) -> bool:
        """
        Send one command to the server and echo it.

        Fire-and-forget: failures are rendered, never retried, and do not
        end the session.

        Args:
            text: Canonical command text

        Returns:
            True if the transport accepted the frame
        """
        try:
            if not self.is_connected:
                raise ConnectionError("Not connected to a chat server")
            await self.websocket.send(text)
        except (OSError, ConnectionClosed) as e:
            logger.warning(f"Send failed for '{text}': {e}")
            self.renderer.error(f"SEND FAILED: {e}")
            return False

        logger.debug(f"Sent command: {text}")
        self.renderer.outgoing(text)
        return True

    async def handle_line(self, line: str) -> bool:
        """
        Dispatch one line of user input.

        Args:
            line: Raw input line

        Returns:
            False once the input loop should stop, True otherwise
        """
        command = parse_command(line)
        if command is None:
            return True

        if command.local_action is LocalAction.QUIT:
            await self.close(ORIGIN_LOCAL, QUIT_REASON)
            return False

        if command.local_action is LocalAction.CLEAR:
            self.renderer.clear()
            self.renderer.boot_screen(self.server_url)
            self._render_link_up()
            return True

        if command.local_action is LocalAction.LIST:
            self.renderer.local_list(command.list_mode, self.registry)
            return True

        await self.send_command(command.canonical)
        return True

    async def close(self, origin: str, reason: str = "") -> None:
        """
        Close the connection with a normal-closure frame.

        Waits for the inbound loop to observe the closure so the server's
        close code is rendered, then fires the termination signal if the
        inbound loop has not already done so.

        Args:
            origin: What requested the close (local, input or shutdown)
            reason: Close reason sent to the server
        """
        if self.state is not ConnectionState.OPEN:
            logger.debug(f"Close requested in state {self.state.value}")
            return

        self._closing_origin = origin
        self._transition(ConnectionState.CLOSING)

        try:
            await self.websocket.close(CloseCode.NORMAL_CLOSURE, reason)
        except Exception as e:
            logger.warning(f"Close handshake failed: {e}")

        receiver = self._receiver_task
        if receiver is not None and receiver is not asyncio.current_task():
            await asyncio.wait({receiver})

        self._termination.fire(
            SessionOutcome(origin, int(CloseCode.NORMAL_CLOSURE), reason)
        )

    def request_shutdown(self) -> None:
        """Close the session in response to a process signal."""
        if self._shutdown_task is None:
            logger.info("Shutdown requested")
            self._shutdown_task = asyncio.ensure_future(
                self.close(ORIGIN_SHUTDOWN, SHUTDOWN_REASON)
            )

    async def heartbeat(self) -> None:
        """
        Ping the server every heartbeat_interval seconds until termination.

        Pings are scheduled at a fixed rate: a slow ping does not push the
        following ones back. Ping failures are logged at debug level only.
        """
        logger.info("Starting heartbeat task")
        loop = asyncio.get_running_loop()
        next_ping = loop.time() + self.heartbeat_interval

        while not self._termination.is_set:
            try:
                await asyncio.wait_for(
                    self._termination.wait(),
                    timeout=max(0.0, next_ping - loop.time()),
                )
                break
            except asyncio.TimeoutError:
                pass
            next_ping += self.heartbeat_interval

            try:
                if not self.is_connected:
                    raise ConnectionError("Not connected to a chat server")
                await self.websocket.ping(HEARTBEAT_PAYLOAD)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"Heartbeat failed: {e}")

    def _read_input(self) -> None:
        stream = self._input_stream or sys.stdin
        logger.info("Starting input loop")

        while not self._termination.is_set:
            try:
                line = stream.readline()
            except (OSError, ValueError) as e:
                logger.error(f"Failed to read input: {e}")
                line = ""

            if self._termination.is_set:
                return

            if not line:
                logger.info("End of input")
                self._submit(self.close(ORIGIN_INPUT))
                return

            if not self._submit(self.handle_line(line)):
                return

    def _submit(self, coro: Awaitable[Any]) -> bool:
        # Runs a coroutine on the event loop and blocks until it finishes
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError as e:
            logger.debug(f"Event loop unavailable: {e}")
            coro.close()
            return False

        try:
            result = future.result()
        except CancelledError:
            return False
        except Exception:
            logger.exception("Input command failed")
            return True
        return result is not False

    def _start_input_thread(self) -> None:
        self._input_thread = threading.Thread(
            target=self._read_input, name="stdin-thread", daemon=True
        )
        self._input_thread.start()

    def _install_signal_handlers(self) -> None:
        if not self._handle_signals:
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug(f"Cannot handle signal {sig}: {e}")

    def _remove_signal_handlers(self) -> None:
        if not self._handle_signals:
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                pass

    async def _stop_task(self, task: Optional[asyncio.Task]) -> None:
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run(self) -> SessionOutcome:
        """
        Run the session until it terminates.

        Returns:
            SessionOutcome describing why the session ended
        """
        self._loop = asyncio.get_running_loop()
        self.renderer.boot_screen(self.server_url)

        try:
            await self.connect()
        except ConnectionError as e:
            self._transition(ConnectionState.ERROR)
            self.renderer.error(f"CONNECTION ERROR: {e}")
            self._termination.fire(SessionOutcome(ORIGIN_ERROR, reason=str(e)))
        else:
            self._receiver_task = asyncio.create_task(self.receive_messages())
            self._heartbeat_task = asyncio.create_task(self.heartbeat())
            self._install_signal_handlers()
            self._start_input_thread()

        outcome = await self._termination.wait()

        await self._stop_task(self._heartbeat_task)
        self._remove_signal_handlers()
        await self._stop_task(self._receiver_task)
        await self._stop_task(self._shutdown_task)

        if self.state is not ConnectionState.CLOSED:
            self._transition(ConnectionState.CLOSED)

        self.renderer.status(
            "SESSION END",
            f"{PRODUCT_NAME} SHUTDOWN COMPLETE ({outcome.describe()})",
        )
        return outcome
