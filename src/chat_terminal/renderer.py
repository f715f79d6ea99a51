"""
Terminal Renderer

Writes every user-visible line of the chat terminal using rich. Each line
is prefixed with a wall-clock timestamp and a tag:

    [12:00:01][STATUS][LINK UP] CONNECTED TO ws://localhost:8080/chat
    [12:00:05][CHAT][ROOM Lobby][alice] hi
    [12:00:07][TX] say hello

Lines are assembled from Text objects rather than markup strings so that
server payloads containing brackets are printed as-is.
"""

import logging
import platform
from datetime import datetime
from typing import Callable, Iterable, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from .commands import shows_rooms, shows_users
from .envelope import Envelope, EnvelopeKind
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

PRODUCT_NAME = "CHAT TERMINAL"
PRODUCT_VERSION = "1.0.0"

TIME_FORMAT = "%H:%M:%S"

HELP_HINT = (
    "HINT: create_room A | /join_room A | say hello | "
    "/dm user-xxxx hi | set_name Alice | list"
)

# Styles per output tag
STYLE_STATUS = "bold green"
STYLE_CHAT = "cyan"
STYLE_DM = "magenta"
STYLE_SYSTEM = "green"
STYLE_ERROR = "red"
STYLE_TX = "yellow"
STYLE_MUTED = "grey50"


class Renderer:
    """
    Renders status, inbound, outbound and local output.

    Attributes:
        console: rich Console all output is written to
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the renderer.

        Args:
            console: Console to write to (defaults to stdout)
            clock: Source of the timestamps printed on each line
        """
        self.console = console or Console(highlight=False)
        self._clock = clock

    def _now(self) -> str:
        return self._clock().strftime(TIME_FORMAT)

    def _line(self, header: str, style: str, body: str = "") -> None:
        text = Text(f"[{self._now()}]{header}", style=style)
        if body:
            text.append(" ")
            text.append(body)
        self.console.print(text, soft_wrap=True)

    def _rule(self) -> None:
        self.console.print(Rule(style=STYLE_MUTED))

    def boot_screen(self, server_url: str) -> None:
        """Render the banner shown at startup and after `clear`."""
        lines = [
            Text.assemble(
                ("PROFILE ", "cyan"),
                ": CHAT-CLIENT   ",
                ("MODE ", "cyan"),
                ": INTERACTIVE   ",
                ("PYTHON ", "cyan"),
                f": {platform.python_version()}",
            ),
            Text.assemble(("TARGET  ", "cyan"), f": {server_url}"),
            Rule(style="green"),
            Text(
                "SERVER CMDS : create_room, join_room, leave_room, say, dm, "
                "add_friend, ..."
            ),
            Text(
                "            : set_name, user_info, room_info  "
                "(with or without '/')"
            ),
            Text(
                "LOCAL ONLY  : list, clear, quit               "
                "(with or without '/')"
            ),
        ]
        self.console.print(
            Panel(
                Group(*lines),
                title=f"{PRODUCT_NAME}  v{PRODUCT_VERSION}",
                title_align="left",
                border_style="bold green",
            )
        )
        self.console.print()

    def help_hint(self) -> None:
        self.console.print(Text(HELP_HINT, style=STYLE_MUTED))
        self._rule()

    def clear(self) -> None:
        self.console.clear()

    def status(self, tag: str, message: str) -> None:
        """Render a STATUS line followed by a separator rule."""
        self._line(f"[STATUS][{tag}]", STYLE_STATUS, message)
        self._rule()

    def error(self, message: str) -> None:
        self._line("[ERROR]", STYLE_ERROR, message)

    def outgoing(self, command: str) -> None:
        self._line("[TX]", STYLE_TX, command)

    def incoming(self, envelope: Envelope) -> None:
        """
        Render one classified inbound message.

        Args:
            envelope: Envelope produced from a complete payload
        """
        message = envelope.get("message")

        if envelope.kind is EnvelopeKind.CHAT:
            header = "[CHAT]"
            if envelope.has("roomId"):
                header += f"[ROOM {envelope.get('roomId')}]"
            header += f"[{envelope.get('from')}]"
            self._line(header, STYLE_CHAT, message)

        elif envelope.kind is EnvelopeKind.DM:
            header = f"[DM][{envelope.get('from')}→{envelope.get('to')}]"
            self._line(header, STYLE_DM, message)

        elif envelope.kind is EnvelopeKind.SYSTEM:
            header = "[SYSTEM]"
            if envelope.has("subType"):
                header += f"[{envelope.get('subType')}]"
            self._line(header, STYLE_SYSTEM, message)

        elif envelope.kind is EnvelopeKind.ERROR:
            header = "[ERROR]"
            if envelope.has("errorCode"):
                header += f"[CODE {envelope.get('errorCode')}]"
            if envelope.has("command"):
                header += f"[CMD {envelope.get('command')}]"
            self._line(header, STYLE_ERROR, message)

        else:
            self._line("[RAW]", STYLE_MUTED, envelope.raw)

    def _entries(self, title: str, entries: Iterable[str], empty: str):
        entries = list(entries)
        self.console.print(
            Text(
                f"  {title} seen this session ({len(entries)}):",
                style=STYLE_CHAT,
            )
        )
        if not entries:
            self.console.print(Text(f"    ({empty})", style=STYLE_MUTED))
        for entry in entries:
            self.console.print(Text(f"    • {entry}"))

    def local_list(self, mode: str, registry: SessionRegistry) -> None:
        """
        Render the users and/or rooms observed so far.

        Args:
            mode: 'all', or a value starting with 'user' or 'room'
            registry: Registry to read from
        """
        self._line(f"[LOCAL][LIST] mode={mode}", STYLE_MUTED)

        if shows_users(mode):
            self._entries(
                "USERS", registry.users, "none yet, chat a bit first"
            )
        if shows_rooms(mode):
            self._entries(
                "ROOMS",
                registry.rooms,
                "none yet, try create_room / join_room",
            )

        self._rule()

