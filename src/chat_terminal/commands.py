"""
Command Translator

Turns a line typed by the user into either a local action (quit, clear,
list) or the canonical command text sent to the server.

Input Format:
    [/]<command> [argument text...]

    The leading '/' is optional. Local commands are matched
    case-insensitively; forwarded commands keep their original casing:

        /create_room Lobby   -> "create_room Lobby"
        Say hello there      -> "Say hello there"
        /LIST users          -> local list of users
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Optional marker in front of a command token
COMMAND_PREFIX = "/"

# Mode used by `list` when no argument is given
LIST_ALL = "all"


class LocalAction(Enum):
    """Commands handled by the terminal itself and never transmitted."""

    QUIT = "quit"
    CLEAR = "clear"
    LIST = "list"


_LOCAL_ACTIONS = {action.value: action for action in LocalAction}


@dataclass
class Command:
    """
    One parsed input line.

    Attributes:
        verb: Command token without the prefix, in its original casing
        argument: Rest of the line after the token, or an empty string
        local_action: The local action if the command is not forwarded
    """

    verb: str
    argument: str = ""
    local_action: Optional[LocalAction] = None

    @property
    def is_local(self) -> bool:
        return self.local_action is not None

    @property
    def canonical(self) -> str:
        """Outbound form: the verb, plus a space and the argument if any."""
        if self.argument:
            return f"{self.verb} {self.argument}"
        return self.verb

    @property
    def list_mode(self) -> str:
        """Lower-cased `list` argument, defaulting to 'all'."""
        mode = self.argument.strip().lower()
        return mode or LIST_ALL


def shows_users(mode: str) -> bool:
    return mode == LIST_ALL or mode.startswith("user")


def shows_rooms(mode: str) -> bool:
    return mode == LIST_ALL or mode.startswith("room")


def parse_command(line: str) -> Optional[Command]:
    """
    Parse a raw input line.

    Args:
        line: Text as read from the terminal, newline included or not

    Returns:
        The parsed Command, or None if the line is blank
    """
    line = line.strip()
    if not line:
        return None

    parts = line.split(None, 1)
    verb = parts[0]
    argument = parts[1] if len(parts) > 1 else ""

    if verb.startswith(COMMAND_PREFIX):
        verb = verb[len(COMMAND_PREFIX):]

    return Command(
        verb=verb,
        argument=argument,
        local_action=_LOCAL_ACTIONS.get(verb.lower()),
    )
