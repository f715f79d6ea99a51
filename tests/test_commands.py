"""
Tests for the Command Translator

Checks blank-line handling, prefix stripping, local command detection
and the canonical outbound form.
"""

import pytest

from chat_terminal import Command, LocalAction, parse_command
from chat_terminal.commands import shows_rooms, shows_users


class TestParseCommand:
    """Tests for parse_command()."""

    @pytest.mark.parametrize("line", ["", "   ", "\n", "\t  \r\n"])
    def test_blank_lines_are_ignored(self, line):
        assert parse_command(line) is None

    def test_prefixed_server_command(self):
        command = parse_command("/create_room Lobby")
        assert command.verb == "create_room"
        assert command.argument == "Lobby"
        assert not command.is_local
        assert command.canonical == "create_room Lobby"

    def test_unprefixed_server_command(self):
        command = parse_command("join_room Lobby\n")
        assert command.canonical == "join_room Lobby"

    def test_command_without_argument(self):
        command = parse_command("  /user_info  ")
        assert command.argument == ""
        assert command.canonical == "user_info"

    def test_original_casing_is_kept(self):
        command = parse_command("/Say Hello World")
        assert command.canonical == "Say Hello World"

    def test_inner_whitespace_of_argument_is_kept(self):
        command = parse_command("say   hello   there")
        assert command.argument == "hello   there"
        assert command.canonical == "say hello   there"

    def test_only_one_prefix_is_stripped(self):
        command = parse_command("//dm bob hi")
        assert command.verb == "/dm"
        assert command.canonical == "/dm bob hi"

    @pytest.mark.parametrize(
        "line,action",
        [
            ("quit", LocalAction.QUIT),
            ("/quit", LocalAction.QUIT),
            ("QUIT", LocalAction.QUIT),
            ("/Clear", LocalAction.CLEAR),
            ("clear now", LocalAction.CLEAR),
            ("list", LocalAction.LIST),
            ("/LIST users", LocalAction.LIST),
        ],
    )
    def test_local_commands(self, line, action):
        command = parse_command(line)
        assert command.is_local
        assert command.local_action is action

    @pytest.mark.parametrize("line", ["quitter", "/listing", "clears"])
    def test_local_names_must_match_exactly(self, line):
        assert not parse_command(line).is_local


class TestListMode:
    """Tests for the `list` argument handling."""

    @pytest.mark.parametrize(
        "line,mode",
        [
            ("list", "all"),
            ("list users", "users"),
            ("/list ROOMS", "rooms"),
            ("list   user ", "user"),
        ],
    )
    def test_list_mode(self, line, mode):
        assert parse_command(line).list_mode == mode

    @pytest.mark.parametrize(
        "mode,users,rooms",
        [
            ("all", True, True),
            ("users", True, False),
            ("user", True, False),
            ("rooms", False, True),
            ("roomz", False, True),
            ("friends", False, False),
        ],
    )
    def test_sections_shown(self, mode, users, rooms):
        assert shows_users(mode) is users
        assert shows_rooms(mode) is rooms


def test_canonical_form():
    assert Command("say", "hi").canonical == "say hi"
    assert Command("say").canonical == "say"
