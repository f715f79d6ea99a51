"""
Client Configuration

Settings are read from the environment with defaults; the server URL can
be overridden by the single positional command-line argument.

Environment:
    CHAT_SERVER_URL          WebSocket URL of the chat server
    CHAT_HEARTBEAT_INTERVAL  Seconds between liveness pings
    CHAT_LOG_FILE            File that diagnostic logging is written to
    CHAT_LOG_LEVEL           Logging level name (e.g. DEBUG, WARNING)
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "ws://localhost:8080/chat"
DEFAULT_HEARTBEAT_INTERVAL = 20.0
DEFAULT_LOG_FILE = "chat_terminal.log"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class ClientConfig:
    """
    Runtime settings for the chat terminal.

    Attributes:
        server_url: WebSocket URL to connect to
        heartbeat_interval: Seconds between liveness pings
        log_file: Path of the diagnostic log file
        log_level: Logging level name
    """

    server_url: str = DEFAULT_SERVER_URL
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    log_file: str = DEFAULT_LOG_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        argv: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ClientConfig":
        """
        Build the configuration from the environment and command line.

        Args:
            argv: Command-line arguments without the program name
                  (defaults to sys.argv[1:])
            environ: Environment mapping (defaults to os.environ)

        Returns:
            ClientConfig with defaults applied for anything unset
        """
        if environ is None:
            environ = os.environ

        parser = argparse.ArgumentParser(
            prog="chat-terminal",
            description="Interactive terminal client for the chat server",
        )
        parser.add_argument(
            "server_url",
            nargs="?",
            default=environ.get("CHAT_SERVER_URL", DEFAULT_SERVER_URL),
            help="WebSocket URL of the chat server",
        )
        args = parser.parse_args(argv)

        return cls(
            server_url=args.server_url,
            heartbeat_interval=_positive_float(
                environ.get("CHAT_HEARTBEAT_INTERVAL"),
                DEFAULT_HEARTBEAT_INTERVAL,
            ),
            log_file=environ.get("CHAT_LOG_FILE", DEFAULT_LOG_FILE),
            log_level=environ.get("CHAT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )


def _positive_float(raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid number '{raw}', using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Non-positive value '{raw}', using default {default}")
        return default
    return value
