#!/usr/bin/env python3
"""
Chat Terminal Application

Entry point for the interactive chat terminal. Connects to the chat
server given on the command line (or CHAT_SERVER_URL) and runs until the
connection is closed.
"""

import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config import ClientConfig
from .session import ChatSession

logger = logging.getLogger(__name__)


def configure_logging(config: ClientConfig) -> None:
    """Send diagnostics to a log file so they never mix with the terminal."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(config.log_file, mode="a")],
    )


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point for the chat terminal."""
    config = ClientConfig.from_env(argv)
    configure_logging(config)
    logger.info("Starting chat terminal...")

    session = ChatSession(
        config.server_url,
        heartbeat_interval=config.heartbeat_interval,
    )

    try:
        outcome = asyncio.run(session.run())
        logger.info(f"Session ended ({outcome.describe()})")
    except KeyboardInterrupt:
        print("\nExiting...")
    sys.exit(0)


if __name__ == "__main__":
    main()
