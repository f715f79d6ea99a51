"""
Chat Terminal Package

This package provides an interactive terminal client for a WebSocket chat
server: a session controller that owns the connection and its concurrent
loops, plus the pieces it is built from.

Modules:
    - session: ChatSession lifecycle controller
    - lifecycle: connection states and the termination signal
    - frame_assembler: reassembly of fragmented inbound messages
    - envelope: tolerant field extraction and message classification
    - registry: users and rooms observed during the session
    - commands: translation of input lines into commands
    - renderer: rich-based terminal output
    - config: environment and command-line settings
"""

from .commands import Command, LocalAction, parse_command
from .config import ClientConfig
from .envelope import ABSENT, Envelope, EnvelopeKind, classify, extract_field
from .frame_assembler import FrameAssembler
from .lifecycle import ConnectionState, SessionOutcome, TerminationSignal
from .registry import SessionRegistry
from .renderer import Renderer
from .session import ChatSession

__all__ = [
    # Session
    "ChatSession",
    "ConnectionState",
    "SessionOutcome",
    "TerminationSignal",
    # Inbound
    "FrameAssembler",
    "Envelope",
    "EnvelopeKind",
    "ABSENT",
    "classify",
    "extract_field",
    "SessionRegistry",
    # Input
    "Command",
    "LocalAction",
    "parse_command",
    # Output and settings
    "Renderer",
    "ClientConfig",
]
