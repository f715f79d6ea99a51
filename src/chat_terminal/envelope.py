"""
Envelope Reader for Inbound Server Messages

Server messages are JSON-looking objects such as:
    {"type":"chat","from":"alice","roomId":"Lobby","message":"hi"}

The reader does not run a JSON parser. Fields are located positionally so
that truncated or malformed payloads still yield whatever can be found,
and anything missing comes back as ABSENT instead of raising.

Message kinds:
    - chat:   from, roomId, message
    - dm:     from, to, message
    - system: subType, message
    - error:  errorCode, command, message
    - anything else is UNRECOGNIZED and rendered verbatim
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

# Placeholder returned for fields that cannot be extracted
ABSENT = "?"


class EnvelopeKind(Enum):
    """Discriminant of an inbound message."""

    CHAT = "chat"
    DM = "dm"
    SYSTEM = "system"
    ERROR = "error"
    UNRECOGNIZED = "unrecognized"


# Fields extracted for each kind, in display order
KIND_FIELDS: Dict[EnvelopeKind, Tuple[str, ...]] = {
    EnvelopeKind.CHAT: ("from", "roomId", "message"),
    EnvelopeKind.DM: ("from", "to", "message"),
    EnvelopeKind.SYSTEM: ("subType", "message"),
    EnvelopeKind.ERROR: ("errorCode", "command", "message"),
    EnvelopeKind.UNRECOGNIZED: (),
}

# Checked in this order; the first marker present wins
_KIND_MARKERS = [
    (
        kind,
        re.compile(
            r'(?<!\w)"?type"?\s*:\s*"?%s(?!\w)' % kind.value,
            re.IGNORECASE,
        ),
    )
    for kind in (
        EnvelopeKind.CHAT,
        EnvelopeKind.DM,
        EnvelopeKind.SYSTEM,
        EnvelopeKind.ERROR,
    )
]

_LEADING_QUOTE = re.compile(r'^\s*"')
_TRAILING_QUOTE = re.compile(r'"\s*$')


def extract_field(payload: str, name: str) -> str:
    """
    Extract the value of a named field from a loosely structured payload.

    Finds the first occurrence of the quoted field name, the first colon
    after it, and takes everything up to the next comma or closing brace.
    Surrounding quotes, whitespace and stray braces are trimmed.

    Args:
        payload: Raw message text
        name: Field name, matched literally and case-sensitively

    Returns:
        The field value, or ABSENT if it is missing or blank
    """
    key = f'"{name}"'
    key_index = payload.find(key)
    if key_index < 0:
        return ABSENT

    colon = payload.find(":", key_index)
    if colon < 0:
        return ABSENT

    start = colon + 1
    ends = [
        i
        for i in (payload.find(",", start), payload.find("}", start))
        if i >= 0
    ]
    end = min(ends) if ends else len(payload)

    value = payload[start:end].strip()
    value = _LEADING_QUOTE.sub("", value)
    value = _TRAILING_QUOTE.sub("", value)
    value = value.replace("{", "").replace("}", "")

    if not value.strip():
        return ABSENT
    return value


def classify(payload: str) -> EnvelopeKind:
    """Return the kind of a payload by looking for its type marker."""
    for kind, marker in _KIND_MARKERS:
        if marker.search(payload):
            return kind
    return EnvelopeKind.UNRECOGNIZED


@dataclass
class Envelope:
    """
    Classified view over one complete inbound payload.

    Attributes:
        kind: Discriminant of the message
        fields: Extracted values for the fields relevant to the kind
        raw: The payload the envelope was read from
    """

    kind: EnvelopeKind
    fields: Dict[str, str] = field(default_factory=dict)
    raw: str = ""

    @classmethod
    def from_payload(cls, payload: str) -> "Envelope":
        """Classify a payload and extract the fields for its kind."""
        kind = classify(payload)
        fields = {
            name: extract_field(payload, name) for name in KIND_FIELDS[kind]
        }
        logger.debug("Classified payload as %s", kind.value)
        return cls(kind=kind, fields=fields, raw=payload)

    def get(self, name: str) -> str:
        """Return a field value, or ABSENT if it was not extracted."""
        return self.fields.get(name, ABSENT)

    def has(self, name: str) -> bool:
        return self.get(name) != ABSENT

    @property
    def usernames(self) -> Tuple[str, ...]:
        """Usernames referenced by this envelope (sender and recipient)."""
        return tuple(
            self.get(name) for name in ("from", "to") if self.has(name)
        )

    @property
    def rooms(self) -> Tuple[str, ...]:
        """Room identifiers referenced by this envelope."""
        return (self.get("roomId"),) if self.has("roomId") else ()
