"""
Session Registry

Keeps track of the usernames and room identifiers seen in inbound
messages during the current session so the local `list` command can show
them. Entries are never removed and nothing is persisted.
"""

import logging
import threading
from typing import Dict, Iterable, Tuple

from .envelope import Envelope

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Insertion-ordered, deduplicated sets of observed users and rooms.

    Written by the inbound loop and read by the input thread, so access is
    guarded by a lock.
    """

    def __init__(self):
        # dict keys keep insertion order and reject duplicates
        self._users: Dict[str, None] = {}
        self._rooms: Dict[str, None] = {}
        self._lock = threading.Lock()

    def add_users(self, usernames: Iterable[str]) -> None:
        with self._lock:
            for username in usernames:
                if username not in self._users:
                    self._users[username] = None
                    logger.debug("New user observed: %s", username)

    def add_rooms(self, room_ids: Iterable[str]) -> None:
        with self._lock:
            for room_id in room_ids:
                if room_id not in self._rooms:
                    self._rooms[room_id] = None
                    logger.debug("New room observed: %s", room_id)

    def observe(self, envelope: Envelope) -> None:
        """
        Record the users and rooms referenced by an envelope.

        Args:
            envelope: Classified inbound message; absent fields are skipped
        """
        self.add_users(envelope.usernames)
        self.add_rooms(envelope.rooms)

    @property
    def users(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._users)

    @property
    def rooms(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._rooms)
