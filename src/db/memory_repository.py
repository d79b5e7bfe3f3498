"""Implementation of (Room)Repository as a plain dictionary guarded by a lock"""

import logging
import secrets
import string
import threading
from datetime import datetime, timedelta
from typing import Optional

from src.checkers.game import utc_now
from src.core.config import Config
from src.core.exceptions import RepositoryError
from src.rooms.room import ConnectionRef, Room

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
# a 6 character code has 36**6 (~2 billion) options, so this is only ever hit by a bug
MAX_CODE_ATTEMPTS = 100


def normalize_room_id(room_id: str) -> str:
    return room_id.strip().upper()


class InMemoryRoomRepository:
    """Rooms stored in process memory. Lost on restart."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self._rooms: dict[str, Room] = {}
        self._lock = threading.Lock()

    @property
    def retention(self) -> timedelta:
        return timedelta(seconds=self.config.room_retention_sec)

    def create_room(self, creator: ConnectionRef) -> Room:
        """Create a room under a fresh, unused code. The creator takes the red seat."""
        with self._lock:
            room_id = self._generate_room_code()
            room = Room.create(room_id, creator)
            self._rooms[room_id] = room
        logger.info("room %s created by %s", room_id, creator)
        return room

    def get_room(self, room_id: str) -> Room | None:
        """
        Get room by code, if it exists.

        A room that went stale is treated as gone straight away, even if the sweep did not get to it yet.
        """
        with self._lock:
            room = self._rooms.get(normalize_room_id(room_id))
        if room is None or room.is_stale(utc_now(), self.retention):
            return None
        return room

    def delete_room(self, room_id: str) -> Room | None:
        """Remove a room."""
        with self._lock:
            return self._rooms.pop(normalize_room_id(room_id), None)

    def list_room_ids(self) -> list[str]:
        with self._lock:
            return list(self._rooms.keys())

    def sweep(self, now: Optional[datetime] = None) -> list[str]:
        """Evict every room that has been empty longer than the retention window. Returns the evicted codes."""
        now = now or utc_now()
        with self._lock:
            stale = [
                room_id
                for room_id, room in self._rooms.items()
                if room.is_stale(now, self.retention)
            ]
            for room_id in stale:
                del self._rooms[room_id]

        for room_id in stale:
            logger.info("room %s evicted after being empty for %s", room_id, self.retention)
        return stale

    def _generate_room_code(self) -> str:
        """NOTE: caller holds the lock, so the code cannot be taken between checking and storing it"""
        for _ in range(MAX_CODE_ATTEMPTS):
            code = "".join(
                secrets.choice(ROOM_CODE_ALPHABET)
                for _ in range(self.config.room_code_length)
            )
            if code not in self._rooms:
                return code
        raise RepositoryError(
            f"Could not find a free room code after {MAX_CODE_ATTEMPTS} attempts."
        )
