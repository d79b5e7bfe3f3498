"""Protocol repository (the Room Directory). Rooms only live in process memory; see memory_repository.py"""

from datetime import datetime
from typing import Optional, Protocol

from src.rooms.room import ConnectionRef, Room


class RoomRepository(Protocol):
    """Owns every Room, keyed by room code"""

    def create_room(self, creator: ConnectionRef) -> Room:
        """Create a room under a fresh, unused code. The creator takes the red seat."""
        ...

    def get_room(self, room_id: str) -> Room | None:
        """Get room by code (case-insensitive), if it exists and has not gone stale."""
        ...

    def delete_room(self, room_id: str) -> Room | None:
        """Remove a room."""
        ...

    def list_room_ids(self) -> list[str]:
        """Codes of every room currently held."""
        ...

    def sweep(self, now: Optional[datetime] = None) -> list[str]:
        """Evict every room that has been empty longer than the retention window. Returns the evicted codes."""
        ...
