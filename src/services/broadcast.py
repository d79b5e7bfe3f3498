"""Outbound side of the transport, as far as the service is concerned"""

from typing import Any, Protocol

ROOM_STATE_EVENT = "room-state"


class Broadcaster(Protocol):
    """Deliver an event to every connection that is a member of the room (the transport adapter implements this)"""

    def broadcast(self, room_id: str, event: str, payload: dict[str, Any]) -> None: ...

    def join(self, connection_id: str, room_id: str) -> None:
        """Add the connection to the room's broadcast group."""
        ...

    def leave(self, connection_id: str, room_id: str) -> None:
        """Remove the connection from the room's broadcast group."""
        ...
