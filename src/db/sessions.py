"""
Session Registry: opaque reconnection tokens -> (room code, color).

Holds room codes only, never Room objects: the Room Directory stays the only owner of rooms.
Tokens are not rotated on reconnect. The same token stays valid until its room is garbage-collected.

After that, the token is remembered for a while longer (a tombstone), so a late reconnect is told the room is gone
instead of being told the token never existed.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from src.checkers.game import utc_now
from src.core.config import DEFAULT_REVOKED_TOKEN_TTL_SEC, MIN_TOKEN_BYTES
from src.core.exceptions import InvalidTokenError, RoomNotFoundError
from src.core.shared_types import Color

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """The color binding is fixed the moment the token is issued"""

    token: str
    room_id: str
    color: Color


@dataclass(frozen=True)
class RevokedSession:
    room_id: str
    revoked_at: datetime


class SessionRegistry:
    def __init__(
        self,
        token_bytes: int = MIN_TOKEN_BYTES,
        revoked_ttl_sec: float = DEFAULT_REVOKED_TOKEN_TTL_SEC,
    ) -> None:
        if token_bytes < MIN_TOKEN_BYTES:
            raise ValueError(f"Tokens need at least {MIN_TOKEN_BYTES} random bytes.")
        self.token_bytes = token_bytes
        self.revoked_ttl = timedelta(seconds=revoked_ttl_sec)
        self._sessions: dict[str, Session] = {}
        self._revoked: dict[str, RevokedSession] = {}
        self._lock = threading.Lock()

    def issue(self, room_id: str, color: Color) -> Session:
        """Fresh, unguessable token bound to (room, color)"""
        with self._lock:
            token = secrets.token_hex(self.token_bytes)
            # 128 random bits do not collide, but a reused token would hand over somebody else's seat
            while token in self._sessions or token in self._revoked:
                token = secrets.token_hex(self.token_bytes)
            session = Session(token=token, room_id=room_id, color=color)
            self._sessions[token] = session
        return session

    def get(self, token: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(token)

    def resolve(self, token: str) -> Session:
        """
        Look up a live session.

        Raises RoomNotFoundError for a token whose room has been garbage-collected,
        and InvalidTokenError for a token that was never issued (or whose tombstone expired).
        """
        with self._lock:
            session = self._sessions.get(token)
            revoked = self._revoked.get(token)
        if session is not None:
            return session
        if revoked is not None:
            raise RoomNotFoundError(f"Room {revoked.room_id} no longer exists.")
        raise InvalidTokenError("Unknown session token.")

    def revoke_room(self, room_id: str, now: Optional[datetime] = None) -> int:
        """
        Drop every token of a room that has been garbage-collected. Returns how many were dropped.

        The dropped tokens are kept as tombstones for `revoked_ttl`. Older tombstones are pruned on every call.
        """
        now = now or utc_now()
        with self._lock:
            tokens = [
                token
                for token, session in self._sessions.items()
                if session.room_id == room_id
            ]
            for token in tokens:
                del self._sessions[token]
                self._revoked[token] = RevokedSession(room_id=room_id, revoked_at=now)
            self._prune_revoked(now)
        if tokens:
            logger.debug("revoked %d session(s) of room %s", len(tokens), room_id)
        return len(tokens)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _prune_revoked(self, now: datetime) -> None:
        """NOTE: caller holds the lock"""
        expired = [
            token
            for token, revoked in self._revoked.items()
            if now - revoked.revoked_at >= self.revoked_ttl
        ]
        for token in expired:
            del self._revoked[token]
