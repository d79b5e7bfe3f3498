"""Runtime settings. Read from environment variables, with defaults that work for a handful of casual matches."""

import os
from dataclasses import dataclass
from typing import Self

# tokens must stay unguessable: never fewer than 128 bits
MIN_TOKEN_BYTES = 16
# a token of a garbage-collected room is still recognised (as "room gone") for this long (seconds)
DEFAULT_REVOKED_TOKEN_TTL_SEC = 24 * 60 * 60.0


@dataclass(frozen=True)
class Config:
    # An empty room is kept around this long so players can reconnect (seconds)
    room_retention_sec: float = 300.0
    # How often the background sweep looks for stale rooms (seconds)
    room_sweep_interval_sec: float = 60.0
    room_code_length: int = 6
    session_token_bytes: int = MIN_TOKEN_BYTES
    revoked_token_ttl_sec: float = DEFAULT_REVOKED_TOKEN_TTL_SEC
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.session_token_bytes < MIN_TOKEN_BYTES:
            raise ValueError(
                f"session_token_bytes must be at least {MIN_TOKEN_BYTES}. Got {self.session_token_bytes}"
            )
        if self.room_code_length < 1:
            raise ValueError(f"room_code_length must be positive. Got {self.room_code_length}")

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            room_retention_sec=float(os.environ.get("ROOM_RETENTION_SEC", "300")),
            room_sweep_interval_sec=float(os.environ.get("ROOM_SWEEP_INTERVAL_SEC", "60")),
            room_code_length=int(os.environ.get("ROOM_CODE_LENGTH", "6")),
            session_token_bytes=int(
                os.environ.get("SESSION_TOKEN_BYTES", str(MIN_TOKEN_BYTES))
            ),
            revoked_token_ttl_sec=float(
                os.environ.get(
                    "REVOKED_TOKEN_TTL_SEC", str(DEFAULT_REVOKED_TOKEN_TTL_SEC)
                )
            ),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
