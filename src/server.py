"""
Wiring: one explicitly owned set of registries per server instance (no module level state).

The transport adapter creates a CheckersServer with its Broadcaster, calls `start()` when the process starts serving,
feeds inbound commands to `dispatcher.dispatch(...)`, and calls `stop()` on shutdown.
"""

import logging
from typing import Optional

from src.api.commands import CommandDispatcher
from src.core.config import Config
from src.core.logging_config import configure_logging
from src.db.memory_repository import InMemoryRoomRepository
from src.db.sessions import SessionRegistry
from src.services.broadcast import Broadcaster
from src.services.checkers_service import CheckersService
from src.services.sweeper import RoomSweeper

logger = logging.getLogger(__name__)


class CheckersServer:
    def __init__(self, broadcaster: Broadcaster, config: Optional[Config] = None) -> None:
        self.config = config or Config.from_env()
        self.repository = InMemoryRoomRepository(self.config)
        self.sessions = SessionRegistry(
            self.config.session_token_bytes, self.config.revoked_token_ttl_sec
        )
        self.service = CheckersService(self.repository, self.sessions, broadcaster)
        self.dispatcher = CommandDispatcher(self.service)
        self.sweeper = RoomSweeper(
            self.service.sweep_stale_rooms, self.config.room_sweep_interval_sec
        )

    def start(self) -> None:
        configure_logging(self.config.log_level)
        self.sweeper.start()
        logger.info(
            "checkers server core started (room retention %ss)",
            self.config.room_retention_sec,
        )

    def stop(self) -> None:
        self.sweeper.stop()
        logger.info("checkers server core stopped")
