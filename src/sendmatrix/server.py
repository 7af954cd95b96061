"""Consumer runtime: drain the mailbox into the delivery program, one message at a time."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from .config import ServerConfig
from .controller import MailboxController
from .lock import acquire_process_lock
from .logging_io import EventLogger, setup_logging
from .message import Message, RawMessage

LOGGER_NAME = "sendmatrix.server"


class Delivery(Protocol):
    def send(self, message: Message) -> None: ...


def describe(message: Message) -> str:
    if isinstance(message, RawMessage):
        return f"raw attachment {message.name} ({len(message.payload)} bytes)"
    return f"{message.kind.name.lower()} message ({len(message.payload)} bytes)"


def serve(
    controller: MailboxController,
    delivery: Delivery,
    *,
    logger: Optional[logging.Logger] = None,
    limit: Optional[int] = None,
) -> int:
    """Deliver messages until ``limit`` is reached (forever when None).

    Errors propagate; an entry is only deleted after its delivery succeeded.
    """
    logger = logger or logging.getLogger(LOGGER_NAME)
    delivered = 0
    while limit is None or delivered < limit:
        message = controller.next_message()
        delivery.send(message)
        controller.complete_current()
        delivered += 1
        logger.info("Delivered %s", describe(message))
    return delivered


def run_server(config: ServerConfig, *, delivery: Optional[Delivery] = None, limit: Optional[int] = None) -> int:
    logger = setup_logging(LOGGER_NAME, config.log_path)
    logger.info("Configuration: %s", config.as_dict())

    lock = None
    if config.lock_path is not None:
        lock = acquire_process_lock(config.lock_path)
        if not lock:
            logger.warning("sendmatrix server already running (lock: %s).", config.lock_path)
            return 0

    try:
        if delivery is None:
            from services.matrix_commander import MatrixCommander

            MatrixCommander.ensure_supported(config.matrix_path)
            commander = MatrixCommander(config.matrix_path, room=config.matrix_room)
            logger.info("User: `%s`", commander.whoami())
            delivery = commander

        event_logger = EventLogger(config.event_log_path) if config.event_log_path else None
        controller = MailboxController(
            Path(config.ipc_path),
            poll_interval=config.poll_interval_s,
            event_logger=event_logger,
        )
        controller.has_pending()
        logger.info("IPC backlog: %s", len(controller.scanner.backlog))

        try:
            return serve(controller, delivery, logger=logger, limit=limit)
        except KeyboardInterrupt:
            logger.info("sendmatrix server stopped by KeyboardInterrupt.")
            return 0
    finally:
        if lock:
            lock.release()
