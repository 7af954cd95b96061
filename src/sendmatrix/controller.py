"""Consumer side of the mailbox: dequeue the oldest snapshot entry and delete it once delivered."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional

from .errors import EntryNotFoundError, EntryTooLargeError, InvalidInputError, MailboxIOError
from .logging_io import EventLogger
from .message import Message, decode_message
from .scanner import MailboxScanner, QueueEntry

DEFAULT_POLL_INTERVAL_S = 3.0

SleepFn = Callable[[float], None]


def read_entry(entry: QueueEntry) -> bytes:
    """Read an entry in full, refusing anything above its kind's size limit."""
    limit = entry.kind.size_limit
    try:
        size = entry.path.stat().st_size
    except OSError as exc:
        raise MailboxIOError(f"Failed to stat {entry.path.name}: {exc}") from exc
    if size > limit:
        raise EntryTooLargeError(entry.path, size, limit)

    try:
        with entry.path.open("rb") as fh:
            data = fh.read(limit + 1)
    except OSError as exc:
        raise MailboxIOError(f"Failed to read {entry.path.name}: {exc}") from exc
    if len(data) > limit:
        raise EntryTooLargeError(entry.path, len(data), limit)
    return data


class MailboxController:
    def __init__(
        self,
        mailbox_path: Path,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        sleep: SleepFn = time.sleep,
        event_logger: EventLogger | None = None,
        scanner: Optional[MailboxScanner] = None,
    ):
        if poll_interval <= 0:
            raise InvalidInputError(f"poll_interval must be positive, got {poll_interval!r}")
        self._scanner = scanner or MailboxScanner(Path(mailbox_path), event_logger=event_logger)
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._event_logger = event_logger

    @property
    def scanner(self) -> MailboxScanner:
        return self._scanner

    @property
    def current(self) -> Optional[QueueEntry]:
        return self._scanner.current

    def has_pending(self) -> bool:
        return self._scanner.has_pending()

    def next_message(self) -> Message:
        """Block until an entry is pending, then decode the head of the backlog.

        An oversized head entry raises :class:`EntryTooLargeError` and is left in
        place, so every later call fails on the same entry until it is removed.
        """
        while not self._scanner.has_pending():
            self._sleep(self._poll_interval)

        entry = self._scanner.current
        if entry is None:
            raise EntryNotFoundError("Mailbox backlog emptied while polling")
        try:
            data = read_entry(entry)
        except EntryTooLargeError as exc:
            if self._event_logger:
                self._event_logger.emit(
                    "mailbox_oversized", {"name": entry.path.name, "size": exc.size, "limit": exc.limit}
                )
            raise
        return decode_message(entry.path.name, data)

    def complete_current(self) -> None:
        """Delete the current entry after successful delivery and drop it from the backlog."""
        entry = self._scanner.current
        if entry is None:
            raise EntryNotFoundError("No pending mailbox entry to complete")
        try:
            entry.path.unlink()
        except OSError as exc:
            raise MailboxIOError(f"Failed to remove {entry.path.name}: {exc}") from exc
        self._scanner.pop_current()
        if self._event_logger:
            self._event_logger.emit("mailbox_completed", {"name": entry.path.name, "kind": entry.kind.name.lower()})
