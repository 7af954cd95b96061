"""Exception hierarchy for mailbox operations."""

from __future__ import annotations

from pathlib import Path


class MailboxError(OSError):
    """Base class for every failure raised by the mailbox core."""


class InvalidInputError(MailboxError, ValueError):
    pass


class EntryNotFoundError(MailboxError):
    pass


class SourceNotFoundError(MailboxError, FileNotFoundError):
    pass


class PublishConflictError(MailboxError, FileExistsError):
    pass


class MailboxIOError(MailboxError):
    pass


class PayloadEncodingError(MailboxError, ValueError):
    pass


class EntryTooLargeError(MailboxError):
    """A queue entry is bigger than its kind allows; it stays at the head of the queue."""

    def __init__(self, path: Path, size: int, limit: int):
        super().__init__(f"{path.name}: {size} bytes exceeds the {limit} byte limit")
        self.path = path
        self.size = size
        self.limit = limit
