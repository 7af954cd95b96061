"""Hand messages from producer processes to a single consumer through a shared directory."""

from .controller import MailboxController
from .errors import (
    EntryNotFoundError,
    EntryTooLargeError,
    InvalidInputError,
    MailboxError,
    MailboxIOError,
    PayloadEncodingError,
    PublishConflictError,
    SourceNotFoundError,
)
from .message import MarkdownMessage, Message, MessageKind, PlaintextMessage, RawMessage, decode_message
from .publisher import publish, publish_file, publish_message, publish_text
from .scanner import MailboxScanner, QueueEntry

__all__ = [
    "EntryNotFoundError",
    "EntryTooLargeError",
    "InvalidInputError",
    "MailboxController",
    "MailboxError",
    "MailboxIOError",
    "MailboxScanner",
    "MarkdownMessage",
    "Message",
    "MessageKind",
    "PayloadEncodingError",
    "PlaintextMessage",
    "PublishConflictError",
    "QueueEntry",
    "RawMessage",
    "SourceNotFoundError",
    "decode_message",
    "publish",
    "publish_file",
    "publish_message",
    "publish_text",
]
