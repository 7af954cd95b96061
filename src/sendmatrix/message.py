from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Optional, Union

from .errors import InvalidInputError

TEXT_SIZE_MAX = 4096
FILE_SIZE_MAX = 2 * 1024 * 1024


class MessageKind(Enum):
    PLAINTEXT = "txt"
    MARKDOWN = "markdown"
    RAW = "raw"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @property
    def size_limit(self) -> int:
        if self is MessageKind.RAW:
            return FILE_SIZE_MAX
        return TEXT_SIZE_MAX

    @property
    def is_text(self) -> bool:
        return self is not MessageKind.RAW

    @classmethod
    def parse(cls, value: str) -> "MessageKind":
        """Map a producer-side type name (``plaintext``, ``text``, ``markdown``, ``raw``) to a kind."""
        try:
            return _TYPE_NAMES[value]
        except KeyError:
            raise InvalidInputError(f"Unknown message type: {value!r}") from None

    @classmethod
    def from_filename(cls, filename: str) -> Optional["MessageKind"]:
        extension = PurePath(filename).suffix[1:].lower()
        if not extension:
            return None
        for kind in cls:
            if kind.extension == extension:
                return kind
        return None


_TYPE_NAMES = {
    "plaintext": MessageKind.PLAINTEXT,
    "text": MessageKind.PLAINTEXT,
    "markdown": MessageKind.MARKDOWN,
    "raw": MessageKind.RAW,
}


@dataclass(frozen=True)
class PlaintextMessage:
    payload: bytes

    kind = MessageKind.PLAINTEXT

    def encode(self) -> tuple[bytes, str]:
        return self.payload, self.kind.extension


@dataclass(frozen=True)
class MarkdownMessage:
    payload: bytes

    kind = MessageKind.MARKDOWN

    def encode(self) -> tuple[bytes, str]:
        return self.payload, self.kind.extension


@dataclass(frozen=True)
class RawMessage:
    """A binary attachment; ``name`` is the attachment filename without the ``.raw`` suffix."""

    name: str
    payload: bytes

    kind = MessageKind.RAW

    def encode(self) -> tuple[bytes, str]:
        return self.payload, self.kind.extension


Message = Union[PlaintextMessage, MarkdownMessage, RawMessage]


def raw_name_from_filename(filename: str) -> str:
    if not filename.isascii():
        raise InvalidInputError(f"Non-ASCII attachment name: {filename!r}")
    suffix = MessageKind.RAW.suffix
    if not filename.lower().endswith(suffix) or len(filename) == len(suffix):
        raise InvalidInputError(f"Not a raw attachment name: {filename!r}")
    return filename[: -len(suffix)]


def decode_message(filename: str, data: bytes) -> Message:
    """Rebuild a message from a mailbox filename and the file's content."""
    kind = MessageKind.from_filename(filename)
    if kind is MessageKind.PLAINTEXT:
        return PlaintextMessage(data)
    if kind is MessageKind.MARKDOWN:
        return MarkdownMessage(data)
    if kind is MessageKind.RAW:
        return RawMessage(name=raw_name_from_filename(filename), payload=data)
    raise InvalidInputError(f"Unrecognized mailbox entry: {filename!r}")
