"""Producer side of the mailbox: write a message so it appears fully formed or not at all.

A message is first written to ``<id>.tmp`` inside the mailbox, then hard-linked to
its final ``<id>.<ext>`` name and the temp name is removed. The scanner never
looks at ``.tmp`` names, so readers only ever see complete files.
"""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .errors import (
    InvalidInputError,
    MailboxIOError,
    PayloadEncodingError,
    PublishConflictError,
    SourceNotFoundError,
)
from .logging_io import EventLogger
from .message import Message, MessageKind, RawMessage

TEMP_SUFFIX = ".tmp"

PathLike = Union[str, os.PathLike]
Writer = Callable[[BinaryIO], None]


def generate_identifier() -> str:
    return str(uuid.uuid4()).upper()


def attachment_name(source: PathLike) -> str:
    """Return the basename used as the logical attachment name, validating it is plain ASCII."""
    name = Path(source).name
    if name in ("", ".", ".."):
        raise InvalidInputError(f"Invalid file path: {os.fspath(source)!r}")
    if not name.isascii():
        raise InvalidInputError(f"Non-ASCII attachment name: {name!r}")
    return name


def _text_payload(payload: Union[str, bytes]) -> bytes:
    if isinstance(payload, str):
        try:
            return payload.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise PayloadEncodingError(f"Text payload cannot be encoded as UTF-8: {exc}") from exc
    if not isinstance(payload, (bytes, bytearray)):
        raise InvalidInputError(f"Text payload must be str or bytes, not {type(payload).__name__}")
    try:
        payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PayloadEncodingError(f"Text payload is not valid UTF-8: {exc}") from exc
    return bytes(payload)


def _write_temp(tmp: Path, writer: Writer) -> None:
    try:
        with tmp.open("xb") as fh:
            writer(fh)
            fh.flush()
            os.fsync(fh.fileno())
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise MailboxIOError(f"Failed to write {tmp}: {exc}") from exc


def _link_final(tmp: Path, final: Path) -> None:
    try:
        os.link(tmp, final)
    except FileExistsError as exc:
        tmp.unlink(missing_ok=True)
        raise PublishConflictError(f"Mailbox entry already exists: {final.name}") from exc
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise MailboxIOError(f"Failed to publish {final.name}: {exc}") from exc


def _publish(
    mailbox: Path,
    tmp_name: str,
    final_name: str,
    writer: Writer,
    event_logger: Optional[EventLogger],
) -> Path:
    tmp = mailbox / tmp_name
    final = mailbox / final_name
    _write_temp(tmp, writer)
    _link_final(tmp, final)
    # The message is published at this point; a failed cleanup leaves only a stray .tmp.
    try:
        tmp.unlink()
    except OSError as exc:
        raise MailboxIOError(f"Published {final.name} but failed to remove {tmp.name}: {exc}") from exc
    if event_logger:
        event_logger.emit("mailbox_published", {"name": final.name})
    return final


def publish_text(
    mailbox_path: PathLike,
    kind: MessageKind,
    payload: Union[str, bytes],
    *,
    event_logger: Optional[EventLogger] = None,
) -> Path:
    if not kind.is_text:
        raise InvalidInputError(f"{kind.name.lower()} is not a text message kind")
    data = _text_payload(payload)
    identifier = generate_identifier()
    return _publish(
        Path(mailbox_path),
        f"{identifier}{TEMP_SUFFIX}",
        f"{identifier}{kind.suffix}",
        lambda fh: fh.write(data),
        event_logger,
    )


def _raw_names(name: str) -> tuple[str, str]:
    # Concurrent publishes of one basename each get their own temp file.
    return f"{name}.{uuid.uuid4().hex}{TEMP_SUFFIX}", f"{name}{MessageKind.RAW.suffix}"


def publish_file(
    mailbox_path: PathLike,
    source: PathLike,
    *,
    event_logger: Optional[EventLogger] = None,
) -> Path:
    """Publish the file at ``source`` as a raw attachment named after its basename."""
    name = attachment_name(source)
    try:
        src = open(source, "rb")
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"Attachment not found: {os.fspath(source)}") from exc
    except OSError as exc:
        raise MailboxIOError(f"Cannot read attachment {os.fspath(source)}: {exc}") from exc

    tmp_name, final_name = _raw_names(name)
    with src:
        return _publish(
            Path(mailbox_path),
            tmp_name,
            final_name,
            lambda fh: shutil.copyfileobj(src, fh),
            event_logger,
        )


def publish(
    mailbox_path: PathLike,
    kind: MessageKind,
    payload: Union[str, bytes, PathLike],
    *,
    event_logger: Optional[EventLogger] = None,
) -> Path:
    """Publish ``payload`` into the mailbox.

    For text kinds ``payload`` is the message itself; for :attr:`MessageKind.RAW`
    it is the path of the file to attach. Returns the final path of the entry.
    """
    if kind is MessageKind.RAW:
        if not isinstance(payload, (str, os.PathLike)):
            raise InvalidInputError("Raw messages are published from a source file path")
        return publish_file(mailbox_path, payload, event_logger=event_logger)
    return publish_text(mailbox_path, kind, payload, event_logger=event_logger)  # type: ignore[arg-type]


def publish_message(
    mailbox_path: PathLike,
    message: Message,
    *,
    event_logger: Optional[EventLogger] = None,
) -> Path:
    """Publish an in-memory message, including raw attachments that have no source file."""
    if isinstance(message, RawMessage):
        name = attachment_name(message.name)
        if name != message.name:
            raise InvalidInputError(f"Attachment name must be a bare filename: {message.name!r}")
        data, _ = message.encode()
        tmp_name, final_name = _raw_names(name)
        return _publish(Path(mailbox_path), tmp_name, final_name, lambda fh: fh.write(data), event_logger)
    data, _ = message.encode()
    return publish_text(mailbox_path, message.kind, data, event_logger=event_logger)
