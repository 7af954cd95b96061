from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

_LOCKS: Dict[Path, threading.Lock] = {}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _lock_for(path: Path) -> threading.Lock:
    if path not in _LOCKS:
        _LOCKS[path] = threading.Lock()
    return _LOCKS[path]


def _atomic_append(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = _lock_for(path)
    with lock:
        with path.open("a", encoding="utf-8") as fh:
            fh.write(text)
            if not text.endswith("\n"):
                fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())


@dataclass
class EventLogger:
    path: Path

    def emit(self, event: str, data: Dict[str, Any] | None = None) -> None:
        payload: Dict[str, Any] = {"event": event, "timestamp": time.time()}
        if data:
            payload.update(data)
        _atomic_append(self.path, json.dumps(payload))


def setup_logging(name: str, log_path: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    return logger
