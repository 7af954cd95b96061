from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import InvalidInputError

load_dotenv()

DEFAULT_IPC_PATH = "/var/run/sendmatrix"
DEFAULT_MATRIX_PATH = "/usr/bin/matrix-commander-rs"
DEFAULT_POLL_INTERVAL_S = 3.0


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    return value


def positive_float(name: str, value: float) -> float:
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {value!r}")
    return value


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from None
    return positive_float(name, parsed)


def _env_path(name: str) -> Optional[Path]:
    value = _env(name)
    return Path(value) if value else None


def default_ipc_path() -> str:
    return _env("IPC_PATH", DEFAULT_IPC_PATH) or DEFAULT_IPC_PATH


@dataclass
class ServerConfig:
    ipc_path: str = field(default_factory=default_ipc_path)
    matrix_path: str = field(default_factory=lambda: _env("MATRIX_PATH", DEFAULT_MATRIX_PATH) or DEFAULT_MATRIX_PATH)
    matrix_room: Optional[str] = field(default_factory=lambda: _env("MATRIX_ROOM") or None)
    poll_interval_s: float = field(default_factory=lambda: _env_float("POLL_INTERVAL_S", DEFAULT_POLL_INTERVAL_S))
    log_path: Optional[Path] = field(default_factory=lambda: _env_path("SENDMATRIX_LOG_PATH"))
    event_log_path: Optional[Path] = field(default_factory=lambda: _env_path("SENDMATRIX_EVENT_LOG"))
    lock_path: Optional[Path] = field(default_factory=lambda: _env_path("SENDMATRIX_LOCK_PATH"))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        return cls()

    def as_dict(self) -> Dict[str, Any]:
        return {key: str(value) if isinstance(value, Path) else value for key, value in asdict(self).items()}
