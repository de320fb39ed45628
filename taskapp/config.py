from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import InvalidSettingError


@dataclass(frozen=True)
class DataPaths:
    tasks: Path
    users: Path
    logs: Path

    @classmethod
    def in_dir(cls, data_dir: Path) -> DataPaths:
        return cls(
            tasks=data_dir / "tasks.csv",
            users=data_dir / "users.csv",
            logs=data_dir / "logs.csv",
        )


def default_data_dir() -> Path:
    """
    Default per-user data directory:
      ~/.taskapp/

    Override with TASKAPP_DATA_DIR env var or --data-dir CLI option.
    """
    env = os.getenv("TASKAPP_DATA_DIR")
    if env:
        return Path(env).expanduser().resolve()

    return (Path.home() / ".taskapp").resolve()


def default_user_code() -> Optional[int]:
    """Acting user from TASKAPP_USER; None when unset, an error when not an integer."""
    raw = os.getenv("TASKAPP_USER")
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidSettingError("TASKAPP_USER", raw, "an integer user code") from e
