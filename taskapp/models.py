from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Optional


class Status(IntEnum):
    UNSTARTED = 0
    IN_PROGRESS = 1
    DONE = 2

    @property
    def label(self) -> str:
        return _LABELS[self]

    def next(self) -> Optional[Status]:
        """The only status this one may advance to, or None when terminal."""
        if self is Status.DONE:
            return None
        return Status(self + 1)

    @classmethod
    def from_name(cls, raw: str) -> Status:
        """'in_progress', 'In-Progress' and 'IN_PROGRESS' all name the same member."""
        try:
            return cls[raw.strip().upper().replace("-", "_")]
        except KeyError as e:
            raise ValueError(f"Unknown status '{raw}'") from e


_LABELS = {
    Status.UNSTARTED: "Unstarted",
    Status.IN_PROGRESS: "In progress",
    Status.DONE: "Done",
}


@dataclass(frozen=True)
class User:
    code: int
    name: str


@dataclass(frozen=True)
class Task:
    code: int
    name: str
    status: Status
    responsible_user: User


@dataclass(frozen=True)
class Log:
    task_code: int
    changed_by_user_code: int
    new_status: Status
    changed_on: date
