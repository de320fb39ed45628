"""
Interfaces TaskLogic depends on.

The CSV stores in store.py implement these; tests swap in in-memory fakes.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .models import Log, Task, User


class UserLookup(Protocol):
    def find_by_code(self, code: int) -> Optional[User]: ...


class TaskRepo(Protocol):
    def find_all(self) -> list[Task]: ...

    def find_by_code(self, code: int) -> Optional[Task]: ...

    def save(self, task: Task) -> None: ...

    def update(self, task: Task) -> bool: ...


class LogRepo(Protocol):
    """Append-only: no update or delete."""

    def save(self, log: Log) -> None: ...

    def find_by_task_code(self, code: int) -> list[Log]: ...
