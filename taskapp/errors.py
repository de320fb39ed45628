from __future__ import annotations

from pathlib import Path


class TaskAppError(Exception):
    """Base class for everything taskapp raises on purpose."""


class AppError(TaskAppError):
    """
    A rejected command. The message is meant for the person at the prompt;
    nothing was written when one of these is raised.
    """


class InvalidUserError(AppError):
    def __init__(self, user_code: int) -> None:
        super().__init__(f"User #{user_code} does not exist.")
        self.user_code = user_code


class InvalidTaskNameError(AppError):
    def __init__(self, reason: str = "Task name must not be empty.") -> None:
        super().__init__(reason)


class InvalidSettingError(AppError):
    def __init__(self, name: str, raw: str, expected: str) -> None:
        super().__init__(f"{name} must be {expected}, got '{raw}'.")
        self.name = name
        self.raw = raw


class DuplicateTaskError(AppError):
    def __init__(self, code: int) -> None:
        super().__init__(f"Task #{code} already exists.")
        self.code = code


class TaskNotFoundError(AppError):
    def __init__(self, code: int) -> None:
        super().__init__(f"Task #{code} not found.")
        self.code = code


class IllegalTransitionError(AppError):
    def __init__(self, code: int, current: int, requested: int) -> None:
        if current >= 2:
            msg = f"Task #{code} is already done; its status cannot change."
        else:
            msg = (
                f"Task #{code} can only move from status {current} to {current + 1} "
                f"(requested {requested})."
            )
        super().__init__(msg)
        self.code = code
        self.current = current
        self.requested = requested


class StoreError(TaskAppError):
    """The backing files could not be read or written as expected."""


class StoreIOError(StoreError):
    def __init__(self, path: Path, action: str) -> None:
        super().__init__(f"Could not {action} {path}")
        self.path = path


class CorruptRecordError(StoreError):
    def __init__(self, path: Path, line_no: int, reason: str) -> None:
        super().__init__(f"{path}:{line_no}: {reason}")
        self.path = path
        self.line_no = line_no
        self.reason = reason
