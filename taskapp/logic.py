from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Optional

from .errors import (
    DuplicateTaskError,
    IllegalTransitionError,
    InvalidTaskNameError,
    InvalidUserError,
    TaskNotFoundError,
)
from .models import Log, Status, Task, User
from .ports import LogRepo, TaskRepo, UserLookup

logger = logging.getLogger(__name__)

YOU = "you"


@dataclass(frozen=True)
class TaskRow:
    code: int
    name: str
    responsible: str
    status: str


@dataclass(frozen=True)
class Outcome:
    message: str
    task: Task
    log: Log


class TaskLogic:
    """
    Register tasks, advance their status and keep the audit log in step.

    Holds no state of its own: every call goes through the injected stores.
    The task write always comes before the log write and the two are not
    transactional; if the log write fails the error propagates and the
    task change stays.
    """

    def __init__(
        self,
        tasks: TaskRepo,
        logs: LogRepo,
        users: UserLookup,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._tasks = tasks
        self._logs = logs
        self._users = users
        self._today = today

    def list_tasks(self, current_user: User) -> list[TaskRow]:
        rows: list[TaskRow] = []
        for t in self._tasks.find_all():
            rep = t.responsible_user
            rows.append(
                TaskRow(
                    code=t.code,
                    name=t.name,
                    responsible=YOU if rep.code == current_user.code else rep.name,
                    status=t.status.label,
                )
            )
        return rows

    def register_task(
        self,
        code: int,
        name: str,
        responsible_user_code: int,
        acting_user: User,
    ) -> Outcome:
        if not name or not name.strip():
            raise InvalidTaskNameError()
        try:
            name.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidTaskNameError("Task name contains characters that cannot be stored.") from e

        rep_user = self._users.find_by_code(responsible_user_code)
        if rep_user is None:
            logger.info("Rejected task #%s: unknown user #%s", code, responsible_user_code)
            raise InvalidUserError(responsible_user_code)

        if self._tasks.find_by_code(code) is not None:
            logger.info("Rejected task #%s: code already in use", code)
            raise DuplicateTaskError(code)

        task = Task(code=code, name=name.strip(), status=Status.UNSTARTED, responsible_user=rep_user)
        self._tasks.save(task)

        log = Log(
            task_code=code,
            changed_by_user_code=acting_user.code,
            new_status=Status.UNSTARTED,
            changed_on=self._today(),
        )
        self._logs.save(log)

        logger.info("Registered task #%s for user #%s", code, rep_user.code)
        return Outcome(message=f"Registered task #{code}: {task.name}", task=task, log=log)

    def change_status(self, code: int, new_status: int, acting_user: User) -> Outcome:
        task = self._tasks.find_by_code(code)
        if task is None:
            raise TaskNotFoundError(code)

        expected: Optional[Status] = task.status.next()
        if expected is None or new_status != expected:
            logger.info(
                "Rejected status change on task #%s: %s -> %s",
                code,
                int(task.status),
                new_status,
            )
            raise IllegalTransitionError(code, int(task.status), int(new_status))

        updated = replace(task, status=expected)
        self._tasks.update(updated)

        log = Log(
            task_code=code,
            changed_by_user_code=acting_user.code,
            new_status=expected,
            changed_on=self._today(),
        )
        self._logs.save(log)

        logger.info("Task #%s moved to %s by user #%s", code, expected.name, acting_user.code)
        return Outcome(
            message=f"Task #{code} is now {expected.label.lower()}.",
            task=updated,
            log=log,
        )

    def history(self, code: int) -> list[Log]:
        if self._tasks.find_by_code(code) is None:
            raise TaskNotFoundError(code)
        return self._logs.find_by_task_code(code)
