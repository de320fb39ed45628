from __future__ import annotations

import csv
import logging
import os
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence, TextIO, TypeVar

from .errors import CorruptRecordError, StoreIOError
from .models import Log, Status, Task, User
from .ports import UserLookup

logger = logging.getLogger(__name__)

USER_HEADER = ("Code", "Name")
TASK_HEADER = ("Code", "Name", "Status", "Rep_User_Code")
LOG_HEADER = ("Task_Code", "Change_User_Code", "Status", "Change_Date")

Row = list[str]
T = TypeVar("T")


# ---- table helpers ----


@contextmanager
def open_table(path: Path, mode: str = "r") -> Iterator[TextIO]:
    action = "read" if mode == "r" else "write"
    try:
        with path.open(mode, encoding="utf-8", newline="") as f:
            yield f
    except (OSError, UnicodeEncodeError) as e:
        raise StoreIOError(path, action) from e


def init_table(path: Path, header: Sequence[str], rows: Iterable[Row] = ()) -> bool:
    """
    Create a header-only table (plus any seed rows) if the file is missing.
    Returns True if the file was created.
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreIOError(path.parent, "create") from e
    with open_table(path, "w") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)
    logger.info("Created %s", path)
    return True


def read_rows(path: Path, arity: int) -> list[tuple[int, Row]]:
    """
    All data rows as (line number, fields), header and blank lines skipped.
    """
    out: list[tuple[int, Row]] = []
    with open_table(path) as f:
        reader = csv.reader(f)
        try:
            next(reader, None)
            for row in reader:
                if not row:
                    continue
                if len(row) != arity:
                    raise CorruptRecordError(
                        path, reader.line_num, f"expected {arity} fields, got {len(row)}"
                    )
                out.append((reader.line_num, row))
        except (csv.Error, UnicodeDecodeError) as e:
            raise CorruptRecordError(path, reader.line_num, str(e)) from e
    logger.debug("Read %d row(s) from %s", len(out), path)
    return out


def _tail_state(path: Path) -> tuple[bool, bool]:
    """(needs header, needs leading newline) for an append to path."""
    try:
        size = path.stat().st_size
        if size == 0:
            return True, False
        with path.open("rb") as f:
            f.seek(-1, os.SEEK_END)
            return False, f.read(1) != b"\n"
    except FileNotFoundError:
        return True, False
    except OSError as e:
        raise StoreIOError(path, "read") from e


def append_row(path: Path, header: Sequence[str], row: Row) -> None:
    needs_header, needs_newline = _tail_state(path)
    with open_table(path, "a") as f:
        if needs_newline:
            f.write("\n")
        writer = csv.writer(f, lineterminator="\n")
        if needs_header:
            writer.writerow(header)
        writer.writerow(row)


def rewrite_rows(path: Path, header: Sequence[str], rows: Iterable[Row]) -> None:
    """Write header + rows to a sibling temp file, then swap it in."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with open_table(tmp, "w") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(header)
            writer.writerows(rows)
        try:
            os.replace(tmp, path)
        except OSError as e:
            raise StoreIOError(path, "replace") from e
    finally:
        tmp.unlink(missing_ok=True)


def _decode(path: Path, line_no: int, fn: Callable[..., T], *args) -> T:
    try:
        return fn(*args)
    except ValueError as e:
        raise CorruptRecordError(path, line_no, str(e)) from e


# ---- field codecs ----


def parse_int(field: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{field} is not an integer: {raw!r}") from e


def parse_status(raw: str) -> Status:
    n = parse_int("Status", raw)
    try:
        return Status(n)
    except ValueError as e:
        raise ValueError(f"Status out of range: {n}") from e


def parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise ValueError(f"Change_Date is not an ISO date: {raw!r}") from e


def user_to_row(user: User) -> Row:
    return [str(user.code), user.name]


def row_to_user(row: Row) -> User:
    return User(code=parse_int("Code", row[0]), name=row[1])


def task_to_row(task: Task) -> Row:
    return [
        str(task.code),
        task.name,
        str(int(task.status)),
        str(task.responsible_user.code),
    ]


def row_to_task(row: Row, users: UserLookup) -> Task:
    """
    Decode one task row, resolving the responsible user.
    A user code the lookup does not know is a ValueError like any other bad field.
    """
    code = parse_int("Code", row[0])
    status = parse_status(row[2])
    user_code = parse_int("Rep_User_Code", row[3])
    user = users.find_by_code(user_code)
    if user is None:
        raise ValueError(f"responsible user #{user_code} does not exist")
    return Task(code=code, name=row[1], status=status, responsible_user=user)


def log_to_row(log: Log) -> Row:
    return [
        str(log.task_code),
        str(log.changed_by_user_code),
        str(int(log.new_status)),
        log.changed_on.isoformat(),
    ]


def row_to_log(row: Row) -> Log:
    return Log(
        task_code=parse_int("Task_Code", row[0]),
        changed_by_user_code=parse_int("Change_User_Code", row[1]),
        new_status=parse_status(row[2]),
        changed_on=parse_date(row[3]),
    )


# ---- stores ----


class UserStore:
    """
    Read-only user table (Code,Name). The only write is seeding at init.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def init(self, seed: Iterable[User] = ()) -> bool:
        return init_table(self._path, USER_HEADER, [user_to_row(u) for u in seed])

    def find_all(self) -> list[User]:
        return [
            _decode(self._path, line_no, row_to_user, row)
            for line_no, row in read_rows(self._path, len(USER_HEADER))
        ]

    def find_by_code(self, code: int) -> Optional[User]:
        for user in self.find_all():
            if user.code == code:
                return user
        return None


class TaskStore:
    """
    Task table (Code,Name,Status,Rep_User_Code).

    Every call re-reads the file; nothing is cached between calls. update()
    rewrites the whole file, so two processes writing the same store can lose
    each other's changes.
    """

    def __init__(self, path: str | Path, users: UserLookup) -> None:
        self._path = Path(path)
        self._users = users

    @property
    def path(self) -> Path:
        return self._path

    def init(self) -> bool:
        return init_table(self._path, TASK_HEADER)

    def _rows(self) -> list[tuple[int, Row]]:
        return read_rows(self._path, len(TASK_HEADER))

    def find_all(self) -> list[Task]:
        return [
            _decode(self._path, line_no, row_to_task, row, self._users)
            for line_no, row in self._rows()
        ]

    def find_by_code(self, code: int) -> Optional[Task]:
        for line_no, row in self._rows():
            if _decode(self._path, line_no, parse_int, "Code", row[0]) == code:
                return _decode(self._path, line_no, row_to_task, row, self._users)
        return None

    def next_code(self) -> int:
        codes = [
            _decode(self._path, line_no, parse_int, "Code", row[0])
            for line_no, row in self._rows()
        ]
        return max(codes, default=0) + 1

    def save(self, task: Task) -> None:
        append_row(self._path, TASK_HEADER, task_to_row(task))
        logger.info("Saved task #%s to %s", task.code, self._path)

    def update(self, task: Task) -> bool:
        """
        Replace the record(s) with task.code and rewrite the file in order.
        Returns False, leaving the file untouched, if no record matches.
        """
        replaced = False
        out: list[Row] = []
        for line_no, row in self._rows():
            code = _decode(self._path, line_no, parse_int, "Code", row[0])
            _decode(self._path, line_no, parse_status, row[2])
            _decode(self._path, line_no, parse_int, "Rep_User_Code", row[3])
            if code == task.code:
                out.append(task_to_row(task))
                replaced = True
            else:
                out.append(row)

        if not replaced:
            logger.debug("No task #%s in %s; nothing rewritten", task.code, self._path)
            return False

        rewrite_rows(self._path, TASK_HEADER, out)
        logger.info("Updated task #%s in %s (%d record(s))", task.code, self._path, len(out))
        return True


class LogStore:
    """Append-only audit table (Task_Code,Change_User_Code,Status,Change_Date)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def init(self) -> bool:
        return init_table(self._path, LOG_HEADER)

    def save(self, log: Log) -> None:
        append_row(self._path, LOG_HEADER, log_to_row(log))
        logger.info(
            "Logged task #%s -> %s by user #%s",
            log.task_code,
            int(log.new_status),
            log.changed_by_user_code,
        )

    def find_all(self) -> list[Log]:
        return [
            _decode(self._path, line_no, row_to_log, row)
            for line_no, row in read_rows(self._path, len(LOG_HEADER))
        ]

    def find_by_task_code(self, code: int) -> list[Log]:
        return [log for log in self.find_all() if log.task_code == code]
