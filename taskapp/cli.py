from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import DataPaths, default_data_dir, default_user_code
from .errors import AppError, StoreError
from .logging_setup import setup_logging
from .logic import TaskLogic, TaskRow
from .models import Log, Status, User
from .store import LogStore, TaskStore, UserStore

logger = logging.getLogger(__name__)


class Stores:
    def __init__(self, paths: DataPaths) -> None:
        self.users = UserStore(paths.users)
        self.tasks = TaskStore(paths.tasks, self.users)
        self.logs = LogStore(paths.logs)

    def init(self) -> None:
        self.users.init()
        self.tasks.init()
        self.logs.init()

    def logic(self) -> TaskLogic:
        return TaskLogic(self.tasks, self.logs, self.users)


def _parse_status(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return int(Status.from_name(raw))
    except ValueError as e:
        names = ", ".join(s.name.lower() for s in Status)
        raise argparse.ArgumentTypeError(f"Invalid status '{raw}'. Use 0-2 or one of: {names}.") from e


def _parse_seed_user(raw: str) -> User:
    code, sep, name = raw.partition(":")
    try:
        if not sep or not name.strip():
            raise ValueError(raw)
        return User(code=int(code), name=name.strip())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid user '{raw}'. Use CODE:NAME.") from e


def _data_paths_from_args(ns: argparse.Namespace) -> DataPaths:
    if getattr(ns, "data_dir", None):
        return DataPaths.in_dir(Path(ns.data_dir).expanduser().resolve())
    return DataPaths.in_dir(default_data_dir())


def _acting_user(ns: argparse.Namespace, stores: Stores) -> Optional[User]:
    code = ns.user if ns.user is not None else default_user_code()
    if code is None:
        print("No acting user. Pass --user CODE or set TASKAPP_USER.", file=sys.stderr)
        return None
    user = stores.users.find_by_code(code)
    if user is None:
        print(f"User #{code} does not exist.", file=sys.stderr)
    return user


def _print_tasks(rows: list[TaskRow]) -> None:
    if not rows:
        print("No tasks found.")
        return
    print(f"{'ID':>3}  {'STATUS':<11}  {'OWNER':<12}  NAME")
    print("-" * 60)
    for r in rows:
        print(f"{r.code:>3}  {r.status:<11}  {r.responsible:<12}  {r.name}")


def _print_logs(logs: list[Log]) -> None:
    if not logs:
        print("No log entries.")
        return
    print(f"{'DATE':<10}  {'BY':>4}  STATUS")
    print("-" * 40)
    for log in logs:
        print(f"{log.changed_on.isoformat():<10}  {log.changed_by_user_code:>4}  {log.new_status.label}")


def cmd_init(ns: argparse.Namespace) -> int:
    paths = _data_paths_from_args(ns)
    stores = Stores(paths)
    created = stores.users.init(ns.seed_users or [])
    if ns.seed_users and not created:
        print(
            f"{paths.users} already exists; ignoring {len(ns.seed_users)} --seed-user value(s).",
            file=sys.stderr,
        )
    stores.tasks.init()
    stores.logs.init()
    print(f"Initialized task store in: {paths.tasks.parent}")
    return 0


def cmd_users(ns: argparse.Namespace) -> int:
    stores = Stores(_data_paths_from_args(ns))
    stores.init()
    users = stores.users.find_all()
    if not users:
        print("No users found.")
        return 0
    for u in users:
        print(f"{u.code:>3}  {u.name}")
    return 0


def cmd_list(ns: argparse.Namespace) -> int:
    stores = Stores(_data_paths_from_args(ns))
    stores.init()
    user = _acting_user(ns, stores)
    if user is None:
        return 1
    _print_tasks(stores.logic().list_tasks(user))
    return 0


def cmd_add(ns: argparse.Namespace) -> int:
    stores = Stores(_data_paths_from_args(ns))
    stores.init()
    user = _acting_user(ns, stores)
    if user is None:
        return 1
    code = ns.code if ns.code is not None else stores.tasks.next_code()
    outcome = stores.logic().register_task(code, ns.name, ns.rep, user)
    print(outcome.message)
    return 0


def cmd_status(ns: argparse.Namespace) -> int:
    stores = Stores(_data_paths_from_args(ns))
    stores.init()
    user = _acting_user(ns, stores)
    if user is None:
        return 1
    outcome = stores.logic().change_status(ns.task_code, ns.new_status, user)
    print(outcome.message)
    return 0


def cmd_log(ns: argparse.Namespace) -> int:
    stores = Stores(_data_paths_from_args(ns))
    stores.init()
    _print_logs(stores.logic().history(ns.task_code))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="taskapp",
        description="taskapp: a task tracker with an audit log (Python + CSV files).",
    )
    p.add_argument(
        "--data-dir",
        help="Directory holding tasks.csv, users.csv and logs.csv "
        "(default: ~/.taskapp or TASKAPP_DATA_DIR env var)",
    )
    p.add_argument("--user", type=int, help="Acting user code (default: TASKAPP_USER env var).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    p.add_argument("--log-file", help="Also write full debug logs to this file.")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("init", help="Create missing store files.")
    s.add_argument(
        "--seed-user",
        dest="seed_users",
        action="append",
        type=_parse_seed_user,
        metavar="CODE:NAME",
        help="Add a user when users.csv is created. Repeatable.",
    )
    s.set_defaults(func=cmd_init)

    s = sub.add_parser("users", help="List users.")
    s.set_defaults(func=cmd_users)

    s = sub.add_parser("list", help="List tasks.")
    s.set_defaults(func=cmd_list)

    s = sub.add_parser("add", help="Register a new task.")
    s.add_argument("name", help="Task name.")
    s.add_argument("--rep", type=int, required=True, help="Responsible user code.")
    s.add_argument("--code", type=int, help="Task code (default: highest code + 1).")
    s.set_defaults(func=cmd_add)

    s = sub.add_parser("status", help="Advance a task to its next status.")
    s.add_argument("task_code", type=int, help="Task code.")
    s.add_argument(
        "new_status",
        type=_parse_status,
        help="New status: 0/unstarted, 1/in_progress, 2/done.",
    )
    s.set_defaults(func=cmd_status)

    s = sub.add_parser("log", help="Show a task's status history.")
    s.add_argument("task_code", type=int, help="Task code.")
    s.set_defaults(func=cmd_log)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    log_file = Path(ns.log_file).expanduser().resolve() if ns.log_file else None
    setup_logging(logging.DEBUG if ns.verbose else logging.WARNING, log_file)
    try:
        return int(ns.func(ns))
    except AppError as e:
        print(str(e), file=sys.stderr)
        return 1
    except StoreError as e:
        logger.error("Store failure in '%s': %s", ns.cmd, e)
        print(f"Storage error: {e}", file=sys.stderr)
        return 2
