# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskapp.logic import TaskLogic
from taskapp.store import LogStore, TaskStore, UserStore

from .fakes import ALICE, BOB, TODAY, FakeLogs, FakeTasks, FakeUsers


@pytest.fixture()
def fake_users() -> FakeUsers:
    return FakeUsers([ALICE, BOB])


@pytest.fixture()
def fake_tasks() -> FakeTasks:
    return FakeTasks()


@pytest.fixture()
def fake_logs() -> FakeLogs:
    return FakeLogs()


@pytest.fixture()
def logic(fake_tasks: FakeTasks, fake_logs: FakeLogs, fake_users: FakeUsers) -> TaskLogic:
    return TaskLogic(fake_tasks, fake_logs, fake_users, today=lambda: TODAY)


@pytest.fixture()
def csv_stores(tmp_path: Path):
    """Real CSV stores in tmp_path with Alice and Bob seeded."""
    users = UserStore(tmp_path / "users.csv")
    users.init([ALICE, BOB])
    tasks = TaskStore(tmp_path / "tasks.csv", users)
    tasks.init()
    logs = LogStore(tmp_path / "logs.csv")
    logs.init()
    return users, tasks, logs
