from datetime import date
from pathlib import Path

import pytest

from taskapp.cli import main
from taskapp.models import Status


def _run(tmp_path: Path, *args: str) -> int:
    return main(["--data-dir", str(tmp_path), *args])


def _init(tmp_path: Path) -> None:
    assert _run(tmp_path, "init", "--seed-user", "1:Alice", "--seed-user", "2:Bob") == 0


def test_init_creates_three_tables(tmp_path: Path):
    _init(tmp_path)
    assert (tmp_path / "users.csv").read_text(encoding="utf-8") == "Code,Name\n1,Alice\n2,Bob\n"
    assert (tmp_path / "tasks.csv").read_text(encoding="utf-8") == "Code,Name,Status,Rep_User_Code\n"
    assert (tmp_path / "logs.csv").exists()


def test_add_list_and_advance(tmp_path: Path, capsys):
    _init(tmp_path)

    assert _run(tmp_path, "--user", "1", "add", "Design doc", "--rep", "1") == 0
    assert _run(tmp_path, "--user", "1", "add", "Review", "--rep", "2") == 0
    assert _run(tmp_path, "--user", "2", "status", "1", "in_progress") == 0
    capsys.readouterr()

    assert _run(tmp_path, "--user", "1", "list") == 0
    out = capsys.readouterr().out
    assert "Design doc" in out
    assert "In progress" in out
    assert "you" in out
    assert "Bob" in out

    today = date.today().isoformat()
    assert (tmp_path / "logs.csv").read_text(encoding="utf-8").splitlines()[1:] == [
        f"1,1,0,{today}",
        f"2,1,0,{today}",
        f"1,2,1,{today}",
    ]


def test_rejected_commands_exit_1(tmp_path: Path, capsys):
    _init(tmp_path)
    assert _run(tmp_path, "--user", "1", "add", "X", "--rep", "99") == 1
    assert "User #99" in capsys.readouterr().err

    assert _run(tmp_path, "--user", "1", "status", "5", "1") == 1
    assert "Task #5 not found" in capsys.readouterr().err

    assert _run(tmp_path, "--user", "1", "add", "Y", "--rep", "1", "--code", "3") == 0
    assert _run(tmp_path, "--user", "1", "status", "3", "2") == 1
    assert "can only move" in capsys.readouterr().err


def test_missing_acting_user(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.delenv("TASKAPP_USER", raising=False)
    _init(tmp_path)
    assert _run(tmp_path, "list") == 1
    assert "No acting user" in capsys.readouterr().err


def test_acting_user_from_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TASKAPP_USER", "2")
    _init(tmp_path)
    assert _run(tmp_path, "add", "Env task", "--rep", "2") == 0
    assert (tmp_path / "logs.csv").read_text(encoding="utf-8").splitlines()[1].startswith("1,2,0,")


def test_corrupt_store_exits_2(tmp_path: Path, capsys):
    _init(tmp_path)
    (tmp_path / "tasks.csv").write_text("Code,Name,Status,Rep_User_Code\n1,A,0\n", encoding="utf-8")
    assert _run(tmp_path, "--user", "1", "list") == 2
    assert "Storage error" in capsys.readouterr().err


def test_log_command(tmp_path: Path, capsys):
    _init(tmp_path)
    _run(tmp_path, "--user", "1", "add", "A", "--rep", "1")
    _run(tmp_path, "--user", "1", "status", "1", "1")
    capsys.readouterr()

    assert _run(tmp_path, "log", "1") == 0
    out = capsys.readouterr().out
    assert Status.UNSTARTED.label in out
    assert Status.IN_PROGRESS.label in out


def test_bad_status_argument(tmp_path: Path):
    with pytest.raises(SystemExit):
        _run(tmp_path, "--user", "1", "status", "1", "finished")


def test_unstorable_name_exits_1(tmp_path: Path, capsys):
    _init(tmp_path)
    assert _run(tmp_path, "--user", "1", "add", "x\udcff", "--rep", "1") == 1
    assert "cannot be stored" in capsys.readouterr().err
    assert (tmp_path / "tasks.csv").read_text(encoding="utf-8") == "Code,Name,Status,Rep_User_Code\n"


def test_non_integer_acting_user_env(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.setenv("TASKAPP_USER", "alice")
    _init(tmp_path)
    assert _run(tmp_path, "list") == 1
    err = capsys.readouterr().err
    assert "TASKAPP_USER" in err
    assert "'alice'" in err


def test_log_file_receives_debug_output(tmp_path: Path):
    _init(tmp_path)
    log_file = tmp_path / "logs" / "taskapp.log"
    assert _run(tmp_path, "--log-file", str(log_file), "--user", "1", "add", "A", "--rep", "1") == 0
    text = log_file.read_text(encoding="utf-8")
    assert "Registered task #1" in text
    assert "DEBUG" in text


def test_seed_users_ignored_when_users_file_exists(tmp_path: Path, capsys):
    _init(tmp_path)
    capsys.readouterr()
    assert _run(tmp_path, "init", "--seed-user", "3:Carol") == 0
    assert "ignoring 1 --seed-user" in capsys.readouterr().err
    assert "Carol" not in (tmp_path / "users.csv").read_text(encoding="utf-8")
