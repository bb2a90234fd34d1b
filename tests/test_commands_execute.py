import subprocess
from types import SimpleNamespace

import pytest

import tether.commands as commands
from tether.commands import execute, parse, run_command
from tether.errors import ExecutionError, InjectionDetected, ParseRejected
from tether.logger import get_current_log_file


def test_echo_runs_without_shell():
    result = run_command("echo hello world")
    assert result.exit_code == 0
    assert result.stdout == "hello world\n"
    assert result.stderr == ""


def test_dollar_never_reaches_a_shell():
    with pytest.raises(InjectionDetected):
        run_command("echo $HOME")


def test_pwd_honours_cwd(tmp_path):
    result = execute(parse("pwd"), cwd=tmp_path)
    assert result.stdout.strip() == str(tmp_path.resolve())


def test_nonzero_exit_is_not_an_error(tmp_path):
    result = execute(parse("cat missing.txt"), cwd=tmp_path)
    assert result.exit_code != 0
    assert "missing.txt" in result.stderr


def test_cat_reads_literal_file_name(tmp_path):
    (tmp_path / "notes.txt").write_text("line one\n")
    assert run_command("cat notes.txt", cwd=tmp_path).stdout == "line one\n"


def test_grep_does_not_wait_for_stdin(tmp_path):
    # no file: grep reads stdin, which is /dev/null
    result = execute(parse("grep anything"), cwd=tmp_path)
    assert result.exit_code == 1
    assert result.stdout == ""


def test_execute_requires_a_safe_command():
    with pytest.raises(TypeError):
        execute(["ls", "-la"])


def test_spawn_arguments(monkeypatch):
    seen = {}

    def fake_run(argv, **kwargs):
        seen["argv"] = argv
        seen.update(kwargs)
        return SimpleNamespace(returncode=0, stdout=b"ok", stderr=b"")

    monkeypatch.setattr(commands.subprocess, "run", fake_run)
    execute(parse("git log -n 3 README.md"), cwd="/tmp")

    assert seen["argv"] == ["git", "log", "-n", "3", "README.md"]
    assert seen["shell"] is False
    assert seen["stdin"] is subprocess.DEVNULL
    assert seen["cwd"] == "/tmp"


def test_killed_by_signal_maps_to_minus_one(monkeypatch):
    monkeypatch.setattr(
        commands.subprocess,
        "run",
        lambda argv, **kw: SimpleNamespace(returncode=-9, stdout=b"", stderr=b""),
    )
    assert execute(parse("ps aux")).exit_code == -1


def test_invalid_utf8_is_replaced(monkeypatch):
    monkeypatch.setattr(
        commands.subprocess,
        "run",
        lambda argv, **kw: SimpleNamespace(returncode=0, stdout=b"ok\xff", stderr=b"\xfe"),
    )
    result = execute(parse("date"))
    assert result.stdout == "ok�"
    assert result.stderr == "�"


def test_missing_binary_is_execution_error(monkeypatch):
    def boom(argv, **kw):
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    monkeypatch.setattr(commands.subprocess, "run", boom)
    with pytest.raises(ExecutionError, match="Failed to execute command"):
        execute(parse("cargo tree"))


def test_bad_working_directory_is_execution_error(tmp_path):
    with pytest.raises(ExecutionError):
        execute(parse("pwd"), cwd=tmp_path / "does-not-exist")


def test_command_text_is_not_logged(tmp_path):
    token = "ghp_" + "Zq7" * 12
    run_command(f"echo {token}", cwd=tmp_path)
    with pytest.raises(InjectionDetected):
        parse(f"echo {token};")
    with pytest.raises(ParseRejected):
        parse(f"{token} --help")

    assert token not in get_current_log_file().read_text()
