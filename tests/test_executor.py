import io
import os
import subprocess
import sys

import pytest

from dogesh.executor import FAILURE, Executor, resolve_command, wait_all
from dogesh.parser import parse

PY = sys.executable
UPPER = "import sys; sys.stdout.write(sys.stdin.read().upper())"


def say(executor, argv, out):
    out.write(" ".join(argv[1:]) + "\n")
    return 0


def fail(executor, argv, out):
    return 1


@pytest.fixture
def shell():
    ex = Executor(dict(os.environ), {"say": say, "fail": fail})
    ex.output = io.StringIO()
    ex.errors = io.StringIO()
    return ex


def run(shell, *tokens):
    return shell.execute(parse(list(tokens)))


def test_sequence(shell):
    assert run(shell, "say", "a", ";", "say", "b") == 0
    assert shell.output.getvalue() == "a\nb\n"


@pytest.mark.parametrize(
    "tokens, expected",
    [
        (("fail", "&&", "say", "x"), ""),
        (("fail", "||", "say", "x"), "x\n"),
        (("say", "a", "&&", "say", "x"), "a\nx\n"),
        (("say", "a", "||", "say", "x"), "a\n"),
        (("fail", "&&", "say", "x", ";", "say", "y"), "y\n"),
    ],
)
def test_conditionals(shell, tokens, expected):
    run(shell, *tokens)
    assert shell.output.getvalue() == expected


def test_builtin_status(shell):
    assert run(shell, "fail") == 1
    assert shell.last_status == 1


def test_redirect_with_extra_arguments(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, "say", "a", ">", str(out), "extra")
    assert out.read_text() == "a extra\n"
    assert shell.output.getvalue() == ""


def test_append_twice(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, "say", "a", ">>", str(out))
    run(shell, "say", "b", ">>", str(out))
    assert out.read_text() == "a\nb\n"


def test_leading_redirection(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, ">", str(out), "say", "hi")
    assert out.read_text() == "hi\n"


def test_missing_input_stops_line(shell, tmp_path):
    status = run(shell, "say", "x", "<", str(tmp_path / "missing"), ";", "say", "y")
    assert status == FAILURE
    assert shell.output.getvalue() == ""


def test_exit_stops_line(shell):
    run(shell, "exit", ";", "say", "x")
    assert shell.exit_requested
    assert shell.output.getvalue() == ""


def test_unknown_command(shell, tmp_path):
    shell.env["PATH"] = str(tmp_path)
    assert run(shell, "nosuch") == FAILURE
    assert "nosuch" in shell.errors.getvalue()


def test_group_redirected(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, "(", "say", "a", ";", "say", "b", ")", ">", str(out))
    assert out.read_text() == "a\nb\n"


def test_builtin_piped_into_process(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, "say", "abc", "|", PY, "-c", UPPER, ">", str(out))
    assert out.read_text() == "ABC\n"


def test_process_pipeline(shell, tmp_path):
    out = tmp_path / "out"
    run(shell, PY, "-c", "print('hello')", "|", PY, "-c", UPPER, ">", str(out))
    assert out.read_text() == "HELLO\n"


def test_stderr_redirect(shell, tmp_path):
    err = tmp_path / "err"
    run(shell, PY, "-c", "import sys; sys.stderr.write('e')", "2>", str(err))
    assert err.read_text() == "e"


def test_here_document(shell, tmp_path):
    out = tmp_path / "out"
    shell.heredoc_input = io.StringIO("x\ny\nEND\n")
    run(shell, PY, "-c", UPPER, "<<", "END", ">", str(out))
    assert out.read_text() == "X\nY\n"


def test_process_exit_status(shell):
    assert run(shell, PY, "-c", "import sys; sys.exit(3)") == 3
    run(shell, PY, "-c", "import sys; sys.exit(3)", "||", "say", "ran")
    assert shell.output.getvalue() == "ran\n"


def test_background_job(shell):
    assert run(shell, PY, "-c", "pass", "&") == 0
    assert len(shell.jobs) == 1
    assert wait_all(shell.jobs) == 0


def test_resolve_first_match(tmp_path):
    first, second = tmp_path / "a", tmp_path / "b"
    first.mkdir()
    second.mkdir()
    tool = second / "tool"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o755)
    assert resolve_command("tool", [str(first), str(second)]) == str(tool)
    other = first / "tool"
    other.write_text("#!/bin/sh\n")
    other.chmod(0o755)
    path = os.pathsep.join([str(first), str(second)])
    assert resolve_command("tool", path) == str(other)


def test_resolve_errors(tmp_path):
    tool = tmp_path / "tool"
    tool.write_text("data")
    tool.chmod(0o644)
    with pytest.raises(PermissionError):
        resolve_command("tool", [str(tmp_path)])
    with pytest.raises(FileNotFoundError):
        resolve_command("missing", [str(tmp_path)])


def test_resolve_absolute_path():
    assert resolve_command(PY, ["/nonexistent-dir"]) == PY


def test_wait_all_returns_last_status():
    assert wait_all([2, 0]) == 0
    assert wait_all([0, 5]) == 5
    assert wait_all([]) == 0
    procs = [
        subprocess.Popen([PY, "-c", "import sys; sys.exit(4)"]),
        subprocess.Popen([PY, "-c", "pass"]),
    ]
    assert wait_all(procs) == 0
    assert all(p.returncode is not None for p in procs)


def test_wait_all_signalled_process():
    code = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"
    assert wait_all([subprocess.Popen([PY, "-c", code])]) == 1