"""Run the command tree: pipes, redirections, separators and jobs."""

from __future__ import annotations

import errno
import io
import os
import subprocess
import sys
import tempfile
from collections.abc import Callable, Iterable, Mapping
from typing import TextIO, Union

from .parser import Node
from .redirections import Redirections
from .tokens import is_redirection, separator_index

FAILURE = -1

Builtin = Callable[["Executor", list, TextIO], int]
_Started = Union["subprocess.Popen[bytes]", int]


def resolve_command(name: str, path: str | Iterable[str] | None) -> str:
    """Find the program for a command name along the search path."""
    if isinstance(path, str):
        dirs = [entry for entry in path.split(os.pathsep) if entry]
    else:
        dirs = list(path or ())
    if dirs and not name.startswith("/") and not name.startswith("./"):
        candidates = [os.path.join(entry, name) for entry in dirs]
    else:
        candidates = [name]
    for candidate in candidates:
        if os.path.exists(candidate):
            if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
                return candidate
            raise PermissionError(errno.EACCES, "Permission denied", candidate)
    raise FileNotFoundError(errno.ENOENT, "Command not found", name)


def _exit_status(returncode: int) -> int:
    # A process killed by a signal counts as status 1.
    return 1 if returncode < 0 else returncode


def wait_all(processes: Iterable[_Started]) -> int:
    """Wait for every process; return the status of the last one."""
    status = 0
    for entry in processes:
        if isinstance(entry, int):
            status = entry
        else:
            status = _exit_status(entry.wait())
    return status


def _spool_fd() -> int:
    with tempfile.TemporaryFile() as spool:
        return os.dup(spool.fileno())


def _skip(node: Node | None, stops: tuple[int, ...]) -> Node | None:
    while (
        node is not None
        and node.words is not None
        and separator_index(node.operator, False) not in stops
    ):
        node = node.left
    return node


def _close(fd: int | None) -> None:
    if fd is not None:
        os.close(fd)


class Executor:
    """Runs parsed command trees.

    ``builtins`` maps a command name to a callable taking the executor, the
    argument list and a text stream for its output, and returning a status.
    """

    def __init__(
        self, env: Mapping[str, str], builtins: Mapping[str, Builtin] | None = None
    ) -> None:
        self.env = dict(env)
        self.builtins = dict(builtins or {})
        self.status = 0
        self.last_status = 0
        self.exit_requested = False
        self.jobs: list[subprocess.Popen[bytes]] = []
        self.output: TextIO = sys.stdout
        self.errors: TextIO = sys.stderr
        self.heredoc_input: TextIO | None = None

    def execute(self, tree: Node | None) -> int:
        """Run a tree built by the parser; return the final status."""
        if tree is not None and not self.exit_requested:
            self._run_chain(tree)
        return self.status

    def _warn(self, message: str) -> None:
        self.errors.write(message + "\n")
        self.errors.flush()

    def _emit(self, text: str, fd: int | None) -> None:
        if not text:
            return
        if fd is None:
            self.output.write(text)
            self.output.flush()
            return
        data = text.encode()
        while data:
            data = data[os.write(fd, data):]

    def _run_chain(
        self,
        tree: Node,
        stdin: int | None = None,
        stdout: int | None = None,
        stderr: int | None = None,
    ) -> None:
        node: Node | None = tree
        link = tree.left
        redirs = Redirections(self.heredoc_input)
        saved: list[str] = []
        pipe_in: int | None = None
        started: list[_Started] = []
        try:
            while (
                node is not None
                and node.words is not None
                and link is not None
                and not self.exit_requested
            ):
                op = link.operator
                if is_redirection(op, False):
                    words = link.right.words if link.right and link.right.words else ()
                    if words:
                        try:
                            redirs.apply(op, words[0])
                        except OSError as exc:
                            self._warn(f"{words[0]}: {exc.strerror}.")
                            self.status = FAILURE
                            return
                        saved.extend(words[1:])
                    link = link.left
                    continue

                target = node.right
                group = target is not None and target.depth > node.depth
                argv = [] if group else [*(target.words if target and target.words else ()), *saved]
                saved = []
                source = redirs.stdin if redirs.stdin is not None else (
                    pipe_in if pipe_in is not None else stdin
                )
                errors = redirs.stderr if redirs.stderr is not None else stderr

                if op == "|":
                    if group or self._in_process(argv):
                        next_in = _spool_fd()
                        sink = next_in
                    else:
                        next_in, sink = os.pipe()
                    out = redirs.stdout if redirs.stdout is not None else sink
                    started.append(
                        self._start(target, group, argv, source, out, errors, True)
                    )
                    if sink == next_in:
                        os.lseek(next_in, 0, os.SEEK_SET)
                    else:
                        os.close(sink)
                    _close(pipe_in)
                    pipe_in = next_in
                    redirs.close()
                    redirs = Redirections(self.heredoc_input)
                    node, link = link, link.left
                    continue

                out = redirs.stdout if redirs.stdout is not None else stdout
                started.append(self._start(target, group, argv, source, out, errors, False))
                _close(pipe_in)
                pipe_in = None
                redirs.close()
                redirs = Redirections(self.heredoc_input)
                if op == "&" and node.depth == 0:
                    self.jobs.extend(p for p in started if not isinstance(p, int))
                    self.status = 0
                else:
                    self.status = wait_all(started)
                started = []
                self.last_status = self.status
                node = link
                index = separator_index(op, False)
                if index == 1 and self.status != 0:
                    node = _skip(node, (0, 2))
                elif index == 2 and self.status == 0:
                    node = _skip(node, (0, 1))
                link = node.left if node is not None else None
        finally:
            redirs.close()
            _close(pipe_in)
            if started:
                wait_all(started)

    def _in_process(self, argv: list[str]) -> bool:
        return not argv or argv[0] == "exit" or argv[0] in self.builtins

    def _start(
        self,
        target: Node | None,
        group: bool,
        argv: list[str],
        stdin: int | None,
        stdout: int | None,
        stderr: int | None,
        in_pipe: bool,
    ) -> _Started:
        if group and target is not None:
            self._run_chain(target, stdin, stdout, stderr)
            return self.status
        if not argv:
            return 0
        name = argv[0]
        if name == "exit":
            if not in_pipe:
                self.exit_requested = True
            return 0
        builtin = self.builtins.get(name)
        if builtin is not None:
            buffer = io.StringIO()
            status = builtin(self, argv, buffer)
            self._emit(buffer.getvalue(), stdout)
            return status
        try:
            program = resolve_command(name, self.env.get("PATH", ""))
        except FileNotFoundError:
            self._warn(f"{name}: Command not found.")
            return FAILURE
        except OSError as exc:
            self._warn(f"{name}: {exc.strerror}.")
            return FAILURE
        self.output.flush()
        try:
            return subprocess.Popen(
                [program, *argv[1:]],
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
                env=self.env,
            )
        except OSError as exc:
            self._warn(f"{name}: {exc.strerror}.")
            return FAILURE