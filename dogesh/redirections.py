"""File redirections attached to a single command."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable
from typing import TextIO

_MODE = 0o644
_TRUNCATE = os.O_CREAT | os.O_WRONLY | os.O_TRUNC
_APPEND = os.O_CREAT | os.O_WRONLY | os.O_APPEND


def read_heredoc(delimiter: str, stream: TextIO) -> str:
    """Read lines up to a line equal to the delimiter; return them joined."""
    parts: list[str] = []
    for line in stream:
        text = line[:-1] if line.endswith("\n") else line
        if text == delimiter:
            break
        parts.append(text + "\n")
    return "".join(parts)


def copy_lines(source: TextIO, dest: TextIO) -> int:
    """Copy every line of source to dest, each ended by a newline."""
    count = 0
    for line in source:
        dest.write(line.rstrip("\n") + "\n")
        count += 1
    return count


def _readable_fd(text: str) -> int:
    """Return a descriptor positioned at the start of a file holding text."""
    with tempfile.TemporaryFile() as spool:
        spool.write(text.encode())
        spool.flush()
        fd = os.dup(spool.fileno())
    os.lseek(fd, 0, os.SEEK_SET)
    return fd


class Redirections:
    """Descriptors that replace a command's standard streams.

    Each of ``stdin``, ``stdout`` and ``stderr`` is an open descriptor or
    None when the stream is left alone.  The object owns the descriptors.
    """

    def __init__(self, heredoc_input: TextIO | None = None) -> None:
        self.stdin: int | None = None
        self.stdout: int | None = None
        self.stderr: int | None = None
        self.heredoc_input = heredoc_input
        self._handlers: dict[str, Callable[[str], None]] = {
            "<<": self._here_document,
            "<": self._read_from,
            "2>&1": self._both_to,
            "2>>": lambda target: self._replace("stderr", _open_write(target, _APPEND)),
            ">>": lambda target: self._replace("stdout", _open_write(target, _APPEND)),
            "2>": lambda target: self._replace("stderr", _open_write(target, _TRUNCATE)),
            ">": lambda target: self._replace("stdout", _open_write(target, _TRUNCATE)),
        }

    def __enter__(self) -> Redirections:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def apply(self, operator: str, target: str) -> None:
        """Open the target for the operator; OSError if it cannot be opened."""
        handler = self._handlers.get(operator)
        if handler is None:
            raise ValueError(f"unknown redirection operator: {operator!r}")
        handler(target)

    def close(self) -> None:
        """Close every descriptor held and forget it."""
        for name in ("stdin", "stdout", "stderr"):
            self._replace(name, None)

    def _replace(self, name: str, fd: int | None) -> None:
        old = getattr(self, name)
        setattr(self, name, fd)
        if old is not None:
            os.close(old)

    def _here_document(self, delimiter: str) -> None:
        stream = self.heredoc_input if self.heredoc_input is not None else sys.stdin
        self._replace("stdin", _readable_fd(read_heredoc(delimiter, stream)))

    def _read_from(self, target: str) -> None:
        self._replace("stdin", os.open(target, os.O_RDONLY))

    def _both_to(self, target: str) -> None:
        fd = _open_write(target, _TRUNCATE)
        self._replace("stdout", fd)
        self._replace("stderr", os.dup(fd))


def _open_write(target: str, flags: int) -> int:
    return os.open(target, flags, _MODE)