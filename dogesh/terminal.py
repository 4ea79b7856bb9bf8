"""Raw key decoding and the interactive line editor."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import BinaryIO, TextIO

from .completion import Completion, complete
from .lineedit import History, LineBuffer

_READ_SIZE = 8
_INSERT_ON = "\x1b[4h"
_INSERT_OFF = "\x1b[4l"
_CLEAR_SCREEN = "\x1b[H\x1b[2J"
_DELETE_LINE = "\x1b[M"
_CLEAR_TO_END = "\x1b[K"


class Key(Enum):
    """What a key code read from the terminal asks the editor to do."""

    NEWLINE = "newline"
    CLEAR = "clear"
    KILL_START = "kill-start"
    ESCAPE = "escape"
    DELETE = "delete"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    LEFT = "left"
    RIGHT = "right"
    WORD_LEFT = "word-left"
    WORD_RIGHT = "word-right"
    INTERRUPT = "interrupt"
    BELL = "bell"
    KILL_END = "kill-end"
    COMPLETE = "complete"
    EOF = "eof"
    TEXT = "text"


# Codes are up to eight bytes read at once, taken as a little-endian number.
_CODES: dict[int, Key] = {
    10: Key.NEWLINE,
    12: Key.CLEAR,
    21: Key.KILL_START,
    27: Key.ESCAPE,
    127: Key.DELETE,
    16: Key.UP,
    1: Key.HOME,
    2: Key.LEFT,
    3: Key.INTERRUPT,
    4: Key.EOF,
    5: Key.END,
    6: Key.RIGHT,
    7: Key.BELL,
    8: Key.DELETE,
    11: Key.KILL_END,
    13: Key.CLEAR,
    14: Key.CLEAR,
    23: Key.KILL_START,
    9: Key.COMPLETE,
    4283163: Key.UP,
    4348699: Key.DOWN,
    4414235: Key.RIGHT,
    4479771: Key.LEFT,
    74995417045787: Key.WORD_LEFT,
    73895905418011: Key.WORD_RIGHT,
}


def decode_key(code: int) -> Key:
    """Map a key code to its action; anything unknown is text."""
    return _CODES.get(code, Key.TEXT)


def _left(columns: int) -> str:
    return f"\x1b[{columns}D" if columns > 0 else ""


def _right(columns: int) -> str:
    return f"\x1b[{columns}C" if columns > 0 else ""


class LineEditor:
    """Turns key codes into edits of one input line.

    ``out`` receives what the terminal should show; ``prompt`` is redrawn
    whenever the screen or the line is repainted.
    """

    def __init__(
        self,
        history: History | None = None,
        path: str | list[str] | None = None,
        cwd: str | os.PathLike[str] = ".",
    ) -> None:
        self.history = history if history is not None else History()
        self.path = path
        self.cwd = cwd
        self.buffer = LineBuffer()
        self.prompt = ""
        self.out: TextIO = sys.stdout
        self._pending: Completion | None = None
        self._handlers: dict[Key, Callable[[int], str | None]] = {
            Key.CLEAR: self._clear,
            Key.KILL_START: self._kill_start,
            Key.ESCAPE: lambda code: None,
            Key.DELETE: self._delete,
            Key.UP: self._up,
            Key.DOWN: self._down,
            Key.HOME: self._home,
            Key.END: self._end,
            Key.LEFT: self._move_left,
            Key.RIGHT: self._move_right,
            Key.WORD_LEFT: self._word_left,
            Key.WORD_RIGHT: self._word_right,
            Key.INTERRUPT: self._interrupt,
            Key.BELL: lambda code: self._emit("\a"),
            Key.KILL_END: self._kill_end,
            Key.COMPLETE: self._complete,
            Key.TEXT: self._text,
        }

    def feed(self, code: int) -> str | None:
        """Apply one key code; return the line once it is finished.

        Raises EOFError on end of input (Ctrl-D).
        """
        if self._pending is not None:
            return self._confirm(code)
        key = decode_key(code)
        if key is Key.EOF:
            raise EOFError("end of input")
        if key is Key.NEWLINE:
            return self._finish()
        return self._handlers[key](code)

    def _emit(self, text: str) -> None:
        if text:
            self.out.write(text)
            self.out.flush()

    def _finish(self) -> str:
        line = self.buffer.text or " "
        self.buffer = LineBuffer()
        self._emit("\n")
        return line

    def _repaint(self) -> None:
        self._emit(self.prompt + self.buffer.text)

    def _text(self, code: int) -> str | None:
        if 32 <= code <= 125:
            self._insert(chr(code))
            return None
        while code:
            byte = code & 0xFF
            if byte == 10:
                return self._finish()
            if 32 <= byte <= 126:
                self._insert(chr(byte))
            code >>= 8
        return None

    def _insert(self, char: str) -> None:
        self.buffer.insert(char)
        self._emit(char)

    def _delete(self, code: int) -> None:
        if self.buffer.delete_before():
            self._emit("\x1b[D\x1b[P")

    def _kill_start(self, code: int) -> None:
        removed = len(self.buffer.kill_to_start())
        if removed:
            self._emit(f"{_left(removed)}\x1b[{removed}P")

    def _kill_end(self, code: int) -> None:
        if self.buffer.kill_to_end():
            self._emit(_CLEAR_TO_END)

    def _home(self, code: int) -> None:
        self._emit(_left(self.buffer.home()))

    def _end(self, code: int) -> None:
        self._emit(_right(self.buffer.end()))

    def _move_left(self, code: int) -> None:
        if self.buffer.move_left():
            self._emit(_left(1))

    def _move_right(self, code: int) -> None:
        if self.buffer.move_right():
            self._emit(_right(1))

    def _word_left(self, code: int) -> None:
        self._emit(_left(self.buffer.word_left()))

    def _word_right(self, code: int) -> None:
        self._emit(_right(self.buffer.word_right()))

    def _clear(self, code: int) -> None:
        self._emit(_CLEAR_SCREEN)
        self._repaint()
        self._emit(_left(len(self.buffer) - self.buffer.cursor))

    def _interrupt(self, code: int) -> None:
        self.buffer = LineBuffer()
        self._emit("EOT\n" + self.prompt)

    def _show_history(self, entry: str | None) -> None:
        if entry is None:
            return
        self._emit(_DELETE_LINE + "\r")
        self.buffer.replace(entry)
        self._repaint()

    def _up(self, code: int) -> None:
        self._show_history(self.history.up())

    def _down(self, code: int) -> None:
        self._show_history(self.history.down())

    def _list(self, names: tuple[str, ...]) -> None:
        self._emit("\n" + "\n".join(names) + "\n")

    def _complete(self, code: int) -> None:
        result = complete(self.buffer.text or None, self.path, self.cwd)
        if result is None:
            return
        if result.needs_confirmation:
            self._pending = result
            self._emit(
                f"\nDisplay all {len(result.candidates)} possibilities? (y or n)"
            )
            return
        if result.candidates:
            self._list(result.candidates)
            self.buffer.replace(result.line)
            self._repaint()
            return
        self._emit(_left(self.buffer.cursor) + _CLEAR_TO_END + result.line)
        self.buffer.replace(result.line)

    def _confirm(self, code: int) -> None:
        pending = self._pending
        assert pending is not None
        while code:
            answer = chr(code & 0xFF)
            code >>= 8
            if answer == "y":
                self._list(pending.candidates)
            elif answer == "n":
                self._emit("\n")
            else:
                continue
            self._pending = None
            self.buffer.replace(pending.line)
            self._repaint()
            return None
        return None


def _chunk_reader(stream: BinaryIO) -> Callable[[], bytes]:
    try:
        fd: int | None = stream.fileno()
    except (AttributeError, OSError, ValueError):
        fd = None
    if fd is not None and os.isatty(fd):
        return lambda: os.read(fd, _READ_SIZE)
    read = getattr(stream, "read1", None) or stream.read
    return lambda: read(_READ_SIZE)


@contextmanager
def _raw_mode(stream: BinaryIO) -> Iterator[None]:
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        fd = None
    if fd is None or not os.isatty(fd):
        yield
        return
    import termios

    saved = termios.tcgetattr(fd)
    raw = termios.tcgetattr(fd)
    raw[3] &= ~(termios.ECHO | termios.ICANON)
    raw[6][termios.VMIN] = 1
    termios.tcsetattr(fd, termios.TCSANOW, raw)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, saved)


def read_line(stream: BinaryIO, editor: LineEditor) -> str | None:
    """Read keys until a line is entered; None at end of input.

    A finished line is recorded in the editor's history.
    """
    read = _chunk_reader(stream)
    editor._emit(editor.prompt + _INSERT_ON)
    line: str | None = None
    try:
        with _raw_mode(stream):
            while True:
                chunk = read()
                if not chunk:
                    break
                try:
                    line = editor.feed(int.from_bytes(chunk, "little"))
                except EOFError:
                    break
                if line is not None:
                    break
    finally:
        editor._emit(_INSERT_OFF)
    if line is not None:
        editor.history.add(line)
    return line