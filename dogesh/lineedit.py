"""Editable input line and command history."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

HISTORY_LIMIT = 15


def _char_class(char: str) -> int:
    """Group characters for word motion: letters/digits, spaces, the rest."""
    if char.isascii() and char.isalnum():
        return 0
    if char == " ":
        return 2
    return -1


@dataclass
class LineBuffer:
    """The text being typed and the cursor position inside it."""

    text: str = ""
    cursor: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.cursor <= len(self.text):
            raise ValueError(f"cursor {self.cursor} outside line of {len(self.text)}")

    def __str__(self) -> str:
        return self.text

    def __len__(self) -> int:
        return len(self.text)

    def insert(self, text: str) -> None:
        """Insert text at the cursor and move the cursor past it."""
        self.text = self.text[: self.cursor] + text + self.text[self.cursor:]
        self.cursor += len(text)

    def delete_before(self) -> bool:
        """Remove the character before the cursor; False at the line start."""
        if self.cursor == 0:
            return False
        self.text = self.text[: self.cursor - 1] + self.text[self.cursor:]
        self.cursor -= 1
        return True

    def kill_to_start(self) -> str:
        """Remove everything before the cursor and return it."""
        removed = self.text[: self.cursor]
        self.text = self.text[self.cursor:]
        self.cursor = 0
        return removed

    def kill_to_end(self) -> str:
        """Remove everything from the cursor onwards and return it."""
        removed = self.text[self.cursor:]
        self.text = self.text[: self.cursor]
        return removed

    def move_left(self) -> bool:
        """Step the cursor one place left; False at the line start."""
        if self.cursor == 0:
            return False
        self.cursor -= 1
        return True

    def move_right(self) -> bool:
        """Step the cursor one place right; False at the line end."""
        if self.cursor == len(self.text):
            return False
        self.cursor += 1
        return True

    def home(self) -> int:
        """Put the cursor at the line start; return the columns moved."""
        moved = self.cursor
        self.cursor = 0
        return moved

    def end(self) -> int:
        """Put the cursor at the line end; return the columns moved."""
        moved = len(self.text) - self.cursor
        self.cursor = len(self.text)
        return moved

    def word_left(self) -> int:
        """Move left over a run of characters of one kind; return columns moved."""
        start = self.cursor
        if start == 0:
            return 0
        kind = _char_class(self.text[start - 1])
        while self.cursor and _char_class(self.text[self.cursor - 1]) == kind:
            self.cursor -= 1
        return start - self.cursor

    def word_right(self) -> int:
        """Move right over a run of characters of one kind; return columns moved."""
        start = self.cursor
        if start == len(self.text):
            return 0
        kind = _char_class(self.text[start])
        while self.cursor < len(self.text) and _char_class(self.text[self.cursor]) == kind:
            self.cursor += 1
        return self.cursor - start

    def replace(self, text: str) -> None:
        """Replace the whole line and put the cursor at its end."""
        self.text = text
        self.cursor = len(text)


class History:
    """The most recent lines, newest first, with a browsing position."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("history limit must be positive")
        self.limit = limit
        self._entries: list[str] = []
        self._position = 0
        self._moved = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def add(self, line: str) -> None:
        """Record a line as the newest entry and go back to it."""
        self._entries.insert(0, line)
        del self._entries[self.limit:]
        self._position = 0
        self._moved = False

    def up(self) -> str | None:
        """Show the newest entry first, then step to older ones."""
        if not self._entries:
            return None
        if self._moved and self._position + 1 < len(self._entries):
            self._position += 1
        self._moved = True
        return self._entries[self._position]

    def down(self) -> str | None:
        """Step to a newer entry, staying on the newest one."""
        if not self._entries:
            return None
        if self._position > 0:
            self._position -= 1
        return self._entries[self._position]