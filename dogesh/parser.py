"""Build the execution tree from grouped commands."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from .lexer import Command, ShellSyntaxError, Token, check_parentheses, lex
from .tokens import is_redirection, separator_index, separator_word


@dataclass
class Node:
    """A tree node.

    Nodes along the ``left`` chain hold the operator that precedes the
    command in ``right``; a node whose ``words`` is None marks the end of
    the line or a closing parenthesis.  ``depth`` is the parenthesis depth.
    """

    words: tuple[str, ...] | None = None
    left: Node | None = None
    right: Node | None = None
    depth: int = 0

    @property
    def operator(self) -> str | None:
        """The first word held by the node, if any."""
        return self.words[0] if self.words else None

    def spine(self) -> Iterator[Node]:
        """Yield this node and every node down its ``left`` chain."""
        node: Node | None = self
        while node is not None:
            yield node
            node = node.left


class _Builder:
    def __init__(self, commands: Sequence[Command]) -> None:
        self._commands = list(commands)
        self._pos = 0
        self._depth = 0

    def _current(self) -> Command | None:
        if self._pos < len(self._commands):
            return self._commands[self._pos]
        return None

    def _advance(self) -> None:
        self._pos += 1

    @staticmethod
    def _starts_with(cmd: Command | None, char: str) -> bool:
        return (
            cmd is not None
            and bool(cmd.words)
            and not cmd.quoted
            and cmd.words[0].startswith(char)
        )

    def _leading_redirection(self) -> Node | None:
        cmd = self._current()
        if cmd is not None and cmd.words and is_redirection(cmd.words[0], cmd.quoted):
            self._advance()
            return Node(cmd.words, depth=self._depth)
        return None

    def _skip_to_close(self) -> None:
        open_count = 1
        while open_count:
            cmd = self._current()
            if cmd is None:
                raise ShellSyntaxError("Unmatched parenthesis.")
            if self._starts_with(cmd, "("):
                open_count += 1
            elif self._starts_with(cmd, ")"):
                open_count -= 1
            self._advance()

    def _load(self) -> tuple[Node, bool]:
        cmd = self._current()
        if self._starts_with(cmd, "("):
            self._advance()
            self._depth += 1
            node = self.subtree(0, self._depth)
            self._depth -= 1
            self._skip_to_close()
            return node, False
        if self._starts_with(cmd, ")"):
            return Node(None, depth=self._depth), True
        node = Node(depth=self._depth)
        if cmd is not None:
            node.words = cmd.words
            self._advance()
        return node, False

    def subtree(self, value: int, depth: int) -> Node:
        root = Node((separator_word(value),), depth=depth)
        root.left = self._leading_redirection()
        closed = False
        while self._current() is not None:
            tail = root
            while tail.left is not None:
                tail = tail.left
            tail.right, hit = self._load()
            closed = closed or hit
            cmd = self._current()
            if cmd is not None and cmd.words:
                index = separator_index(cmd.words[0], cmd.quoted)
                if index is not None:
                    self._advance()
                    tail.left = self.subtree(index, tail.depth)
                    return root
            tail.left, hit = self._load()
            closed = closed or hit
            if closed:
                return root
        return root


def build_tree(commands: Iterable[Command]) -> Node:
    """Arrange grouped commands into the tree the executor walks."""
    return _Builder(list(commands)).subtree(0, 0)


def parse(tokens: Iterable[Token | str]) -> Node:
    """Check, group and arrange a token stream into a tree."""
    toks = list(tokens)
    check_parentheses(toks)
    return build_tree(lex(toks))