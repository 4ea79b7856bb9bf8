"""Operator vocabulary of the shell grammar."""

from __future__ import annotations

from enum import IntEnum

SEPARATORS = (";", "&&", "||")
REDIRECTIONS = ("2>>", "2>&1", "2>", ">>", ">", "<<", "<")


class Category(IntEnum):
    """Kinds of operator tokens, in the order they are tried."""

    SEPARATOR = 0
    REDIRECT_IN = 1
    REDIRECT_OUT = 2
    PIPE = 3
    PARENTHESIS = 4
    JOB = 5

    @property
    def words(self) -> tuple[str, ...]:
        """The operator spellings that belong to this category."""
        return _WORDS[self]


_WORDS: dict[Category, tuple[str, ...]] = {
    Category.SEPARATOR: SEPARATORS,
    Category.REDIRECT_IN: ("<<", "<"),
    Category.REDIRECT_OUT: ("2>>", ">>", "2>&1", "2>", ">"),
    Category.PIPE: ("|",),
    Category.PARENTHESIS: ("(", ")"),
    Category.JOB: ("&",),
}


def matches(word: str | None, category: Category | int, quoted: bool) -> bool:
    """Tell whether an unquoted word is one of the category's operators."""
    if quoted or word is None:
        return False
    return word in _WORDS[Category(category)]


def category_of(word: str | None, quoted: bool) -> Category | None:
    """Return the first category the word belongs to, or None for plain words."""
    return next((cat for cat in Category if matches(word, cat, quoted)), None)


def separator_index(word: str | None, quoted: bool) -> int | None:
    """Return 0 for ';', 1 for '&&', 2 for '||', None otherwise."""
    if quoted or word is None:
        return None
    try:
        return SEPARATORS.index(word)
    except ValueError:
        return None


def is_redirection(word: str | None, quoted: bool) -> bool:
    """Tell whether an unquoted word is a redirection operator."""
    return not quoted and word is not None and word in REDIRECTIONS


def separator_word(value: int) -> str:
    """Return the separator spelling for an index; anything past 1 is '||'."""
    if value == 0:
        return ";"
    if value == 1:
        return "&&"
    return "||"