"""Syntax checks on a token stream and grouping of words into commands."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .tokens import Category, category_of, matches


@dataclass(frozen=True)
class Token:
    """One word of the input line; quoted words never act as operators."""

    text: str
    quoted: bool = False


@dataclass(frozen=True)
class Command:
    """A run of plain words, or a single operator."""

    words: tuple[str, ...]
    quoted: bool = False


class ShellSyntaxError(Exception):
    """Raised when the command line is not well formed."""

    def __init__(self, message: str, token: str | None = None) -> None:
        super().__init__(message)
        self.token = token


def _coerce(tokens: Iterable[Token | str]) -> list[Token]:
    return [tok if isinstance(tok, Token) else Token(tok) for tok in tokens]


def check_parentheses(tokens: Iterable[Token | str]) -> int:
    """Ensure '(' and ')' are equally many; return the number of pairs."""
    texts = [tok.text for tok in _coerce(tokens)]
    left = texts.count("(")
    right = texts.count(")")
    if left != right:
        raise ShellSyntaxError("Unmatched parenthesis.")
    return left


def _is(word: str | None, *categories: Category) -> bool:
    return any(matches(word, cat, False) for cat in categories)


_SEP = Category.SEPARATOR
_IN = Category.REDIRECT_IN
_OUT = Category.REDIRECT_OUT
_PIPE = Category.PIPE

_Rule = Callable[[str, "str | None", "str | None"], bool]


def _bad_pipe(word: str, prev: str | None, nxt: str | None) -> bool:
    return (
        _is(nxt, _PIPE, _SEP, _OUT, _IN)
        or _is(prev, _PIPE, _SEP, _OUT, _IN)
        or nxt == ")"
        or prev == "("
        or nxt is None
        or prev is None
    )


def _bad_redirection(word: str, prev: str | None, nxt: str | None) -> bool:
    return (
        nxt in ("(", ")")
        or _is(nxt, _PIPE, _SEP, _IN, _OUT)
        or _is(prev, _IN, _OUT, _PIPE)
        or nxt is None
    )


def _bad_and_or(word: str, prev: str | None, nxt: str | None) -> bool:
    return (
        _is(prev, _PIPE, _OUT, _IN, _SEP)
        or _is(nxt, _PIPE, _SEP)
        or nxt == ")"
        or prev == "("
        or nxt is None
        or prev is None
    )


def _bad_separator(word: str, prev: str | None, nxt: str | None) -> bool:
    if word != ";":
        return _bad_and_or(word, prev, nxt)
    return (
        prev == "("
        or prev is None
        or _is(prev, _IN, _OUT, _SEP)
        or _is(nxt, _SEP)
        or prev == "|"
        or nxt in (")", "|")
    )


def _bad_parenthesis(word: str, prev: str | None, nxt: str | None) -> bool:
    if word == "(":
        return nxt in (")", "|", ";") or prev == ")" or nxt is None
    return nxt == "(" or prev in ("(", "|", ";") or prev is None


def _bad_job(word: str, prev: str | None, nxt: str | None) -> bool:
    return (
        nxt in ("(", ")")
        or prev in ("(", ")")
        or _is(nxt, _PIPE, _SEP, _IN, _OUT)
        or _is(prev, _PIPE, _SEP, _IN, _OUT)
        or prev is None
    )


def _bad_word(word: str, prev: str | None, nxt: str | None) -> bool:
    return nxt == "(" or prev == ")"


_RULES: dict[Category, _Rule] = {
    Category.SEPARATOR: _bad_separator,
    Category.REDIRECT_IN: _bad_redirection,
    Category.REDIRECT_OUT: _bad_redirection,
    Category.PIPE: _bad_pipe,
    Category.PARENTHESIS: _bad_parenthesis,
    Category.JOB: _bad_job,
}


def validate(tokens: Iterable[Token | str]) -> None:
    """Check every token against its neighbours; raise on the first error."""
    toks = _coerce(tokens)
    texts: list[str | None] = [tok.text for tok in toks]
    prevs = [None, *texts[:-1]]
    nexts = [*texts[1:], None]
    for tok, prev, nxt in zip(toks, prevs, nexts):
        category = category_of(tok.text, tok.quoted)
        rule = _bad_word if category is None else _RULES[category]
        if rule(tok.text, prev, nxt):
            raise ShellSyntaxError(
                f"Syntax error near unexpected token '{tok.text}'.", tok.text
            )


def group_tokens(tokens: Iterable[Token | str]) -> list[Command]:
    """Gather runs of plain words into commands; each operator stands alone."""
    commands: list[Command] = []
    words: list[Token] = []

    def flush() -> None:
        if words:
            commands.append(
                Command(tuple(w.text for w in words), words[0].quoted)
            )
            words.clear()

    for tok in _coerce(tokens):
        if category_of(tok.text, tok.quoted) is None:
            words.append(tok)
        else:
            flush()
            commands.append(Command((tok.text,), tok.quoted))
    flush()
    return commands


def lex(tokens: Iterable[Token | str]) -> list[Command]:
    """Validate the tokens, then group them into commands."""
    toks = _coerce(tokens)
    validate(toks)
    return group_tokens(toks)