"""Prompt rendering with escape sequences."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

SHELL_NAME = "dogesh"
GIT_COMMAND = ("/usr/bin/git", "status", "--porcelain")

_DAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_RED = "\x1b[1;31m"
_GREEN = "\x1b[1;32m"
_RESET = "\x1b[0m"
_NOTHING = "\x1b[1;33mNothing\x1b[0m"


def _current_uid() -> int:
    getuid = getattr(os, "getuid", None)
    return getuid() if getuid is not None else 0


@dataclass
class PromptContext:
    """What the prompt escapes draw on."""

    env: Mapping[str, str] = field(default_factory=dict)
    count: int = 0
    uid: int = field(default_factory=_current_uid)
    cwd: str = "."
    version: str = ""
    version_full: str = ""


def format_date(now: datetime) -> str:
    """Weekday, month and two-digit day, as for '\\d'."""
    day = _DAYS[(now.weekday() + 1) % 7]
    return f"{day} {_MONTHS[now.month - 1]} {now.day:02d}"


def format_time_24(now: datetime) -> str:
    """HH:MM:SS on the 24-hour clock, as for '\\t'."""
    return f"{now.hour:02d}:{now.minute:02d}:{now.second:02d}"


def _twelve(now: datetime) -> datetime:
    return now.replace(hour=now.hour - 12) if now.hour > 12 else now


def format_time_12(now: datetime) -> str:
    """HH:MM:SS with afternoon hours folded down by twelve, as for '\\T'."""
    return format_time_24(_twelve(now))


def format_hh_mm(now: datetime) -> str:
    """HH:MM, as for '\\A'."""
    return f"{now.hour:02d}:{now.minute:02d}"


def format_am_pm(now: datetime) -> str:
    """HH:MM followed by AM or PM, as for '\\@'."""
    suffix = "PM" if now.hour > 12 else "AM"
    return f"{format_hh_mm(_twelve(now))} {suffix}"


def working_dir(env: Mapping[str, str]) -> str:
    """PWD with the home directory shown as '~'; empty without PWD."""
    pwd = env.get("PWD")
    if pwd is None:
        return ""
    home = env.get("HOME")
    if home is None or not pwd.startswith(home):
        return pwd
    return "~" + pwd[len(home):]


def working_dir_base(env: Mapping[str, str]) -> str:
    """The last component of PWD with its leading slash; 'NULL' without PWD."""
    pwd = env.get("PWD")
    if pwd is None:
        return "NULL"
    index = pwd.rfind("/")
    return pwd[index:] if index >= 0 else pwd


def _worktree_dirty(directory: Path, env: Mapping[str, str]) -> bool:
    try:
        result = subprocess.run(
            list(GIT_COMMAND),
            cwd=directory,
            env=dict(env),
            capture_output=True,
            check=False,
        )
    except OSError:
        return False
    return bool(result.stdout)


def git_branch(directory: str | os.PathLike[str], env: Mapping[str, str]) -> str:
    """The coloured branch name of the repository in a directory."""
    base = Path(directory)
    try:
        with open(base / ".git" / "HEAD", encoding="utf-8") as head:
            line = head.readline().rstrip("\n")
    except OSError:
        return _NOTHING
    if not line.startswith("ref: "):
        return _NOTHING
    branch = line[line.rfind("/") + 1:]
    colour = _RED if _worktree_dirty(base, env) else _GREEN
    return f"{colour}{branch}{_RESET}"


_Handler = Callable[[PromptContext, datetime], str]

_ESCAPES: dict[str, _Handler] = {
    "\\d": lambda ctx, now: format_date(now),
    "\\g": lambda ctx, now: git_branch(ctx.cwd, ctx.env),
    "\\r": lambda ctx, now: "\r",
    "\\\\": lambda ctx, now: "\\",
    "\\s": lambda ctx, now: SHELL_NAME,
    "\\t": lambda ctx, now: format_time_24(now),
    "\\e": lambda ctx, now: "\x1b",
    "\\h": lambda ctx, now: ctx.env.get("HOSTNAME", ""),
    "\\[": lambda ctx, now: "",
    "\\H": lambda ctx, now: ctx.env.get("HOSTNAME", ""),
    "\\]": lambda ctx, now: "",
    "\\n": lambda ctx, now: "\n",
    "\\a": lambda ctx, now: "\a",
    "\\T": lambda ctx, now: format_time_12(now),
    "\\@": lambda ctx, now: format_am_pm(now),
    "\\A": lambda ctx, now: format_hh_mm(now),
    "\\u": lambda ctx, now: ctx.env.get("USER", ""),
    "\\v": lambda ctx, now: ctx.version,
    "\\V": lambda ctx, now: ctx.version_full,
    "\\w": lambda ctx, now: working_dir(ctx.env),
    "\\W": lambda ctx, now: working_dir_base(ctx.env),
    "\\#": lambda ctx, now: str(ctx.count),
    "\\$": lambda ctx, now: str(ctx.uid),
}

# These escapes leave the clock folded to twelve hours for the rest of the prompt.
_FOLDING = {"\\T", "\\@"}


def render_prompt(
    template: str, context: PromptContext, now: datetime | None = None
) -> str:
    """Expand the backslash escapes of a prompt template."""
    clock = now if now is not None else datetime.now()
    parts: list[str] = []
    i = 0
    while i < len(template):
        code = template[i:i + 2]
        handler = _ESCAPES.get(code)
        if handler is None:
            parts.append(template[i])
            i += 1
            continue
        parts.append(handler(context, clock))
        if code in _FOLDING:
            clock = _twelve(clock)
        i += 2
    return "".join(parts)


def prompt_text(context: PromptContext, now: datetime | None = None) -> str:
    """The prompt to show: PS1, else PS2, else the user name, else a default.

    Callers show it only when standard input is a terminal.
    """
    env = context.env
    for name in ("PS1", "PS2"):
        template = env.get(name)
        if template is not None:
            return render_prompt(template, context, now)
    user = env.get("USER")
    if user is not None:
        return f"({user}) : "
    return "?> : "