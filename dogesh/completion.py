"""Tab completion of file names and commands."""

from __future__ import annotations

import glob
import os
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

LIST_LIMIT = 50

PathLike = "str | os.PathLike[str]"


@dataclass(frozen=True)
class Completion:
    """The completed line and the names to show to the user.

    ``needs_confirmation`` is set when there are too many names to list
    without asking first; the line is then left as it was.
    """

    line: str
    candidates: tuple[str, ...] = ()
    needs_confirmation: bool = False


def basename_start(path: str) -> int:
    """Index where the last component starts; a trailing '/' is kept with it."""
    index = path.rfind("/", 1, len(path) - 1)
    return index + 1 if index >= 0 else 0


def _base(path: str) -> str:
    return path[basename_start(path):]


def unique_names(paths: Iterable[str]) -> list[str]:
    """Last components of the paths, without repeats, in first-seen order."""
    return list(dict.fromkeys(_base(path) for path in paths))


def common_prefix_length(names: Sequence[str]) -> int:
    """Length of the prefix shared by the last components of all names."""
    if not names:
        return 0
    first = _base(names[0])
    match = len(names[0])
    for other in names[1:]:
        shared = len(os.path.commonprefix([first, _base(other)]))
        match = min(match, shared)
    return match


def squeeze_spaces(text: str) -> str:
    """Drop outer blanks and turn every run of spaces or tabs into one space."""
    return re.sub(r"[ \t]+", " ", text.strip(" \t"))


def _glob(pattern: str, root: str | os.PathLike[str] | None, mark: bool) -> list[str]:
    base = os.fspath(root) if root is not None else None
    found = sorted(glob.glob(pattern, root_dir=base))
    if not mark:
        return found
    marked = []
    for match in found:
        full = os.path.join(base, match) if base is not None else match
        if os.path.isdir(full) and not match.endswith("/"):
            match += "/"
        marked.append(match)
    return marked


def _path_dirs(path: str | Iterable[str | os.PathLike[str]] | None) -> list[str]:
    if path is None:
        return []
    if isinstance(path, str):
        return [entry for entry in path.split(os.pathsep) if entry]
    return [os.fspath(entry) for entry in path]


def _extend(line: str, word: str, names: Sequence[str]) -> str:
    known = len(_base(word))
    common = common_prefix_length(names)
    if common > known:
        return line + _base(names[0])[known:common]
    return line


def complete_argument(line: str, cwd: str | os.PathLike[str] = ".") -> Completion | None:
    """Complete the last word of the line as a file name in cwd."""
    word = line.rsplit(" ", 1)[-1]
    matches = _glob(word + "*", cwd, mark=True)
    if not matches:
        return None
    if len(matches) == 1:
        return Completion(line[: len(line) - len(word)] + matches[0])
    names = [_base(match) for match in matches]
    return Completion(_extend(line, word, names), tuple(names))


def complete_command(
    line: str, path: str | Iterable[str | os.PathLike[str]] | None
) -> Completion | None:
    """Complete the line as a program name found along the search path."""
    dirs = _path_dirs(path)
    if not dirs:
        return None
    found: list[str] = []
    for entry in dirs:
        found.extend(_glob(os.path.join(entry, line) + "*", None, mark=False))
    names = unique_names(found)
    if not names:
        return None
    if len(names) > LIST_LIMIT:
        return Completion(line, tuple(names), True)
    return Completion(_extend(line, line, names), tuple(names))


def complete(
    line: str | None,
    path: str | Iterable[str | os.PathLike[str]] | None = None,
    cwd: str | os.PathLike[str] = ".",
) -> Completion | None:
    """Complete a partly typed line; None when nothing matches."""
    if not line:
        found = _glob("*", cwd, mark=True)
        for entry in _path_dirs(path):
            found.extend(_glob(os.path.join(entry, "*"), None, mark=True))
        names = unique_names(found)
        return Completion("", tuple(names), len(names) > LIST_LIMIT)
    if line.endswith(" "):
        found = _glob("*", cwd, mark=True)
        if not found:
            return None
        return Completion(line, tuple(_base(match) for match in found))
    squeezed = squeeze_spaces(line)
    words = squeezed.split(" ") if squeezed else []
    if len(words) >= 2 or squeezed.startswith("./"):
        return complete_argument(squeezed, cwd)
    return complete_command(squeezed, path)