# dogesh

The pieces of a small interactive Unix shell, usable on their own from Python:
checking and parsing a command line, running the result with pipes and
redirections, drawing the prompt, and editing the input line with history and
tab completion.

## Modules

- `dogesh.tokens` – classifies words: separators (`;`, `&&`, `||`),
  redirections (`<<`, `<`, `2>>`, `>>`, `2>&1`, `2>`, `>`), the pipe `|`,
  parentheses and the background marker `&`, through the `Category` enum and
  `matches`, `category_of`, `separator_index`, `is_redirection` and
  `separator_word`. Quoted words are never operators.
- `dogesh.lexer` – `Token` and `Command`; `check_parentheses` counts `(`
  against `)`, `validate` checks each token against its neighbours,
  `group_tokens` gathers runs of plain words into commands, and `lex` does the
  last two. Errors raise `ShellSyntaxError`, whose `token` names the
  offending word.
- `dogesh.parser` – `build_tree` and `parse` turn commands into a tree of
  `Node` objects recording separators, redirections, pipes and parenthesised
  groups.
- `dogesh.executor` – `Executor(env, builtins)` runs a tree with
  `execute(tree)` and returns the final status. It handles pipes,
  redirections, `;`, `&&`, `||`, parenthesised groups, `&` (the process is
  kept in `Executor.jobs` instead of being waited for) and `exit` (sets
  `exit_requested`). Programs are found with `resolve_command(name, path)`;
  `wait_all` waits for started processes and returns the last status.
- `dogesh.redirections` – `Redirections` opens the files for each operator
  with `apply(operator, target)` and releases them with `close()` or as a
  context manager; `read_heredoc` and `copy_lines` are the line helpers.
- `dogesh.prompt` – `render_prompt` expands templates with `\u`, `\h`, `\H`,
  `\w`, `\W`, `\d`, `\t`, `\T`, `\@`, `\A`, `\g` (git branch, red when the
  work tree has changes), `\s`, `\v`, `\V`, `\#`, `\$`, `\n`, `\a`, `\r`,
  `\e`, `\\`, `\[` and `\]`, using a `PromptContext`. `prompt_text` uses
  `PS1`, then `PS2`, then falls back to `(user) : ` or `?> : `.
- `dogesh.lineedit` – `LineBuffer`, an editable line with cursor motion,
  word jumps and kill commands, and `History`, the newest 15 lines by default.
- `dogesh.completion` – `complete(line, path, cwd)` completes program names
  from the search path and file names from the working directory, returning a
  `Completion` (or None when nothing matches). Over 50 names sets
  `needs_confirmation`.
- `dogesh.terminal` – `decode_key` maps raw key codes to `Key` actions,
  `LineEditor.feed` applies them to a line, and `read_line(stream, editor)`
  reads keys (in raw mode on a terminal) until a line is entered.

## Example

```python
import os

from dogesh.executor import Executor
from dogesh.parser import parse

tree = parse(["ls", "-l", "|", "wc", "-l", ";", "echo", "done"])
status = Executor(os.environ).execute(tree)
```

Builtins are supplied by the caller as a mapping from name to a callable
taking the executor, the argument list and a text stream for output, and
returning a status:

```python
def hello(executor, argv, out):
    out.write("hello\n")
    return 0

Executor(os.environ, {"hello": hello}).execute(parse(["hello"]))
```

## What it does not do

- There is no command to start an interactive shell; the pieces have to be
  joined by the caller.
- Lines are not split into words here: `parse` takes words that are already
  split, with `Token(text, quoted=True)` for quoted ones.
- No builtins come with the package (`cd`, `echo`, `env`, `setenv`, `alias`
  and the like) apart from `exit`; job control (`fg`, `bg`, `jobs`),
  variable and tilde expansion, globbing and backquotes are not provided.

## Tests

```
pip install -e .[test]
pytest
```