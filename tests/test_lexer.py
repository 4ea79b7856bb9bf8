import pytest

from dogesh.lexer import (
    Command,
    ShellSyntaxError,
    Token,
    check_parentheses,
    group_tokens,
    lex,
    validate,
)


def toks(line):
    return [Token(word) for word in line.split()]


@pytest.mark.parametrize(
    "line",
    [
        "ls -l | wc -l",
        "a && b || c ; d",
        "( ls ) ; pwd",
        "cat < in > out",
        "sleep 1 &",
        "echo hi ;",
        "make 2>> log",
        "> out echo hi",
        "cmd 2>&1 file",
    ],
)
def test_valid_lines_keep_all_words(line):
    commands = lex(toks(line))
    flat = [w for cmd in commands for w in cmd.words]
    assert flat == line.split()


@pytest.mark.parametrize(
    "line, bad",
    [
        ("| ls", "|"),
        ("ls |", "|"),
        ("ls | | wc", "|"),
        ("ls >", ">"),
        ("&& ls", "&&"),
        ("ls &&", "&&"),
        ("( )", "("),
        ("ls ; ; pwd", ";"),
        ("; ls", ";"),
        ("& ls", "&"),
        ("ls ( x )", "ls"),
        (") ls", ")"),
        ("ls > | wc", ">"),
        ("ls < < in", "<"),
        ("a | ; b", "|"),
    ],
)
def test_invalid_lines(line, bad):
    with pytest.raises(ShellSyntaxError) as info:
        validate(toks(line))
    assert info.value.token == bad


def test_lex_raises_on_invalid():
    with pytest.raises(ShellSyntaxError):
        lex(toks("ls | | wc"))


def test_quoted_operator_is_a_word():
    commands = lex([Token("echo"), Token("|", quoted=True), Token("x")])
    assert commands == [Command(("echo", "|", "x"), False)]


def test_quoted_first_word_marks_command():
    commands = group_tokens([Token(";", quoted=True), Token("x")])
    assert commands == [Command((";", "x"), True)]


def test_group_pipeline():
    assert group_tokens(toks("ls -l | wc")) == [
        Command(("ls", "-l")),
        Command(("|",)),
        Command(("wc",)),
    ]


def test_group_background_and_separator():
    assert group_tokens(["a", ";", "b", "&"]) == [
        Command(("a",)),
        Command((";",)),
        Command(("b",)),
        Command(("&",)),
    ]


def test_group_operators_stand_alone():
    commands = group_tokens(toks("cat < in > out && echo done"))
    for cmd in commands:
        if cmd.words[0] in ("<", ">", "&&"):
            assert len(cmd.words) == 1


def test_group_empty():
    assert group_tokens([]) == []


def test_check_parentheses_pairs():
    assert check_parentheses(toks("( ls ) ; ( pwd )")) == 2
    assert check_parentheses(toks("ls")) == 0


def test_check_parentheses_unbalanced():
    with pytest.raises(ShellSyntaxError):
        check_parentheses(toks("( ls"))


def test_check_parentheses_counts_quoted():
    with pytest.raises(ShellSyntaxError):
        check_parentheses([Token("echo"), Token("(", quoted=True)])