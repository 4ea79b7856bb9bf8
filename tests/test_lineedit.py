import pytest

from dogesh.lineedit import HISTORY_LIMIT, History, LineBuffer


def test_insert_at_end_and_middle():
    line = LineBuffer()
    line.insert("ecto")
    line.cursor = 2
    line.insert("h")
    assert line.text == "echto"
    assert line.cursor == 3


def test_cursor_out_of_range_rejected():
    with pytest.raises(ValueError):
        LineBuffer("ab", 3)


def test_delete_before_at_start_does_nothing():
    line = LineBuffer("abc", 0)
    assert line.delete_before() is False
    assert line.text == "abc"


def test_delete_before_removes_previous_char():
    line = LineBuffer("abc", 2)
    assert line.delete_before() is True
    assert (line.text, line.cursor) == ("ac", 1)


def test_kill_to_start_and_end_split_line():
    original = "echo hello"
    left = LineBuffer(original, 5)
    right = LineBuffer(original, 5)
    removed_left = left.kill_to_start()
    removed_right = right.kill_to_end()
    assert removed_left + left.text == original
    assert right.text + removed_right == original
    assert left.cursor == 0
    assert right.cursor == len(right.text)


def test_moves_stop_at_bounds():
    line = LineBuffer("ab", 0)
    assert line.move_left() is False
    assert line.move_right() is True
    assert line.move_right() is True
    assert line.move_right() is False
    assert line.cursor == len("ab")


def test_home_and_end_report_distance():
    line = LineBuffer("hello", 2)
    assert line.end() == len("hello") - 2
    assert line.home() == len("hello")
    assert line.cursor == 0


def test_word_left_stops_at_class_boundary():
    line = LineBuffer("echo hello", len("echo hello"))
    line.word_left()
    assert line.text[line.cursor:] == "hello"
    line.word_left()
    assert line.text[line.cursor:] == " hello"
    line.word_left()
    assert line.cursor == 0
    assert line.word_left() == 0


def test_word_right_mirrors_word_left():
    line = LineBuffer("echo hello", 0)
    line.word_right()
    assert line.text[: line.cursor] == "echo"
    line.word_right()
    assert line.text[: line.cursor] == "echo "
    line.word_right()
    assert line.cursor == len(line.text)


def test_replace_puts_cursor_at_end():
    line = LineBuffer("old", 1)
    line.replace("new text")
    assert (line.text, line.cursor) == ("new text", len("new text"))


def test_history_keeps_newest_entries_only():
    history = History()
    lines = [f"cmd{n}" for n in range(20)]
    for text in lines:
        history.add(text)
    assert len(history) == HISTORY_LIMIT
    assert list(history) == list(reversed(lines))[:HISTORY_LIMIT]


def test_history_navigation():
    history = History()
    history.add("first")
    history.add("second")
    assert history.up() == "second"
    assert history.up() == "first"
    assert history.up() == "first"
    assert history.down() == "second"
    assert history.down() == "second"


def test_history_add_resets_position():
    history = History()
    for text in ("a", "b", "c"):
        history.add(text)
    history.up()
    history.up()
    history.add("d")
    assert history.up() == "d"


def test_empty_history_gives_nothing():
    history = History()
    assert history.up() is None
    assert history.down() is None


def test_history_limit_must_be_positive():
    with pytest.raises(ValueError):
        History(0)