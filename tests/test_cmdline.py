import pytest

from cslabkit.cmdline import parse_line


def test_foreground_command():
    assert parse_line("/bin/ls -l\n") == (["/bin/ls", "-l"], False)


def test_background_command():
    assert parse_line("./myspin 5 &\n") == (["./myspin", "5"], True)


def test_ampersand_prefix_marks_background():
    assert parse_line("./myspin 5 &x\n") == (["./myspin", "5"], True)


@pytest.mark.parametrize("line", ["\n", "   \n", ""])
def test_blank_line_is_background_with_no_args(line):
    assert parse_line(line) == ([], True)


def test_extra_spaces_are_ignored():
    assert parse_line("   jobs    \n") == (["jobs"], False)


def test_quoted_argument_keeps_spaces():
    assert parse_line("echo 'hello world' x\n") == (["echo", "hello world", "x"], False)


def test_unterminated_quote_drops_rest():
    assert parse_line("echo 'abc def\n") == (["echo"], False)


def test_empty_quotes_give_empty_argument():
    argv, background = parse_line("echo ''\n")
    assert argv == ["echo", ""]
    assert background is False


def test_lone_ampersand():
    assert parse_line("&\n") == ([], True)


def test_argument_count_matches_words():
    words = ["a", "bb", "ccc", "dddd"]
    argv, background = parse_line(" ".join(words) + "\n")
    assert argv == words
    assert background is False