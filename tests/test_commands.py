import pytest

from mimish.commands import (
    Command,
    FileType,
    Redirection,
    build_commands,
    count_commands,
    count_files,
    parse_redirections,
    recover_filename,
    strip_redirections,
)
from mimish.environment import Environment
from mimish.quotes import split_quoted


@pytest.mark.parametrize("line", ["ls | wc | cat", "ls", "a|b", "x | y | z | w"])
def test_count_commands_matches_split(line):
    assert count_commands(line) == len(split_quoted(line, "|"))


def test_count_commands_ignores_quoted_pipe():
    assert count_commands("echo 'a|b' \"c|d\"") == 1


def test_parse_redirections_kinds_and_names():
    result = parse_redirections("cat < in > out >> log << EOF")
    assert [r.type for r in result] == [
        FileType.INFILE,
        FileType.OUTFILE,
        FileType.APPEND,
        FileType.HEREDOC,
    ]
    assert [r.filename for r in result] == ["in", "out", "log", None]


def test_parse_redirections_without_spaces():
    assert parse_redirections("cat <in >>log") == [
        Redirection(FileType.INFILE, "in"),
        Redirection(FileType.APPEND, "log"),
    ]


def test_quoted_chevron_is_not_a_redirection():
    assert parse_redirections("echo '>' x \"<\"") == []
    assert count_files("echo '>' x \"<\"") == 0


@pytest.mark.parametrize(
    "segment",
    ["cat < a > b", "x >> y << z", "echo hi", "a<b>c", "'<' < f"],
)
def test_count_files_matches_parse(segment):
    assert count_files(segment) == len(parse_redirections(segment))


def test_recover_filename_drops_quotes():
    assert recover_filename('> "out"file rest', 1) == "outfile"


def test_recover_filename_stops_at_whitespace():
    assert recover_filename(">   name other", 1) == "name"


def test_strip_redirections_removes_operator_and_target():
    result = strip_redirections("cat < in")
    assert "<" not in result
    assert result.split() == ["cat"]


def test_strip_redirections_keeps_arguments_around():
    result = strip_redirections("grep x > out file")
    assert result.split() == ["grep", "x", "file"]


def test_strip_redirections_quoted_target():
    result = strip_redirections("cat > 'a b' tail")
    assert result.split() == ["cat", "tail"]


def test_strip_redirections_leaves_quoted_chevron():
    text = "echo '>' x"
    assert strip_redirections(text) == text


def test_build_commands_expands_and_splits():
    env = Environment(["HOME=/home/user"])
    commands = build_commands("echo $HOME > out | wc", env, 0)
    assert len(commands) == 2
    assert commands[0].text.split() == ["echo", "/home/user"]
    assert commands[0].redirections == [Redirection(FileType.OUTFILE, "out")]
    assert commands[1] == Command(" wc", [])


def test_build_commands_does_not_expand_filenames():
    env = Environment(["FILE=real"])
    commands = build_commands("cat < $FILE", env, 0)
    assert commands[0].redirections[0].filename == "$FILE"


def test_build_commands_uses_status():
    commands = build_commands("echo $?", Environment(), 42)
    assert commands[0].text == "echo 42"


def test_build_commands_heredoc_placeholder():
    commands = build_commands("cat << EOF", Environment(), 0)
    assert commands[0].redirections == [Redirection(FileType.HEREDOC, None)]
    assert commands[0].text.split() == ["cat"]