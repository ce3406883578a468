import io

import pytest

from mimish.commands import FileType, build_commands
from mimish.environment import Environment
from mimish.heredoc import (
    HeredocError,
    collect_heredocs,
    count_heredocs,
    create_heredoc_path,
    read_heredoc,
    recover_limiter,
)


def _interrupted_lines():
    yield "line\n"
    raise KeyboardInterrupt


def test_count_heredocs_counts_double_chevrons():
    line = "cat << a << b"
    assert count_heredocs(line) == line.count("<<")


def test_count_heredocs_ignores_single_chevron():
    assert count_heredocs("cat < a > b") == 0


def test_recover_limiter_plain():
    assert recover_limiter("cat << EOF", 4) == "EOF"


def test_recover_limiter_without_space():
    assert recover_limiter("cat <<EOF rest", 4) == "EOF"


def test_recover_limiter_quoted():
    assert recover_limiter('cat << "E O"', 4) == "E O"


def test_recover_limiter_empty_quotes():
    assert recover_limiter('cat << ""', 4) == ""


def test_read_heredoc_stops_at_limiter():
    sink = io.StringIO()
    lines = iter(["a\n", "b\n", "EOF\n", "c\n"])
    read_heredoc("EOF", lines, sink)
    assert sink.getvalue() == "a\nb\n"
    assert next(lines) == "c\n"


def test_read_heredoc_end_of_input():
    sink = io.StringIO()
    with pytest.raises(HeredocError) as info:
        read_heredoc("EOF", ["only\n"], sink)
    assert info.value.status == 0
    assert sink.getvalue() == "only\n"


def test_read_heredoc_interrupted():
    with pytest.raises(HeredocError) as info:
        read_heredoc("EOF", _interrupted_lines(), io.StringIO())
    assert info.value.status == 130


def test_create_heredoc_path_is_unused(tmp_path):
    first = create_heredoc_path(str(tmp_path))
    assert first.startswith(str(tmp_path))
    open(first, "w").close()
    second = create_heredoc_path(str(tmp_path))
    assert second != first
    assert not (tmp_path / second).exists()


def test_collect_heredocs_fills_each_command(tmp_path):
    line = "cat << EOF | cat << END"
    commands = build_commands(line, Environment(), 0)
    lines = ["one\n", "EOF\n", "two\n", "END\n"]
    created = collect_heredocs(line, commands, lines, str(tmp_path))
    assert len(created) == 2
    first = commands[0].redirections[0]
    second = commands[1].redirections[0]
    assert first.type is FileType.HEREDOC
    assert [first.filename, second.filename] == created
    with open(first.filename, encoding="utf-8") as handle:
        assert handle.read() == "one\n"
    with open(second.filename, encoding="utf-8") as handle:
        assert handle.read() == "two\n"


def test_collect_heredocs_quoted_operator_ignored(tmp_path):
    line = "echo '<<' x"
    commands = build_commands(line, Environment(), 0)
    assert collect_heredocs(line, commands, [], str(tmp_path)) == []
    assert list(tmp_path.iterdir()) == []


def test_collect_heredocs_removes_files_on_error(tmp_path):
    line = "cat << EOF"
    commands = build_commands(line, Environment(), 0)
    with pytest.raises(HeredocError) as info:
        collect_heredocs(line, commands, ["never ends\n"], str(tmp_path))
    assert info.value.status == 0
    assert list(tmp_path.iterdir()) == []


def test_collect_heredocs_too_many(tmp_path):
    line = "cat " + "<< a " * 17
    commands = build_commands(line, Environment(), 0)
    with pytest.raises(HeredocError) as info:
        collect_heredocs(line, commands, [], str(tmp_path))
    assert info.value.status == 2
    assert info.value.message == "maximum here-document count exceeded"