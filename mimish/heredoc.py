"""Reading here-documents into temporary files."""

import itertools
import os
import re

from mimish.commands import FileType, Redirection
from mimish.quotes import is_between_quotes, split_quoted

MAX_HEREDOCS = 16
DEFAULT_DIRECTORY = "/tmp"
FILE_PREFIX = ".mimish_"
TOO_MANY_HEREDOCS = "maximum here-document count exceeded"
END_OF_INPUT = "mimish: warning: here-document error"


class HeredocError(Exception):
    """A here-document could not be read; *status* is the exit status to set."""

    def __init__(self, message, status):
        super().__init__(message)
        self.message = message
        self.status = status


def count_heredocs(segment):
    """Return the number of runs of exactly two '<' in *segment*."""
    return sum(1 for run in re.findall(r"<+", segment) if len(run) == 2)


def recover_limiter(text, index):
    """Return the limiter of the here-document whose '<<' starts at *index*."""
    while index < len(text) and text[index] == "<":
        index += 1
    if text[index:index + 1] == " ":
        index += 1
    if text[index:index + 2] == '""':
        return ""
    if is_between_quotes(text, index + 1):
        closing = text.find(text[index], index + 1)
        return text[index + 1:closing if closing != -1 else len(text)]
    end = text.find(" ", index)
    return text[index:] if end == -1 else text[index:end]


def read_heredoc(limiter, lines, sink):
    """Copy *lines* to *sink* until a line equal to *limiter*.

    Raises HeredocError when the input ends first or is interrupted.
    """
    try:
        for line in lines:
            body = line.removesuffix("\n")
            if body == limiter:
                return
            sink.write(body + "\n")
    except KeyboardInterrupt:
        raise HeredocError("", 130) from None
    raise HeredocError(END_OF_INPUT, 0)


def create_heredoc_path(directory=DEFAULT_DIRECTORY):
    """Return the first unused here-document file path in *directory*."""
    for number in itertools.count():
        path = os.path.join(directory, f"{FILE_PREFIX}{number}")
        if not os.path.exists(path):
            return path
    raise AssertionError("unreachable")


def _heredoc_positions(segment):
    return [
        index
        for index in range(len(segment) - 1)
        if segment[index:index + 2] == "<<" and not is_between_quotes(segment, index)
    ]


def _attach(command, path):
    for redirection in command.redirections:
        if redirection.type is FileType.HEREDOC and redirection.filename is None:
            redirection.filename = path
            return
    command.redirections.append(Redirection(FileType.HEREDOC, path))


def collect_heredocs(line, commands, lines, directory=DEFAULT_DIRECTORY):
    """Read every here-document of *line* from *lines* into files.

    Each file is attached to the matching command; the created paths are
    returned. On error every file created here is removed.
    """
    lines = iter(lines)
    created = []
    try:
        for command, segment in zip(commands, split_quoted(line, "|")):
            if count_heredocs(segment) > MAX_HEREDOCS:
                raise HeredocError(TOO_MANY_HEREDOCS, 2)
            for index in _heredoc_positions(segment):
                path = create_heredoc_path(directory)
                created.append(path)
                with open(path, "w", encoding="utf-8") as sink:
                    read_heredoc(recover_limiter(segment, index), lines, sink)
                _attach(command, path)
    except HeredocError:
        for path in created:
            if os.path.exists(path):
                os.remove(path)
        raise
    return created