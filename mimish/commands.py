"""Splitting a command line into commands and their redirections."""

import enum
from dataclasses import dataclass, field

from mimish.environment import expand
from mimish.quotes import (
    CHEVRONS,
    QUOTES,
    WHITESPACE,
    is_between_quotes,
    is_white_space,
    split_quoted,
)


class FileType(enum.IntEnum):
    """Kind of a redirection."""

    INFILE = 1
    OUTFILE = 2
    HEREDOC = 3
    APPEND = 4


@dataclass
class Redirection:
    """One redirection of a command; a here-document has no filename until read."""

    type: FileType
    filename: str | None = None


@dataclass
class Command:
    """A single command of a pipeline, without its redirections."""

    text: str
    redirections: list = field(default_factory=list)


def _operators(text):
    """Yield (index, kind, width) for each unquoted redirection operator."""
    index = 0
    while index < len(text):
        char = text[index]
        if char in CHEVRONS and not is_between_quotes(text, index):
            if text[index + 1:index + 2] == char:
                kind = FileType.APPEND if char == ">" else FileType.HEREDOC
                yield index, kind, 2
                index += 2
                continue
            kind = FileType.OUTFILE if char == ">" else FileType.INFILE
            yield index, kind, 1
        index += 1


def count_commands(text):
    """Return the number of commands: one more than the unquoted pipes."""
    return 1 + sum(
        1
        for index, char in enumerate(text)
        if char == "|" and not is_between_quotes(text, index)
    )


def count_files(segment):
    """Return the number of redirections in one command segment."""
    return sum(1 for _ in _operators(segment))


def recover_filename(text, index):
    """Return the word starting at *index* after blanks, without quote characters."""
    rest = text[index:].lstrip("".join(WHITESPACE))
    name = []
    for char in rest:
        if is_white_space(char):
            break
        if char not in QUOTES:
            name.append(char)
    return "".join(name)


def parse_redirections(segment):
    """Return the redirections of *segment* in the order they appear."""
    redirections = []
    for index, kind, width in _operators(segment):
        if kind is FileType.HEREDOC:
            redirections.append(Redirection(kind))
        else:
            redirections.append(
                Redirection(kind, recover_filename(segment, index + width))
            )
    return redirections


def _skip_redirection(text, index):
    """Return the index just past the redirection starting at *index*."""
    while index < len(text) and text[index] in CHEVRONS:
        index += 1
    while index < len(text) and is_white_space(text[index]):
        index += 1
    if is_between_quotes(text, index + 1):
        closing = text.find(text[index], index + 1)
        return len(text) if closing == -1 else closing + 1
    while index < len(text) and not is_white_space(text[index]):
        index += 1
    return index


def strip_redirections(segment):
    """Return *segment* with its redirection operators and targets removed."""
    kept = []
    index = 0
    while index < len(segment):
        if segment[index] in CHEVRONS and not is_between_quotes(segment, index):
            index = _skip_redirection(segment, index)
            if index >= len(segment):
                break
        kept.append(segment[index])
        index += 1
    return "".join(kept)


def build_commands(line, env, status):
    """Split *line* into commands, expanding variables in each command text.

    Redirection targets are taken before expansion.
    """
    commands = []
    for segment in split_quoted(line, "|"):
        redirections = parse_redirections(segment)
        text = strip_redirections(expand(segment, env, status))
        commands.append(Command(text, redirections))
    return commands