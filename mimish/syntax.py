"""Syntax checks run on a command line before it is split into commands."""

from mimish.quotes import CHEVRONS, QUOTES, is_between_quotes, is_white_space

QUOTE_NOT_CLOSED = "syntax error: quote not close"
UNEXPECTED_PIPE = "syntax error near unexpected token '|'"
WRONG_REDIRECTION_COUNT = "syntax error: wrong number of '<' or '>'"
UNEXPECTED_NEWLINE = "error near unexpected token `newline'"
UNEXPECTED_PIPE_TOKEN = "syntax error near unexpected token `|'"
UNEXPECTED_CHEVRON = "syntax error near unexpected token `<' or `>'"


class ShellSyntaxError(Exception):
    """A command line that cannot be run; *status* is the exit status to set."""

    def __init__(self, message, status=2):
        super().__init__(message)
        self.message = message
        self.status = status


def check_quotes(text):
    """Raise if a quote in *text* is never closed."""
    open_quote = None
    for char in text:
        if open_quote is None:
            if char in QUOTES:
                open_quote = char
        elif char == open_quote:
            open_quote = None
    if open_quote is not None:
        raise ShellSyntaxError(QUOTE_NOT_CLOSED)


def _skippable(text, index):
    return is_white_space(text[index]) or is_between_quotes(text, index)


def check_pipes(text):
    """Raise if a pipe has no command on one of its sides."""
    for index, char in enumerate(text):
        if char != "|":
            continue
        before = index - 1
        while before >= 0 and _skippable(text, before):
            before -= 1
        if before < 0 or (text[before] == "|" and not is_between_quotes(text, before)):
            raise ShellSyntaxError(UNEXPECTED_PIPE)
        after = index + 1
        while after < len(text) and _skippable(text, after):
            after += 1
        if after == len(text) or text[after] == "|":
            raise ShellSyntaxError(UNEXPECTED_PIPE)


def check_redirection_count(text):
    """Raise if more than two redirection characters follow each other."""
    run = 0
    for index, char in enumerate(text):
        if char in CHEVRONS and not is_between_quotes(text, index):
            run += 1
            if run > 2:
                raise ShellSyntaxError(WRONG_REDIRECTION_COUNT)
        else:
            run = 0


def _check_target(text, index):
    def char_at(position):
        return text[position] if position < len(text) else ""

    if char_at(index) == "":
        raise ShellSyntaxError(UNEXPECTED_NEWLINE)
    if is_white_space(char_at(index)):
        index += 1
    char = char_at(index)
    if char == "|":
        raise ShellSyntaxError(UNEXPECTED_PIPE_TOKEN)
    if char in CHEVRONS:
        raise ShellSyntaxError(UNEXPECTED_CHEVRON)
    if char == "":
        raise ShellSyntaxError(UNEXPECTED_NEWLINE)


def check_redirections(text):
    """Raise if a redirection is malformed or lacks a target."""
    check_redirection_count(text)
    index = 0
    while index < len(text):
        char = text[index]
        if char in CHEVRONS and not is_between_quotes(text, index):
            index += 2 if text[index + 1:index + 2] == char else 1
            _check_target(text, index)
        index += 1


def validate(text):
    """Return *text* if it passes every syntax check, else raise ShellSyntaxError."""
    check_quotes(text)
    check_pipes(text)
    check_redirections(text)
    return text