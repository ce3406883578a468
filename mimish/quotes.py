"""Quote-aware scanning helpers for command lines."""

QUOTES = frozenset("'\"")
WHITESPACE = frozenset("\t\n\v\f\r ")
CHEVRONS = frozenset("<>")


def _quote_marks(text):
    """Return, for each character, the quote that encloses it, or None.

    Opening and closing quote characters are not considered enclosed.
    An unclosed quote encloses everything up to the end of the text.
    """
    marks = []
    open_quote = None
    for char in text:
        if open_quote is None:
            if char in QUOTES:
                open_quote = char
            marks.append(None)
        elif char == open_quote:
            open_quote = None
            marks.append(None)
        else:
            marks.append(open_quote)
    return marks


def is_white_space(char):
    """Return True if *char* is a space or one of the characters \\t to \\r."""
    return char in WHITESPACE


def is_between_quotes(text, index):
    """Return True if the character at *index* lies inside a quoted span."""
    if index < 0 or index >= len(text):
        return False
    return _quote_marks(text)[index] is not None


def has_redirection(text):
    """Return True if *text* contains any '<' or '>'."""
    return any(char in CHEVRONS for char in text)


def matches_command(name, command):
    """Return True if *command*, after leading blanks, starts with the word *name*."""
    if not name:
        return True
    stripped = command.lstrip("".join(WHITESPACE))
    if not stripped.startswith(name):
        return False
    following = stripped[len(name):len(name) + 1]
    return following == "" or is_white_space(following)


def remove_quotes(text):
    """Drop the quote characters that delimit quoted spans."""
    kept = []
    open_quote = None
    for char in text:
        if open_quote is None and char in QUOTES:
            open_quote = char
        elif char == open_quote:
            open_quote = None
        else:
            kept.append(char)
    return "".join(kept)


def _split(text, is_separator):
    pieces = []
    current = []
    for char, mark in zip(text, _quote_marks(text)):
        if mark is None and is_separator(char):
            if current:
                pieces.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        pieces.append("".join(current))
    return pieces


def split_quoted(text, separator):
    """Split *text* on *separator* outside quotes, dropping empty pieces."""
    return _split(text, lambda char: char == separator)


def split_words(text):
    """Split *text* on whitespace outside quotes, dropping empty pieces."""
    return _split(text, is_white_space)