"""Environment storage and variable expansion."""

from mimish.quotes import QUOTES, is_white_space


class Environment:
    """An ordered list of ``NAME=value`` (or bare ``NAME``) entries."""

    def __init__(self, entries=()):
        self._entries = list(entries)

    def index_of(self, name):
        """Return the index of the first entry starting with *name*, or None."""
        for index, entry in enumerate(self._entries):
            if entry.startswith(name):
                return index
        return None

    def contains(self, name):
        """Return True if some entry starts with *name*."""
        return self.index_of(name) is not None

    def get(self, name):
        """Return the value of *name*, or an empty string if it has none."""
        index = self.index_of(name)
        if index is None:
            return ""
        _, _, value = self._entries[index].partition("=")
        return value

    def add(self, line):
        """Append an entry."""
        self._entries.append(line)

    def remove_at(self, index):
        """Remove the entry at *index* and return it."""
        return self._entries.pop(index)

    def replace_at(self, index, line):
        """Replace the entry at *index* with *line*."""
        self._entries[index] = line

    def __iter__(self):
        return iter(list(self._entries))

    def __len__(self):
        return len(self._entries)


def _starts_name(text, position):
    if position >= len(text):
        return False
    char = text[position]
    return not is_white_space(char) and char not in QUOTES and char != "$"


def _next_expansion(text):
    """Return the index of the first '$' to expand, or None."""
    open_quote = None
    for index, char in enumerate(text):
        if open_quote is None and char in QUOTES:
            open_quote = char
        elif char == open_quote:
            open_quote = None
        elif char == "$" and open_quote != "'" and _starts_name(text, index + 1):
            return index
    return None


def recover_name(text, index):
    """Return the variable name following the '$' at *index*."""
    name = []
    for char in text[index + 1:]:
        if is_white_space(char) or char in QUOTES or char == "$":
            break
        name.append(char)
    result = "".join(name)
    if result.startswith("?"):
        return "?"
    return result


def expand(text, env, status):
    """Replace ``$NAME`` and ``$?`` outside single quotes in *text*."""
    while (index := _next_expansion(text)) is not None:
        name = recover_name(text, index)
        value = str(status) if name == "?" else env.get(name)
        text = text[:index] + value + text[index + 1 + len(name):]
    return text