"""Commands the shell runs itself: echo, cd, pwd, env, unset, export and exit."""

import os
import re

from mimish.quotes import remove_quotes, split_quoted, split_words

NUMERIC_REQUIRED = "exit: numeric argument required"
TOO_MANY_ARGUMENTS = "exit: too many arguments"

_PLAIN_WORD = re.compile(r"[^\t\n\v\f\r ]+")
_IDENTIFIER_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_"
)
_DIGITS = frozenset("0123456789")
_SIGNED_LIMITS = {"-": "-9223372036854775808", "+": "+9223372036854775807"}
_UNSIGNED_LIMIT = "9223372036854775807"


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with *status*."""

    def __init__(self, status):
        super().__init__(status)
        self.status = status


def _is_n_option(arg):
    return arg.startswith("-") and set(arg[1:]) <= {"n"}


def echo(command, out):
    """Write the arguments of *command* to *out*; leading ``-n`` options drop the newline."""
    words = split_words(command)
    if len(words) < 2:
        out.write("\n")
        return 0
    args = [remove_quotes(word) for word in words[1:]]
    start = 0
    while start < len(args) and _is_n_option(args[start]):
        start += 1
    out.write(" ".join(args[start:]))
    if start == 0:
        out.write("\n")
    return 0


def cd(command, env, err):
    """Change directory to the first argument, then update PWD and OLDPWD."""
    words = _PLAIN_WORD.findall(remove_quotes(command))
    path = words[1] if len(words) > 1 else ""
    try:
        os.chdir(path)
        status = 0
    except OSError as error:
        err.write(f"cd: {error.strerror}\n")
        status = 1
    old = env.get("PWD")
    try:
        current = os.getcwd()
    except OSError:
        current = ""
    export(f"export OLDPWD={old}", env, err)
    export(f"export PWD={current}", env, err)
    return status


def pwd(out):
    """Write the current directory to *out*; the exit status is left as it was."""
    out.write(os.getcwd() + "\n")


def print_env(env, out):
    """Write every entry of *env* that has a value."""
    for entry in env:
        if "=" in entry:
            out.write(entry + "\n")
    return 0


def unset(command, env):
    """Remove from *env* every entry starting with one of the argument names."""
    for name in split_words(command)[1:]:
        matches = [index for index, entry in enumerate(env) if entry.startswith(name)]
        for index in reversed(matches):
            env.remove_at(index)
    return 0


def is_valid_identifier(arg):
    """Return True if the name part of an export argument is a valid identifier."""
    if not arg or arg[0] in _DIGITS:
        return False
    length = 0
    for position, char in enumerate(arg):
        if char == "=" or arg[position:position + 2] == "+=":
            break
        if char not in _IDENTIFIER_CHARS:
            return False
        length += 1
    return length > 0


def format_export(env):
    """Return the ``declare -x`` listing of *env*, sorted by entry."""
    lines = []
    for entry in sorted(env):
        name, separator, value = entry.partition("=")
        if separator:
            lines.append(f'declare -x {name}="{value}"\n')
        else:
            lines.append(f"declare -x {entry}\n")
    return "".join(lines)


def _assign(arg, env):
    equals = arg.index("=")
    appending = arg[equals - 1] == "+"
    name = arg[:equals - 1] if appending else arg[:equals]
    value = arg[equals + 1:]
    index = env.index_of(name)
    if index is None:
        env.add(f"{name}={value}")
    elif not appending:
        env.remove_at(index)
        env.add(f"{name}={value}")
    else:
        env.replace_at(index, list(env)[index] + value)


def export(command, env, out):
    """Set, append to or declare variables; with no argument list them.

    The returned status is that of the last argument.
    """
    args = split_quoted(command, " ")
    if len(args) == 1:
        out.write(format_export(env))
    status = 0
    for raw in args[1:]:
        arg = remove_quotes(raw)
        if not is_valid_identifier(arg):
            out.write(f"export: `{arg}': not a valid identifier\n")
            status = 1
            continue
        status = 0
        if "=" in arg:
            _assign(arg, env)
        elif not env.contains(arg):
            env.add(arg)
    return status


def _out_of_range(arg):
    sign = arg[:1]
    if sign in _SIGNED_LIMITS:
        limit, longest = _SIGNED_LIMITS[sign], 20
    else:
        limit, longest = _UNSIGNED_LIMIT, 19
    return len(arg) > longest or limit < arg


def _is_numeric(arg):
    return arg.startswith("-") or all(char in _DIGITS for char in arg)


def _atoll(text):
    match = re.match(r"[\t\n\v\f\r ]*([+-]?)([0-9]*)", text)
    sign, digits = match.groups()
    value = int(digits) if digits else 0
    return -value if sign == "-" else value


def exit_command(command, status, err):
    """Raise ShellExit with the requested status.

    Returns 1 without exiting when given too many arguments.
    """
    args = split_quoted(command, " ")
    if len(args) <= 1:
        err.write("exit\n")
        raise ShellExit(status)
    arg = args[1]
    if _out_of_range(arg) or not _is_numeric(arg):
        err.write(f"exit\n{NUMERIC_REQUIRED}\n")
        raise ShellExit(2)
    if len(args) > 2:
        err.write(f"exit\n{TOO_MANY_ARGUMENTS}\n")
        return 1
    raise ShellExit(_atoll(arg) & 0xFF)