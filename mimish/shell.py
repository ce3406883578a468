"""The interactive shell: prompt, line handling and signal behaviour."""

import contextlib
import os
import signal
import sys
import threading
from collections.abc import Mapping

from mimish.builtins import ShellExit
from mimish.commands import build_commands
from mimish.environment import Environment
from mimish.executor import COMMAND_NOT_FOUND, NOT_FOUND_STATUS, execute
from mimish.heredoc import DEFAULT_DIRECTORY, HeredocError, collect_heredocs
from mimish.syntax import WRONG_REDIRECTION_COUNT, ShellSyntaxError, validate

BANNER = "Mimish Version 0.0.4.2\nPress Ctrl+d to Exit\n"
PROMPT = "mimish> "
_LONE_INVALID = frozenset("./[")


@contextlib.contextmanager
def _child_signals(out):
    """While children run, report interrupts instead of dying on them."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def on_signal(number, frame):
        out.write("\n" if number == signal.SIGINT else "Quit (core dumped)\n")

    numbers = [signal.SIGINT]
    if hasattr(signal, "SIGQUIT"):
        numbers.append(signal.SIGQUIT)
    previous = {number: signal.signal(number, on_signal) for number in numbers}
    try:
        yield
    finally:
        for number, handler in previous.items():
            signal.signal(number, handler if handler is not None else signal.SIG_DFL)


class Shell:
    """Shell state: environment, last exit status and output streams."""

    def __init__(self, environ=None, stdout=None, stderr=None):
        environ = os.environ if environ is None else environ
        if isinstance(environ, Mapping):
            entries = [f"{name}={value}" for name, value in environ.items()]
        else:
            entries = list(environ)
        self.env = Environment(entries)
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.status = 0
        self.input_lines = None
        self.heredoc_directory = DEFAULT_DIRECTORY

    def run_line(self, line):
        """Check, parse and run one command line; return the new exit status.

        Raises ShellExit when the line ends the shell.
        """
        if not line:
            return self.status
        if len(line) == 1 and line in _LONE_INVALID:
            self.stderr.write(COMMAND_NOT_FOUND + "\n")
            self.status = NOT_FOUND_STATUS
            return self.status
        try:
            validate(line)
        except ShellSyntaxError as error:
            stream = self.stdout if error.message == WRONG_REDIRECTION_COUNT else self.stderr
            stream.write(error.message + "\n")
            self.status = error.status
            return self.status
        commands = build_commands(line, self.env, self.status)
        lines = self.input_lines if self.input_lines is not None else sys.stdin
        try:
            created = collect_heredocs(line, commands, lines, self.heredoc_directory)
        except HeredocError as error:
            if error.message:
                self.stderr.write(error.message + "\n")
            self.status = error.status
            if error.status == 2:
                raise ShellExit(error.status) from None
            return self.status
        try:
            with _child_signals(self.stdout):
                self.status = execute(
                    commands, self.env, self.status, self.stdout, self.stderr
                )
        finally:
            for path in created:
                if os.path.exists(path):
                    os.remove(path)
        return self.status

    def _prompt(self):
        while True:
            try:
                yield input(PROMPT)
            except EOFError:
                return
            except KeyboardInterrupt:
                self.stdout.write("\n")
                self.status = 130

    def loop(self, lines=None):
        """Run lines until input ends or ``exit``; return the final status.

        Given *lines*, here-documents read from the same iterator; otherwise
        commands are prompted for and here-documents read standard input.
        """
        if lines is not None:
            source = iter(lines)
            self.input_lines = source
        else:
            source = self._prompt()
        try:
            for line in source:
                self.run_line(line.removesuffix("\n"))
        except ShellExit as request:
            self.status = request.status
            return self.status
        self.stderr.write("exit\n")
        return self.status


def main(argv=None):
    """Start the interactive shell; any argument is refused with status 1."""
    argv = sys.argv[1:] if argv is None else list(argv)
    if argv:
        return 1
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    shell = Shell()
    shell.stdout.write(BANNER)
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    return shell.loop()


if __name__ == "__main__":
    sys.exit(main())